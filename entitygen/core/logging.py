import logging
import sys

from entitygen.core.config import settings


class ContextFormatter(logging.Formatter):
    """Custom formatter that handles optional entity and phase fields."""
    def format(self, record):
        # Add default values for entity and phase if not present
        if not hasattr(record, 'entity'):
            record.entity = '-'
        if not hasattr(record, 'phase'):
            record.phase = '-'
        return super().format(record)


def configure_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(
        "%(asctime)s %(levelname)s %(name)s [entity=%(entity)s phase=%(phase)s] - %(message)s"
    ))
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        handlers=[handler],
    )
