"""File writer for generated entity artifacts."""
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from entitygen.core.config import Settings, settings as default_settings
from entitygen.generators.entity_gen.errors import EmissionError
from entitygen.generators.entity_gen.types import GeneratedFile

log = logging.getLogger(__name__)


@dataclass
class EmittedFile:
    """What happened to one generated file."""
    path: str
    action: str  # "created", "updated" or "skipped"
    created: bool = False


class FileEmitter:
    """
    Writes generated files under an output directory.

    Base files are always rewritten. Scaffold files (created=True) are written only when
    missing, unless force is set. With dry_run nothing touches the disk.
    """

    def __init__(
        self,
        out_dir: Union[str, Path, None] = None,
        force: Optional[bool] = None,
        dry_run: Optional[bool] = None,
        settings: Optional[Settings] = None,
    ):
        settings = settings or default_settings
        self.out_dir = Path(out_dir if out_dir is not None else settings.output_dir)
        self.force = settings.force if force is None else force
        self.dry_run = settings.dry_run if dry_run is None else dry_run
        # Writes to the same path through this emitter are serialized
        self._locks: Dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def emit(self, files: List[GeneratedFile]) -> List[EmittedFile]:
        """
        Write generated files to the output directory.

        Args:
            files: List of GeneratedFile objects to write

        Returns:
            One EmittedFile per input file, in order

        Raises:
            EmissionError: if a file cannot be written
        """
        return [self._emit_one(file) for file in files]

    def _lock_for(self, path: Path) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(path, threading.Lock())

    def _emit_one(self, file: GeneratedFile) -> EmittedFile:
        file_path = (self.out_dir / file.path).resolve()
        with self._lock_for(file_path):
            exists = file_path.exists()
            if file.created and exists and not self.force:
                log.info("Keeping existing scaffold %s", file.path, extra={"phase": "emit"})
                return EmittedFile(path=file.path, action="skipped", created=file.created)

            action = "updated" if exists else "created"
            if self.dry_run:
                log.info("Dry run: would have %s %s", action, file.path, extra={"phase": "emit"})
                return EmittedFile(path=file.path, action=action, created=file.created)

            try:
                # Create parent directories if needed
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_path.write_text(file.content, encoding="utf-8")
            except OSError as e:
                raise EmissionError(f"Failed to write {file.path}: {e}", path=file.path) from e

            log.info("%s %s", action.capitalize(), file.path, extra={"phase": "emit"})
            return EmittedFile(path=file.path, action=action, created=file.created)


def write_files(files: List[GeneratedFile], out_dir: Path, force: bool = False) -> List[EmittedFile]:
    """Write generated files to the output directory."""
    return FileEmitter(out_dir, force=force, dry_run=False).emit(files)
