"""Relative output paths and module names for generated artifacts."""
from dataclasses import dataclass

from entitygen.core.config import Settings
from entitygen.generators.entity_gen.utils import entity_to_slug, path_to_module


@dataclass(frozen=True)
class ArtifactPaths:
    """Where each artifact of an entity lives inside the target source tree."""
    entities_dir: str = "app/entities"
    inputs_dir: str = "app/inputs"
    operations_dir: str = "app/api/entities"
    generated_dirname: str = "generated"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ArtifactPaths":
        return cls(
            entities_dir=settings.entities_dir.strip("/"),
            inputs_dir=settings.inputs_dir.strip("/"),
            operations_dir=settings.operations_dir.strip("/"),
            generated_dirname=settings.generated_dirname.strip("/"),
        )

    def entity_base(self, entity_name: str) -> str:
        return f"{self.entities_dir}/{self.generated_dirname}/{entity_to_slug(entity_name)}_base.py"

    def entity_scaffold(self, entity_name: str) -> str:
        return f"{self.entities_dir}/{entity_to_slug(entity_name)}.py"

    def inputs_base(self, entity_name: str) -> str:
        return f"{self.inputs_dir}/{self.generated_dirname}/{entity_to_slug(entity_name)}_inputs_base.py"

    def inputs_scaffold(self, entity_name: str) -> str:
        return f"{self.inputs_dir}/{entity_to_slug(entity_name)}_inputs.py"

    def router_base(self, entity_name: str) -> str:
        return f"{self.operations_dir}/{self.generated_dirname}/{entity_to_slug(entity_name)}_router_base.py"

    def router_scaffold(self, entity_name: str) -> str:
        return f"{self.operations_dir}/{entity_to_slug(entity_name)}.py"

    @staticmethod
    def module(path: str) -> str:
        return path_to_module(path)
