"""Orchestrator for entity code generation."""
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from entitygen.core.config import Settings, settings as default_settings
from entitygen.generators.entity_gen.enums import EnumRegistry
from entitygen.generators.entity_gen.errors import ClassificationError, SchemaError
from entitygen.generators.entity_gen.loader import load_schema_documents
from entitygen.generators.entity_gen.parser import parse_entity
from entitygen.generators.entity_gen.paths import ArtifactPaths
from entitygen.generators.entity_gen.render_entity import render_entity_base, render_entity_scaffold
from entitygen.generators.entity_gen.render_inputs import render_inputs_base, render_inputs_scaffold
from entitygen.generators.entity_gen.render_operations import render_router_base, render_router_scaffold
from entitygen.generators.entity_gen.strategies import StrategyRegistry, default_registry
from entitygen.generators.entity_gen.types import (
    INPUT_OPERATIONS,
    ArtifactResult,
    BatchReport,
    EntitySchema,
    GeneratedFile,
    GenerationResult,
)

log = logging.getLogger(__name__)

PHASE_ENTITY = "entity"
PHASE_INPUTS = "inputs"
PHASE_OPERATIONS = "operations"


class GeneratorFactory:
    """
    Builds the entity, input and operation artifacts for parsed entity schemas.

    The factory only produces file paths and contents; writing them is FileEmitter's job.
    Instances hold no per-entity state and can be shared.
    """

    def __init__(self, settings: Optional[Settings] = None, registry: Optional[StrategyRegistry] = None):
        self.settings = settings or default_settings
        self.registry = registry or default_registry
        self.paths = ArtifactPaths.from_settings(self.settings)

    def generate_entity(self, entity: EntitySchema, enums: Optional[EnumRegistry] = None) -> ArtifactResult:
        """Generate the entity base module and its extension scaffold."""
        return self._run_phase(PHASE_ENTITY, entity, lambda: self._build_entity(entity, enums))

    def generate_inputs(self, entity: EntitySchema, enums: Optional[EnumRegistry] = None) -> ArtifactResult:
        """Generate the create/update input module and its extension scaffold."""
        return self._run_phase(PHASE_INPUTS, entity, lambda: self._build_inputs(entity, enums))

    def generate_resolver_operations(self, entity: EntitySchema) -> ArtifactResult:
        """Generate the CRUD router module and its extension scaffold."""
        return self._run_phase(PHASE_OPERATIONS, entity, lambda: self._build_operations(entity))

    def generate_all(self, entity: EntitySchema) -> GenerationResult:
        """
        Run every phase for one entity.

        Phases are independent: a failing phase is reported in its own result and the
        remaining phases still run.

        Raises:
            SchemaError: if the entity's enums conflict
            ClassificationError: if a field could not be classified
        """
        log.info("Generating entity artifacts", extra={"entity": entity.name, "phase": "all"})
        self._warn_required_without_default(entity)
        enums = EnumRegistry.build(entity)

        result = GenerationResult(
            entity_name=entity.name,
            entity=self.generate_entity(entity, enums),
            inputs=self.generate_inputs(entity, enums),
            operations=self.generate_resolver_operations(entity),
        )
        if result.success:
            log.info(
                "Generated %d file(s)", len(result.files),
                extra={"entity": entity.name, "phase": "all"},
            )
        else:
            log.error(
                "Generation finished with %d error(s)", len(result.errors),
                extra={"entity": entity.name, "phase": "all"},
            )
        return result

    def generate_batch(self, sources: Mapping[str, Union[EntitySchema, Mapping[str, Any], str]]) -> BatchReport:
        """
        Generate several entities. A schema error aborts only the entity it belongs to.

        Args:
            sources: label -> EntitySchema, raw schema mapping or JSON text
        """
        report = BatchReport()
        for label, source in sources.items():
            try:
                entity = source if isinstance(source, EntitySchema) else parse_entity(source)
                report.results.append(self.generate_all(entity))
            except SchemaError as e:
                log.error("Schema error in %s: %s", label, e, extra={"entity": label, "phase": "parse"})
                report.failures[label] = [str(e)]
        return report

    def generate_from_files(self, paths: Iterable[Union[str, Path]]) -> BatchReport:
        """
        Load schema files and generate every entity they contain.

        Each entity of a multi-entity file is parsed on its own and labelled "<path>:<index>",
        so an invalid entity does not hide the valid ones next to it.
        """
        sources: Dict[str, Any] = {}
        failures: Dict[str, List[str]] = {}
        for path in paths:
            try:
                documents = load_schema_documents(path)
            except SchemaError as e:
                log.error("Cannot load %s: %s", path, e, extra={"phase": "load"})
                failures[str(path)] = [str(e)]
                continue
            for index, document in enumerate(documents):
                label = str(path) if len(documents) == 1 else f"{path}:{index}"
                sources[label] = document

        report = self.generate_batch(sources)
        report.failures.update(failures)
        return report

    def _run_phase(self, kind: str, entity: EntitySchema, build: Callable[[], ArtifactResult]) -> ArtifactResult:
        extra = {"entity": entity.name, "phase": kind}
        try:
            result = build()
        except ClassificationError:
            raise
        except Exception as e:
            log.error("%s generation failed: %s", kind.capitalize(), e, exc_info=True, extra=extra)
            return ArtifactResult(kind=kind, errors=[f"{kind.capitalize()} generation failed: {e}"])

        if result.errors:
            log.warning("%s generation finished with %d field error(s)", kind.capitalize(), len(result.errors), extra=extra)
        else:
            log.info("Generated %d %s file(s)", len(result.files), kind, extra=extra)
        return result

    def _build_entity(self, entity: EntitySchema, enums: Optional[EnumRegistry]) -> ArtifactResult:
        if enums is None:
            enums = EnumRegistry.build(entity)
        prepared, errors = self.registry.prepare_fields(entity, enums)

        base_path = self.paths.entity_base(entity.name)
        files = [
            GeneratedFile(
                path=base_path,
                content=render_entity_base(entity, prepared, enums, self.settings.runtime_module),
            ),
            GeneratedFile(
                path=self.paths.entity_scaffold(entity.name),
                content=render_entity_scaffold(entity, self.paths.module(base_path)),
                created=True,
            ),
        ]
        return ArtifactResult(kind=PHASE_ENTITY, files=files, errors=errors)

    def _build_inputs(self, entity: EntitySchema, enums: Optional[EnumRegistry]) -> ArtifactResult:
        operations = entity.enabled_operations()
        input_types = [t for t in INPUT_OPERATIONS if t in operations]
        if not input_types:
            log.warning("No input operations enabled, skipping", extra={"entity": entity.name, "phase": PHASE_INPUTS})
            return ArtifactResult(kind=PHASE_INPUTS)

        if enums is None:
            enums = EnumRegistry.build(entity)
        fields = sorted(entity.fields, key=lambda f: f.name)
        variants = {}
        errors: List[str] = []
        for input_type in input_types:
            prepared, variant_errors = self.registry.prepare_fields(entity, enums, input_type=input_type, fields=fields)
            variants[input_type] = prepared
            errors.extend(e for e in variant_errors if e not in errors)

        base_path = self.paths.inputs_base(entity.name)
        files = [
            GeneratedFile(
                path=base_path,
                content=render_inputs_base(
                    entity,
                    variants,
                    enums,
                    self.settings.runtime_module,
                    self.paths.module(self.paths.entity_base(entity.name)),
                ),
            ),
            GeneratedFile(
                path=self.paths.inputs_scaffold(entity.name),
                content=render_inputs_scaffold(entity, input_types, self.paths.module(base_path)),
                created=True,
            ),
        ]
        return ArtifactResult(kind=PHASE_INPUTS, files=files, errors=errors)

    def _build_operations(self, entity: EntitySchema) -> ArtifactResult:
        operations = entity.enabled_operations()
        if not operations:
            log.warning("No operations enabled, skipping", extra={"entity": entity.name, "phase": PHASE_OPERATIONS})
            return ArtifactResult(kind=PHASE_OPERATIONS)

        base_path = self.paths.router_base(entity.name)
        files = [
            GeneratedFile(
                path=base_path,
                content=render_router_base(
                    entity,
                    operations,
                    self.settings.runtime_module,
                    self.paths.module(self.paths.entity_scaffold(entity.name)),
                    self.paths.module(self.paths.inputs_scaffold(entity.name)),
                ),
            ),
            GeneratedFile(
                path=self.paths.router_scaffold(entity.name),
                content=render_router_scaffold(entity, self.paths.module(base_path)),
                created=True,
            ),
        ]
        return ArtifactResult(kind=PHASE_OPERATIONS, files=files)

    def _warn_required_without_default(self, entity: EntitySchema) -> None:
        names = [
            f.name for f in entity.fields
            if f.required and f.default_value is None and f.relationship is None
        ]
        if names:
            log.warning(
                "Required fields without a default may fail migrations on existing rows: %s",
                ", ".join(names),
                extra={"entity": entity.name, "phase": "validate"},
            )
