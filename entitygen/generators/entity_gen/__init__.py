"""Entity code generator: entity, input and CRUD operation modules from entity schemas."""
from entitygen.generators.entity_gen.errors import (
    ClassificationError,
    EmissionError,
    GenerationError,
    SchemaError,
    SerializationError,
)
from entitygen.generators.entity_gen.factory import GeneratorFactory
from entitygen.generators.entity_gen.loader import load_schema_file
from entitygen.generators.entity_gen.parser import (
    is_valid_attribute_name,
    parse_attribute,
    parse_entity,
    parse_shorthand_entity,
)
from entitygen.generators.entity_gen.strategies import StrategyRegistry, default_registry
from entitygen.generators.entity_gen.types import (
    ArtifactResult,
    BatchReport,
    EntitySchema,
    FieldSpec,
    GeneratedFile,
    GenerationResult,
    PreparedFieldData,
)
from entitygen.generators.entity_gen.writer import FileEmitter

__all__ = [
    "ArtifactResult",
    "BatchReport",
    "ClassificationError",
    "EmissionError",
    "EntitySchema",
    "FieldSpec",
    "FileEmitter",
    "GeneratedFile",
    "GenerationError",
    "GenerationResult",
    "GeneratorFactory",
    "PreparedFieldData",
    "SchemaError",
    "SerializationError",
    "StrategyRegistry",
    "default_registry",
    "is_valid_attribute_name",
    "load_schema_file",
    "parse_attribute",
    "parse_entity",
    "parse_shorthand_entity",
]
