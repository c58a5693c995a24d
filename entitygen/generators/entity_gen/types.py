"""Dataclasses for entity generation."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class RelationKind(str, Enum):
    MANY_TO_ONE = "many-to-one"
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_MANY = "many-to-many"


# Relationship kinds that own a foreign key column on this side
OWNING_KINDS = (RelationKind.MANY_TO_ONE, RelationKind.ONE_TO_ONE)

ALL_OPERATIONS = (
    "single", "list", "create", "update", "create_update", "delete", "destroy", "restore",
)
INPUT_OPERATIONS = ("create", "update", "create_update")


@dataclass(frozen=True)
class Relationship:
    """Relationship metadata attached to a field."""
    kind: RelationKind
    target: Optional[str]  # None for polymorphic associations
    polymorphic: bool = False
    eager: bool = False
    on_delete: Optional[str] = None
    on_update: Optional[str] = None
    join_column: Optional[str] = None


@dataclass(frozen=True)
class FieldSpec:
    """Normalized field record produced by the parser."""
    name: str
    type: str = "string"
    required: bool = True
    array: bool = False
    relationship: Optional[Relationship] = None
    item_schema: Optional[Dict[str, Any]] = None
    key: Optional[str] = None
    description: Optional[str] = None
    default_value: Any = None
    enum_values: Tuple[str, ...] = ()
    # None/True: default exposure, False: none, tuple: granular options
    api: Union[None, bool, Tuple[str, ...]] = None
    unique: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    pattern: Optional[str] = None
    min_array_size: Optional[int] = None
    max_array_size: Optional[int] = None

    @property
    def is_polymorphic(self) -> bool:
        return self.relationship is not None and self.relationship.polymorphic


@dataclass(frozen=True)
class EntitySchema:
    """Parsed entity schema. Immutable; consumed read-only by every generator."""
    name: str
    fields: Tuple[FieldSpec, ...]
    description: Optional[str] = None
    indexes: Tuple[Union[str, Tuple[str, ...]], ...] = ()
    operations: Optional[Tuple[str, ...]] = None  # None means every operation

    def enabled_operations(self) -> Tuple[str, ...]:
        if self.operations is None:
            return ALL_OPERATIONS
        return tuple(op for op in ALL_OPERATIONS if op in self.operations)


@dataclass(frozen=True)
class PreparedFieldData:
    """A single generated field declaration."""
    name: str
    type_hint: str
    nullable: bool
    annotations: Tuple[str, ...]
    is_foreign_key: bool = False
    is_polymorphic_id: bool = False
    is_polymorphic_type: bool = False
    source_field: Optional[str] = None


@dataclass
class GeneratedFile:
    """Represents a generated file."""
    path: str  # Relative path from output directory
    content: str  # File contents
    created: bool = False  # True for scaffold files that are written once and then hand-edited


@dataclass
class ArtifactResult:
    """Outcome of one generation phase (entity, inputs or operations)."""
    kind: str
    files: List[GeneratedFile] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    @property
    def paths(self) -> List[str]:
        return [f.path for f in self.files]


@dataclass
class GenerationResult:
    """Aggregate outcome of generating every artifact for one entity."""
    entity_name: str
    entity: ArtifactResult
    inputs: ArtifactResult
    operations: ArtifactResult

    @property
    def phases(self) -> List[ArtifactResult]:
        return [self.entity, self.inputs, self.operations]

    @property
    def success(self) -> bool:
        return all(phase.success for phase in self.phases)

    @property
    def errors(self) -> List[str]:
        return [error for phase in self.phases for error in phase.errors]

    @property
    def files(self) -> List[GeneratedFile]:
        return [f for phase in self.phases for f in phase.files]


@dataclass
class BatchReport:
    """Outcome of a multi-entity run."""
    results: List[GenerationResult] = field(default_factory=list)
    failures: Dict[str, List[str]] = field(default_factory=dict)  # source label -> schema errors

    @property
    def success(self) -> bool:
        return not self.failures and all(r.success for r in self.results)
