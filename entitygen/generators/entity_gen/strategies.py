"""
Field preparation strategies and the registry that dispatches fields to them.

Every field is handled by exactly one strategy: the first (highest priority) whose
predicate matches. The scalar strategy is the fallback and matches everything.
A strategy returning None omits the field from generated output.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from entitygen.generators.entity_gen.builders import (
    ApiFieldBuilder,
    ColumnBuilder,
    EnumColumnBuilder,
    EnumInputBuilder,
    ForeignKeyColumnBuilder,
    InputBuilder,
    JsonColumnBuilder,
    JsonInputBuilder,
    PolymorphicColumnBuilder,
)
from entitygen.generators.entity_gen.enums import EnumRegistry
from entitygen.generators.entity_gen.errors import ClassificationError, SerializationError
from entitygen.generators.entity_gen.exposure import ApiExposure
from entitygen.generators.entity_gen.type_mapper import (
    JSON_TYPES,
    SCALAR_ARRAY_TYPES,
    has_json_schema,
    json_schema_name,
    language_type,
    map_type,
    polymorphic_columns,
)
from entitygen.generators.entity_gen.types import (
    OWNING_KINDS,
    EntitySchema,
    FieldSpec,
    PreparedFieldData,
)

log = logging.getLogger(__name__)

POLYMORPHIC_ID_LENGTH = 36

Prepared = Union[None, PreparedFieldData, List[PreparedFieldData]]


class StrategyKind(str, Enum):
    POLYMORPHIC = "polymorphic"
    FOREIGN_KEY = "foreign_key"
    ENUM = "enum"
    JSON_ARRAY = "json_array"
    JSON = "json"
    SCALAR = "scalar"


@dataclass(frozen=True)
class PreparationContext:
    """Everything a strategy may read while preparing one field."""
    entity: EntitySchema
    field: FieldSpec
    enums: EnumRegistry
    exposure: ApiExposure
    input_type: Optional[str] = None

    @property
    def partial(self) -> bool:
        return self.input_type in ("update", "create_update")


@dataclass(frozen=True)
class FieldStrategy:
    """A field classification rule: predicate, priority and handlers."""
    kind: StrategyKind
    priority: int
    matches: Callable[[FieldSpec, PreparationContext], bool]
    prepare: Callable[[PreparationContext], Prepared]
    prepare_input: Callable[[PreparationContext], Prepared]


def foreign_key_name(field: FieldSpec) -> str:
    """Resolve the FK column name: explicit key, else name ending in Id, else name + Id."""
    if field.key:
        return field.key
    if field.name.endswith("Id"):
        return field.name
    return f"{field.name}Id"


def input_description(field: FieldSpec, base: Optional[str]) -> Optional[str]:
    """Prefix an input description with "Input:" and append validation hints."""
    if not base:
        return None
    prefixed = base if "input" in base.lower() else f"Input: {base}"
    hints = [prefixed]
    if field.required:
        hints.append("Required field")
    if field.max_length:
        hints.append(f"Max {field.max_length} characters")
    if field.min_length:
        hints.append(f"Min {field.min_length} characters")
    if field.pattern:
        hints.append(f"Must match pattern: {field.pattern}")
    if field.minimum is not None and field.maximum is not None:
        hints.append(f"Must be between {field.minimum} and {field.maximum}")
    elif field.minimum is not None:
        hints.append(f"Must be at least {field.minimum}")
    elif field.maximum is not None:
        hints.append(f"Must be at most {field.maximum}")
    if field.unique:
        hints.append("Must be unique")
    if field.array:
        if field.max_array_size:
            hints.append(f"Max {field.max_array_size} items")
        if field.min_array_size:
            hints.append(f"Min {field.min_array_size} items")
    return f"{'. '.join(hints)}." if len(hints) > 1 else base


def _input_nullable(ctx: PreparationContext) -> bool:
    return ctx.partial or not ctx.field.required


def _with_input_required(builder, ctx: PreparationContext):
    # Partial inputs never carry the required flag
    if ctx.partial:
        return builder
    return builder.required(ctx.field.required)


def _with_default(builder, field: FieldSpec):
    if field.default_value is None:
        return builder
    return builder.default_value(field.default_value)


# Polymorphic

def _polymorphic_matches(field: FieldSpec, ctx: PreparationContext) -> bool:
    return field.is_polymorphic


def _prepare_polymorphic(ctx: PreparationContext) -> Prepared:
    field = ctx.field
    id_column, type_column = polymorphic_columns(field.name)
    id_desc = f"{field.description} ID" if field.description else "Polymorphic association to any entity ID"
    type_desc = f"{field.description} type" if field.description else "Polymorphic association to any entity type"

    id_builder = (
        PolymorphicColumnBuilder("id")
        .description(id_desc)
        .required(field.required)
        .max_length(POLYMORPHIC_ID_LENGTH)
    )
    type_builder = PolymorphicColumnBuilder("type").description(type_desc).required(field.required)
    if not ctx.exposure.object:
        id_builder = id_builder.api(False)
        type_builder = type_builder.api(False)

    return [
        PreparedFieldData(
            name=id_column,
            type_hint="str",
            nullable=not field.required,
            annotations=(id_builder.build(field.name),),
            is_polymorphic_id=True,
            source_field=field.name,
        ),
        PreparedFieldData(
            name=type_column,
            type_hint="str",
            nullable=not field.required,
            annotations=(type_builder.build(field.name),),
            is_polymorphic_type=True,
            source_field=field.name,
        ),
    ]


def _prepare_polymorphic_input(ctx: PreparationContext) -> Prepared:
    if not ctx.exposure.inputs:
        return None
    field = ctx.field
    id_column, type_column = polymorphic_columns(field.name)
    id_desc = (
        f"Input: {field.description} (ID)" if field.description
        else "Input: ID of the associated entity"
    )
    type_desc = (
        f"Input: {field.description} (type)" if field.description
        else "Input: Type name of the associated entity"
    )
    id_builder = _with_input_required(
        InputBuilder("str").input_type(ctx.input_type).description(id_desc), ctx
    ).max_length(POLYMORPHIC_ID_LENGTH)
    type_builder = _with_input_required(
        InputBuilder("str").input_type(ctx.input_type).description(type_desc), ctx
    )
    nullable = _input_nullable(ctx)
    return [
        PreparedFieldData(
            name=id_column,
            type_hint="str",
            nullable=nullable,
            annotations=(id_builder.build(field.name),),
            is_polymorphic_id=True,
            source_field=field.name,
        ),
        PreparedFieldData(
            name=type_column,
            type_hint="str",
            nullable=nullable,
            annotations=(type_builder.build(field.name),),
            is_polymorphic_type=True,
            source_field=field.name,
        ),
    ]


# Foreign key

def _foreign_key_matches(field: FieldSpec, ctx: PreparationContext) -> bool:
    if field.relationship is None or field.is_polymorphic:
        return False
    if not ctx.exposure.foreign_key:
        return False
    return field.relationship.kind in OWNING_KINDS


def _prepare_foreign_key(ctx: PreparationContext) -> Prepared:
    field = ctx.field
    target = field.relationship.target
    fk_desc = f"Foreign key for {field.name}"
    description = f"{field.description} ({fk_desc})" if field.description else fk_desc

    annotations = []
    if ctx.exposure.object:
        annotations.append(ApiFieldBuilder("ID").description(field.description).build(field.name))
    annotations.append(
        ForeignKeyColumnBuilder(target).description(description).required(field.required).build(field.name)
    )
    return PreparedFieldData(
        name=foreign_key_name(field),
        type_hint="str",
        nullable=not field.required,
        annotations=tuple(annotations),
        is_foreign_key=True,
        source_field=field.name,
    )


def _prepare_foreign_key_input(ctx: PreparationContext) -> Prepared:
    if not ctx.exposure.inputs:
        return None
    field = ctx.field
    target = field.relationship.target
    description = (
        f"Input: {field.description} (ID of {target})" if field.description
        else f"Input: ID of related {target}"
    )
    builder = _with_input_required(
        InputBuilder("str").input_type(ctx.input_type).description(description), ctx
    )
    return PreparedFieldData(
        name=foreign_key_name(field),
        type_hint="str",
        nullable=_input_nullable(ctx),
        annotations=(builder.build(field.name),),
        is_foreign_key=True,
        source_field=field.name,
    )


# Enum

def _enum_matches(field: FieldSpec, ctx: PreparationContext) -> bool:
    return field.relationship is None and field.type == "enum"


def _enum_definition(ctx: PreparationContext):
    definition = ctx.enums.for_field(ctx.field)
    if definition is None:
        raise ClassificationError(
            f"Enum field '{ctx.field.name}' was not registered for entity {ctx.entity.name}"
        )
    return definition


def _prepare_enum(ctx: PreparationContext) -> Prepared:
    field = ctx.field
    definition = _enum_definition(ctx)
    builder = EnumColumnBuilder(definition.name, definition.members).description(field.description)
    builder = builder.required(field.required)
    if field.array:
        builder = builder.array(True)
    builder = _with_default(builder, field)
    builder = builder.min_array_size(field.min_array_size).max_array_size(field.max_array_size)
    if not ctx.exposure.object:
        builder = builder.api(False)
    return PreparedFieldData(
        name=field.name,
        type_hint=language_type(field, ctx.entity.name),
        nullable=not field.required,
        annotations=(builder.build(field.name),),
        source_field=field.name,
    )


def _prepare_enum_input(ctx: PreparationContext) -> Prepared:
    if not ctx.exposure.inputs:
        return None
    field = ctx.field
    definition = _enum_definition(ctx)
    builder = (
        EnumInputBuilder(definition.name, definition.members)
        .input_type(ctx.input_type)
        .description(input_description(field, field.description))
    )
    builder = _with_input_required(builder, ctx)
    if field.array:
        builder = builder.array(True)
    builder = _with_default(builder, field)
    return PreparedFieldData(
        name=field.name,
        type_hint=language_type(field, ctx.entity.name),
        nullable=_input_nullable(ctx),
        annotations=(builder.build(field.name),),
        source_field=field.name,
    )


# JSON array / JSON

def _json_array_matches(field: FieldSpec, ctx: PreparationContext) -> bool:
    if field.relationship is not None:
        return False
    if field.type in JSON_TYPES and field.item_schema:
        return True
    return field.array and field.type in SCALAR_ARRAY_TYPES


def _json_matches(field: FieldSpec, ctx: PreparationContext) -> bool:
    return field.relationship is None and field.type in JSON_TYPES


def _json_column_type(field: FieldSpec, entity_name: str) -> str:
    if has_json_schema(field):
        return json_schema_name(entity_name, field.name)
    return "list" if field.array else "dict"


def _prepare_json(ctx: PreparationContext) -> Prepared:
    field = ctx.field
    builder = JsonColumnBuilder(_json_column_type(field, ctx.entity.name)).description(field.description)
    builder = builder.required(field.required)
    builder = _with_default(builder, field)
    if field.array:
        builder = builder.min_array_size(field.min_array_size).max_array_size(field.max_array_size)
    if not ctx.exposure.object:
        builder = builder.api(False)
    return PreparedFieldData(
        name=field.name,
        type_hint=language_type(field, ctx.entity.name),
        nullable=not field.required,
        annotations=(builder.build(field.name),),
        source_field=field.name,
    )


def _prepare_json_input(ctx: PreparationContext) -> Prepared:
    if not ctx.exposure.inputs:
        return None
    field = ctx.field
    builder = (
        JsonInputBuilder("list" if field.array else "dict")
        .input_type(ctx.input_type)
        .description(input_description(field, field.description))
    )
    builder = _with_input_required(builder, ctx)
    builder = _with_default(builder, field)
    return PreparedFieldData(
        name=field.name,
        type_hint="List[Any]" if field.array else "Dict[str, Any]",
        nullable=_input_nullable(ctx),
        annotations=(builder.build(field.name),),
        source_field=field.name,
    )


# Scalar fallback

def _scalar_matches(field: FieldSpec, ctx: PreparationContext) -> bool:
    return True


def _scalar_type(field: FieldSpec) -> str:
    return map_type(field.type).language_type


def _prepare_scalar(ctx: PreparationContext) -> Prepared:
    field = ctx.field
    if field.relationship is not None:
        # Relation-only fields have no column; the relation itself is rendered separately
        return None
    builder = ColumnBuilder(_scalar_type(field)).description(field.description).required(field.required)
    if field.array:
        builder = builder.array(True)
    builder = _with_default(builder, field)
    builder = builder.min_array_size(field.min_array_size).max_array_size(field.max_array_size)
    builder = (
        builder.unique(field.unique)
        .min_length(field.min_length)
        .max_length(field.max_length)
        .minimum(field.minimum)
        .maximum(field.maximum)
        .pattern(field.pattern)
    )
    if field.type == "string" and "email" in field.name.lower():
        builder = builder.email()
    if not ctx.exposure.object:
        builder = builder.api(False)
    return PreparedFieldData(
        name=field.name,
        type_hint=language_type(field, ctx.entity.name),
        nullable=not field.required,
        annotations=(builder.build(field.name),),
        source_field=field.name,
    )


def _prepare_scalar_input(ctx: PreparationContext) -> Prepared:
    field = ctx.field
    if field.relationship is not None or not ctx.exposure.inputs:
        return None
    builder = (
        InputBuilder(_scalar_type(field))
        .input_type(ctx.input_type)
        .description(input_description(field, field.description))
    )
    builder = _with_input_required(builder, ctx)
    if field.array:
        builder = builder.array(True)
    builder = _with_default(builder, field)
    builder = (
        builder.min_length(field.min_length)
        .max_length(field.max_length)
        .minimum(field.minimum)
        .maximum(field.maximum)
        .pattern(field.pattern)
    )
    return PreparedFieldData(
        name=field.name,
        type_hint=language_type(field, ctx.entity.name),
        nullable=_input_nullable(ctx),
        annotations=(builder.build(field.name),),
        source_field=field.name,
    )


POLYMORPHIC = FieldStrategy(StrategyKind.POLYMORPHIC, 100, _polymorphic_matches, _prepare_polymorphic, _prepare_polymorphic_input)
FOREIGN_KEY = FieldStrategy(StrategyKind.FOREIGN_KEY, 90, _foreign_key_matches, _prepare_foreign_key, _prepare_foreign_key_input)
ENUM = FieldStrategy(StrategyKind.ENUM, 80, _enum_matches, _prepare_enum, _prepare_enum_input)
JSON_ARRAY = FieldStrategy(StrategyKind.JSON_ARRAY, 70, _json_array_matches, _prepare_json, _prepare_json_input)
JSON = FieldStrategy(StrategyKind.JSON, 60, _json_matches, _prepare_json, _prepare_json_input)
SCALAR = FieldStrategy(StrategyKind.SCALAR, 10, _scalar_matches, _prepare_scalar, _prepare_scalar_input)

DEFAULT_STRATEGIES = (POLYMORPHIC, FOREIGN_KEY, ENUM, JSON_ARRAY, JSON, SCALAR)


def _as_list(result: Prepared) -> List[PreparedFieldData]:
    if result is None:
        return []
    if isinstance(result, PreparedFieldData):
        return [result]
    return list(result)


class StrategyRegistry:
    """
    Ordered, read-only set of field strategies.

    Priorities must be unique; strategies are evaluated from highest to lowest.
    Safe to share between concurrent generation runs.
    """

    def __init__(self, strategies: Iterable[FieldStrategy] = DEFAULT_STRATEGIES):
        strategies = tuple(strategies)
        priorities = [s.priority for s in strategies]
        duplicates = sorted({p for p in priorities if priorities.count(p) > 1})
        if duplicates:
            raise ValueError(f"Strategy priorities must be unique, duplicated: {duplicates}")
        self._strategies = tuple(sorted(strategies, key=lambda s: s.priority, reverse=True))

    @property
    def strategies(self) -> Tuple[FieldStrategy, ...]:
        return self._strategies

    def with_strategy(self, strategy: FieldStrategy) -> "StrategyRegistry":
        """Return a new registry with an additional strategy."""
        return StrategyRegistry(self._strategies + (strategy,))

    def context(
        self,
        entity: EntitySchema,
        field: FieldSpec,
        enums: EnumRegistry,
        input_type: Optional[str] = None,
    ) -> PreparationContext:
        return PreparationContext(
            entity=entity,
            field=field,
            enums=enums,
            exposure=ApiExposure.for_field(field),
            input_type=input_type,
        )

    def select(self, field: FieldSpec, ctx: PreparationContext) -> FieldStrategy:
        """
        Return the first matching strategy.

        Raises:
            ClassificationError: if no strategy matches
        """
        for strategy in self._strategies:
            if strategy.matches(field, ctx):
                return strategy
        raise ClassificationError(f"No strategy matched field '{field.name}' of entity {ctx.entity.name}")

    def prepare_field(self, ctx: PreparationContext) -> List[PreparedFieldData]:
        """Prepare one field with its selected strategy. An empty list means omitted."""
        strategy = self.select(ctx.field, ctx)
        handler = strategy.prepare if ctx.input_type is None else strategy.prepare_input
        return _as_list(handler(ctx))

    def prepare_fields(
        self,
        entity: EntitySchema,
        enums: Optional[EnumRegistry] = None,
        input_type: Optional[str] = None,
        fields: Optional[Sequence[FieldSpec]] = None,
    ) -> Tuple[List[PreparedFieldData], List[str]]:
        """
        Prepare every field of an entity in order.

        A field whose annotation cannot be serialized is reported and left out; the
        remaining fields are still prepared.

        Returns:
            (prepared fields, error messages)
        """
        if enums is None:
            enums = EnumRegistry.build(entity)
        prepared: List[PreparedFieldData] = []
        errors: List[str] = []
        for field in (entity.fields if fields is None else fields):
            ctx = self.context(entity, field, enums, input_type)
            try:
                prepared.extend(self.prepare_field(ctx))
            except SerializationError as e:
                message = f"Field '{field.name}': {e}"
                errors.append(message)
                log.warning(
                    "Skipping field: %s", message,
                    extra={"entity": entity.name, "phase": input_type or "entity"},
                )
        return prepared, errors


default_registry = StrategyRegistry()
