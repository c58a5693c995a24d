"""Rendering for generated entity modules (base class and extension scaffold)."""
import keyword
from typing import Any, Dict, Iterable, List

from entitygen.generators.entity_gen.enums import EnumDefinition, EnumRegistry
from entitygen.generators.entity_gen.errors import SchemaError
from entitygen.generators.entity_gen.exposure import ApiExposure
from entitygen.generators.entity_gen.imports import GENERATED_HEADER, TYPING_NAMES, ImportCollector
from entitygen.generators.entity_gen.serialize import docstring, quote
from entitygen.generators.entity_gen.strategies import foreign_key_name
from entitygen.generators.entity_gen.type_mapper import (
    JSON_TYPES,
    has_json_schema,
    item_type_name,
    json_schema_name,
    map_type,
    table_name,
)
from entitygen.generators.entity_gen.types import OWNING_KINDS, EntitySchema, FieldSpec, PreparedFieldData
from entitygen.generators.entity_gen.utils import is_python_name

ENTITY_RUNTIME_NAMES = (
    "EntityBase",
    "ID",
    "api_field",
    "field_column",
    "field_column_enum",
    "field_column_json",
    "foreign_key_column",
    "index",
    "polymorphic_column",
    "relation",
)

ITEM_PROPERTY_TYPES = {
    "object": "Dict[str, Any]",
    "array": "List[Any]",
}


def render_field(field: PreparedFieldData, default_none: bool = False) -> str:
    """Render one annotated field declaration."""
    hint = f"Optional[{field.type_hint}]" if field.nullable else field.type_hint
    line = f"    {field.name}: Annotated[{hint}, {', '.join(field.annotations)}]"
    if default_none and field.nullable:
        line += " = None"
    return line


def render_enum(definition: EnumDefinition) -> List[str]:
    lines = [f"class {definition.name}(str, Enum):"]
    if definition.description:
        lines.append(docstring(definition.description))
        lines.append("")
    for value, member in definition.members:
        lines.append(f"    {member} = {quote(value)}")
    return lines


def render_item_type(name: str, schema: Dict[str, Any]) -> List[str]:
    """Render the BaseModel describing one item of a structured JSON field."""
    properties = schema.get("properties") or {}
    required = set(schema.get("required") or [])
    lines = [f"class {name}(BaseModel):"]
    if not properties:
        lines.append("    pass")
        return lines
    for prop_name, prop in properties.items():
        if not is_python_name(prop_name):
            raise SchemaError(f"Item schema property '{prop_name}' of {name} is not a valid identifier")
        prop_type = prop.get("type", "string") if isinstance(prop, dict) else str(prop)
        hint = ITEM_PROPERTY_TYPES.get(prop_type) or map_type(prop_type).language_type
        if prop_name in required:
            lines.append(f"    {prop_name}: {hint}")
        else:
            lines.append(f"    {prop_name}: Optional[{hint}] = None")
    return lines


def render_schema_alias(field: FieldSpec, entity_name: str) -> str:
    """Render the schema alias a JSON column points at (PostTagsSchema = List[str])."""
    name = json_schema_name(entity_name, field.name)
    if field.type in JSON_TYPES:
        item = item_type_name(entity_name, field.name)
        target = f"List[{item}]" if field.array else item
    else:
        target = f"List[{map_type(field.type).language_type}]"
    return f"{name} = {target}"


def render_index(index) -> str:
    columns = (index,) if isinstance(index, str) else tuple(index)
    return f"index({', '.join(quote(c) for c in columns)})"


def relation_name(field: FieldSpec) -> str:
    """Attribute name of a relation (authorId -> author)."""
    if len(field.name) > 2 and field.name.endswith("Id"):
        name = field.name[:-2]
        return f"{name}_" if keyword.iskeyword(name) else name
    return field.name


def render_relation(field: FieldSpec, exposure: ApiExposure) -> str:
    rel = field.relationship
    parts = [quote(rel.kind.value), quote(rel.target)]
    join_column = rel.join_column
    if join_column is None and exposure.foreign_key and rel.kind in OWNING_KINDS:
        join_column = foreign_key_name(field)
    if join_column:
        parts.append(f"join_column={quote(join_column)}")
    if rel.eager:
        parts.append("eager=True")
    if rel.on_delete:
        parts.append(f"on_delete={quote(rel.on_delete)}")
    if rel.on_update:
        parts.append(f"on_update={quote(rel.on_update)}")
    if not exposure.object:
        parts.append("api=False")
    return f"    {relation_name(field)} = relation({', '.join(parts)})"


def relation_fields(entity: EntitySchema) -> List[FieldSpec]:
    """Fields that get a relation declaration on the entity class."""
    result = []
    for field in entity.fields:
        if field.relationship is None or field.is_polymorphic:
            continue
        if ApiExposure.for_field(field).relation:
            result.append(field)
    return result


def _json_fields(entity: EntitySchema, prepared_sources: Iterable[str]) -> List[FieldSpec]:
    sources = set(prepared_sources)
    return [
        f for f in entity.fields
        if f.relationship is None and f.name in sources and has_json_schema(f)
    ]


def render_entity_base(
    entity: EntitySchema,
    prepared: List[PreparedFieldData],
    enums: EnumRegistry,
    runtime_module: str,
) -> str:
    """
    Generate the always-regenerated base module for an entity.

    Contains enums, JSON item types, schema aliases and the <Name>Base class with
    table metadata, annotated columns and relation declarations.
    """
    json_fields = _json_fields(entity, [p.source_field for p in prepared])
    body: List[str] = []

    for definition in enums.definitions():
        body.extend(render_enum(definition))
        body.extend(["", ""])

    for field in json_fields:
        if field.type in JSON_TYPES:
            body.extend(render_item_type(item_type_name(entity.name, field.name), field.item_schema))
            body.extend(["", ""])

    if json_fields:
        for field in json_fields:
            body.append(render_schema_alias(field, entity.name))
        body.extend(["", ""])

    body.append(f"class {entity.name}Base(EntityBase):")
    if entity.description:
        body.append(docstring(entity.description))
        body.append("")
    body.append(f"    __tablename__ = {quote(table_name(entity.name))}")
    if entity.indexes:
        indexes = [render_index(i) for i in entity.indexes]
        trailing = "," if len(indexes) == 1 else ""
        body.append(f"    __table_args__ = ({', '.join(indexes)}{trailing})")

    if prepared:
        body.append("")
        for field in prepared:
            body.append(render_field(field))

    relations = relation_fields(entity)
    if relations:
        body.append("")
        for field in relations:
            body.append(render_relation(field, ApiExposure.for_field(field)))

    source = "\n".join(body)
    imports = ImportCollector()
    imports.add_used("stdlib", "datetime", source, ("datetime",))
    imports.add_used("stdlib", "decimal", source, ("Decimal",))
    imports.add_used("stdlib", "enum", source, ("Enum",))
    imports.add_used("stdlib", "typing", source, TYPING_NAMES)
    imports.add_used("third_party", "pydantic", source, ("BaseModel",))
    imports.add_used("local", runtime_module, source, ENTITY_RUNTIME_NAMES)

    lines = [GENERATED_HEADER]
    lines.extend(imports.render())
    lines.extend(["", ""])
    lines.extend(body)
    return "\n".join(lines) + "\n"


def render_entity_scaffold(entity: EntitySchema, base_module: str) -> str:
    """Generate the hand-editable extension class, written once."""
    lines = [
        f"from {base_module} import {entity.name}Base",
        "",
        "",
        f"class {entity.name}({entity.name}Base):",
        f'    """{entity.name} entity. Add custom behaviour here; this file is not regenerated."""',
        "",
        "    pass",
    ]
    return "\n".join(lines) + "\n"


def enum_names(enums: EnumRegistry) -> List[str]:
    return [definition.name for definition in enums.definitions()]