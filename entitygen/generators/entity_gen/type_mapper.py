"""Type conversions between schema types, Python annotations, columns and API scalars."""
from dataclasses import dataclass, replace
from typing import Dict, Tuple

from entitygen.generators.entity_gen.types import FieldSpec
from entitygen.generators.entity_gen.utils import (
    capitalize_first,
    singularize_field_name,
    to_snake_case,
    pluralize,
)


@dataclass(frozen=True)
class TypeMapping:
    language_type: str
    column_kind: str
    api_kind: str


TYPE_MAPPINGS: Dict[str, TypeMapping] = {
    # String types
    "string": TypeMapping("str", "varchar", "String"),
    "text": TypeMapping("str", "text", "String"),
    "uuid": TypeMapping("str", "uuid", "ID"),
    # Number types
    "number": TypeMapping("int", "integer", "Int"),
    "integer": TypeMapping("int", "integer", "Int"),
    "int": TypeMapping("int", "integer", "Int"),
    "float": TypeMapping("float", "float", "Float"),
    "decimal": TypeMapping("Decimal", "decimal", "Float"),
    # Boolean
    "boolean": TypeMapping("bool", "boolean", "Boolean"),
    "bool": TypeMapping("bool", "boolean", "Boolean"),
    # Date/Time
    "date": TypeMapping("datetime", "timestamp", "DateTime"),
    "datetime": TypeMapping("datetime", "timestamp", "DateTime"),
    "timestamp": TypeMapping("datetime", "timestamp", "DateTime"),
    # JSON
    "json": TypeMapping("Dict[str, Any]", "json", "JSON"),
    "jsonb": TypeMapping("Dict[str, Any]", "jsonb", "JSON"),
}

# Field types with their own classification, not plain column types
SPECIAL_TYPES = ("enum", "polymorphic", "relation")

KNOWN_TYPES = tuple(TYPE_MAPPINGS) + SPECIAL_TYPES

JSON_TYPES = ("json", "jsonb")
SCALAR_ARRAY_TYPES = (
    "string", "text", "number", "integer", "int", "float", "decimal", "boolean", "bool",
)


def map_type(field_type: str, array: bool = False) -> TypeMapping:
    """
    Map a schema scalar type name to its language, column and API kinds.

    Lookup is case-insensitive; unknown names fall back to the string mapping.
    Arrays wrap the language type only.
    """
    mapping = TYPE_MAPPINGS.get((field_type or "string").lower(), TYPE_MAPPINGS["string"])
    if array:
        return replace(mapping, language_type=f"List[{mapping.language_type}]")
    return mapping


def normalize_type(field_type: str) -> str:
    """Lower-case a type name and degrade unknown names to 'string'."""
    name = (field_type or "string").lower()
    return name if name in KNOWN_TYPES else "string"


def enum_name(entity_name: str, field_name: str) -> str:
    """Generates enum class name from entity and field name (Post, statuses -> PostStatus)."""
    return entity_name + capitalize_first(singularize_field_name(field_name))


def item_type_name(entity_name: str, field_name: str) -> str:
    """Generates the item model name for a JSON field with an item schema."""
    return f"{entity_name}{capitalize_first(singularize_field_name(field_name))}Type"


def json_schema_name(entity_name: str, field_name: str) -> str:
    """Generates the schema alias name for a structured JSON field."""
    return f"{entity_name}{capitalize_first(field_name)}Schema"


def polymorphic_columns(field_name: str) -> Tuple[str, str]:
    """Generates the id and type column names for a polymorphic field."""
    return f"{field_name}Id", f"{field_name}Type"


def table_name(entity_name: str) -> str:
    """Generates table name from entity name (BlogPost -> blog_posts)."""
    return to_snake_case(pluralize(entity_name))


def has_json_schema(field: FieldSpec) -> bool:
    """True when a JSON column gets a generated schema alias."""
    if field.type in JSON_TYPES and field.item_schema:
        return True
    return field.array and field.type in SCALAR_ARRAY_TYPES


def language_type(field: FieldSpec, entity_name: str) -> str:
    """Full Python annotation type for a field (without Optional)."""
    if field.relationship is not None:
        return "str"
    if field.type == "enum":
        name = enum_name(entity_name, field.name)
        return f"List[{name}]" if field.array else name
    if field.type in JSON_TYPES:
        if field.item_schema:
            name = item_type_name(entity_name, field.name)
            return f"List[{name}]" if field.array else name
        return "List[Dict[str, Any]]" if field.array else "Dict[str, Any]"
    return map_type(field.type, field.array).language_type
