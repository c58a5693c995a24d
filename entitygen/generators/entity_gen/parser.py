"""
Parsers for entity schemas.

Two input shapes are supported:
- shorthand attributes such as "title:string", "userId:number" or "content:text?"
- structured schemas (mapping or JSON text) with a fields array or a name -> definition map
"""
import json
import logging
import re
from typing import Any, Dict, List, Literal, Mapping, Optional, Sequence, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from entitygen.generators.entity_gen.errors import SchemaError
from entitygen.generators.entity_gen.type_mapper import normalize_type
from entitygen.generators.entity_gen.types import (
    ALL_OPERATIONS,
    EntitySchema,
    FieldSpec,
    RelationKind,
    Relationship,
)
from entitygen.generators.entity_gen.utils import capitalize_first, is_identifier, is_python_name

log = logging.getLogger(__name__)

ENTITY_NAME_RE = re.compile(r"^[A-Z][A-Za-z0-9]*$")

API_OPTIONS = ("object", "inputs", "foreign_key", "relation")
RELATION_ONLY_API_OPTIONS = ("foreign_key", "relation")

# Legacy and camelCase spellings accepted in raw schemas
OPERATION_ALIASES = {
    "createUpdate": "create_update",
    "array": "list",
}
API_OPTION_ALIASES = {
    "foreignKey": "foreign_key",
}


class RawRelation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entity: Optional[str] = None
    type: Literal["many-to-one", "one-to-one", "one-to-many", "many-to-many"] = "many-to-one"
    polymorphic: bool = False
    eager: bool = False
    on_delete: Optional[str] = Field(None, validation_alias=AliasChoices("onDelete", "on_delete"))
    on_update: Optional[str] = Field(None, validation_alias=AliasChoices("onUpdate", "on_update"))
    join_column: Optional[str] = Field(None, validation_alias=AliasChoices("joinColumn", "join_column"))


class RawArrayOptions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    min_length: Optional[int] = Field(None, validation_alias=AliasChoices("minLength", "min_length"))
    max_length: Optional[int] = Field(None, validation_alias=AliasChoices("maxLength", "max_length"))


class RawField(BaseModel):
    """Structured field definition as authored in a schema file."""
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    type: Optional[str] = None
    required: bool = True
    array: bool = False
    relation: Optional[RawRelation] = Field(None, validation_alias=AliasChoices("relation", "relationship"))
    item_schema: Optional[Dict[str, Any]] = Field(None, validation_alias=AliasChoices("itemSchema", "item_schema"))
    key: Optional[str] = None
    description: Optional[str] = None
    default_value: Any = Field(None, validation_alias=AliasChoices("default", "defaultValue", "default_value"))
    enum_values: Optional[List[str]] = Field(None, validation_alias=AliasChoices("enum", "values", "enum_values"))
    api: Union[bool, List[str], None] = Field(None, validation_alias=AliasChoices("api", "graphql"))
    unique: bool = False
    min_length: Optional[int] = Field(None, validation_alias=AliasChoices("minLength", "min_length"))
    max_length: Optional[int] = Field(None, validation_alias=AliasChoices("maxLength", "max_length"))
    minimum: Optional[Union[int, float]] = Field(None, validation_alias=AliasChoices("min", "minimum"))
    maximum: Optional[Union[int, float]] = Field(None, validation_alias=AliasChoices("max", "maximum"))
    pattern: Optional[str] = None
    array_options: Optional[RawArrayOptions] = Field(None, validation_alias=AliasChoices("arrayOptions", "array_options"))
    min_array_size: Optional[int] = Field(None, validation_alias=AliasChoices("minArraySize", "min_array_size"))
    max_array_size: Optional[int] = Field(None, validation_alias=AliasChoices("maxArraySize", "max_array_size"))


class RawEntity(BaseModel):
    """Structured entity schema as authored in a schema file."""
    model_config = ConfigDict(extra="ignore")

    name: str
    description: Optional[str] = None
    indexes: List[Union[str, List[str]]] = Field(default_factory=list)
    operations: Union[bool, List[str], None] = Field(
        None, validation_alias=AliasChoices("operations", "api", "graphql")
    )
    fields: Union[List[Union[RawField, str]], Dict[str, Union[RawField, str]]]


def is_valid_attribute_name(name: str) -> bool:
    """Validate attribute name (must be a valid identifier)."""
    return is_identifier(name)


def _is_entity_name(name: Optional[str]) -> bool:
    return bool(name) and ENTITY_NAME_RE.fullmatch(name) is not None and is_python_name(name)


def infer_relationship(name: str, raw_type: str) -> Optional[Relationship]:
    """Infer a many-to-one reference from an "...Id" field of type string or number."""
    if len(name) > 2 and name.endswith("Id") and raw_type in ("number", "string"):
        return Relationship(kind=RelationKind.MANY_TO_ONE, target=capitalize_first(name[:-2]))
    return None


def parse_attribute(attribute: str) -> FieldSpec:
    """
    Parse a single attribute string.

    Examples:
        "title:string"  -> FieldSpec(name="title", type="string")
        "userId:number" -> FieldSpec(name="userId", relationship=many-to-one User)
        "content:text?" -> FieldSpec(name="content", type="text", required=False)
    """
    if not isinstance(attribute, str) or not attribute.strip():
        raise SchemaError("Attribute must be a non-empty string like 'title:string'")

    text = attribute.strip()
    required = not text.endswith("?")
    if not required:
        text = text[:-1]

    parts = text.split(":")
    if len(parts) > 2:
        raise SchemaError(f"Cannot parse attribute '{attribute}': expected 'name:type'")

    name = parts[0].strip()
    raw_type = parts[1].strip().lower() if len(parts) == 2 and parts[1].strip() else "string"
    if not name:
        raise SchemaError(f"Cannot parse attribute '{attribute}': missing field name")

    type_name = normalize_type(raw_type)
    if type_name == "enum":
        raise SchemaError(f"Attribute '{name}' is an enum; enum values need the structured schema form")
    if type_name == "relation":
        raise SchemaError(f"Attribute '{name}' is a relation; the target entity needs the structured schema form")

    if type_name == "polymorphic":
        relationship = Relationship(kind=RelationKind.MANY_TO_ONE, target=None, polymorphic=True)
    else:
        relationship = infer_relationship(name, raw_type)

    return FieldSpec(name=name, type=type_name, required=required, relationship=relationship)


def parse_attributes(attributes: Sequence[str]) -> List[FieldSpec]:
    """Parse multiple attribute strings, rejecting invalid names."""
    fields = [parse_attribute(a) for a in attributes]
    for f in fields:
        if not is_valid_attribute_name(f.name):
            raise SchemaError(f"Field name '{f.name}' is not a valid identifier")
    return fields


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(messages)


def _normalize_api(name: str, api: Union[bool, List[str], None]):
    if api is None or isinstance(api, bool):
        return api
    options = []
    for option in api:
        option = API_OPTION_ALIASES.get(option, option)
        if option not in API_OPTIONS:
            raise SchemaError(
                f"Field '{name}' api option '{option}' is invalid. Allowed: {', '.join(API_OPTIONS)}"
            )
        options.append(option)
    return tuple(options)


def _normalize_operations(operations: Union[bool, List[str], None]):
    if operations is None or operations is True:
        return None
    if operations is False:
        return ()
    normalized = []
    for op in operations:
        op = OPERATION_ALIASES.get(op, op)
        if op not in ALL_OPERATIONS:
            raise SchemaError(f"Unknown operation '{op}'. Allowed: {', '.join(ALL_OPERATIONS)}")
        if op not in normalized:
            normalized.append(op)
    return tuple(normalized)


def _build_field(name: str, raw: RawField) -> FieldSpec:
    raw_type = (raw.type or ("relation" if raw.relation else "string")).lower()
    type_name = normalize_type(raw_type)

    relationship = None
    if raw.relation is not None:
        polymorphic = raw.relation.polymorphic or type_name == "polymorphic"
        if not polymorphic and not raw.relation.entity:
            raise SchemaError(f"Field '{name}' relation must specify an entity")
        relationship = Relationship(
            kind=RelationKind(raw.relation.type),
            target=None if polymorphic else raw.relation.entity,
            polymorphic=polymorphic,
            eager=raw.relation.eager,
            on_delete=raw.relation.on_delete,
            on_update=raw.relation.on_update,
            join_column=raw.relation.join_column,
        )
    elif type_name == "polymorphic":
        relationship = Relationship(kind=RelationKind.MANY_TO_ONE, target=None, polymorphic=True)
    elif type_name == "relation":
        raise SchemaError(f"Field '{name}' has type 'relation' but no relation configuration")
    else:
        relationship = infer_relationship(name, raw_type)

    if type_name == "enum" and not raw.enum_values:
        raise SchemaError(f"Field '{name}' has type 'enum' but no enum values defined")

    if raw.key is not None and not is_python_name(raw.key):
        raise SchemaError(f"Field '{name}' key '{raw.key}' must be a valid identifier")

    api = _normalize_api(name, raw.api)
    if isinstance(api, tuple) and relationship is None:
        misplaced = [o for o in api if o in RELATION_ONLY_API_OPTIONS]
        if misplaced:
            raise SchemaError(
                f"Field '{name}' cannot use {', '.join(misplaced)} because it is not a relation field"
            )

    min_array_size = raw.min_array_size
    max_array_size = raw.max_array_size
    if raw.array_options is not None:
        if min_array_size is None:
            min_array_size = raw.array_options.min_length
        if max_array_size is None:
            max_array_size = raw.array_options.max_length

    return FieldSpec(
        name=name,
        type=type_name,
        required=raw.required,
        array=raw.array,
        relationship=relationship,
        item_schema=raw.item_schema,
        key=raw.key,
        description=raw.description,
        default_value=raw.default_value,
        enum_values=tuple(raw.enum_values or ()),
        api=api,
        unique=raw.unique,
        min_length=raw.min_length,
        max_length=raw.max_length,
        minimum=raw.minimum,
        maximum=raw.maximum,
        pattern=raw.pattern,
        min_array_size=min_array_size,
        max_array_size=max_array_size,
    )


def parse_field(name: Optional[str], raw: Union[Mapping[str, Any], RawField, str]) -> FieldSpec:
    """Parse one structured field definition (or a shorthand type string)."""
    if isinstance(raw, str):
        if name is None:
            return parse_attribute(raw)
        return parse_attribute(f"{name}:{raw}")

    if not isinstance(raw, RawField):
        try:
            raw = RawField.model_validate(raw)
        except ValidationError as e:
            raise SchemaError(f"Field '{name}': {_format_validation_error(e)}") from e

    field_name = name or raw.name
    if not field_name:
        raise SchemaError("Field definition is missing a name")
    return _build_field(field_name, raw)


def parse_entity(raw: Union[Mapping[str, Any], str, bytes]) -> EntitySchema:
    """
    Parse and validate a structured entity schema.

    Args:
        raw: Mapping or JSON text with "name" and "fields"

    Returns:
        EntitySchema

    Raises:
        SchemaError: if the schema is malformed
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SchemaError(f"Schema is not valid JSON: {e}") from e

    if not isinstance(raw, Mapping):
        raise SchemaError("Schema must be an object with 'name' and 'fields'")

    try:
        model = RawEntity.model_validate(raw)
    except ValidationError as e:
        raise SchemaError(f"Schema validation failed: {_format_validation_error(e)}") from e

    if not _is_entity_name(model.name):
        raise SchemaError(f"Entity name '{model.name}' must be PascalCase (e.g. 'User', 'BlogPost')")

    if isinstance(model.fields, dict):
        entries = list(model.fields.items())
    else:
        entries = [(None, f) for f in model.fields]

    fields: List[FieldSpec] = []
    for name, raw_field in entries:
        fields.append(parse_field(name, raw_field))

    return _finish_entity(
        name=model.name,
        fields=fields,
        description=model.description,
        indexes=tuple(i if isinstance(i, str) else tuple(i) for i in model.indexes),
        operations=_normalize_operations(model.operations),
    )


def parse_shorthand_entity(name: str, attributes: Sequence[str]) -> EntitySchema:
    """Build an entity from shorthand attributes ("Post", ["title:string", "authorId:string"])."""
    if not _is_entity_name(name):
        raise SchemaError(f"Entity name '{name}' must be PascalCase (e.g. 'User', 'BlogPost')")
    return _finish_entity(name=name, fields=parse_attributes(attributes))


def _finish_entity(name: str, fields: List[FieldSpec], **kwargs) -> EntitySchema:
    seen = set()
    for f in fields:
        if not is_valid_attribute_name(f.name):
            raise SchemaError(f"Field name '{f.name}' in entity '{name}' is not a valid identifier")
        if not is_python_name(f.name):
            raise SchemaError(
                f"Field name '{f.name}' in entity '{name}' cannot be used in generated Python code"
            )
        if f.name in seen:
            raise SchemaError(f"Field '{f.name}' is defined more than once in entity '{name}'")
        seen.add(f.name)

    entity = EntitySchema(name=name, fields=tuple(fields), **kwargs)
    log.debug("Parsed entity schema", extra={"entity": name, "phase": "parse"})
    return entity
