"""
Metadata annotation builders.

Each builder is an immutable value: setters return a new builder and build() renders the
final call expression (e.g. "field_column_enum(PostStatus, default_value=PostStatus.DRAFT)")
through the pure render_annotation() function. Only options that were explicitly set are
rendered, always in the same order, so regenerated files stay diff-stable.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Sequence, Tuple

from entitygen.generators.entity_gen.errors import SerializationError
from entitygen.generators.entity_gen.serialize import quote, serialize_value
from entitygen.generators.entity_gen.utils import to_enum_member


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class AnnotationOptions:
    """Option record shared by every builder. UNSET/None values are never rendered."""
    input_type: Optional[str] = None
    description: Optional[str] = None
    required: Optional[bool] = None
    array: Optional[bool] = None
    default: Any = UNSET
    min_array_size: Optional[int] = None
    max_array_size: Optional[int] = None
    unique: Optional[bool] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    pattern: Optional[str] = None
    email: Optional[bool] = None
    api: Optional[bool] = None


def enum_reference(
    enum_name: str,
    members: Sequence[Tuple[str, str]],
    value: Any,
    field_name: Optional[str] = None,
) -> str:
    """
    Render an enum default as a qualified member reference (Status, "DRAFT" -> Status.DRAFT).

    The value may be an enum value or a member name. Without known members the value is
    converted to a member name directly.
    """
    if not isinstance(value, str):
        raise SerializationError(
            f"Enum default for {enum_name} must be a string, got {type(value).__name__}", field_name
        )
    if not members:
        return f"{enum_name}.{to_enum_member(value)}"
    for member_value, member_name in members:
        if value == member_value or value == member_name:
            return f"{enum_name}.{member_name}"
    raise SerializationError(f"Default {value!r} is not a member of enum {enum_name}", field_name)


def _render_default(
    value: Any,
    array: bool,
    enum_name: Optional[str],
    enum_members: Sequence[Tuple[str, str]],
    field_name: Optional[str],
) -> str:
    if enum_name is None:
        return serialize_value(value, field_name)
    if isinstance(value, (list, tuple)):
        if not array:
            raise SerializationError(
                f"List default given for non-array enum {enum_name}", field_name
            )
        refs = [enum_reference(enum_name, enum_members, v, field_name) for v in value]
        return "[" + ", ".join(refs) + "]"
    ref = enum_reference(enum_name, enum_members, value, field_name)
    return f"[{ref}]" if array else ref


def render_annotation(
    function: str,
    args: Sequence[str],
    options: AnnotationOptions,
    required_default: bool = True,
    default_key: str = "default_value",
    allow_array: bool = True,
    enum_name: Optional[str] = None,
    enum_members: Sequence[Tuple[str, str]] = (),
    field_name: Optional[str] = None,
) -> str:
    """
    Render an annotation call expression from an options record.

    Order: input_type, description, required, array, default, min/max array size,
    unique, min_length, max_length, minimum, maximum, pattern, email, api.

    Raises:
        SerializationError: if the default value cannot be rendered
    """
    parts = list(args)

    if options.input_type:
        parts.append(f"input_type={quote(options.input_type)}")

    if options.description:
        parts.append(f"description={quote(options.description)}")

    if options.required is not None and options.required != required_default:
        parts.append(f"required={options.required}")

    if allow_array and options.array:
        parts.append("array=True")

    if options.default is not UNSET:
        rendered = _render_default(
            options.default, bool(options.array), enum_name, enum_members, field_name
        )
        parts.append(f"{default_key}={rendered}")

    if options.min_array_size is not None:
        parts.append(f"min_array_size={options.min_array_size}")
    if options.max_array_size is not None:
        parts.append(f"max_array_size={options.max_array_size}")

    if options.unique:
        parts.append("unique=True")
    for key in ("min_length", "max_length", "minimum", "maximum"):
        value = getattr(options, key)
        if value is not None:
            parts.append(f"{key}={serialize_value(value, field_name)}")
    if options.pattern:
        parts.append(f"pattern={quote(options.pattern)}")
    if options.email:
        parts.append("email=True")

    if options.api is False:
        parts.append("api=False")

    return f"{function}({', '.join(parts)})"


class _BuilderMixin:
    """Setters shared by every builder. Each returns a new builder."""

    function = ""
    default_key = "default_value"
    allow_array = True

    def _with(self, **changes):
        return replace(self, options=replace(self.options, **changes))

    def description(self, text: Optional[str]):
        return self._with(description=text)

    def required(self, value: bool):
        return self._with(required=value)

    def array(self, enabled: bool = True):
        return self._with(array=enabled)

    def default_value(self, value: Any):
        return self._with(default=value)

    def min_array_size(self, size: Optional[int]):
        return self._with(min_array_size=size)

    def max_array_size(self, size: Optional[int]):
        return self._with(max_array_size=size)

    def required_default(self) -> bool:
        return True

    def positional_args(self) -> Tuple[str, ...]:
        raise NotImplementedError

    def build(self, field_name: Optional[str] = None) -> str:
        return render_annotation(
            self.function,
            self.positional_args(),
            self.options,
            required_default=self.required_default(),
            default_key=self.default_key,
            allow_array=self.allow_array,
            enum_name=getattr(self, "enum_name", None),
            enum_members=getattr(self, "members", ()),
            field_name=field_name,
        )


class _ConstraintMixin:
    """Validation constraint setters for scalar builders."""

    def unique(self, enabled: bool = True):
        return self._with(unique=enabled)

    def min_length(self, length: Optional[int]):
        return self._with(min_length=length)

    def max_length(self, length: Optional[int]):
        return self._with(max_length=length)

    def minimum(self, value: Optional[float]):
        return self._with(minimum=value)

    def maximum(self, value: Optional[float]):
        return self._with(maximum=value)

    def pattern(self, regex: Optional[str]):
        return self._with(pattern=regex)

    def email(self, enabled: bool = True):
        return self._with(email=enabled)

    def api(self, enabled: bool):
        return self._with(api=enabled)


class _InputMixin:
    default_key = "default"

    def input_type(self, kind: str):
        return self._with(input_type=kind)

    def required_default(self) -> bool:
        # Partial inputs are optional unless stated otherwise
        return self.options.input_type not in ("update", "create_update")


@dataclass(frozen=True)
class ColumnBuilder(_ConstraintMixin, _BuilderMixin):
    """field_column(str, ...) for regular scalar columns."""
    type_name: str
    options: AnnotationOptions = field(default_factory=AnnotationOptions)

    function = "field_column"

    def positional_args(self) -> Tuple[str, ...]:
        return (self.type_name,)


@dataclass(frozen=True)
class EnumColumnBuilder(_BuilderMixin):
    """field_column_enum(PostStatus, ...) for enum columns."""
    enum_name: str
    members: Tuple[Tuple[str, str], ...] = ()
    options: AnnotationOptions = field(default_factory=AnnotationOptions)

    function = "field_column_enum"

    def api(self, enabled: bool):
        return self._with(api=enabled)

    def positional_args(self) -> Tuple[str, ...]:
        return (self.enum_name,)


@dataclass(frozen=True)
class JsonColumnBuilder(_BuilderMixin):
    """field_column_json(Schema, ...) for JSON columns. Array-ness comes from the schema type."""
    type_name: str
    options: AnnotationOptions = field(default_factory=AnnotationOptions)

    function = "field_column_json"
    allow_array = False

    def api(self, enabled: bool):
        return self._with(api=enabled)

    def positional_args(self) -> Tuple[str, ...]:
        return (self.type_name,)


@dataclass(frozen=True)
class ForeignKeyColumnBuilder(_BuilderMixin):
    """foreign_key_column('Author', ...) for the id column of an owning relationship."""
    target: str
    options: AnnotationOptions = field(default_factory=AnnotationOptions)

    function = "foreign_key_column"

    def positional_args(self) -> Tuple[str, ...]:
        return (quote(self.target),)


@dataclass(frozen=True)
class PolymorphicColumnBuilder(_ConstraintMixin, _BuilderMixin):
    """polymorphic_column('id' | 'type', ...) for polymorphic id and discriminator columns."""
    role: str
    options: AnnotationOptions = field(default_factory=AnnotationOptions)

    function = "polymorphic_column"

    def positional_args(self) -> Tuple[str, ...]:
        return (quote(self.role),)


@dataclass(frozen=True)
class InputBuilder(_InputMixin, _ConstraintMixin, _BuilderMixin):
    """field_input(str, ...) for scalar input fields."""
    type_name: str
    options: AnnotationOptions = field(default_factory=AnnotationOptions)

    function = "field_input"

    def positional_args(self) -> Tuple[str, ...]:
        return (self.type_name,)


@dataclass(frozen=True)
class EnumInputBuilder(_InputMixin, _BuilderMixin):
    """field_input_enum(PostStatus, ...) for enum input fields."""
    enum_name: str
    members: Tuple[Tuple[str, str], ...] = ()
    options: AnnotationOptions = field(default_factory=AnnotationOptions)

    function = "field_input_enum"

    def positional_args(self) -> Tuple[str, ...]:
        return (self.enum_name,)


@dataclass(frozen=True)
class JsonInputBuilder(_InputMixin, _BuilderMixin):
    """field_input_json(Schema, ...) for JSON input fields."""
    type_name: str
    options: AnnotationOptions = field(default_factory=AnnotationOptions)

    function = "field_input_json"
    allow_array = False

    def positional_args(self) -> Tuple[str, ...]:
        return (self.type_name,)


@dataclass(frozen=True)
class ApiFieldBuilder(_BuilderMixin):
    """api_field(ID, ...) exposing a column on the API object type."""
    type_name: str
    options: AnnotationOptions = field(default_factory=AnnotationOptions)

    function = "api_field"

    def positional_args(self) -> Tuple[str, ...]:
        return (self.type_name,)
