"""Structural serializer that renders default values as Python literals."""
import math
from typing import Any, Optional, Set

from entitygen.generators.entity_gen.errors import SerializationError


def _escape_char(char: str) -> str:
    if char == "\\":
        return "\\\\"
    if char.isprintable():
        return char
    # repr() gives the escape sequence (\r, \x00, \u2028 ...)
    return repr(char)[1:-1]


def quote(value: str) -> str:
    """Render a single-quoted string literal. Non-printable characters are escaped."""
    escaped = "".join(_escape_char(c) for c in value).replace("'", "\\'")
    return f"'{escaped}'"


def serialize_value(value: Any, field_name: Optional[str] = None) -> str:
    """
    Render a value as a deterministic Python literal.

    Supports str, bool, int, float, None, list/tuple and dicts with string keys.
    Dict keys keep insertion order so repeated runs give the same text.

    Raises:
        SerializationError: for cyclic values, non-finite floats or unsupported types
    """
    return _serialize(value, field_name, set())


def _serialize(value: Any, field_name: Optional[str], active: Set[int]) -> str:
    if value is None:
        return "None"
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise SerializationError(f"Cannot serialize non-finite number {value!r}", field_name)
        return repr(value)
    if isinstance(value, str):
        return quote(value)

    if isinstance(value, (list, tuple, dict)):
        if id(value) in active:
            raise SerializationError("Cannot serialize cyclic default value", field_name)
        active.add(id(value))
        try:
            if isinstance(value, dict):
                parts = []
                for key, item in value.items():
                    if not isinstance(key, str):
                        raise SerializationError(
                            f"Cannot serialize dict key {key!r}; keys must be strings", field_name
                        )
                    parts.append(f"{quote(key)}: {_serialize(item, field_name, active)}")
                return "{" + ", ".join(parts) + "}"
            return "[" + ", ".join(_serialize(item, field_name, active) for item in value) + "]"
        finally:
            active.discard(id(value))

    raise SerializationError(
        f"Cannot serialize default value of type {type(value).__name__}", field_name
    )


def docstring(text: str, indent: str = "    ") -> str:
    """Render a one-line docstring."""
    body = "".join(_escape_char(c) for c in " ".join(text.split())).replace('"""', '\\"\\"\\"')
    if body.endswith('"'):
        body += " "
    return f'{indent}"""{body}"""'
