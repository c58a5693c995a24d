"""Utility functions for entity generation."""
import keyword
import re
from typing import Optional

IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# Singular words that end with 's' and must not be trimmed
SINGULAR_WORDS_ENDING_WITH_S = {
    "status", "class", "process", "address", "witness", "success", "progress",
}


def to_snake_case(name: str) -> str:
    """Convert PascalCase or camelCase to snake_case."""
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', name)
    s2 = re.sub('([a-z0-9])([A-Z])', r'\1_\2', s1)
    return s2.lower()


def to_kebab_case(name: str) -> str:
    """Convert PascalCase or camelCase to kebab-case."""
    s1 = re.sub('(.)([A-Z][a-z]+)', r'\1-\2', name)
    s2 = re.sub('([a-z0-9])([A-Z])', r'\1-\2', s1)
    return s2.lower()


def capitalize_first(name: str) -> str:
    """Upper-case the first letter only (userId -> UserId)."""
    if not name:
        return name
    return name[0].upper() + name[1:]


def pluralize(word: str) -> str:
    """Simple pluralization for table and route names."""
    if word.endswith('s') or word.endswith('x') or word.endswith('z') or word.endswith('ch') or word.endswith('sh'):
        return word + 'es'
    elif word.endswith('y') and len(word) > 1 and word[-2] not in 'aeiou':
        return word[:-1] + 'ies'
    else:
        return word + 's'


def singularize_field_name(field_name: str) -> str:
    """Singularize a field name, keeping singular words that end with 's'."""
    if field_name.lower() in SINGULAR_WORDS_ENDING_WITH_S:
        return field_name
    if field_name.endswith('ies'):
        return field_name[:-3] + 'y'
    if field_name.endswith(('ses', 'xes', 'zes', 'ches', 'shes')):
        return field_name[:-2]
    if field_name.endswith('s') and not field_name.endswith('ss'):
        return field_name[:-1]
    return field_name


def entity_to_slug(entity_name: str) -> str:
    """Convert entity name to slug for Python modules (snake_case)."""
    return to_snake_case(entity_name)


def entity_to_path(entity_name: str) -> str:
    """Convert entity name to API path (kebab-case plural for URLs)."""
    return pluralize(to_kebab_case(entity_name))


def path_to_module(path: str) -> str:
    """Convert a relative source path (app/entities/post.py) to a dotted module name."""
    module = path[:-3] if path.endswith(".py") else path
    return module.strip("/").replace("/", ".")


def is_identifier(name: Optional[str]) -> bool:
    """Check identifier syntax ([A-Za-z_$][A-Za-z0-9_$]*)."""
    return bool(name) and IDENTIFIER_RE.fullmatch(name) is not None


def is_python_name(name: Optional[str]) -> bool:
    """Identifier that can also be emitted as a Python attribute: no $ and no keywords."""
    return is_identifier(name) and "$" not in name and not keyword.iskeyword(name)


def to_enum_member(value: str) -> str:
    """Convert an enum value to a Python enum member name (in-progress -> IN_PROGRESS)."""
    member = re.sub(r'[^0-9A-Za-z_]', '_', str(value)).upper()
    if not member or member[0].isdigit():
        member = f"_{member}"
    return member
