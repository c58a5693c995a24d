"""Enum registration, run once per entity before any field is prepared."""
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from entitygen.generators.entity_gen.errors import SchemaError
from entitygen.generators.entity_gen.type_mapper import enum_name
from entitygen.generators.entity_gen.types import EntitySchema, FieldSpec
from entitygen.generators.entity_gen.utils import to_enum_member

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnumDefinition:
    """A generated enum class: name plus ordered (value, member name) pairs."""
    name: str
    members: Tuple[Tuple[str, str], ...]
    description: Optional[str] = None

    @property
    def values(self) -> Tuple[str, ...]:
        return tuple(value for value, _ in self.members)


def build_members(name: str, values: Sequence[str]) -> Tuple[Tuple[str, str], ...]:
    """Pair each enum value with its member name, rejecting collisions."""
    members = []
    seen: Dict[str, str] = {}
    for value in values:
        member = to_enum_member(value)
        if member in seen:
            raise SchemaError(
                f"Enum {name} values '{seen[member]}' and '{value}' map to the same member {member}"
            )
        seen[member] = value
        members.append((value, member))
    return tuple(members)


class EnumRegistry:
    """Read-only lookup of the enums an entity declares, by field name and enum name."""

    def __init__(self, by_field: Mapping[str, EnumDefinition], ordered: List[EnumDefinition]):
        self._by_field = MappingProxyType(dict(by_field))
        self._ordered = tuple(ordered)

    @classmethod
    def build(cls, entity: EntitySchema) -> "EnumRegistry":
        """
        Register every enum field of an entity.

        Raises:
            SchemaError: when two fields produce the same enum name with different values
        """
        by_field: Dict[str, EnumDefinition] = {}
        by_name: Dict[str, EnumDefinition] = {}
        ordered: List[EnumDefinition] = []

        for f in entity.fields:
            if f.type != "enum":
                continue
            name = enum_name(entity.name, f.name)
            definition = EnumDefinition(
                name=name,
                members=build_members(name, f.enum_values),
                description=f.description,
            )
            existing = by_name.get(name)
            if existing is not None:
                if existing.members != definition.members:
                    raise SchemaError(f"Enum {name} is declared twice with different values")
                definition = existing
            else:
                by_name[name] = definition
                ordered.append(definition)
            by_field[f.name] = definition

        if ordered:
            log.debug(
                "Registered %d enum(s)", len(ordered),
                extra={"entity": entity.name, "phase": "enums"},
            )
        return cls(by_field, ordered)

    def for_field(self, field: FieldSpec) -> Optional[EnumDefinition]:
        return self._by_field.get(field.name)

    def definitions(self) -> Tuple[EnumDefinition, ...]:
        return self._ordered

    def __len__(self) -> int:
        return len(self._ordered)
