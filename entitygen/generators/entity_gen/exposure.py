"""Field-level API exposure options."""
from dataclasses import dataclass

from entitygen.generators.entity_gen.types import FieldSpec


@dataclass(frozen=True)
class ApiExposure:
    """Which generated surfaces a field takes part in."""
    object: bool
    inputs: bool
    foreign_key: bool
    relation: bool

    @classmethod
    def for_field(cls, field: FieldSpec) -> "ApiExposure":
        """
        Resolve a field's exposure.

        None/True: object and inputs, plus foreign_key and relation for relationship fields.
        False: nothing. A tuple: exactly the listed options.
        """
        api = field.api
        if api is False:
            return cls(object=False, inputs=False, foreign_key=False, relation=False)
        if api is None or api is True:
            has_relation = field.relationship is not None
            return cls(object=True, inputs=True, foreign_key=has_relation, relation=has_relation)
        return cls(
            object="object" in api,
            inputs="inputs" in api,
            foreign_key="foreign_key" in api,
            relation="relation" in api,
        )
