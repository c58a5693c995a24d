"""Rendering for generated create/update input modules."""
from typing import Dict, List, Sequence

from entitygen.generators.entity_gen.enums import EnumRegistry
from entitygen.generators.entity_gen.imports import GENERATED_HEADER, TYPING_NAMES, ImportCollector
from entitygen.generators.entity_gen.render_entity import enum_names, render_field
from entitygen.generators.entity_gen.types import EntitySchema, PreparedFieldData

INPUT_RUNTIME_NAMES = ("InputBase", "field_input", "field_input_enum", "field_input_json")

INPUT_CLASS_SUFFIXES = {
    "create": "CreateInput",
    "update": "UpdateInput",
    "create_update": "CreateUpdateInput",
}


def input_class_name(entity_name: str, input_type: str, base: bool = False) -> str:
    """PostCreateInput, or PostCreateInputBase for the generated base class."""
    name = f"{entity_name}{INPUT_CLASS_SUFFIXES[input_type]}"
    return f"{name}Base" if base else name


def render_inputs_base(
    entity: EntitySchema,
    variants: Dict[str, List[PreparedFieldData]],
    enums: EnumRegistry,
    runtime_module: str,
    entity_base_module: str,
) -> str:
    """
    Generate the always-regenerated input module.

    Args:
        entity: Parsed entity schema
        variants: Prepared fields per enabled input type, in create/update/create_update order
        enums: Enum registry (enum classes are imported from the entity base module)
        runtime_module: Module providing InputBase and the field_input helpers
        entity_base_module: Dotted module of the generated entity base

    Returns:
        Module source
    """
    body: List[str] = []
    for input_type, fields in variants.items():
        if body:
            body.extend(["", ""])
        body.append(f"class {input_class_name(entity.name, input_type, base=True)}(InputBase):")
        if not fields:
            body.append("    pass")
            continue
        for field in fields:
            body.append(render_field(field, default_none=True))

    source = "\n".join(body)
    imports = ImportCollector()
    imports.add_used("stdlib", "datetime", source, ("datetime",))
    imports.add_used("stdlib", "decimal", source, ("Decimal",))
    imports.add_used("stdlib", "typing", source, TYPING_NAMES)
    imports.add_used("local", runtime_module, source, INPUT_RUNTIME_NAMES)
    imports.add_used("local", entity_base_module, source, enum_names(enums))

    lines = [GENERATED_HEADER]
    lines.extend(imports.render())
    lines.extend(["", ""])
    lines.extend(body)
    return "\n".join(lines) + "\n"


def render_inputs_scaffold(entity: EntitySchema, input_types: Sequence[str], base_module: str) -> str:
    """Generate the hand-editable input classes, written once."""
    bases = [input_class_name(entity.name, t, base=True) for t in input_types]
    lines = [f"from {base_module} import {', '.join(sorted(bases))}"]
    for input_type in input_types:
        lines.extend([
            "",
            "",
            f"class {input_class_name(entity.name, input_type)}({input_class_name(entity.name, input_type, base=True)}):",
            "    pass",
        ])
    return "\n".join(lines) + "\n"
