"""Rendering for generated CRUD operation routers."""
from typing import Dict, List, Sequence

from entitygen.generators.entity_gen.imports import GENERATED_HEADER, ImportCollector
from entitygen.generators.entity_gen.render_inputs import input_class_name
from entitygen.generators.entity_gen.serialize import quote
from entitygen.generators.entity_gen.types import EntitySchema
from entitygen.generators.entity_gen.utils import entity_to_path, entity_to_slug, pluralize


def handler_names(entity_name: str) -> Dict[str, str]:
    """Function names of the generated handlers, per operation."""
    slug = entity_to_slug(entity_name)
    return {
        "single": f"get_{slug}",
        "list": f"list_{pluralize(slug)}",
        "create": f"create_{slug}",
        "update": f"update_{slug}",
        "create_update": f"create_or_update_{slug}",
        "delete": f"delete_{slug}",
        "destroy": f"destroy_{slug}",
        "restore": f"restore_{slug}",
    }


def _not_found(entity_name: str) -> str:
    return f'        raise HTTPException(status_code=404, detail=f"{entity_name} with id {{id}} not found")'


def render_router_base(
    entity: EntitySchema,
    operations: Sequence[str],
    runtime_module: str,
    entity_module: str,
    inputs_module: str,
) -> str:
    """
    Generate a FastAPI router with one handler per enabled operation.

    Handlers delegate to the runtime EntityRepository bound to the entity class.
    """
    name = entity.name
    names = handler_names(name)
    router_line = f"router = APIRouter(prefix={quote('/' + entity_to_path(name))}, tags=[{quote(name)}])"
    body: List[str] = [router_line, "", f"repo = EntityRepository({name})", ""]

    if "single" in operations:
        body.append(f'@router.get("/{{id}}", response_model={name})')
        body.append(f"async def {names['single']}(id: str):")
        body.append("    result = await repo.get(id)")
        body.append("    if not result:")
        body.append(_not_found(name))
        body.append("    return result")
        body.append("")

    if "list" in operations:
        body.append('@router.get("", response_model=dict)')
        body.append(
            f"async def {names['list']}(limit: int = Query(100, ge=1), offset: int = Query(0, ge=0), "
            "q: Optional[str] = Query(None)):"
        )
        body.append("    result = await repo.list(limit=limit, offset=offset, q=q)")
        body.append('    return {"items": result["items"], "total": result["total"]}')
        body.append("")

    if "create" in operations:
        body.append(f'@router.post("", response_model={name}, status_code=201)')
        body.append(f"async def {names['create']}(data: {input_class_name(name, 'create')}):")
        body.append("    return await repo.create(data.model_dump())")
        body.append("")

    if "update" in operations:
        body.append(f'@router.patch("/{{id}}", response_model={name})')
        body.append(f"async def {names['update']}(id: str, data: {input_class_name(name, 'update')}):")
        body.append("    try:")
        body.append("        return await repo.update(id, data.model_dump(exclude_unset=True))")
        body.append("    except ValueError as e:")
        body.append("        raise HTTPException(status_code=404, detail=str(e))")
        body.append("")

    if "create_update" in operations:
        body.append(f'@router.put("", response_model={name})')
        body.append(
            f"async def {names['create_update']}(data: {input_class_name(name, 'create_update')}):"
        )
        body.append("    return await repo.upsert(data.model_dump(exclude_unset=True))")
        body.append("")

    if "delete" in operations:
        body.append('@router.delete("/{id}", status_code=204)')
        body.append(f"async def {names['delete']}(id: str):")
        body.append("    success = await repo.soft_delete(id)")
        body.append("    if not success:")
        body.append(_not_found(name))
        body.append("    return None")
        body.append("")

    if "destroy" in operations:
        body.append('@router.delete("/{id}/destroy", status_code=204)')
        body.append(f"async def {names['destroy']}(id: str):")
        body.append("    success = await repo.destroy(id)")
        body.append("    if not success:")
        body.append(_not_found(name))
        body.append("    return None")
        body.append("")

    if "restore" in operations:
        body.append(f'@router.post("/{{id}}/restore", response_model={name})')
        body.append(f"async def {names['restore']}(id: str):")
        body.append("    result = await repo.restore(id)")
        body.append("    if not result:")
        body.append(_not_found(name))
        body.append("    return result")
        body.append("")

    source = "\n".join(body)
    fastapi_names = ["APIRouter"]
    if "HTTPException" in source:
        fastapi_names.append("HTTPException")
    if "Query(" in source:
        fastapi_names.append("Query")

    imports = ImportCollector()
    if "Optional[" in source:
        imports.add("stdlib", "typing", "Optional")
    imports.add("third_party", "fastapi", *fastapi_names)
    imports.add("local", entity_module, name)
    imports.add("local", inputs_module, *[
        input_class_name(name, op) for op in ("create", "update", "create_update") if op in operations
    ])
    imports.add("local", runtime_module, "EntityRepository")

    lines = [GENERATED_HEADER]
    lines.extend(imports.render())
    lines.extend(["", ""])
    lines.extend(body)
    return "\n".join(lines).rstrip("\n") + "\n"


def render_router_scaffold(entity: EntitySchema, base_module: str) -> str:
    """Generate the hand-editable router module, written once."""
    lines = [
        f"from {base_module} import repo, router",
        "",
        f"# Custom {entity.name} endpoints can be added to router here; this file is not regenerated.",
        "",
        '__all__ = ["repo", "router"]',
    ]
    return "\n".join(lines) + "\n"
