import logging
from fastapi import APIRouter, HTTPException
from entitygen.generators.entity_gen.errors import SchemaError
from entitygen.generators.entity_gen.factory import GeneratorFactory
from entitygen.generators.entity_gen.parser import parse_entity, parse_shorthand_entity
from entitygen.generators.entity_gen.types import ArtifactResult
from entitygen.schemas.generate import ArtifactOut, FileOut, GenerateRequest, GenerateResponse

log = logging.getLogger(__name__)

router = APIRouter(prefix="/generate")


def _artifact_out(result: ArtifactResult) -> ArtifactOut:
    return ArtifactOut(
        success=result.success,
        files=[FileOut(path=f.path, content=f.content, created=f.created) for f in result.files],
        errors=result.errors,
    )


@router.post("", response_model=GenerateResponse)
def generate(req: GenerateRequest):
    """Preview every generated artifact for one entity without writing files."""
    try:
        if req.schema_ is not None:
            entity = parse_entity(req.schema_)
        else:
            entity = parse_shorthand_entity(req.name, req.attributes)
        result = GeneratorFactory().generate_all(entity)
    except SchemaError as e:
        log.warning("Rejected schema: %s", e, extra={"phase": "parse"})
        raise HTTPException(status_code=422, detail=str(e))

    return GenerateResponse(
        entity_name=result.entity_name,
        success=result.success,
        entity=_artifact_out(result.entity),
        inputs=_artifact_out(result.inputs),
        operations=_artifact_out(result.operations),
    )
