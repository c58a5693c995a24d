from pydantic import BaseModel, Field, model_validator
from typing import Optional, Dict, Any, List


class GenerateRequest(BaseModel):
    schema_: Optional[Dict[str, Any]] = Field(
        None,
        alias="schema",
        examples=[{"name": "Post", "fields": [{"name": "title", "type": "string"}]}],
    )
    name: Optional[str] = Field(None, examples=["Post"])
    attributes: List[str] = Field(default_factory=list, examples=[["title:string", "authorId:string"]])

    @model_validator(mode="after")
    def check_source(self):
        if self.schema_ is None and not self.name:
            raise ValueError("Provide either 'schema' or 'name' with 'attributes'")
        return self


class FileOut(BaseModel):
    path: str
    content: str
    created: bool


class ArtifactOut(BaseModel):
    success: bool
    files: List[FileOut] = []
    errors: List[str] = []


class GenerateResponse(BaseModel):
    entity_name: str
    success: bool
    entity: ArtifactOut
    inputs: ArtifactOut
    operations: ArtifactOut
