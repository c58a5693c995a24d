"""Load entity schema files (JSON or YAML)."""
import json
import logging
from pathlib import Path
from typing import Any, List, Union

import yaml

from entitygen.generators.entity_gen.errors import SchemaError
from entitygen.generators.entity_gen.parser import parse_entity
from entitygen.generators.entity_gen.types import EntitySchema

log = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def read_schema_file(path: Union[str, Path]) -> Any:
    """
    Read a raw schema document.

    Raises:
        SchemaError: if the file cannot be read or decoded
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Cannot read schema file {path}: {e}") from e

    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            return yaml.safe_load(text)
        return json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SchemaError(f"Cannot decode schema file {path}: {e}") from e


def load_schema_documents(path: Union[str, Path]) -> List[Any]:
    """
    Read the raw, unparsed entity documents of a schema file.

    A file may hold a single entity object, a list of entities, or {"entities": [...]}.
    """
    raw = read_schema_file(path)
    if isinstance(raw, dict) and "entities" in raw:
        raw = raw["entities"]
    documents = raw if isinstance(raw, list) else [raw]
    if not documents:
        raise SchemaError(f"Schema file {path} contains no entities")
    return documents


def load_schema_file(path: Union[str, Path]) -> List[EntitySchema]:
    """Load and parse every entity schema in a file. Any invalid entity fails the whole file."""
    entities = [parse_entity(doc) for doc in load_schema_documents(path)]
    log.info(
        "Loaded %d entity schema(s) from %s", len(entities), path,
        extra={"entity": "-", "phase": "load"},
    )
    return entities
