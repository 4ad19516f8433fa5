from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ade_client.core.errors import ADEConfigurationError


def schema_from_model(model_cls: type[BaseModel]) -> dict[str, Any]:
    """Build an extraction schema from a pydantic model with every ``$ref`` inlined."""
    raw = model_cls.model_json_schema()
    definitions = raw.pop("$defs", {})
    return _inline_refs(raw, definitions, seen=())


def load_schema(value: dict[str, Any] | str | Path | type[BaseModel]) -> dict[str, Any]:
    if isinstance(value, type) and issubclass(value, BaseModel):
        schema = schema_from_model(value)
    elif isinstance(value, dict):
        schema = copy.deepcopy(value)
    elif isinstance(value, Path) or (isinstance(value, str) and not value.lstrip().startswith("{")):
        path = Path(value).expanduser()
        if not path.is_file():
            raise ADEConfigurationError(f"Schema file not found: {path}")
        schema = _decode(path.read_text(encoding="utf-8"), origin=str(path))
    else:
        schema = _decode(str(value), origin="schema string")

    if schema.get("type") != "object":
        raise ADEConfigurationError("Extraction schema must describe a JSON object (\"type\": \"object\")")
    return schema


def _decode(raw: str, origin: str) -> dict[str, Any]:
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ADEConfigurationError(f"Invalid JSON in {origin}: {exc}") from exc
    if not isinstance(decoded, dict):
        raise ADEConfigurationError(f"Schema in {origin} must be a JSON object")
    return decoded


def _inline_refs(node: Any, definitions: dict[str, Any], seen: tuple[str, ...]) -> Any:
    if isinstance(node, list):
        return [_inline_refs(item, definitions, seen) for item in node]
    if not isinstance(node, dict):
        return node

    ref = node.get("$ref")
    if isinstance(ref, str) and ref.startswith("#/$defs/"):
        name = ref.removeprefix("#/$defs/")
        if name in seen:
            raise ADEConfigurationError(f"Recursive schema reference to '{name}' cannot be inlined")
        if name not in definitions:
            raise ADEConfigurationError(f"Unknown schema reference '{ref}'")
        resolved = _inline_refs(copy.deepcopy(definitions[name]), definitions, seen + (name,))
        siblings = {key: value for key, value in node.items() if key != "$ref"}
        resolved.update(_inline_refs(siblings, definitions, seen))
        return resolved

    return {key: _inline_refs(value, definitions, seen) for key, value in node.items()}
