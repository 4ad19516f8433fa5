from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ade_client.schemas.parse import ParseResult

ModelT = TypeVar("ModelT", bound=BaseModel)


class ExtractionMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    filename: str | None = None
    duration_ms: int | None = None
    credit_usage: float | None = None
    job_id: str | None = None
    version: str | None = None
    schema_violation_error: str | None = None


class ExtractionResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    extraction: dict[str, Any] = Field(default_factory=dict)
    extraction_metadata: dict[str, Any] = Field(default_factory=dict)
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)

    def references_for(self, field: str) -> list[str]:
        """Chunk ids backing ``field``; nested fields use dotted paths."""
        entry = _lookup(self.extraction_metadata, field)
        return _collect_references(entry)

    def confidence_for(self, field: str) -> float | None:
        entry = _lookup(self.extraction_metadata, field)
        if isinstance(entry, dict):
            confidence = entry.get("confidence")
            if isinstance(confidence, (int, float)):
                return float(confidence)
        return None

    def mismatched_keys(self) -> set[str]:
        return set(self.extraction) ^ set(self.extraction_metadata)

    def dangling_references(self, parse_result: ParseResult) -> list[str]:
        known = {chunk.id for chunk in parse_result.chunks}
        missing: list[str] = []
        for reference in _collect_references(self.extraction_metadata):
            if reference not in known and reference not in missing:
                missing.append(reference)
        return missing

    def to_model(self, model_cls: type[ModelT]) -> ModelT:
        return model_cls.model_validate(self.extraction)


def _lookup(data: Any, path: str) -> Any:
    current = data
    for part in path.split("."):
        if isinstance(current, dict) and part in current:
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return None
    return current


def _collect_references(entry: Any) -> list[str]:
    found: list[str] = []
    if isinstance(entry, dict):
        references = entry.get("references")
        if isinstance(references, list):
            found.extend(str(ref) for ref in references)
        for key, value in entry.items():
            if key != "references":
                found.extend(_collect_references(value))
    elif isinstance(entry, list):
        for item in entry:
            found.extend(_collect_references(item))
    return found
