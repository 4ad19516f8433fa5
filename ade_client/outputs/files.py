from __future__ import annotations

import json
import re
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel

from ade_client.schemas.extract import ExtractionResult
from ade_client.schemas.parse import ParseResult

_STEM_RE = re.compile(r"[^a-zA-Z0-9_-]+")


def safe_stem(name: str) -> str:
    stem = _STEM_RE.sub("_", Path(name).stem).strip("._")
    return stem or "document"


def unique_stems(names: Sequence[str]) -> list[str]:
    """Safe stems for a batch of outputs, numbering repeats so no two share files.

    ``a/report.pdf`` and ``b/report.pdf`` become ``report`` and ``report_2``.
    """
    taken: set[str] = set()
    stems: list[str] = []
    for name in names:
        base = safe_stem(name)
        stem, counter = base, 2
        while stem in taken:
            stem = f"{base}_{counter}"
            counter += 1
        taken.add(stem)
        stems.append(stem)
    return stems


def save_parse_result(result: ParseResult, directory: str | Path, stem: str | None = None) -> list[Path]:
    target = _ensure_dir(directory)
    stem = safe_stem(stem or result.metadata.filename or "document")

    json_path = target / f"{stem}.json"
    markdown_path = target / f"{stem}.md"
    _write_json(json_path, result)
    markdown_path.write_text(result.markdown, encoding="utf-8")
    return [json_path, markdown_path]


def save_extraction_result(result: ExtractionResult, directory: str | Path, stem: str | None = None) -> Path:
    target = _ensure_dir(directory)
    stem = safe_stem(stem or result.metadata.filename or "document")

    path = target / f"{stem}_extraction.json"
    _write_json(path, result)
    return path


def _ensure_dir(directory: str | Path) -> Path:
    target = Path(directory).expanduser()
    target.mkdir(parents=True, exist_ok=True)
    return target


def _write_json(path: Path, model: BaseModel) -> None:
    payload = model.model_dump(mode="json", by_alias=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
