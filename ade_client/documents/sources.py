from __future__ import annotations

import io
import mimetypes
from dataclasses import dataclass
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from ade_client.core.errors import ADEConfigurationError

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".webp", ".gif"}


@dataclass(slots=True)
class DocumentSource:
    filename: str
    path: Path | None = None
    content: bytes | None = None
    url: str | None = None

    @property
    def is_url(self) -> bool:
        return self.url is not None

    @property
    def suffix(self) -> str:
        return Path(self.filename).suffix.lower()

    @property
    def mime_type(self) -> str:
        guessed, _ = mimetypes.guess_type(self.filename)
        return guessed or "application/octet-stream"

    def read_bytes(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.path is not None:
            return self.path.read_bytes()
        raise ADEConfigurationError(f"Document source {self.filename} has no local content")

    def as_upload(self) -> tuple[str, bytes, str]:
        return (self.filename, self.read_bytes(), self.mime_type)


def resolve_source(value: str | Path | bytes | DocumentSource, filename: str | None = None) -> DocumentSource:
    if isinstance(value, DocumentSource):
        return value

    if isinstance(value, (bytes, bytearray)):
        if not value:
            raise ADEConfigurationError("Document content is empty")
        return DocumentSource(filename=filename or "document", content=bytes(value))

    candidate = str(value).strip()
    if not candidate:
        raise ADEConfigurationError("Document source is required")

    if candidate.startswith(("http://", "https://")):
        name = filename or (candidate.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1] or "document")
        return DocumentSource(filename=name, url=candidate)

    path = Path(candidate).expanduser().resolve()
    if not path.exists():
        raise ADEConfigurationError(f"Document not found: {path}")
    if not path.is_file():
        raise ADEConfigurationError(f"Document path is not a file: {path}")
    return DocumentSource(filename=filename or path.name, path=path)


def count_pages(source: DocumentSource) -> int | None:
    if source.is_url:
        return None

    if source.suffix in IMAGE_SUFFIXES:
        return 1

    if source.suffix != ".pdf" and source.mime_type != "application/pdf":
        return None

    try:
        if source.path is not None:
            reader = PdfReader(str(source.path))
        else:
            reader = PdfReader(io.BytesIO(source.read_bytes()))
        return len(reader.pages)
    except (PyPdfError, ValueError, KeyError, TypeError):
        # pypdf surfaces malformed files through several exception types.
        return None


def should_use_job(source: DocumentSource, page_limit: int) -> bool:
    pages = count_pages(source)
    return pages is not None and pages > page_limit
