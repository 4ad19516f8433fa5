from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel

from ade_client.documents.sources import DocumentSource
from ade_client.schemas.extract import ExtractionResult
from ade_client.schemas.jobs import ParseJob
from ade_client.schemas.parse import ParseResult

DocumentInput = str | Path | bytes | DocumentSource
SchemaInput = dict[str, Any] | str | Path | type[BaseModel]
SplitMode = Literal["page"]


class DocumentProvider(ABC):
    @abstractmethod
    def parse(
        self,
        document: DocumentInput | None = None,
        *,
        document_url: str | None = None,
        model: str | None = None,
        split: SplitMode | None = None,
    ) -> ParseResult:
        raise NotImplementedError

    @abstractmethod
    def extract(
        self,
        schema: SchemaInput,
        *,
        markdown: str | Path | None = None,
        markdown_url: str | None = None,
        model: str | None = None,
        strict: bool = False,
    ) -> ExtractionResult:
        raise NotImplementedError

    @abstractmethod
    def create_parse_job(
        self,
        document: DocumentInput | None = None,
        *,
        document_url: str | None = None,
        model: str | None = None,
        split: SplitMode | None = None,
    ) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_parse_job(self, job_id: str) -> ParseJob:
        raise NotImplementedError

    @abstractmethod
    def fetch_job_result(self, job: ParseJob) -> ParseResult:
        raise NotImplementedError
