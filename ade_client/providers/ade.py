from __future__ import annotations

import json
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ade_client.core.config import Settings, get_settings
from ade_client.core.errors import (
    ADEConfigurationError,
    ADEExtractionError,
    ADEParseError,
    Operation,
)
from ade_client.core.logging import get_logger
from ade_client.documents.sources import resolve_source, should_use_job
from ade_client.extraction.schema import load_schema
from ade_client.jobs.poller import JobPoller
from ade_client.providers.base import DocumentInput, DocumentProvider, SchemaInput, SplitMode
from ade_client.schemas.extract import ExtractionResult
from ade_client.schemas.jobs import JobStatus, ParseJob, ParseJobList
from ade_client.schemas.parse import ParseResult
from ade_client.transport import ADETransport

logger = get_logger(__name__)

PARSE_PATH = "/v1/ade/parse"
EXTRACT_PATH = "/v1/ade/extract"
PARSE_JOBS_PATH = "/v1/ade/parse/jobs"

ResponseT = TypeVar("ResponseT", bound=BaseModel)
FormPart = tuple[str | None, bytes] | tuple[str, bytes, str]


class ADEClient(DocumentProvider):
    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.transport = ADETransport(self.settings, client=client, sleep=sleep)
        self._sleep = sleep

    def __enter__(self) -> ADEClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self.transport.close()

    def parse(
        self,
        document: DocumentInput | None = None,
        *,
        document_url: str | None = None,
        model: str | None = None,
        split: SplitMode | None = None,
    ) -> ParseResult:
        form = self._parse_form(document, document_url, model, split)
        payload = self.transport.post_json(PARSE_PATH, operation="parse", files=form)
        result = _validate(ParseResult, payload, "parse")
        logger.info(
            "ade_parse_complete",
            filename=result.metadata.filename,
            page_count=result.metadata.page_count,
            chunks=len(result.chunks),
            credit_usage=result.metadata.credit_usage,
        )
        return result

    def extract(
        self,
        schema: SchemaInput,
        *,
        markdown: str | Path | None = None,
        markdown_url: str | None = None,
        model: str | None = None,
        strict: bool = False,
    ) -> ExtractionResult:
        if (markdown is None) == (markdown_url is None):
            raise ADEConfigurationError("Provide exactly one of markdown or markdown_url")

        fields = {
            "schema": json.dumps(load_schema(schema)),
            "model": model or self.settings.ade_extract_model,
        }
        if markdown_url is not None:
            form = _multipart(fields | {"markdown_url": markdown_url})
        else:
            form = _multipart(fields, markdown=_markdown_upload(markdown))

        payload = self.transport.post_json(EXTRACT_PATH, operation="extract", files=form)
        result = _validate(ExtractionResult, payload, "extract")

        violation = result.metadata.schema_violation_error
        if violation:
            logger.warning("ade_extract_schema_violation", error=violation)
            if strict:
                raise ADEExtractionError(violation, body=payload)

        logger.info(
            "ade_extract_complete",
            fields=len(result.extraction),
            credit_usage=result.metadata.credit_usage,
        )
        return result

    def create_parse_job(
        self,
        document: DocumentInput | None = None,
        *,
        document_url: str | None = None,
        model: str | None = None,
        split: SplitMode | None = None,
    ) -> str:
        form = self._parse_form(document, document_url, model, split)
        payload = self.transport.post_json(PARSE_JOBS_PATH, operation="job", files=form)
        job_id = payload.get("job_id") if isinstance(payload, dict) else None
        if not job_id:
            raise ADEParseError("Parse job response did not contain a job_id", body=payload)
        logger.info("ade_parse_job_created", job_id=job_id)
        return str(job_id)

    def get_parse_job(self, job_id: str) -> ParseJob:
        if not job_id:
            raise ADEConfigurationError("job_id is required")
        payload = self.transport.get_json(f"{PARSE_JOBS_PATH}/{job_id}", operation="job")
        return _validate(ParseJob, payload, "job")

    def list_parse_jobs(
        self,
        status: JobStatus | str | None = None,
        page: int = 0,
        page_size: int = 10,
    ) -> ParseJobList:
        if page < 0:
            raise ADEConfigurationError("page cannot be negative")
        if page_size <= 0:
            raise ADEConfigurationError("page_size must be greater than 0")

        params: dict[str, Any] = {"page": page, "pageSize": page_size}
        if status is not None:
            try:
                params["status"] = JobStatus(status).value
            except ValueError as exc:
                raise ADEConfigurationError(f"Unknown job status: {status}") from exc
        payload = self.transport.get_json(PARSE_JOBS_PATH, operation="job", params=params)
        return _validate(ParseJobList, payload, "job")

    def fetch_job_result(self, job: ParseJob) -> ParseResult:
        if job.status is not JobStatus.COMPLETED:
            raise ADEParseError(f"Parse job {job.job_id} is not completed (status: {job.status.value})")
        if job.data is not None:
            return job.data
        if job.output_url:
            # Presigned download; the API key must not be forwarded.
            payload = self.transport.get_json(job.output_url, operation="job", authenticated=False)
            return _validate(ParseResult, payload, "job")
        raise ADEParseError(f"Parse job {job.job_id} completed without data or output_url")

    def parse_document(
        self,
        document: DocumentInput,
        *,
        model: str | None = None,
        split: SplitMode | None = None,
        use_job: bool | None = None,
    ) -> ParseResult:
        """Parse ``document``, switching to the job API for long documents.

        ``use_job=None`` decides from the local page count and
        ``ade_sync_page_limit``; URLs are parsed synchronously unless forced.
        """
        source = resolve_source(document)
        if use_job is None:
            use_job = should_use_job(source, self.settings.ade_sync_page_limit)

        if not use_job:
            if source.is_url:
                return self.parse(document_url=source.url, model=model, split=split)
            return self.parse(source, model=model, split=split)

        poller = JobPoller.from_settings(self, self.settings, sleep=self._sleep)
        return poller.run(source, model=model, split=split)

    def _parse_form(
        self,
        document: DocumentInput | None,
        document_url: str | None,
        model: str | None,
        split: SplitMode | None,
    ) -> dict[str, FormPart]:
        if (document is None) == (document_url is None):
            raise ADEConfigurationError("Provide exactly one of document or document_url")

        fields = {"model": model or self.settings.ade_parse_model}
        if split is not None:
            fields["split"] = split

        if document_url is None:
            source = resolve_source(document)
            if not source.is_url:
                return _multipart(fields, document=source.as_upload())
            document_url = source.url

        fields["document_url"] = document_url or ""
        return _multipart(fields)


def _multipart(fields: dict[str, str], **uploads: tuple[str, bytes, str]) -> dict[str, FormPart]:
    """Encode plain fields and uploads together; the API only accepts multipart bodies."""
    form: dict[str, FormPart] = {name: (None, value.encode("utf-8")) for name, value in fields.items()}
    form.update(uploads)
    return form


def _markdown_upload(markdown: str | Path | None) -> tuple[str, bytes, str]:
    if isinstance(markdown, Path):
        if not markdown.is_file():
            raise ADEConfigurationError(f"Markdown file not found: {markdown}")
        return (markdown.name, markdown.read_bytes(), "text/markdown")

    text = markdown or ""
    if "\n" not in text and text.lower().endswith((".md", ".markdown")):
        path = Path(text).expanduser()
        if path.is_file():
            return (path.name, path.read_bytes(), "text/markdown")

    if not text.strip():
        raise ADEConfigurationError("Markdown content is empty")
    return ("document.md", text.encode("utf-8"), "text/markdown")


def _validate(model_cls: type[ResponseT], payload: Any, operation: Operation) -> ResponseT:
    try:
        return model_cls.model_validate(payload)
    except ValidationError as exc:
        message = f"Unexpected {operation} response shape: {exc.error_count()} validation error(s)"
        if operation == "extract":
            raise ADEExtractionError(message, body=payload) from exc
        raise ADEParseError(message, body=payload) from exc
