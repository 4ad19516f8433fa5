from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from ade_client.core.config import Settings
from ade_client.providers.ade import ADEClient


def sample_parse_payload() -> dict:
    return {
        "markdown": "# Invoice\n\nInvoice number: INV-001\n\nTotal: 42.00",
        "chunks": [
            {
                "id": "c-title",
                "type": "text",
                "markdown": "# Invoice",
                "grounding": {"page": 0, "box": {"left": 0.1, "top": 0.05, "right": 0.9, "bottom": 0.1}},
            },
            {
                "id": "c-number",
                "type": "text",
                "markdown": "Invoice number: INV-001",
                "grounding": {"page": 0, "box": {"left": 0.1, "top": 0.2, "right": 0.6, "bottom": 0.25}},
            },
            {
                "id": "c-code",
                "type": "scan-code",
                "markdown": "<qr>",
                "grounding": {"page": 1, "box": [100, 200, 180, 280]},
            },
        ],
        "splits": [
            {"class": "page", "identifier": "page_0", "pages": [0], "markdown": "...", "chunks": ["c-title", "c-number"]},
            {"class": "page", "identifier": "page_1", "pages": [1], "markdown": "<qr>", "chunks": ["c-code"]},
        ],
        "metadata": {
            "filename": "invoice.pdf",
            "page_count": 2,
            "duration_ms": 1530,
            "credit_usage": 6.0,
            "job_id": "req-123",
            "version": "dpt-2-20251103",
        },
    }


def sample_extract_payload() -> dict:
    return {
        "extraction": {"invoice_number": "INV-001", "total": 42.0},
        "extraction_metadata": {
            "invoice_number": {"references": ["c-number"], "confidence": 0.97},
            "total": {"references": ["c-total"]},
        },
        "metadata": {
            "filename": "document.md",
            "duration_ms": 800,
            "credit_usage": 1.5,
            "job_id": "req-456",
            "version": "extract-20251024",
            "schema_violation_error": None,
        },
    }


INVOICE_SCHEMA = {
    "type": "object",
    "properties": {
        "invoice_number": {"type": "string"},
        "total": {"type": "number"},
    },
    "required": ["invoice_number"],
}


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ade_api_key="test-key",
        ade_environment="production",
        ade_base_url="",
        ade_max_retries=2,
        ade_retry_backoff_seconds=0.5,
        ade_retry_max_backoff_seconds=4.0,
        ade_job_poll_interval_seconds=1.0,
        ade_job_poll_max_interval_seconds=2.0,
        ade_job_timeout_seconds=60.0,
        ade_sync_page_limit=2,
    )


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def make_client(settings: Settings, sleeps: list[float]) -> Callable[..., ADEClient]:
    def factory(handler: Callable[[httpx.Request], httpx.Response], **overrides) -> ADEClient:
        resolved = settings.model_copy(update=overrides) if overrides else settings
        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        return ADEClient(settings=resolved, client=http_client, sleep=sleeps.append)

    return factory


@pytest.fixture
def parse_payload() -> dict:
    return sample_parse_payload()


@pytest.fixture
def extract_payload() -> dict:
    return sample_extract_payload()


@pytest.fixture
def invoice_schema() -> dict:
    return dict(INVOICE_SCHEMA)
