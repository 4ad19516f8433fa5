from __future__ import annotations

import threading
import time

import pytest

from ade_client.batch.runner import BatchRunner
from ade_client.core.errors import ADEExtractionError, ADEParseError
from ade_client.providers.base import DocumentProvider
from ade_client.schemas import ExtractionResult, ParseResult


class FakeProvider(DocumentProvider):
    def __init__(
        self,
        failing: set[str] | None = None,
        failing_extract: bool = False,
        blank: set[str] | None = None,
    ) -> None:
        self.failing = failing or set()
        self.failing_extract = failing_extract
        self.blank = blank or set()
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def parse(self, document=None, *, document_url=None, model=None, split=None):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            time.sleep(0.01)
            if document in self.failing:
                raise ADEParseError(f"cannot parse {document}", status_code=422)
            if document in self.blank:
                return ParseResult(markdown="  \n")
            return ParseResult(markdown=f"# {document}")
        finally:
            with self._lock:
                self.active -= 1

    def extract(self, schema, *, markdown=None, markdown_url=None, model=None, strict=False):
        if self.failing_extract:
            raise ADEExtractionError("schema rejected", status_code=422)
        return ExtractionResult(extraction={"title": markdown.removeprefix("# ")})

    def create_parse_job(self, document=None, *, document_url=None, model=None, split=None):
        raise NotImplementedError

    def get_parse_job(self, job_id):
        raise NotImplementedError

    def fetch_job_result(self, job):
        raise NotImplementedError


def test_parse_all_keeps_input_order_and_captures_errors():
    provider = FakeProvider(failing={"b.pdf"})
    runner = BatchRunner(provider, max_workers=2)

    items = runner.parse_all(["a.pdf", "b.pdf", "c.pdf"])

    assert [item.source for item in items] == ["a.pdf", "b.pdf", "c.pdf"]
    assert [item.ok for item in items] == [True, False, True]
    assert items[0].result.markdown == "# a.pdf"
    assert isinstance(items[1].error, ADEParseError)
    assert items[1].result is None


def test_worker_pool_is_bounded():
    provider = FakeProvider()
    runner = BatchRunner(provider, max_workers=2)

    runner.parse_all([f"doc-{i}.pdf" for i in range(8)])

    assert provider.peak <= 2


def test_fallback_substitutes_failed_documents():
    provider = FakeProvider(failing={"scan.pdf"})
    seen = []

    def fallback(source, error):
        seen.append((source, error.status_code))
        return ParseResult(markdown="fallback text")

    items = BatchRunner(provider, max_workers=1, fallback=fallback).parse_all(["scan.pdf"])

    assert seen == [("scan.pdf", 422)]
    assert items[0].ok and items[0].used_fallback
    assert items[0].result.markdown == "fallback text"


def test_fallback_returning_none_keeps_error():
    provider = FakeProvider(failing={"scan.pdf"})

    items = BatchRunner(provider, fallback=lambda source, error: None).parse_all(["scan.pdf"])

    assert not items[0].ok
    assert not items[0].used_fallback


def test_parse_then_extract(invoice_schema):
    provider = FakeProvider(failing={"bad.pdf"})

    items = BatchRunner(provider).parse_then_extract(["good.pdf", "bad.pdf"], invoice_schema)

    assert items[0].extraction.extraction == {"title": "good.pdf"}
    assert items[1].extraction is None and not items[1].ok


def test_parse_then_extract_records_extraction_failures(invoice_schema):
    items = BatchRunner(FakeProvider(failing_extract=True)).parse_then_extract(["a.pdf"], invoice_schema)

    assert items[0].result is not None
    assert isinstance(items[0].error, ADEExtractionError)



def test_parse_then_extract_fails_documents_without_markdown(invoice_schema):
    provider = FakeProvider(blank={"blank.pdf"})

    items = BatchRunner(provider).parse_then_extract(["blank.pdf", "full.pdf"], invoice_schema)

    assert not items[0].ok
    assert items[0].result is not None and items[0].extraction is None
    assert isinstance(items[0].error, ADEExtractionError)
    assert "no markdown" in items[0].error.message
    assert items[1].ok

def test_empty_batch_and_invalid_workers():
    assert BatchRunner(FakeProvider()).parse_all([]) == []
    with pytest.raises(ValueError):
        BatchRunner(FakeProvider(), max_workers=0)
