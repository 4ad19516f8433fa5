from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from ade_client.core.errors import ADEError, ADEExtractionError
from ade_client.core.logging import get_logger, log_context
from ade_client.providers.base import DocumentInput, DocumentProvider, SchemaInput, SplitMode
from ade_client.schemas.extract import ExtractionResult
from ade_client.schemas.parse import ParseResult

logger = get_logger(__name__)

Fallback = Callable[[DocumentInput, ADEError], ParseResult | None]


@dataclass(slots=True)
class BatchItem:
    source: DocumentInput
    result: ParseResult | None = None
    extraction: ExtractionResult | None = None
    error: ADEError | None = None
    used_fallback: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchRunner:
    def __init__(
        self,
        provider: DocumentProvider,
        max_workers: int = 4,
        fallback: Fallback | None = None,
    ) -> None:
        if max_workers <= 0:
            raise ValueError("max_workers must be greater than 0")

        self.provider = provider
        self.max_workers = max_workers
        self.fallback = fallback

    def parse_all(
        self,
        sources: Sequence[DocumentInput],
        *,
        model: str | None = None,
        split: SplitMode | None = None,
    ) -> list[BatchItem]:
        def work(source: DocumentInput) -> BatchItem:
            return self._parse_one(source, model=model, split=split)

        return self._run(sources, work)

    def parse_then_extract(
        self,
        sources: Sequence[DocumentInput],
        schema: SchemaInput,
        *,
        parse_model: str | None = None,
        extract_model: str | None = None,
    ) -> list[BatchItem]:
        def work(source: DocumentInput) -> BatchItem:
            item = self._parse_one(source, model=parse_model, split=None)
            if item.result is None:
                return item
            if not item.result.markdown.strip():
                logger.warning("ade_batch_extract_skipped", source=_label(source), reason="empty_markdown")
                item.error = ADEExtractionError("parsed document has no markdown to extract from")
                return item
            try:
                item.extraction = self.provider.extract(schema, markdown=item.result.markdown, model=extract_model)
            except ADEError as exc:
                logger.warning("ade_batch_extract_failed", source=_label(source), error=exc.message)
                item.error = exc
            return item

        return self._run(sources, work)

    def _run(self, sources: Sequence[DocumentInput], work: Callable[[DocumentInput], BatchItem]) -> list[BatchItem]:
        if not sources:
            return []

        def labelled(source: DocumentInput) -> BatchItem:
            with log_context(batch_source=_label(source)):
                return work(source)

        workers = min(self.max_workers, len(sources))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ade-batch") as executor:
            items = list(executor.map(labelled, sources))

        failed = sum(1 for item in items if not item.ok)
        logger.info("ade_batch_complete", total=len(items), failed=failed, workers=workers)
        return items

    def _parse_one(self, source: DocumentInput, *, model: str | None, split: SplitMode | None) -> BatchItem:
        item = BatchItem(source=source)
        try:
            item.result = self.provider.parse(source, model=model, split=split)
            return item
        except ADEError as exc:
            logger.warning("ade_batch_parse_failed", source=_label(source), error=exc.message)
            item.error = exc

        if self.fallback is not None:
            substitute = self.fallback(source, item.error)
            if substitute is not None:
                item.result = substitute
                item.used_fallback = True
                item.error = None
        return item


def _label(source: DocumentInput) -> str:
    if isinstance(source, bytes):
        return f"<{len(source)} bytes>"
    return str(getattr(source, "filename", source))
