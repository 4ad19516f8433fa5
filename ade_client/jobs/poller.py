from __future__ import annotations

import time
from collections.abc import Callable

from ade_client.core.config import Settings
from ade_client.core.errors import ADEJobFailedError, ADEJobTimeoutError
from ade_client.core.logging import get_logger, log_context
from ade_client.providers.base import DocumentInput, DocumentProvider, SplitMode
from ade_client.schemas.jobs import JobStatus, ParseJob
from ade_client.schemas.parse import ParseResult

logger = get_logger(__name__)

BACKOFF_FACTOR = 1.5


class JobPoller:
    """Submit a parse job, poll it until it settles and fetch the result."""

    def __init__(
        self,
        provider: DocumentProvider,
        interval: float = 2.0,
        max_interval: float = 30.0,
        timeout: float = 1800.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be greater than 0")
        if max_interval < interval:
            raise ValueError("max_interval cannot be smaller than interval")
        if timeout <= 0:
            raise ValueError("timeout must be greater than 0")

        self.provider = provider
        self.interval = interval
        self.max_interval = max_interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        provider: DocumentProvider,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> JobPoller:
        return cls(
            provider,
            interval=settings.ade_job_poll_interval_seconds,
            max_interval=settings.ade_job_poll_max_interval_seconds,
            timeout=settings.ade_job_timeout_seconds,
            sleep=sleep,
        )

    def wait(self, job_id: str) -> ParseJob:
        deadline = self._clock() + self.timeout
        interval = self.interval
        last_status: str | None = None

        while True:
            job = self.provider.get_parse_job(job_id)
            last_status = job.status.value
            logger.info("ade_job_poll", job_id=job_id, status=last_status, progress=job.progress)

            if job.status is JobStatus.COMPLETED:
                return job
            if job.status.is_terminal:
                raise ADEJobFailedError(job_id, job.status.value, job.failure_reason)

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise ADEJobTimeoutError(job_id, self.timeout, last_status)

            self._sleep(min(interval, remaining))
            interval = min(interval * BACKOFF_FACTOR, self.max_interval)

    def run(
        self,
        document: DocumentInput | None = None,
        *,
        document_url: str | None = None,
        model: str | None = None,
        split: SplitMode | None = None,
    ) -> ParseResult:
        job_id = self.provider.create_parse_job(document, document_url=document_url, model=model, split=split)
        with log_context(job_id=job_id):
            job = self.wait(job_id)
            result = self.provider.fetch_job_result(job)
            logger.info("ade_job_complete", chunks=len(result.chunks))
        return result
