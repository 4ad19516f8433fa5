from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import httpx

from ade_client import __version__
from ade_client.core.config import Settings
from ade_client.core.errors import (
    ADEConfigurationError,
    ADEConnectionError,
    ADEError,
    ADEExtractionError,
    ADEParseError,
    Operation,
    error_from_response,
    parse_retry_after,
)
from ade_client.core.logging import get_logger

logger = get_logger(__name__)

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}
IDEMPOTENT_METHODS = {"GET", "HEAD", "OPTIONS", "PUT", "DELETE"}
# The request never reached the server, so resending cannot duplicate an upload.
UNSENT_REQUEST_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)


class ADETransport:
    """Authenticated HTTP session against the ADE API with retry and error mapping."""

    def __init__(
        self,
        settings: Settings,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not settings.ade_api_key:
            raise ADEConfigurationError("ADE_API_KEY is required")

        self.settings = settings
        self.base_url = settings.resolved_base_url()
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=settings.ade_timeout_seconds)
        self._sleep = sleep
        self._headers = {
            "Authorization": f"Bearer {settings.ade_api_key}",
            "User-Agent": f"ade-client/{__version__}",
            "Accept": "application/json",
        }

    def __enter__(self) -> ADETransport:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def request(
        self,
        method: str,
        path: str,
        *,
        operation: Operation = "request",
        authenticated: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        url = path if path.startswith(("http://", "https://")) else f"{self.base_url}{path}"
        headers = dict(self._headers) if authenticated else {"User-Agent": self._headers["User-Agent"]}
        max_retries = max(0, self.settings.ade_max_retries)

        attempt = 0
        while True:
            try:
                response = self.client.request(method, url, headers=headers, **kwargs)
            except httpx.TimeoutException as exc:
                if attempt >= max_retries or not _can_resend(method, exc):
                    raise ADEConnectionError(f"Request to {path} timed out: {exc}") from exc
                delay = self._backoff(attempt)
                logger.warning("ade_request_retry", path=path, attempt=attempt + 1, delay=delay, reason="timeout")
            except httpx.TransportError as exc:
                if attempt >= max_retries or not _can_resend(method, exc):
                    raise ADEConnectionError(f"Request to {path} failed: {exc}") from exc
                delay = self._backoff(attempt)
                logger.warning(
                    "ade_request_retry", path=path, attempt=attempt + 1, delay=delay, reason=type(exc).__name__
                )
            else:
                if response.is_success:
                    logger.debug("ade_request_ok", method=method, path=path, status_code=response.status_code)
                    return response

                if response.status_code not in RETRYABLE_STATUS_CODES or attempt >= max_retries:
                    error = error_from_response(response, operation)
                    logger.warning(
                        "ade_request_failed",
                        method=method,
                        path=path,
                        status_code=response.status_code,
                        error=error.message,
                    )
                    raise error

                retry_after = parse_retry_after(response.headers.get("Retry-After"))
                delay = self._backoff(attempt, retry_after)
                logger.warning(
                    "ade_request_retry",
                    path=path,
                    attempt=attempt + 1,
                    delay=delay,
                    status_code=response.status_code,
                )

            self._sleep(delay)
            attempt += 1

    def get_json(self, path: str, *, operation: Operation = "request", **kwargs: Any) -> Any:
        return _decode_json(self.request("GET", path, operation=operation, **kwargs), operation)

    def post_json(self, path: str, *, operation: Operation = "request", **kwargs: Any) -> Any:
        return _decode_json(self.request("POST", path, operation=operation, **kwargs), operation)

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def _backoff(self, attempt: int, retry_after: float | None = None) -> float:
        cap = self.settings.ade_retry_max_backoff_seconds
        if retry_after is not None:
            return min(retry_after, cap)
        return min(self.settings.ade_retry_backoff_seconds * (2**attempt), cap)


def _decode_json(response: httpx.Response, operation: Operation) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        error_cls = {"parse": ADEParseError, "job": ADEParseError, "extract": ADEExtractionError}.get(
            operation, ADEError
        )
        content_type = response.headers.get("content-type", "no content type")
        raise error_cls(
            f"Expected JSON from {response.request.url.path}, got {content_type}",
            status_code=response.status_code,
            body=response.text[:500],
        ) from exc


def _can_resend(method: str, exc: httpx.TransportError) -> bool:
    return method.upper() in IDEMPOTENT_METHODS or isinstance(exc, UNSENT_REQUEST_ERRORS)
