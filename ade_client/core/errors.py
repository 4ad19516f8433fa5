from __future__ import annotations

from typing import Any, Literal

import httpx

Operation = Literal["parse", "extract", "job", "request"]


class ADEError(Exception):
    """Base class for every failure surfaced by the client."""

    def __init__(self, message: str, status_code: int | None = None, body: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class ADEConfigurationError(ADEError):
    pass


class ADEAuthenticationError(ADEError):
    pass


class ADERateLimitError(ADEError):
    def __init__(
        self,
        message: str,
        status_code: int | None = 429,
        body: Any | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, body=body)
        self.retry_after = retry_after


class ADEParseError(ADEError):
    pass


class ADEExtractionError(ADEError):
    pass


class ADEJobFailedError(ADEParseError):
    def __init__(self, job_id: str, status: str, reason: str | None = None) -> None:
        message = f"Parse job {job_id} finished with status '{status}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.job_id = job_id
        self.status = status
        self.reason = reason


class ADEJobTimeoutError(ADEError):
    def __init__(self, job_id: str, timeout_seconds: float, last_status: str | None = None) -> None:
        super().__init__(
            f"Timed out after {timeout_seconds:g}s waiting for parse job {job_id} "
            f"(last status: {last_status or 'unknown'})"
        )
        self.job_id = job_id
        self.timeout_seconds = timeout_seconds
        self.last_status = last_status


class ADEServerError(ADEError):
    pass


class ADEConnectionError(ADEError):
    pass


def parse_retry_after(value: str | None) -> float | None:
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return max(0.0, seconds)


def error_from_response(response: httpx.Response, operation: Operation = "request") -> ADEError:
    status_code = response.status_code
    body = _decode_body(response)
    message = _extract_message(body) or f"HTTP {status_code} from {_request_path(response)}"

    if status_code in {401, 403}:
        return ADEAuthenticationError(message, status_code=status_code, body=body)
    if status_code == 429:
        return ADERateLimitError(
            message,
            status_code=status_code,
            body=body,
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
        )
    if status_code >= 500:
        return ADEServerError(message, status_code=status_code, body=body)
    if operation == "extract":
        return ADEExtractionError(message, status_code=status_code, body=body)
    if operation in {"parse", "job"}:
        return ADEParseError(message, status_code=status_code, body=body)
    return ADEError(message, status_code=status_code, body=body)


def _request_path(response: httpx.Response) -> str:
    try:
        return response.request.url.path
    except RuntimeError:
        return "ADE API"


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _extract_message(body: Any) -> str:
    if isinstance(body, str):
        return body.strip()[:500]
    if not isinstance(body, dict):
        return ""

    for key in ("detail", "message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
        if isinstance(value, dict):
            nested = _extract_message(value)
            if nested:
                return nested
        if isinstance(value, list) and value:
            parts = [item.get("msg", str(item)) if isinstance(item, dict) else str(item) for item in value]
            return "; ".join(parts)
    return ""
