from __future__ import annotations

import httpx
import pytest

from ade_client.core.errors import (
    ADEAuthenticationError,
    ADEError,
    ADEExtractionError,
    ADEJobFailedError,
    ADEParseError,
    ADERateLimitError,
    ADEServerError,
    error_from_response,
    parse_retry_after,
)


def _response(status_code: int, **kwargs) -> httpx.Response:
    request = httpx.Request("POST", "https://api.example.test/v1/ade/parse")
    return httpx.Response(status_code, request=request, **kwargs)


@pytest.mark.parametrize("status_code", [401, 403])
def test_auth_failures(status_code):
    error = error_from_response(_response(status_code, json={"detail": "Invalid API key"}), "parse")

    assert isinstance(error, ADEAuthenticationError)
    assert error.message == "Invalid API key"
    assert error.status_code == status_code


def test_rate_limit_carries_retry_after():
    error = error_from_response(_response(429, json={"message": "slow down"}, headers={"Retry-After": "7"}))

    assert isinstance(error, ADERateLimitError)
    assert error.retry_after == 7.0


def test_client_errors_follow_operation():
    assert isinstance(error_from_response(_response(422, json={"detail": "bad schema"}), "extract"), ADEExtractionError)
    assert isinstance(error_from_response(_response(400, json={"detail": "corrupt pdf"}), "parse"), ADEParseError)
    generic = error_from_response(_response(404, text="nope"), "request")
    assert type(generic) is ADEError
    assert generic.message == "nope"


def test_server_error_and_fallback_message():
    error = error_from_response(_response(503, content=b""))

    assert isinstance(error, ADEServerError)
    assert error.message == "HTTP 503 from /v1/ade/parse"


def test_validation_detail_lists_are_joined():
    body = {"detail": [{"msg": "field required"}, {"msg": "schema invalid"}]}

    error = error_from_response(_response(422, json=body), "extract")

    assert error.message == "field required; schema invalid"
    assert error.body == body


def test_parse_retry_after_handles_garbage():
    assert parse_retry_after(None) is None
    assert parse_retry_after("soon") is None
    assert parse_retry_after("-3") == 0.0
    assert parse_retry_after("1.5") == 1.5


def test_job_failure_is_a_parse_error():
    error = ADEJobFailedError("job-1", "failed", "unsupported file")

    assert isinstance(error, ADEParseError)
    assert "job-1" in error.message and "unsupported file" in error.message
