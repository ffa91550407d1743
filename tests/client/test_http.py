"""Unit tests for the client HTTP layer.

This module tests the HTTP handling layer defined in client/_http.py.
The tests verify:

1. Helper Functions:
   - _parse_error_response: Extracting error info from bridge error bodies
   - _raise_for_status: Mapping HTTP status codes to exception types
   - _calculate_backoff: Exponential backoff calculation for retries

2. HTTPClient and AsyncHTTPClient:
   - Request methods, JSON decoding and parameter filtering
   - Error handling and exception mapping
   - Retry logic with exponential backoff

Note: These tests use httpx's mock transport to avoid real network calls.
"""

import httpx
import pytest

from client import _http
from client._http import (
    DEFAULT_RETRY_BACKOFF_BASE,
    DEFAULT_RETRY_BACKOFF_MAX,
    RETRYABLE_STATUS_CODES,
    AsyncHTTPClient,
    HTTPClient,
    _calculate_backoff,
    _parse_error_response,
    _raise_for_status,
)
from client.exceptions import (
    APIError,
    BadRequestError,
    ConnectionError,
    NotFoundError,
    ServerError,
    TimeoutError,
    ValidationError,
)


# =============================================================================
# Helper Function Tests
# =============================================================================


class TestParseErrorResponse:
    """Tests for _parse_error_response."""

    def test_bridge_error_body(self) -> None:
        response = httpx.Response(
            status_code=400,
            json={"error": "Invalid Value", "detail": "Send p1 has not failed", "type": "ValueError"},
        )

        message, error_type, details = _parse_error_response(response)

        assert message == "Send p1 has not failed"
        assert error_type == "Invalid Value"
        assert details is None

    def test_fastapi_request_validation_body(self) -> None:
        """FastAPI reports request validation failures as a list under detail."""
        response = httpx.Response(
            status_code=422,
            json={"detail": [{"loc": ["body", "team_id"], "msg": "Field required"}]},
        )

        message, error_type, details = _parse_error_response(response)

        assert message == "team_id: Field required"
        assert error_type == "validation_error"
        assert details["errors"][0]["msg"] == "Field required"

    def test_bridge_validation_body(self) -> None:
        response = httpx.Response(
            status_code=422,
            json={
                "error": "Validation Error",
                "detail": "The request data failed validation",
                "validation_errors": [{"loc": ["msg_count"]}],
            },
        )

        message, error_type, details = _parse_error_response(response)

        assert message == "The request data failed validation"
        assert error_type == "Validation Error"
        assert details == {"errors": [{"loc": ["msg_count"]}]}

    def test_plain_text_body(self) -> None:
        response = httpx.Response(status_code=502, text="Bad Gateway")

        message, error_type, details = _parse_error_response(response)

        assert message == "Bad Gateway"
        assert error_type is None
        assert details is None

    def test_empty_body(self) -> None:
        response = httpx.Response(status_code=500)

        message, _, _ = _parse_error_response(response)

        assert message == "HTTP 500 error"


class TestRaiseForStatus:
    """Tests for _raise_for_status status code mapping."""

    def test_success_does_not_raise(self) -> None:
        _raise_for_status(httpx.Response(status_code=200, json={}))

    @pytest.mark.parametrize(
        "status_code,exc_type",
        [
            (400, BadRequestError),
            (404, NotFoundError),
            (422, ValidationError),
            (500, ServerError),
            (503, ServerError),
            (409, APIError),
        ],
    )
    def test_status_mapping(self, status_code, exc_type) -> None:
        response = httpx.Response(status_code=status_code, json={"detail": "nope"})

        with pytest.raises(exc_type) as exc_info:
            _raise_for_status(response)

        assert exc_info.value.status_code == status_code
        assert exc_info.value.message == "nope"
        assert exc_info.value.response_body == {"detail": "nope"}

    def test_engine_not_ready_is_server_error(self) -> None:
        response = httpx.Response(
            status_code=503,
            json={"error": "Engine Not Ready", "detail": "Current user is not known yet"},
        )

        with pytest.raises(ServerError) as exc_info:
            _raise_for_status(response)

        assert exc_info.value.status_code == 503
        assert "Current user" in exc_info.value.message


class TestCalculateBackoff:
    def test_exponential_growth(self) -> None:
        assert _calculate_backoff(0) == DEFAULT_RETRY_BACKOFF_BASE
        assert _calculate_backoff(1) == DEFAULT_RETRY_BACKOFF_BASE * 2
        assert _calculate_backoff(2) == DEFAULT_RETRY_BACKOFF_BASE * 4

    def test_capped(self) -> None:
        assert _calculate_backoff(20) == DEFAULT_RETRY_BACKOFF_MAX

    def test_engine_not_ready_is_retryable(self) -> None:
        assert 503 in RETRYABLE_STATUS_CODES


# =============================================================================
# HTTPClient Tests
# =============================================================================


@pytest.fixture
def no_sleep(monkeypatch):
    """Record backoff delays instead of sleeping."""
    delays = []

    async def fake_async_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr(_http.time, "sleep", delays.append)
    monkeypatch.setattr(_http.asyncio, "sleep", fake_async_sleep)
    return delays


def make_client(handler, **kwargs) -> HTTPClient:
    return HTTPClient("http://test", transport=httpx.MockTransport(handler), **kwargs)


def make_async_client(handler, **kwargs) -> AsyncHTTPClient:
    return AsyncHTTPClient("http://test", transport=httpx.MockTransport(handler), **kwargs)


class TestHTTPClient:
    """Tests for the synchronous HTTPClient."""

    def test_strips_trailing_slash(self) -> None:
        client = HTTPClient("http://test/")
        assert client.base_url == "http://test"
        client.close()

    def test_get_returns_json(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"status": "healthy"})

        with make_client(handler) as client:
            assert client.get("/health") == {"status": "healthy"}

        assert seen[0].method == "GET"
        assert seen[0].url.path == "/health"

    def test_post_sends_json(self) -> None:
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.read())
            return httpx.Response(200, json={"ok": True})

        with make_client(handler) as client:
            client.post("/actions/select-team", json={"team_id": "T1"})

        assert b'"team_id"' in bodies[0]

    def test_none_params_are_dropped(self) -> None:
        urls = []

        def handler(request: httpx.Request) -> httpx.Response:
            urls.append(request.url)
            return httpx.Response(200, json={})

        with make_client(handler) as client:
            client.get("/state", params={"a": "1", "b": None})

        assert dict(urls[0].params) == {"a": "1"}

    def test_empty_body_returns_none(self) -> None:
        with make_client(lambda request: httpx.Response(204)) as client:
            assert client.post("/anything") is None

    def test_error_status_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "Invalid Value", "detail": "bad"})

        with make_client(handler) as client:
            with pytest.raises(BadRequestError, match="bad"):
                client.post("/actions/retry", json={"pending_id": "p"})

    def test_connect_error_is_translated(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with make_client(handler) as client:
            with pytest.raises(ConnectionError) as exc_info:
                client.get("/health")

        assert exc_info.value.url == "http://test/health"
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_timeout_is_translated(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with make_client(handler, timeout=2.0) as client:
            with pytest.raises(TimeoutError) as exc_info:
                client.get("/health")

        assert exc_info.value.timeout == 2.0

    def test_no_retry_by_default(self, no_sleep) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, json={"detail": "starting"})

        with make_client(handler) as client:
            with pytest.raises(ServerError):
                client.get("/state")

        assert len(calls) == 1
        assert no_sleep == []

    def test_retries_retryable_status_then_succeeds(self, no_sleep) -> None:
        responses = [
            httpx.Response(503, json={"detail": "starting"}),
            httpx.Response(502),
            httpx.Response(200, json={"status": "healthy"}),
        ]

        with make_client(lambda request: responses.pop(0), retry_enabled=True) as client:
            assert client.get("/health") == {"status": "healthy"}

        assert no_sleep == [_calculate_backoff(0), _calculate_backoff(1)]

    def test_gives_up_after_max_retries(self, no_sleep) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        with make_client(handler, retry_enabled=True, max_retries=2) as client:
            with pytest.raises(ConnectionError):
                client.get("/health")

        assert len(calls) == 3
        assert len(no_sleep) == 2

    def test_client_errors_are_not_retried(self, no_sleep) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(400, json={"detail": "bad"})

        with make_client(handler, retry_enabled=True) as client:
            with pytest.raises(BadRequestError):
                client.get("/state")

        assert len(calls) == 1


class TestAsyncHTTPClient:
    """Tests for the asynchronous AsyncHTTPClient."""

    async def test_get_returns_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "healthy"})

        async with make_async_client(handler) as client:
            assert await client.get("/health") == {"status": "healthy"}

    async def test_error_status_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json={"detail": [{"loc": ["body", "seconds"], "msg": "bad"}]})

        async with make_async_client(handler) as client:
            with pytest.raises(ValidationError) as exc_info:
                await client.post("/clock/advance", json={"seconds": 0})

        assert exc_info.value.message == "seconds: bad"

    async def test_retries_then_succeeds(self, no_sleep) -> None:
        responses = [
            httpx.Response(504),
            httpx.Response(200, json={"count": 0, "requests": []}),
        ]

        async with make_async_client(
            lambda request: responses.pop(0), retry_enabled=True
        ) as client:
            assert await client.post("/outbound/drain") == {"count": 0, "requests": []}

        assert no_sleep == [_calculate_backoff(0)]

    async def test_connect_error_is_translated(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with make_async_client(handler) as client:
            with pytest.raises(ConnectionError):
                await client.get("/health")
