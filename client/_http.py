"""Internal HTTP layer shared by every sub-client.

Wraps httpx with error mapping onto the client exception hierarchy and
optional retry with exponential backoff on transient failures.

This is an internal module and should not be imported directly by users.
"""

import asyncio
import logging
import time
from typing import Any, Literal

import httpx

from client.exceptions import (
    APIError,
    BadRequestError,
    ConnectionError,
    NotFoundError,
    ServerError,
    TimeoutError,
    ValidationError,
)

logger = logging.getLogger(__name__)

HttpMethod = Literal["GET", "POST"]

# Retried when retry is enabled; 503 covers an engine that is still starting
RETRYABLE_STATUS_CODES = {502, 503, 504}

DEFAULT_RETRY_BACKOFF_BASE = 0.5  # seconds
DEFAULT_RETRY_BACKOFF_MAX = 30.0  # seconds


def _parse_error_response(response: httpx.Response) -> tuple[str, str | None, dict | None]:
    """Extract (message, error_type, details) from an error response.

    Understands the bridge's own error bodies (``error``/``detail``/
    ``validation_errors``) and FastAPI's request validation body (``detail``
    as a list of errors). Falls back to the raw text.
    """
    try:
        body = response.json()
    except ValueError:
        text = response.text.strip()
        return (text or f"HTTP {response.status_code} error"), None, None

    if not isinstance(body, dict):
        return str(body), None, None

    detail = body.get("detail")
    if isinstance(detail, list):
        messages = [
            f"{err.get('loc', ['unknown'])[-1]}: {err.get('msg', 'invalid')}" for err in detail
        ]
        return "; ".join(messages), "validation_error", {"errors": detail}
    if "validation_errors" in body:
        return (
            str(detail or body.get("error", "Validation Error")),
            body.get("error"),
            {"errors": body["validation_errors"]},
        )
    if isinstance(detail, str):
        return detail, body.get("error"), None
    if "error" in body:
        return str(body["error"]), body.get("type"), None
    return str(body), None, None


def _raise_for_status(response: httpx.Response) -> None:
    """Raise the exception matching an error status code.

    Raises:
        BadRequestError: For HTTP 400.
        NotFoundError: For HTTP 404.
        ValidationError: For HTTP 422.
        ServerError: For HTTP 5xx.
        APIError: For any other 4xx.
    """
    if response.is_success:
        return

    message, error_type, details = _parse_error_response(response)
    status_code = response.status_code
    try:
        response_body = response.json()
    except ValueError:
        response_body = response.text

    if status_code == 400:
        raise BadRequestError(message, details=details, response_body=response_body)
    if status_code == 404:
        raise NotFoundError(message, details=details, response_body=response_body)
    if status_code == 422:
        raise ValidationError(message, details=details, response_body=response_body)
    if status_code >= 500:
        raise ServerError(
            message, status_code=status_code, details=details, response_body=response_body
        )
    raise APIError(
        message,
        status_code=status_code,
        error_type=error_type,
        details=details,
        response_body=response_body,
    )


def _calculate_backoff(attempt: int, base: float = DEFAULT_RETRY_BACKOFF_BASE) -> float:
    """Exponential backoff delay for a 0-indexed retry attempt, capped."""
    return min(base * (2**attempt), DEFAULT_RETRY_BACKOFF_MAX)


def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
    if not params:
        return params
    return {k: v for k, v in params.items() if v is not None}


def _decode(response: httpx.Response) -> Any:
    _raise_for_status(response)
    return response.json() if response.content else None


class _HTTPClientBase:
    """Settings and error translation shared by the sync and async clients."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_enabled = retry_enabled
        self.max_retries = max_retries

    @property
    def attempts(self) -> int:
        return self.max_retries + 1 if self.retry_enabled else 1

    def _should_retry_status(self, response: httpx.Response, attempt: int) -> bool:
        return (
            self.retry_enabled
            and response.status_code in RETRYABLE_STATUS_CODES
            and attempt < self.attempts - 1
        )

    def _translate(self, exc: httpx.TransportError, path: str) -> Exception:
        url = f"{self.base_url}{path}"
        if isinstance(exc, httpx.TimeoutException):
            return TimeoutError(f"Request to {url} timed out", timeout=self.timeout, url=url)
        return ConnectionError(f"Failed to connect to {url}", url=url, cause=exc)

    def _should_retry_error(self, exc: httpx.TransportError, attempt: int) -> bool:
        retryable = isinstance(exc, (httpx.ConnectError, httpx.TimeoutException))
        return self.retry_enabled and retryable and attempt < self.attempts - 1


class HTTPClient(_HTTPClientBase):
    """Synchronous HTTP client for the bridge API.

    Args:
        base_url: Base URL of the bridge.
        timeout: Request timeout in seconds.
        retry_enabled: Retry transient failures with exponential backoff.
        max_retries: Maximum number of retries.
        transport: Custom transport (e.g. httpx.MockTransport in tests).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout, retry_enabled, max_retries)
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def request(
        self,
        method: HttpMethod,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Make a request and return the parsed JSON body.

        Returns:
            The parsed JSON response body, or None for empty responses.

        Raises:
            ConnectionError: If the connection fails.
            TimeoutError: If the request times out.
            APIError: If the bridge returns an error status.
        """
        params = _clean_params(params)
        for attempt in range(self.attempts):
            try:
                response = self._client.request(method, path, params=params, json=json)
            except httpx.TransportError as e:
                if not self._should_retry_error(e, attempt):
                    raise self._translate(e, path) from e
                logger.debug(f"{method} {path} failed ({e}), retrying")
                time.sleep(_calculate_backoff(attempt))
                continue
            if self._should_retry_status(response, attempt):
                logger.debug(f"{method} {path} returned {response.status_code}, retrying")
                time.sleep(_calculate_backoff(attempt))
                continue
            return _decode(response)
        raise RuntimeError("Unexpected exit from request retry loop")

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, params: dict[str, Any] | None = None) -> Any:
        return self.request("POST", path, params=params, json=json)


class AsyncHTTPClient(_HTTPClientBase):
    """Asynchronous HTTP client for the bridge API.

    Args:
        base_url: Base URL of the bridge.
        timeout: Request timeout in seconds.
        retry_enabled: Retry transient failures with exponential backoff.
        max_retries: Maximum number of retries.
        transport: Custom transport (e.g. httpx.MockTransport in tests).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, timeout, retry_enabled, max_retries)
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(
        self,
        method: HttpMethod,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Make an async request and return the parsed JSON body.

        Raises:
            ConnectionError: If the connection fails.
            TimeoutError: If the request times out.
            APIError: If the bridge returns an error status.
        """
        params = _clean_params(params)
        for attempt in range(self.attempts):
            try:
                response = await self._client.request(method, path, params=params, json=json)
            except httpx.TransportError as e:
                if not self._should_retry_error(e, attempt):
                    raise self._translate(e, path) from e
                logger.debug(f"{method} {path} failed ({e}), retrying")
                await asyncio.sleep(_calculate_backoff(attempt))
                continue
            if self._should_retry_status(response, attempt):
                logger.debug(f"{method} {path} returned {response.status_code}, retrying")
                await asyncio.sleep(_calculate_backoff(attempt))
                continue
            return _decode(response)
        raise RuntimeError("Unexpected exit from request retry loop")

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(
        self, path: str, json: Any = None, params: dict[str, Any] | None = None
    ) -> Any:
        return await self.request("POST", path, params=params, json=json)
