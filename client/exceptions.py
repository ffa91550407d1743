"""Exception hierarchy for the chansync bridge client.

Exception Hierarchy:
    ChanSyncClientError (base)
    ├── ConnectionError - Network/connection failures
    ├── TimeoutError - Request timeout
    └── APIError - Bridge returned an error response
        ├── BadRequestError (HTTP 400)
        ├── NotFoundError (HTTP 404)
        ├── ValidationError (HTTP 422)
        └── ServerError (HTTP 5xx)

Example:
    Retrying a send that has not failed is rejected by the engine::

        try:
            client.actions.retry(pending_id)
        except BadRequestError as e:
            print(f"Cannot retry: {e.message}")
"""

from typing import Any


class ChanSyncClientError(Exception):
    """Base exception for all client errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ConnectionError(ChanSyncClientError):
    """Failed to connect to the bridge.

    Attributes:
        message: Human-readable error description.
        url: The URL that failed to connect.
        cause: The underlying transport exception.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.url = url
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} (url: {self.url})"
        return self.message


class TimeoutError(ChanSyncClientError):
    """Request timed out.

    Attributes:
        message: Human-readable error description.
        timeout: The timeout value in seconds.
        url: The URL that timed out.
    """

    def __init__(
        self,
        message: str,
        timeout: float | None = None,
        url: str | None = None,
    ) -> None:
        self.timeout = timeout
        self.url = url
        super().__init__(message)

    def __str__(self) -> str:
        if self.timeout is not None:
            return f"{self.message} (timeout: {self.timeout}s)"
        return self.message


class APIError(ChanSyncClientError):
    """The bridge returned an HTTP error status.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status code.
        error_type: The ``error`` field of the response body, if any.
        details: Structured details from the response body, if any.
        response_body: Raw response body for debugging.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        error_type: str | None = None,
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        self.response_body = response_body
        super().__init__(message)

    def __str__(self) -> str:
        if self.error_type:
            return f"[HTTP {self.status_code}] [{self.error_type}] {self.message}"
        return f"[HTTP {self.status_code}] {self.message}"


class _StatusError(APIError):
    """APIError whose status code and error type are fixed by the subclass."""

    STATUS_CODE = 0
    ERROR_TYPE = ""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        response_body: Any = None,
    ) -> None:
        super().__init__(
            message,
            self.STATUS_CODE,
            error_type=self.ERROR_TYPE,
            details=details,
            response_body=response_body,
        )


class BadRequestError(_StatusError):
    """The engine rejected the action in its current state (HTTP 400).

    Raised for example when retrying or discarding a send that has not
    failed, or marking read with no channel selected.
    """

    STATUS_CODE = 400
    ERROR_TYPE = "bad_request"


class NotFoundError(_StatusError):
    """Route not found (HTTP 404)."""

    STATUS_CODE = 404
    ERROR_TYPE = "not_found"


class ValidationError(_StatusError):
    """Request body failed validation (HTTP 422).

    ``details["errors"]`` holds the field-level errors reported by the bridge.
    """

    STATUS_CODE = 422
    ERROR_TYPE = "validation_error"


class ServerError(APIError):
    """Bridge-side error (HTTP 5xx), including 503 while the engine is not ready.

    May be retried automatically when retry is enabled.
    """

    def __init__(self, message: str, status_code: int = 500, **kwargs: Any) -> None:
        super().__init__(message, status_code, error_type="server_error", **kwargs)
