"""Base classes for the bridge sub-clients.

Every sub-client wraps one route group of the bridge and shares the parent
client's HTTP connection.

This is an internal module and should not be imported directly by users.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from client._http import AsyncHTTPClient, HTTPClient


class BaseClient:
    """Base class for synchronous sub-clients.

    Attributes:
        _http: The shared HTTP client for making requests.
    """

    _BASE_PATH = ""

    def __init__(self, http_client: "HTTPClient") -> None:
        self._http = http_client

    def _get(self, path: str = "", params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` relative to this sub-client's base path."""
        return self._http.get(f"{self._BASE_PATH}{path}", params=params)

    def _post(self, path: str = "", json: Any = None) -> Any:
        """POST ``json`` to ``path`` relative to this sub-client's base path."""
        return self._http.post(f"{self._BASE_PATH}{path}", json=json)


class AsyncBaseClient:
    """Base class for asynchronous sub-clients.

    Attributes:
        _http: The shared async HTTP client for making requests.
    """

    _BASE_PATH = ""

    def __init__(self, http_client: "AsyncHTTPClient") -> None:
        self._http = http_client

    async def _get(self, path: str = "", params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` relative to this sub-client's base path."""
        return await self._http.get(f"{self._BASE_PATH}{path}", params=params)

    async def _post(self, path: str = "", json: Any = None) -> Any:
        """POST ``json`` to ``path`` relative to this sub-client's base path."""
        return await self._http.post(f"{self._BASE_PATH}{path}", json=json)
