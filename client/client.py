"""Main chansync client classes.

This module provides the main entry points for driving a chansync bridge:
- ChanSyncClient: Synchronous client for the bridge REST API
- AsyncChanSyncClient: Asynchronous client for the bridge REST API

Both clients provide namespaced access to the bridge through sub-client
properties (client.events, client.actions, client.state, client.outbound,
client.clock).

Example:
    Synchronous usage::

        from client import ChanSyncClient

        with ChanSyncClient(base_url="http://localhost:8000") as client:
            client.actions.select_channel("C1")
            pending = client.actions.send("hello").post
            for request in client.outbound.drain().of_type("send_post"):
                ...  # forward to the chat server
            client.events.dispatch({"type": "new_post", "post": {...}})

    Asynchronous usage::

        from client import AsyncChanSyncClient

        async with AsyncChanSyncClient() as client:
            snapshot = await client.state.get()
"""

from typing import Any

from client._actions import ActionsClient, AsyncActionsClient
from client._events import AsyncEventsClient, EventsClient
from client._http import AsyncHTTPClient, HTTPClient
from client._state import (
    AsyncClockClient,
    AsyncOutboundClient,
    AsyncStateClient,
    ClockClient,
    OutboundClient,
    StateClient,
)
from client.models import HealthResponse


class ChanSyncClient:
    """Synchronous client for the chansync bridge REST API.

    Attributes:
        base_url: The base URL of the bridge.
        timeout: Request timeout in seconds.
        retry_enabled: Whether automatic retry is enabled.
        max_retries: Maximum number of retry attempts.

    Example:
        Manual lifecycle management::

            client = ChanSyncClient()
            try:
                client.actions.select_team("T1")
            finally:
                client.close()
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: Any = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: The base URL of the bridge (default: http://localhost:8000).
            timeout: Request timeout in seconds (default: 30.0).
            retry_enabled: Whether to automatically retry on transient failures.
                Retries on connection errors, timeouts, and HTTP 502/503/504.
            max_retries: Maximum number of retry attempts when retry is enabled.
            transport: Custom HTTP transport (e.g., MockTransport for testing).
        """
        self.base_url = base_url
        self.timeout = timeout
        self.retry_enabled = retry_enabled
        self.max_retries = max_retries

        self._http = HTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_enabled=retry_enabled,
            max_retries=max_retries,
            transport=transport,
        )

        self._events: EventsClient | None = None
        self._actions: ActionsClient | None = None
        self._state: StateClient | None = None
        self._outbound: OutboundClient | None = None
        self._clock: ClockClient | None = None

    def __enter__(self) -> "ChanSyncClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the client and release resources."""
        self._http.close()

    def health(self) -> HealthResponse:
        """Check that the bridge is up."""
        return HealthResponse(**self._http.get("/health"))

    # Sub-client properties (lazy initialization)

    @property
    def events(self) -> EventsClient:
        """Access event ingestion endpoints (/events/*)."""
        if self._events is None:
            self._events = EventsClient(self._http)
        return self._events

    @property
    def actions(self) -> ActionsClient:
        """Access user action endpoints (/actions/*).

        Provides methods for:
        - Selecting teams and channels
        - Sending, retrying and discarding messages
        - Reactions, read state, typing and search
        """
        if self._actions is None:
            self._actions = ActionsClient(self._http)
        return self._actions

    @property
    def state(self) -> StateClient:
        """Access read-only state endpoints (/state/*)."""
        if self._state is None:
            self._state = StateClient(self._http)
        return self._state

    @property
    def outbound(self) -> OutboundClient:
        """Access buffered outbound requests (/outbound/*)."""
        if self._outbound is None:
            self._outbound = OutboundClient(self._http)
        return self._outbound

    @property
    def clock(self) -> ClockClient:
        """Access logical clock endpoints (/clock/*)."""
        if self._clock is None:
            self._clock = ClockClient(self._http)
        return self._clock


class AsyncChanSyncClient:
    """Asynchronous client for the chansync bridge REST API.

    Mirrors ChanSyncClient with awaitable sub-client methods.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        retry_enabled: bool = False,
        max_retries: int = 3,
        transport: Any = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.retry_enabled = retry_enabled
        self.max_retries = max_retries

        self._http = AsyncHTTPClient(
            base_url=base_url,
            timeout=timeout,
            retry_enabled=retry_enabled,
            max_retries=max_retries,
            transport=transport,
        )

        self._events: AsyncEventsClient | None = None
        self._actions: AsyncActionsClient | None = None
        self._state: AsyncStateClient | None = None
        self._outbound: AsyncOutboundClient | None = None
        self._clock: AsyncClockClient | None = None

    async def __aenter__(self) -> "AsyncChanSyncClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._http.close()

    async def health(self) -> HealthResponse:
        return HealthResponse(**await self._http.get("/health"))

    @property
    def events(self) -> AsyncEventsClient:
        if self._events is None:
            self._events = AsyncEventsClient(self._http)
        return self._events

    @property
    def actions(self) -> AsyncActionsClient:
        if self._actions is None:
            self._actions = AsyncActionsClient(self._http)
        return self._actions

    @property
    def state(self) -> AsyncStateClient:
        if self._state is None:
            self._state = AsyncStateClient(self._http)
        return self._state

    @property
    def outbound(self) -> AsyncOutboundClient:
        if self._outbound is None:
            self._outbound = AsyncOutboundClient(self._http)
        return self._outbound

    @property
    def clock(self) -> AsyncClockClient:
        if self._clock is None:
            self._clock = AsyncClockClient(self._http)
        return self._clock
