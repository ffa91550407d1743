"""State, outbound and clock sub-clients for the chansync bridge.

This module provides the read-side sub-clients: StateClient (/state/*),
OutboundClient (/outbound/*) and ClockClient (/clock/*), each with an async
counterpart.

This is an internal module. Import from `client` instead.
"""

from client._base import AsyncBaseClient, BaseClient
from client.models import (
    AdvanceClockResponse,
    ClockStateResponse,
    ConnectionResponse,
    EngineSnapshot,
    OutboundResponse,
    PostsResponse,
    ReactionsResponse,
    ThreadResponse,
    TypingResponse,
    UnreadsResponse,
)


class StateClient(BaseClient):
    """Synchronous client for read-only state endpoints (/state/*).

    Example:
        with ChanSyncClient() as client:
            snapshot = client.state.get()
            for post in snapshot.posts:
                print(post.id, post.status)
    """

    _BASE_PATH = "/state"

    def get(self) -> EngineSnapshot:
        """Get a full engine snapshot."""
        return EngineSnapshot(**self._get())

    def posts(self) -> PostsResponse:
        return PostsResponse(**self._get("/posts"))

    def thread(self) -> ThreadResponse:
        return ThreadResponse(**self._get("/thread"))

    def reactions(self, post_id: str) -> ReactionsResponse:
        return ReactionsResponse(**self._get(f"/reactions/{post_id}"))

    def unreads(self) -> UnreadsResponse:
        return UnreadsResponse(**self._get("/unreads"))

    def typing(self, channel_id: str) -> TypingResponse:
        return TypingResponse(**self._get(f"/typing/{channel_id}"))

    def connection(self) -> ConnectionResponse:
        return ConnectionResponse(**self._get("/connection"))


class AsyncStateClient(AsyncBaseClient):
    """Asynchronous client for read-only state endpoints (/state/*)."""

    _BASE_PATH = "/state"

    async def get(self) -> EngineSnapshot:
        return EngineSnapshot(**await self._get())

    async def posts(self) -> PostsResponse:
        return PostsResponse(**await self._get("/posts"))

    async def thread(self) -> ThreadResponse:
        return ThreadResponse(**await self._get("/thread"))

    async def reactions(self, post_id: str) -> ReactionsResponse:
        return ReactionsResponse(**await self._get(f"/reactions/{post_id}"))

    async def unreads(self) -> UnreadsResponse:
        return UnreadsResponse(**await self._get("/unreads"))

    async def typing(self, channel_id: str) -> TypingResponse:
        return TypingResponse(**await self._get(f"/typing/{channel_id}"))

    async def connection(self) -> ConnectionResponse:
        return ConnectionResponse(**await self._get("/connection"))


class OutboundClient(BaseClient):
    """Synchronous client for outbound request endpoints (/outbound/*).

    A host polls drain() and performs each request against its transport.
    """

    _BASE_PATH = "/outbound"

    def peek(self) -> OutboundResponse:
        """List buffered requests without removing them."""
        return OutboundResponse(**self._get())

    def drain(self) -> OutboundResponse:
        """Collect and clear buffered requests."""
        return OutboundResponse(**self._post("/drain"))


class AsyncOutboundClient(AsyncBaseClient):
    """Asynchronous client for outbound request endpoints (/outbound/*)."""

    _BASE_PATH = "/outbound"

    async def peek(self) -> OutboundResponse:
        return OutboundResponse(**await self._get())

    async def drain(self) -> OutboundResponse:
        return OutboundResponse(**await self._post("/drain"))


class ClockClient(BaseClient):
    """Synchronous client for logical clock endpoints (/clock/*)."""

    _BASE_PATH = "/clock"

    def get(self) -> ClockStateResponse:
        return ClockStateResponse(**self._get())

    def advance(self, seconds: float) -> AdvanceClockResponse:
        """Advance logical time, firing due timers.

        Raises:
            ValidationError: If seconds is not positive.
        """
        return AdvanceClockResponse(**self._post("/advance", json={"seconds": seconds}))


class AsyncClockClient(AsyncBaseClient):
    """Asynchronous client for logical clock endpoints (/clock/*)."""

    _BASE_PATH = "/clock"

    async def get(self) -> ClockStateResponse:
        return ClockStateResponse(**await self._get())

    async def advance(self, seconds: float) -> AdvanceClockResponse:
        data = await self._post("/advance", json={"seconds": seconds})
        return AdvanceClockResponse(**data)
