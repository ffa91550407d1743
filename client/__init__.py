"""chansync bridge client library.

This module provides a typed Python client for a chansync bridge: the REST
service that hosts a SyncEngine, accepts inbound chat events, exposes user
actions and hands out the outbound requests the engine issues. It supports
both synchronous and asynchronous usage patterns.

Example:
    Synchronous usage::

        from client import ChanSyncClient

        with ChanSyncClient(base_url="http://localhost:8000") as client:
            client.actions.select_team("T1")
            client.events.dispatch({"type": "channels", "team_id": "T1",
                                    "channels": [...]})
            client.actions.select_channel("C1")
            result = client.actions.send("hello")

    Asynchronous usage::

        from client import AsyncChanSyncClient

        async with AsyncChanSyncClient() as client:
            await client.clock.advance(seconds=6)

Exports:
    ChanSyncClient: Synchronous client for the bridge.
    AsyncChanSyncClient: Asynchronous client for the bridge.

    Exceptions:
        ChanSyncClientError: Base exception for all client errors.
        ConnectionError: Failed to connect to the bridge.
        TimeoutError: Request timed out.
        APIError: Bridge returned an error response.
        BadRequestError: Action rejected (HTTP 400).
        NotFoundError: Resource not found (HTTP 404).
        ValidationError: Request validation failed (HTTP 422).
        ServerError: Server-side error (HTTP 5xx).
"""

from client._actions import ActionsClient, AsyncActionsClient
from client._events import AsyncEventsClient, EventsClient
from client._state import (
    AsyncClockClient,
    AsyncOutboundClient,
    AsyncStateClient,
    ClockClient,
    OutboundClient,
    StateClient,
)
from client.exceptions import (
    APIError,
    BadRequestError,
    ChanSyncClientError,
    ConnectionError,
    NotFoundError,
    ServerError,
    TimeoutError,
    ValidationError,
)
from client.models import (
    ActionResponse,
    AdvanceClockResponse,
    BatchDispatchResponse,
    ClockStateResponse,
    ConnectionResponse,
    DispatchResponse,
    EngineSnapshot,
    HealthResponse,
    OutboundResponse,
    PostsResponse,
    ReactionsResponse,
    SendActionResponse,
    ThreadResponse,
    ToggleReactionResponse,
    TypingResponse,
    UnreadsResponse,
)
from client.client import AsyncChanSyncClient, ChanSyncClient

__all__ = [
    # Main clients
    "ChanSyncClient",
    "AsyncChanSyncClient",
    # Sub-clients
    "EventsClient",
    "AsyncEventsClient",
    "ActionsClient",
    "AsyncActionsClient",
    "StateClient",
    "AsyncStateClient",
    "OutboundClient",
    "AsyncOutboundClient",
    "ClockClient",
    "AsyncClockClient",
    # Exceptions
    "ChanSyncClientError",
    "ConnectionError",
    "TimeoutError",
    "APIError",
    "BadRequestError",
    "NotFoundError",
    "ValidationError",
    "ServerError",
    # Response models
    "ActionResponse",
    "AdvanceClockResponse",
    "BatchDispatchResponse",
    "ClockStateResponse",
    "ConnectionResponse",
    "DispatchResponse",
    "EngineSnapshot",
    "HealthResponse",
    "OutboundResponse",
    "PostsResponse",
    "ReactionsResponse",
    "SendActionResponse",
    "ThreadResponse",
    "ToggleReactionResponse",
    "TypingResponse",
    "UnreadsResponse",
]
