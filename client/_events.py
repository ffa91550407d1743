"""Inbound event sub-client for the chansync bridge.

This module provides EventsClient and AsyncEventsClient for the event
ingestion endpoints (/events/*).

This is an internal module. Import from `client` instead.
"""

from typing import Any, Iterable, Mapping

from client._base import AsyncBaseClient, BaseClient
from client.models import BatchDispatchResponse, DispatchResponse
from engine.events import InboundEvent

RawEvent = Mapping[str, Any] | InboundEvent


def _to_json(event: RawEvent) -> dict[str, Any]:
    if isinstance(event, InboundEvent):
        return event.model_dump(mode="json")
    return dict(event)


class EventsClient(BaseClient):
    """Synchronous client for event ingestion endpoints (/events/*).

    Example:
        with ChanSyncClient() as client:
            result = client.events.dispatch({"type": "typing", "user_id": "U2",
                                             "channel_id": "C1"})
            print(result.status)
    """

    _BASE_PATH = "/events"

    def dispatch(self, event: RawEvent) -> DispatchResponse:
        """Dispatch one inbound event.

        Args:
            event: A raw event mapping or an InboundEvent model.

        Returns:
            The dispatch status. Unknown or malformed events are reported
            here rather than raised.
        """
        data = self._post(json=_to_json(event))
        return DispatchResponse(**data)

    def dispatch_batch(self, events: Iterable[RawEvent]) -> BatchDispatchResponse:
        """Dispatch several events in order."""
        data = self._post("/batch", json={"events": [_to_json(e) for e in events]})
        return BatchDispatchResponse(**data)

    def types(self) -> list[str]:
        """List the event tags the bridge's engine handles."""
        return self._get("/types")["types"]


class AsyncEventsClient(AsyncBaseClient):
    """Asynchronous client for event ingestion endpoints (/events/*)."""

    _BASE_PATH = "/events"

    async def dispatch(self, event: RawEvent) -> DispatchResponse:
        data = await self._post(json=_to_json(event))
        return DispatchResponse(**data)

    async def dispatch_batch(self, events: Iterable[RawEvent]) -> BatchDispatchResponse:
        data = await self._post("/batch", json={"events": [_to_json(e) for e in events]})
        return BatchDispatchResponse(**data)

    async def types(self) -> list[str]:
        data = await self._get("/types")
        return data["types"]
