"""Inbound event ingestion endpoints.

The host posts raw events here exactly as it would hand them to the engine.
Malformed or unknown events are not HTTP errors; their outcome is reported
in the dispatch status.
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from api.dependencies import EngineDep
from api.models import DispatchResponse
from engine import DispatchStatus


router = APIRouter(
    prefix="/events",
    tags=["events"],
)


class BatchEventsRequest(BaseModel):
    """Request model for dispatching several events in order.

    Attributes:
        events: Raw events, applied in list order.
    """

    events: list[dict[str, Any]] = Field(default_factory=list)


class BatchDispatchResponse(BaseModel):
    """Response model for batch dispatch.

    Attributes:
        results: One result per event, in request order.
        counts: Number of events per dispatch status.
    """

    results: list[DispatchResponse]
    counts: dict[str, int]


class EventTypesResponse(BaseModel):
    """Event tags the engine understands."""

    types: list[str]


def _event_type(raw: dict[str, Any]) -> str | None:
    value = raw.get("type")
    return value if isinstance(value, str) else None


@router.post("", response_model=DispatchResponse)
async def dispatch_event(raw: dict[str, Any], engine: EngineDep):
    """Dispatch one raw inbound event.

    Args:
        raw: The event payload with its ``type`` tag.
        engine: The SyncEngine instance (injected by FastAPI).

    Returns:
        The event's dispatch status.
    """
    status = engine.dispatch(raw)
    return DispatchResponse(event_type=_event_type(raw), status=status)


@router.post("/batch", response_model=BatchDispatchResponse)
async def dispatch_batch(request: BatchEventsRequest, engine: EngineDep):
    """Dispatch several raw events in order.

    A failing event does not stop the batch.
    """
    results = [
        DispatchResponse(event_type=_event_type(raw), status=engine.dispatch(raw))
        for raw in request.events
    ]
    counts = {status.value: 0 for status in DispatchStatus}
    for result in results:
        counts[result.status.value] += 1
    return BatchDispatchResponse(results=results, counts=counts)


@router.get("/types", response_model=EventTypesResponse)
async def list_event_types(engine: EngineDep):
    """List every inbound event tag the engine handles."""
    return EventTypesResponse(types=sorted(engine.router.handled_types))
