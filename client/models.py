"""Client response models for the chansync bridge client.

Re-exports the shared models of the API layer and defines client-side models
for responses that are route specific.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from api.models import ActionResponse, ClockStateResponse, DispatchResponse
from engine.entities import ChannelUnread, Post, Reaction, TypingEntry
from engine.snapshot import EngineSnapshot

__all__ = [
    # Re-exported
    "ActionResponse",
    "ClockStateResponse",
    "DispatchResponse",
    "EngineSnapshot",
    # Client-specific models
    "AdvanceClockResponse",
    "BatchDispatchResponse",
    "ConnectionResponse",
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


class HealthResponse(BaseModel):
    status: str = Field(..., description="Health status")


class BatchDispatchResponse(BaseModel):
    """Response model for batch dispatch.

    Attributes:
        results: One result per event, in request order.
        counts: Number of events per dispatch status.
    """

    results: list[DispatchResponse]
    counts: dict[str, int]


class SendActionResponse(ActionResponse):
    post: Optional[Post] = None


class ToggleReactionResponse(ActionResponse):
    added: bool


class PostsResponse(BaseModel):
    channel_id: Optional[str] = None
    posts: list[Post]
    has_more: bool
    loading: bool


class ThreadResponse(BaseModel):
    root_id: Optional[str] = None
    posts: list[Post]
    loading: bool


class ReactionsResponse(BaseModel):
    post_id: str
    reactions: list[Reaction]


class UnreadsResponse(BaseModel):
    unreads: dict[str, ChannelUnread]
    total_messages: int
    total_mentions: int


class TypingResponse(BaseModel):
    channel_id: str
    typing: list[TypingEntry]


class ConnectionResponse(BaseModel):
    connected: bool
    reconnect_attempt: int
    is_reconnecting: bool


class OutboundResponse(BaseModel):
    """Buffered outbound requests as raw dictionaries.

    Requests are kept untyped so a host can forward them to its transport
    as-is; use ``of_type`` to filter.

    Attributes:
        requests: Requests in the order the engine issued them.
        count: Number of requests returned.
    """

    requests: list[dict]
    count: int

    def of_type(self, request_type: str) -> list[dict]:
        return [r for r in self.requests if r.get("type") == request_type]


class AdvanceClockResponse(BaseModel):
    """Response model for clock advancement.

    Attributes:
        previous_time: Logical time before advancing.
        current_time: Logical time after advancing.
        timers_fired: Number of timer callbacks that ran.
    """

    previous_time: datetime
    current_time: datetime
    timers_fired: int
