"""Outbound request models and sinks.

Outbound requests are fire-and-forget from the engine's point of view: the
engine hands each one to a sink supplied by the host and never waits for a
result. Outcomes come back later as inbound events.
"""

import logging
from typing import Annotated, Callable, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

logger = logging.getLogger(__name__)


class OutboundRequest(BaseModel):
    """Base class for requests the engine asks the host to perform."""

    type: str

    def get_summary(self) -> str:
        """Return a one-line description for logs."""
        return self.type


class SendPostRequest(OutboundRequest):
    """Create a post; the result is correlated back by ``pending_id``."""

    type: Literal["send_post"] = "send_post"
    pending_id: str
    channel_id: str
    message: str
    root_id: str = ""
    file_ids: list[str] = Field(default_factory=list)

    def get_summary(self) -> str:
        preview = self.message if len(self.message) <= 40 else self.message[:37] + "..."
        return f"send_post {self.pending_id} to {self.channel_id}: '{preview}'"


class FetchPostsRequest(OutboundRequest):
    """Fetch one page of a channel's history (page 0 = newest)."""

    type: Literal["fetch_posts"] = "fetch_posts"
    channel_id: str
    page: int = 0
    per_page: int = 30


class FetchThreadRequest(OutboundRequest):
    """Fetch a thread root and all of its replies."""

    type: Literal["fetch_thread"] = "fetch_thread"
    root_id: str


class FetchChannelsRequest(OutboundRequest):
    """Fetch the channel list for a team."""

    type: Literal["fetch_channels"] = "fetch_channels"
    team_id: str


class MarkReadRequest(OutboundRequest):
    """Mark a channel as read on the server."""

    type: Literal["mark_read"] = "mark_read"
    channel_id: str


class AddReactionRequest(OutboundRequest):
    """Add the current user's reaction to a post."""

    type: Literal["add_reaction"] = "add_reaction"
    post_id: str
    emoji_name: str


class RemoveReactionRequest(OutboundRequest):
    """Remove the current user's reaction from a post."""

    type: Literal["remove_reaction"] = "remove_reaction"
    post_id: str
    emoji_name: str


class TypingRequest(OutboundRequest):
    """Tell other clients the current user is typing."""

    type: Literal["typing"] = "typing"
    channel_id: str
    root_id: str = ""


class SearchRequest(OutboundRequest):
    """Search posts in the selected team."""

    type: Literal["search"] = "search"
    terms: str
    team_id: Optional[str] = None


AnyOutboundRequest = Annotated[
    Union[
        SendPostRequest,
        FetchPostsRequest,
        FetchThreadRequest,
        FetchChannelsRequest,
        MarkReadRequest,
        AddReactionRequest,
        RemoveReactionRequest,
        TypingRequest,
        SearchRequest,
    ],
    Field(discriminator="type"),
]

outbound_adapter: TypeAdapter = TypeAdapter(AnyOutboundRequest)

OutboundSink = Callable[[OutboundRequest], None]


class OutboundBuffer:
    """Sink that collects requests until the host drains them.

    Used by the host bridge (requests are polled over HTTP) and by tests.
    """

    def __init__(self) -> None:
        self._requests: list[OutboundRequest] = []

    def __call__(self, request: OutboundRequest) -> None:
        logger.debug(f"Outbound: {request.get_summary()}")
        self._requests.append(request)

    def __len__(self) -> int:
        return len(self._requests)

    @property
    def requests(self) -> list[OutboundRequest]:
        """Requests issued so far, oldest first (a copy)."""
        return list(self._requests)

    def of_type(self, request_type: str) -> list[OutboundRequest]:
        """Return buffered requests with the given type tag."""
        return [r for r in self._requests if r.type == request_type]

    def drain(self) -> list[OutboundRequest]:
        """Return and forget every buffered request."""
        drained, self._requests = self._requests, []
        return drained
