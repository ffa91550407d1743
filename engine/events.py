"""Inbound event models.

Every event the host can deliver is a member of a closed tagged union keyed by
``type``. Raw payloads are decoded once, at the boundary, by decode_event();
handlers only ever see validated models. Fields the host may omit carry safe
defaults (e.g. ``has_more`` defaults to False).
"""

from typing import Annotated, Any, Literal, Mapping, Optional, Union, get_args

from pydantic import BaseModel, Field, TypeAdapter

from engine.entities import (
    Channel,
    ChannelUnread,
    ErrorScope,
    Post,
    Reaction,
    StatusValue,
    Team,
    User,
    UserStatus,
)


class InboundEvent(BaseModel):
    """Base class for all inbound event payloads.

    Args:
        type: The event tag.
    """

    type: str

    def get_summary(self) -> str:
        """Return a one-line description of this event for logs."""
        return self.type


# ----------------------------------------------------------------------------
# Teams, channels, current user
# ----------------------------------------------------------------------------


class CurrentUserEvent(InboundEvent):
    type: Literal["current_user"] = "current_user"
    user: Optional[User] = None


class TeamsEvent(InboundEvent):
    type: Literal["teams"] = "teams"
    teams: list[Team] = Field(default_factory=list)


class ChannelsEvent(InboundEvent):
    """Full channel list, optionally for a (newly selected) team."""

    type: Literal["channels"] = "channels"
    channels: list[Channel] = Field(default_factory=list)
    team_id: Optional[str] = None


class ChannelsAppendEvent(InboundEvent):
    type: Literal["channels_append"] = "channels_append"
    channels: list[Channel] = Field(default_factory=list)


class ChannelsLoadingEvent(InboundEvent):
    type: Literal["channels_loading"] = "channels_loading"


class DmChannelsEvent(InboundEvent):
    type: Literal["dm_channels"] = "dm_channels"
    channels: list[Channel] = Field(default_factory=list)


class DmChannelsAppendEvent(InboundEvent):
    type: Literal["dm_channels_append"] = "dm_channels_append"
    channels: list[Channel] = Field(default_factory=list)


class DmChannelAddedEvent(InboundEvent):
    type: Literal["dm_channel_added"] = "dm_channel_added"
    channel: Optional[Channel] = None


class ChannelUpdatedEvent(InboundEvent):
    """Partial channel metadata change; only ``id`` is required."""

    type: Literal["channel_updated"] = "channel_updated"
    channel: dict[str, Any] = Field(default_factory=dict)


class FavoriteChannelsEvent(InboundEvent):
    type: Literal["favorite_channels"] = "favorite_channels"
    channel_ids: list[str] = Field(default_factory=list)


class FavoriteChangedEvent(InboundEvent):
    type: Literal["favorite_changed"] = "favorite_changed"
    channel_id: str
    favorite: bool = True


# ----------------------------------------------------------------------------
# Posts
# ----------------------------------------------------------------------------


class PostsEvent(InboundEvent):
    """Fresh first page of a channel's history."""

    type: Literal["posts"] = "posts"
    posts: list[Post] = Field(default_factory=list)
    has_more: bool = False
    channel_id: Optional[str] = None

    def get_summary(self) -> str:
        return f"posts: {len(self.posts)} for {self.channel_id or '?'}"


class OlderPostsEvent(InboundEvent):
    """A further page of history, older than what is loaded."""

    type: Literal["older_posts"] = "older_posts"
    posts: list[Post] = Field(default_factory=list)
    has_more: bool = False
    channel_id: Optional[str] = None

    def get_summary(self) -> str:
        return f"older_posts: {len(self.posts)} for {self.channel_id or '?'}"


class PostsLoadingEvent(InboundEvent):
    type: Literal["posts_loading"] = "posts_loading"


class NewPostEvent(InboundEvent):
    """A post delivered in real time."""

    type: Literal["new_post"] = "new_post"
    post: Optional[Post] = None
    mention: bool = False

    def get_summary(self) -> str:
        if self.post is None:
            return "new_post: <missing post>"
        return f"new_post: {self.post.id} in {self.post.channel_id}"


class PostCreatedEvent(InboundEvent):
    """Result of a send that carried no correlation id."""

    type: Literal["post_created"] = "post_created"
    post: Optional[Post] = None


class PostEditedEvent(InboundEvent):
    type: Literal["post_edited"] = "post_edited"
    post: Optional[Post] = None


class PostDeletedEvent(InboundEvent):
    type: Literal["post_deleted"] = "post_deleted"
    post_id: str


class PostPinToggledEvent(InboundEvent):
    type: Literal["post_pin_toggled"] = "post_pin_toggled"
    post_id: str
    is_pinned: bool = False


class PostConfirmedEvent(InboundEvent):
    """The host accepted a correlated send."""

    type: Literal["post_confirmed"] = "post_confirmed"
    pending_id: Optional[str] = None
    post: Optional[Post] = None

    def get_summary(self) -> str:
        server_id = self.post.id if self.post else "?"
        return f"post_confirmed: {self.pending_id} -> {server_id}"


class PostFailedEvent(InboundEvent):
    """The host rejected a correlated send."""

    type: Literal["post_failed"] = "post_failed"
    pending_id: Optional[str] = None
    error: str = "Send failed"

    def get_summary(self) -> str:
        return f"post_failed: {self.pending_id} ({self.error})"


# ----------------------------------------------------------------------------
# Threads
# ----------------------------------------------------------------------------


class ThreadLoadingEvent(InboundEvent):
    type: Literal["thread_loading"] = "thread_loading"
    root_id: Optional[str] = None


class ThreadEvent(InboundEvent):
    """Thread root plus replies, oldest first."""

    type: Literal["thread"] = "thread"
    root_id: Optional[str] = None
    posts: list[Post] = Field(default_factory=list)


# ----------------------------------------------------------------------------
# Reactions
# ----------------------------------------------------------------------------


class ReactionsEvent(InboundEvent):
    type: Literal["reactions"] = "reactions"
    post_id: str
    reactions: list[Reaction] = Field(default_factory=list)


class BulkReactionsEvent(InboundEvent):
    type: Literal["bulk_reactions"] = "bulk_reactions"
    reactions: list[Reaction] = Field(default_factory=list)


class ReactionAddedEvent(InboundEvent):
    type: Literal["reaction_added"] = "reaction_added"
    reaction: Reaction


class ReactionRemovedEvent(InboundEvent):
    type: Literal["reaction_removed"] = "reaction_removed"
    reaction: Reaction


# ----------------------------------------------------------------------------
# Presence
# ----------------------------------------------------------------------------


class TypingEvent(InboundEvent):
    type: Literal["typing"] = "typing"
    user_id: str
    channel_id: str
    username: Optional[str] = None


class StatusChangeEvent(InboundEvent):
    type: Literal["status_change"] = "status_change"
    user_id: str
    status: StatusValue = "offline"


class UserStatusesEvent(InboundEvent):
    type: Literal["user_statuses"] = "user_statuses"
    statuses: list[UserStatus] = Field(default_factory=list)


# ----------------------------------------------------------------------------
# Unread / read state
# ----------------------------------------------------------------------------


class UnreadEvent(InboundEvent):
    type: Literal["unread"] = "unread"
    unread: ChannelUnread


class BulkUnreadsEvent(InboundEvent):
    type: Literal["bulk_unreads"] = "bulk_unreads"
    unreads: list[ChannelUnread] = Field(default_factory=list)


class UnreadIncrementEvent(InboundEvent):
    """A post arrived in some channel; the payload is not needed."""

    type: Literal["unread_increment"] = "unread_increment"
    channel_id: str
    mention: bool = False


class MarkedReadEvent(InboundEvent):
    type: Literal["marked_read"] = "marked_read"
    channel_id: str


# ----------------------------------------------------------------------------
# Connection, search, errors
# ----------------------------------------------------------------------------


class ConnectionStatusEvent(InboundEvent):
    type: Literal["connection_status"] = "connection_status"
    connected: bool = False
    reconnect_attempt: int = Field(default=0, ge=0)

    def get_summary(self) -> str:
        state = "connected" if self.connected else f"disconnected (attempt {self.reconnect_attempt})"
        return f"connection_status: {state}"


class SearchLoadingEvent(InboundEvent):
    type: Literal["search_loading"] = "search_loading"
    terms: Optional[str] = None


class SearchResultsEvent(InboundEvent):
    type: Literal["search_results"] = "search_results"
    terms: Optional[str] = None
    posts: list[Post] = Field(default_factory=list)


class ErrorEvent(InboundEvent):
    """A request failed on the host side."""

    type: Literal["error"] = "error"
    message: str = "Request failed"
    scope: ErrorScope = "general"

    def get_summary(self) -> str:
        return f"error [{self.scope}]: {self.message}"


AnyInboundEvent = Annotated[
    Union[
        CurrentUserEvent,
        TeamsEvent,
        ChannelsEvent,
        ChannelsAppendEvent,
        ChannelsLoadingEvent,
        DmChannelsEvent,
        DmChannelsAppendEvent,
        DmChannelAddedEvent,
        ChannelUpdatedEvent,
        FavoriteChannelsEvent,
        FavoriteChangedEvent,
        PostsEvent,
        OlderPostsEvent,
        PostsLoadingEvent,
        NewPostEvent,
        PostCreatedEvent,
        PostEditedEvent,
        PostDeletedEvent,
        PostPinToggledEvent,
        PostConfirmedEvent,
        PostFailedEvent,
        ThreadLoadingEvent,
        ThreadEvent,
        ReactionsEvent,
        BulkReactionsEvent,
        ReactionAddedEvent,
        ReactionRemovedEvent,
        TypingEvent,
        StatusChangeEvent,
        UserStatusesEvent,
        UnreadEvent,
        BulkUnreadsEvent,
        UnreadIncrementEvent,
        MarkedReadEvent,
        ConnectionStatusEvent,
        SearchLoadingEvent,
        SearchResultsEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

EVENT_CLASSES: tuple[type[InboundEvent], ...] = get_args(get_args(AnyInboundEvent)[0])

EVENT_TYPES: dict[str, type[InboundEvent]] = {
    cls.model_fields["type"].default: cls for cls in EVENT_CLASSES
}

_event_adapter: TypeAdapter = TypeAdapter(AnyInboundEvent)


class UnknownEventType(Exception):
    """Raised by decode_event() for a tag this engine does not know."""

    def __init__(self, event_type: Any):
        self.event_type = event_type
        super().__init__(f"Unknown event type: {event_type!r}")


def decode_event(raw: Mapping[str, Any] | InboundEvent) -> InboundEvent:
    """Decode a raw host payload into a validated inbound event.

    Args:
        raw: A mapping with a string ``type`` tag, or an already-built event.

    Returns:
        The matching InboundEvent subclass instance.

    Raises:
        UnknownEventType: If the tag is missing, not a string, or not part of
            the union.
        pydantic.ValidationError: If a known tag carries an invalid body.
    """
    if isinstance(raw, InboundEvent):
        return raw
    if not isinstance(raw, Mapping):
        raise UnknownEventType(type(raw).__name__)
    event_type = raw.get("type")
    if not isinstance(event_type, str) or event_type not in EVENT_TYPES:
        raise UnknownEventType(event_type)
    return _event_adapter.validate_python(dict(raw))

