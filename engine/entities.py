"""Entity models shared by every engine component.

These are the data shapes received from the host (teams, channels, posts,
reactions, ...) plus the client-only sub-state that optimistic sends attach to
a post. All wire fields are snake_case.
"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator

TeamType = Literal["O", "I"]
ChannelType = Literal["O", "P", "D", "G"]
StatusValue = Literal["online", "away", "offline", "dnd"]
PostStatus = Literal["pending", "failed", "settled"]
ErrorScope = Literal[
    "channels", "posts", "thread", "search", "reaction", "read_state", "general"
]


class Team(BaseModel):
    """Immutable grouping of channels.

    Args:
        id: Team identifier.
        name: URL-safe team name.
        display_name: Human-readable team name.
        description: Free-form team description.
        type: "O" for open teams, "I" for invite-only teams.
    """

    id: str
    name: str = ""
    display_name: str = ""
    description: str = ""
    type: TeamType = "O"


class Channel(BaseModel):
    """An addressable conversation space.

    Args:
        id: Channel identifier.
        team_id: Owning team ("" for direct and group-direct channels).
        name: URL-safe channel name.
        display_name: Human-readable channel name.
        type: "O" public, "P" private, "D" direct, "G" group-direct.
        header: Channel header text.
        purpose: Channel purpose text.
        last_post_at: Timestamp of the last activity in the channel.
        other_user_id: Counterpart user for direct channels.
    """

    id: str
    team_id: str = ""
    name: str = ""
    display_name: str = ""
    type: ChannelType = "O"
    header: str = ""
    purpose: str = ""
    last_post_at: Optional[datetime] = None
    other_user_id: Optional[str] = None

    @property
    def is_direct(self) -> bool:
        """Whether this is a direct or group-direct channel."""
        return self.type in ("D", "G")


class FileInfo(BaseModel):
    """Metadata for a file attached to a post."""

    id: str
    name: str = ""
    extension: str = ""
    size: int = 0
    mime_type: str = ""
    width: Optional[int] = None
    height: Optional[int] = None
    has_preview: bool = False
    url: str = ""


class SendParams(BaseModel):
    """The original parameters of an outbound send, kept for retry.

    Args:
        channel_id: Target channel.
        message: Message text as sent.
        root_id: Thread root for replies ("" for a root post).
        file_ids: Attached file ids.
    """

    channel_id: str
    message: str
    root_id: str = ""
    file_ids: list[str] = Field(default_factory=list)


class Post(BaseModel):
    """A single message in a channel timeline.

    Server-originated fields are followed by client-only transient sub-state
    used by the optimistic send lifecycle. ``pending`` and ``failed_error`` are
    mutually exclusive; a settled post carries neither.

    Args:
        id: Post identifier (the correlation id while unconfirmed).
        channel_id: Channel the post belongs to.
        user_id: Author id.
        username: Author display name.
        message: Body text.
        create_at: Creation timestamp.
        update_at: Last edit timestamp.
        root_id: Thread root id ("" when this post is itself a root).
        type: "" for ordinary messages, otherwise a system notice tag.
        files: Attached file metadata.
        metadata: Link previews and other server-side embed metadata.
        is_pinned: Whether the post is pinned to its channel.
        pending: Awaiting host confirmation.
        failed_error: Failure message when the send was rejected.
        send_params: Original send parameters, needed for retry.
    """

    id: str
    channel_id: str = ""
    user_id: str = ""
    username: str = ""
    message: str = ""
    create_at: Optional[datetime] = None
    update_at: Optional[datetime] = None
    root_id: str = ""
    type: str = ""
    files: list[FileInfo] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_pinned: bool = False

    pending: bool = False
    failed_error: Optional[str] = None
    send_params: Optional[SendParams] = None

    @model_validator(mode="after")
    def check_lifecycle_flags(self) -> "Post":
        """Reject posts that are both pending and failed."""
        if self.pending and self.failed_error is not None:
            raise ValueError(f"Post {self.id} cannot be both pending and failed")
        return self

    @property
    def status(self) -> PostStatus:
        """Lifecycle status of this post."""
        if self.pending:
            return "pending"
        if self.failed_error is not None:
            return "failed"
        return "settled"

    @property
    def is_reply(self) -> bool:
        """Whether this post replies to a thread root."""
        return bool(self.root_id)

    @property
    def is_system(self) -> bool:
        """Whether this post is a system-generated notice."""
        return bool(self.type)

    def settled(self) -> "Post":
        """Return a copy with all client-only sub-state removed."""
        return self.model_copy(
            update={"pending": False, "failed_error": None, "send_params": None}
        )


class User(BaseModel):
    """A user profile as delivered by the host."""

    id: str
    username: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    nickname: str = ""


class Reaction(BaseModel):
    """An emoji reaction left by one user on one post.

    Identity is the ``(post_id, user_id, emoji_name)`` triple; ``username`` is
    display data only.
    """

    post_id: str
    user_id: str
    emoji_name: str
    username: str = ""

    @property
    def key(self) -> tuple[str, str, str]:
        """The identity triple of this reaction."""
        return (self.post_id, self.user_id, self.emoji_name)


class UserStatus(BaseModel):
    """Presence status for one user."""

    user_id: str
    status: StatusValue = "offline"


class TypingEntry(BaseModel):
    """Ephemeral typing signal for one user in one channel."""

    user_id: str
    username: str = ""
    channel_id: str
    timestamp: datetime


class ChannelUnread(BaseModel):
    """Unread counters for one channel."""

    channel_id: str
    msg_count: int = Field(default=0, ge=0)
    mention_count: int = Field(default=0, ge=0)


class ConnectionStatus(BaseModel):
    """Transport health as reported by the host."""

    connected: bool = False
    reconnect_attempt: int = Field(default=0, ge=0)


class EngineError(BaseModel):
    """A failure reported by the host, retained with its message.

    Args:
        scope: Which family of request failed.
        message: Human-readable failure detail.
        occurred_at: Clock time when the failure was recorded.
    """

    scope: ErrorScope = "general"
    message: str = "Request failed"
    occurred_at: Optional[datetime] = None
