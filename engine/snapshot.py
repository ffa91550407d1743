"""Read-only view of the whole engine state."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from engine.entities import (
    Channel,
    ChannelUnread,
    ConnectionStatus,
    EngineError,
    Post,
    Reaction,
    StatusValue,
    Team,
    TypingEntry,
    User,
)


class EngineSnapshot(BaseModel):
    """Immutable copy of the engine state at one clock instant.

    Every collection is deep-copied from the live components, so holding on
    to a snapshot never observes later mutations.

    Args:
        taken_at: Clock time when the snapshot was built.
        current_user: The signed-in user, once known.
        teams: Known teams.
        selected_team_id: Selected team.
        channels: Team channels.
        dm_channels: Direct and group-direct channels.
        favorite_channel_ids: Favorite channel ids.
        selected_channel_id: Selected channel.
        posts: Timeline of the selected channel, newest first.
        has_more_posts: Whether older history can be fetched.
        thread_root_id: Root of the open thread.
        thread_posts: Posts of the open thread, oldest first.
        reply_to_post_id: Post the composer replies to.
        reactions: Reactions keyed by post id.
        unreads: Unread counters keyed by channel id.
        typing: Live typing entries.
        user_statuses: Presence status keyed by user id.
        connection: Last reported transport status.
        channels_loading: A channel list fetch is outstanding.
        posts_loading: A history fetch is outstanding.
        thread_loading: A thread fetch is outstanding.
        search_terms: Terms of the last search.
        search_loading: A search is outstanding.
        search_results: Posts returned by the last search.
        last_error: Most recent non-send failure, until dismissed.
    """

    taken_at: datetime
    current_user: Optional[User] = None

    teams: list[Team] = Field(default_factory=list)
    selected_team_id: Optional[str] = None
    channels: list[Channel] = Field(default_factory=list)
    dm_channels: list[Channel] = Field(default_factory=list)
    favorite_channel_ids: list[str] = Field(default_factory=list)
    selected_channel_id: Optional[str] = None

    posts: list[Post] = Field(default_factory=list)
    has_more_posts: bool = False
    thread_root_id: Optional[str] = None
    thread_posts: list[Post] = Field(default_factory=list)
    reply_to_post_id: Optional[str] = None

    reactions: dict[str, list[Reaction]] = Field(default_factory=dict)
    unreads: dict[str, ChannelUnread] = Field(default_factory=dict)
    typing: list[TypingEntry] = Field(default_factory=list)
    user_statuses: dict[str, StatusValue] = Field(default_factory=dict)
    connection: ConnectionStatus = Field(default_factory=ConnectionStatus)

    channels_loading: bool = False
    posts_loading: bool = False
    thread_loading: bool = False
    search_terms: Optional[str] = None
    search_loading: bool = False
    search_results: list[Post] = Field(default_factory=list)

    last_error: Optional[EngineError] = None

    class Config:
        frozen = True

    @property
    def pending_post_ids(self) -> list[str]:
        """Ids of timeline posts still awaiting confirmation."""
        return [p.id for p in self.posts if p.pending]

    @property
    def failed_post_ids(self) -> list[str]:
        """Ids of timeline posts whose send failed."""
        return [p.id for p in self.posts if p.failed_error is not None]
