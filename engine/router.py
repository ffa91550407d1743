"""Inbound event router.

Decodes one raw host event at a time and applies it to the engine's
components through exactly one handler. Handler failures are contained: the
event is reported as failed and later events are still processed.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

from pydantic import ValidationError

from engine.entities import EngineError, Post
from engine.events import (
    EVENT_CLASSES,
    BulkReactionsEvent,
    BulkUnreadsEvent,
    ChannelsAppendEvent,
    ChannelsEvent,
    ChannelsLoadingEvent,
    ChannelUpdatedEvent,
    ConnectionStatusEvent,
    CurrentUserEvent,
    DmChannelAddedEvent,
    DmChannelsAppendEvent,
    DmChannelsEvent,
    ErrorEvent,
    FavoriteChangedEvent,
    FavoriteChannelsEvent,
    InboundEvent,
    MarkedReadEvent,
    NewPostEvent,
    OlderPostsEvent,
    PostConfirmedEvent,
    PostCreatedEvent,
    PostDeletedEvent,
    PostEditedEvent,
    PostFailedEvent,
    PostPinToggledEvent,
    PostsEvent,
    PostsLoadingEvent,
    ReactionAddedEvent,
    ReactionRemovedEvent,
    ReactionsEvent,
    SearchLoadingEvent,
    SearchResultsEvent,
    StatusChangeEvent,
    TeamsEvent,
    ThreadEvent,
    ThreadLoadingEvent,
    TypingEvent,
    UnknownEventType,
    UnreadEvent,
    UnreadIncrementEvent,
    UserStatusesEvent,
    decode_event,
)

if TYPE_CHECKING:
    from engine.engine import SyncEngine

logger = logging.getLogger(__name__)


class DispatchStatus(str, Enum):
    """Outcome of dispatching one inbound event."""

    APPLIED = "applied"
    IGNORED = "ignored"
    REJECTED = "rejected"
    STALE = "stale"
    FAILED = "failed"


Handler = Callable[[Any], Optional[DispatchStatus]]


class EventRouter:
    """Routes decoded inbound events to component mutations.

    Every member of the inbound event union must have a handler; the table is
    checked when the router is built.

    Args:
        engine: The engine whose components the handlers mutate.

    Raises:
        RuntimeError: If an event class has no handler.
    """

    def __init__(self, engine: "SyncEngine"):
        self.engine = engine
        self._handlers: dict[type[InboundEvent], Handler] = {
            CurrentUserEvent: self._on_current_user,
            TeamsEvent: self._on_teams,
            ChannelsEvent: self._on_channels,
            ChannelsAppendEvent: self._on_channels_append,
            ChannelsLoadingEvent: self._on_channels_loading,
            DmChannelsEvent: self._on_dm_channels,
            DmChannelsAppendEvent: self._on_dm_channels_append,
            DmChannelAddedEvent: self._on_dm_channel_added,
            ChannelUpdatedEvent: self._on_channel_updated,
            FavoriteChannelsEvent: self._on_favorite_channels,
            FavoriteChangedEvent: self._on_favorite_changed,
            PostsEvent: self._on_posts,
            OlderPostsEvent: self._on_older_posts,
            PostsLoadingEvent: self._on_posts_loading,
            NewPostEvent: self._on_new_post,
            PostCreatedEvent: self._on_post_created,
            PostEditedEvent: self._on_post_edited,
            PostDeletedEvent: self._on_post_deleted,
            PostPinToggledEvent: self._on_post_pin_toggled,
            PostConfirmedEvent: self._on_post_confirmed,
            PostFailedEvent: self._on_post_failed,
            ThreadLoadingEvent: self._on_thread_loading,
            ThreadEvent: self._on_thread,
            ReactionsEvent: self._on_reactions,
            BulkReactionsEvent: self._on_bulk_reactions,
            ReactionAddedEvent: self._on_reaction_added,
            ReactionRemovedEvent: self._on_reaction_removed,
            TypingEvent: self._on_typing,
            StatusChangeEvent: self._on_status_change,
            UserStatusesEvent: self._on_user_statuses,
            UnreadEvent: self._on_unread,
            BulkUnreadsEvent: self._on_bulk_unreads,
            UnreadIncrementEvent: self._on_unread_increment,
            MarkedReadEvent: self._on_marked_read,
            ConnectionStatusEvent: self._on_connection_status,
            SearchLoadingEvent: self._on_search_loading,
            SearchResultsEvent: self._on_search_results,
            ErrorEvent: self._on_error,
        }
        missing = [cls.__name__ for cls in EVENT_CLASSES if cls not in self._handlers]
        if missing:
            raise RuntimeError(f"No handler registered for: {', '.join(missing)}")

    @property
    def handled_types(self) -> list[str]:
        """Tags of every event this router understands."""
        return [cls.model_fields["type"].default for cls in self._handlers]

    def dispatch(self, raw: Mapping[str, Any] | InboundEvent) -> DispatchStatus:
        """Decode and apply one inbound event.

        Args:
            raw: Raw host payload or an already-decoded event.

        Returns:
            How the event was handled. Never raises for bad input or handler
            errors.
        """
        try:
            event = decode_event(raw)
        except UnknownEventType as e:
            logger.debug(f"Ignoring event with unknown type {e.event_type!r}")
            return DispatchStatus.IGNORED
        except ValidationError as e:
            logger.warning(
                f"Rejected malformed '{raw.get('type')}' event: {e.error_count()} validation errors"
            )
            return DispatchStatus.REJECTED

        handler = self._handlers[type(event)]
        try:
            status = handler(event)
        except Exception:
            logger.exception(f"Handler for {event.get_summary()} failed")
            return DispatchStatus.FAILED

        status = status or DispatchStatus.APPLIED
        logger.debug(f"{event.get_summary()} -> {status.value}")
        return status

    # ------------------------------------------------------------------
    # Teams, channels, current user
    # ------------------------------------------------------------------

    def _on_current_user(self, event: CurrentUserEvent) -> Optional[DispatchStatus]:
        if event.user is None:
            return DispatchStatus.IGNORED
        self.engine.current_user = event.user
        return None

    def _on_teams(self, event: TeamsEvent) -> None:
        self.engine.store.set_teams(event.teams)

    def _on_channels(self, event: ChannelsEvent) -> None:
        store = self.engine.store
        if event.team_id is not None and event.team_id != store.selected_team_id:
            self.engine.reset_for_team(event.team_id)
        store.set_channels(event.channels)

    def _on_channels_append(self, event: ChannelsAppendEvent) -> None:
        self.engine.store.append_channels(event.channels)

    def _on_channels_loading(self, event: ChannelsLoadingEvent) -> None:
        self.engine.store.channels_loading = True

    def _on_dm_channels(self, event: DmChannelsEvent) -> None:
        self.engine.store.set_dm_channels(event.channels)

    def _on_dm_channels_append(self, event: DmChannelsAppendEvent) -> None:
        self.engine.store.append_dm_channels(event.channels)

    def _on_dm_channel_added(self, event: DmChannelAddedEvent) -> Optional[DispatchStatus]:
        if event.channel is None or not self.engine.store.add_dm_channel(event.channel):
            return DispatchStatus.IGNORED
        return None

    def _on_channel_updated(self, event: ChannelUpdatedEvent) -> Optional[DispatchStatus]:
        if not event.channel.get("id"):
            return DispatchStatus.REJECTED
        if not self.engine.store.merge_channel(event.channel):
            return DispatchStatus.IGNORED
        return None

    def _on_favorite_channels(self, event: FavoriteChannelsEvent) -> None:
        self.engine.store.set_favorites(event.channel_ids)

    def _on_favorite_changed(self, event: FavoriteChangedEvent) -> None:
        self.engine.store.set_favorite(event.channel_id, event.favorite)

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def _on_posts(self, event: PostsEvent) -> Optional[DispatchStatus]:
        if self._is_stale_channel(event.channel_id):
            return DispatchStatus.STALE
        store = self.engine.store
        store.set_posts(event.posts, event.has_more)
        if store.selected_channel_id:
            self.engine.sending.restore_unsettled(store.selected_channel_id)
        return None

    def _on_older_posts(self, event: OlderPostsEvent) -> Optional[DispatchStatus]:
        if self._is_stale_channel(event.channel_id):
            return DispatchStatus.STALE
        self.engine.store.append_older_posts(event.posts, event.has_more)
        return None

    def _on_posts_loading(self, event: PostsLoadingEvent) -> None:
        self.engine.store.posts_loading = True

    def _on_new_post(self, event: NewPostEvent) -> Optional[DispatchStatus]:
        post = event.post
        if post is None:
            return DispatchStatus.IGNORED
        store = self.engine.store

        own_user_id = self.engine.current_user.id if self.engine.current_user else None

        if post.channel_id != store.selected_channel_id:
            changed = self._append_to_open_thread(post)
            if own_user_id and post.user_id == own_user_id:
                changed = bool(self.engine.sending.match_echo(post, own_user_id)) or changed
            else:
                self.engine.unreads.increment_unread(post.channel_id, mention=event.mention)
                changed = True
            return None if changed else DispatchStatus.IGNORED

        if store.find_post(post.id) is None and self.engine.sending.match_echo(
            post, own_user_id
        ):
            return None
        inserted = store.prepend_new_post(post)
        appended = self._append_to_open_thread(post)
        return None if inserted or appended else DispatchStatus.IGNORED

    def _on_post_created(self, event: PostCreatedEvent) -> Optional[DispatchStatus]:
        post = event.post
        if post is None:
            return DispatchStatus.IGNORED
        inserted = False
        if post.channel_id == self.engine.store.selected_channel_id:
            inserted = self.engine.store.prepend_new_post(post)
        appended = self._append_to_open_thread(post)
        return None if inserted or appended else DispatchStatus.IGNORED

    def _on_post_edited(self, event: PostEditedEvent) -> Optional[DispatchStatus]:
        if event.post is None or not self.engine.store.update_post(event.post):
            return DispatchStatus.IGNORED
        return None

    def _on_post_deleted(self, event: PostDeletedEvent) -> None:
        self.engine.store.remove_post(event.post_id)
        self.engine.reactions.remove_post(event.post_id)

    def _on_post_pin_toggled(self, event: PostPinToggledEvent) -> Optional[DispatchStatus]:
        if not self.engine.store.set_post_pinned(event.post_id, event.is_pinned):
            return DispatchStatus.IGNORED
        return None

    def _on_post_confirmed(self, event: PostConfirmedEvent) -> Optional[DispatchStatus]:
        if event.pending_id is None or event.post is None:
            return DispatchStatus.IGNORED
        if not self.engine.sending.confirm(event.pending_id, event.post):
            return DispatchStatus.IGNORED
        return None

    def _on_post_failed(self, event: PostFailedEvent) -> Optional[DispatchStatus]:
        if event.pending_id is None:
            return DispatchStatus.IGNORED
        if not self.engine.sending.fail(event.pending_id, event.error):
            return DispatchStatus.IGNORED
        return None

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    def _on_thread_loading(self, event: ThreadLoadingEvent) -> Optional[DispatchStatus]:
        if self._is_stale_thread(event.root_id):
            return DispatchStatus.STALE
        self.engine.store.thread_loading = True
        return None

    def _on_thread(self, event: ThreadEvent) -> Optional[DispatchStatus]:
        if self._is_stale_thread(event.root_id):
            return DispatchStatus.STALE
        self.engine.store.set_thread_posts(event.posts)
        return None

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    def _on_reactions(self, event: ReactionsEvent) -> None:
        self.engine.reactions.set_reactions_for_post(event.post_id, event.reactions)

    def _on_bulk_reactions(self, event: BulkReactionsEvent) -> None:
        self.engine.reactions.set_bulk_reactions(event.reactions)

    def _on_reaction_added(self, event: ReactionAddedEvent) -> Optional[DispatchStatus]:
        if not self.engine.reactions.add_reaction(event.reaction):
            return DispatchStatus.IGNORED
        return None

    def _on_reaction_removed(self, event: ReactionRemovedEvent) -> Optional[DispatchStatus]:
        r = event.reaction
        if not self.engine.reactions.remove_reaction(r.post_id, r.user_id, r.emoji_name):
            return DispatchStatus.IGNORED
        return None

    # ------------------------------------------------------------------
    # Presence
    # ------------------------------------------------------------------

    def _on_typing(self, event: TypingEvent) -> None:
        self.engine.presence.add_typing(
            event.user_id,
            event.channel_id,
            now=self.engine.clock.now(),
            username=event.username or "",
        )

    def _on_status_change(self, event: StatusChangeEvent) -> None:
        self.engine.presence.update_user_status(event.user_id, event.status)

    def _on_user_statuses(self, event: UserStatusesEvent) -> None:
        self.engine.presence.set_user_statuses(event.statuses)

    # ------------------------------------------------------------------
    # Unreads
    # ------------------------------------------------------------------

    def _on_unread(self, event: UnreadEvent) -> None:
        self.engine.unreads.set_unread(event.unread)

    def _on_bulk_unreads(self, event: BulkUnreadsEvent) -> None:
        self.engine.unreads.set_bulk_unreads(event.unreads)

    def _on_unread_increment(self, event: UnreadIncrementEvent) -> Optional[DispatchStatus]:
        if event.channel_id == self.engine.store.selected_channel_id:
            return DispatchStatus.IGNORED
        self.engine.unreads.increment_unread(event.channel_id, mention=event.mention)
        return None

    def _on_marked_read(self, event: MarkedReadEvent) -> None:
        self.engine.unreads.mark_channel_read(event.channel_id)

    # ------------------------------------------------------------------
    # Connection, search, errors
    # ------------------------------------------------------------------

    def _on_connection_status(self, event: ConnectionStatusEvent) -> None:
        self.engine.connection.set_status(event.connected, event.reconnect_attempt)

    def _on_search_loading(self, event: SearchLoadingEvent) -> None:
        self.engine.store.start_search(event.terms)

    def _on_search_results(self, event: SearchResultsEvent) -> None:
        self.engine.store.set_search_results(event.posts, event.terms)

    def _on_error(self, event: ErrorEvent) -> None:
        self.engine.store.clear_loading(event.scope)
        self.engine.last_error = EngineError(
            scope=event.scope, message=event.message, occurred_at=self.engine.clock.now()
        )
        logger.info(f"Host reported {event.scope} error: {event.message}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _is_stale_channel(self, channel_id: Optional[str]) -> bool:
        return channel_id is not None and channel_id != self.engine.store.selected_channel_id

    def _is_stale_thread(self, root_id: Optional[str]) -> bool:
        return root_id is not None and root_id != self.engine.store.thread_root_id

    def _append_to_open_thread(self, post: Post) -> bool:
        store = self.engine.store
        if not store.is_open_thread_reply(post):
            return False
        return store.append_thread_post(post)
