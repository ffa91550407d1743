"""The sync engine: composition root for every reconciliation component.

A SyncEngine is constructed explicitly by its host and owns the logical
clock, the outbound sink, the component states and the router. Hosts feed it
raw inbound events with dispatch(), call its user actions, and read state
through snapshot() or the narrower accessors. Outbound requests are handed to
the sink and never awaited; their outcomes come back as inbound events.
"""

import logging
from datetime import timedelta
from typing import Any, Callable, Iterable, Mapping, Optional

from engine.clock import LogicalClock, Timer
from engine.config import EngineSettings, get_settings
from engine.connection import ConnectionState
from engine.entities import (
    ChannelUnread,
    ConnectionStatus,
    EngineError,
    Post,
    Reaction,
    TypingEntry,
    User,
)
from engine.events import InboundEvent
from engine.outbound import (
    AddReactionRequest,
    FetchChannelsRequest,
    FetchPostsRequest,
    FetchThreadRequest,
    MarkReadRequest,
    OutboundBuffer,
    OutboundRequest,
    OutboundSink,
    RemoveReactionRequest,
    SearchRequest,
    TypingRequest,
)
from engine.presence import PresenceState, TypingThrottle
from engine.reactions import ReactionState
from engine.router import DispatchStatus, EventRouter
from engine.sending import OptimisticSendManager
from engine.snapshot import EngineSnapshot
from engine.timeline import ChannelStore
from engine.unreads import UnreadState

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[EngineSnapshot], Any]


class EngineNotReadyError(Exception):
    """Raised when an action needs state the host has not delivered yet.

    Args:
        message: What is missing.
    """

    def __init__(self, message: str = "Engine is not ready"):
        self.message = message
        super().__init__(message)


class SyncEngine:
    """Keeps a local chat view consistent with the host's event stream.

    Args:
        sink: Receives outbound requests. Defaults to a fresh OutboundBuffer.
        clock: Logical clock driving timestamps and timers. Defaults to a clock
            starting at the current UTC time.
        settings: Engine tunables. Defaults to get_settings().
    """

    def __init__(
        self,
        sink: Optional[OutboundSink] = None,
        clock: Optional[LogicalClock] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.settings = settings or get_settings()
        self.clock = clock or LogicalClock()
        self.sink: OutboundSink = sink if sink is not None else OutboundBuffer()

        self.current_user: Optional[User] = None
        self.last_error: Optional[EngineError] = None

        self.store = ChannelStore()
        self.reactions = ReactionState()
        self.unreads = UnreadState()
        self.presence = PresenceState(
            typing_ttl=timedelta(seconds=self.settings.typing_ttl_seconds)
        )
        self.connection = ConnectionState()
        self.sending = OptimisticSendManager(
            self.store,
            self.clock,
            self._emit,
            send_timeout=timedelta(seconds=self.settings.send_timeout_seconds),
        )
        self.typing_throttle = TypingThrottle(
            self.clock, window=timedelta(seconds=self.settings.typing_throttle_seconds)
        )
        self.router = EventRouter(self)

        self._listeners: list[SnapshotListener] = []
        self._sweep_timer: Optional[Timer] = self.clock.call_every(
            self.settings.typing_sweep_interval_seconds,
            self._sweep_typing,
            name="typing-sweep",
        )
        logger.info(f"SyncEngine created at {self.clock.now().isoformat()}")

    # ===== Inbound =====

    def dispatch(self, raw: Mapping[str, Any] | InboundEvent) -> DispatchStatus:
        """Apply one inbound host event.

        Listeners are notified when the event changed state.
        """
        status = self.router.dispatch(raw)
        if status == DispatchStatus.APPLIED:
            self._notify()
        return status

    def dispatch_many(
        self, events: Iterable[Mapping[str, Any] | InboundEvent]
    ) -> list[DispatchStatus]:
        """Apply events in order, returning one status per event."""
        return [self.dispatch(raw) for raw in events]

    # ===== Clock =====

    def advance_clock(self, delta: timedelta | float) -> int:
        """Advance logical time, firing due timers.

        Returns:
            Number of timers that fired.
        """
        revision = self._revision()
        fired = self.clock.advance(delta)
        if self._revision() != revision:
            self._notify()
        return fired

    # ===== Selection =====

    def select_team(self, team_id: str) -> None:
        """Switch team and request its channel list."""
        self.reset_for_team(team_id)
        self.store.channels_loading = True
        self._emit(FetchChannelsRequest(team_id=team_id))
        self._notify()

    def reset_for_team(self, team_id: str) -> None:
        """Reset every team-dependent piece of state without fetching."""
        self.store.select_team(team_id)
        self.reactions.clear()
        self.typing_throttle.reset()

    def select_channel(self, channel_id: str) -> None:
        """Switch channel, request its first page and mark it read."""
        self.store.select_channel(channel_id)
        self.reactions.clear()
        self.unreads.mark_channel_read(channel_id)
        self.store.posts_loading = True
        self._emit(
            FetchPostsRequest(
                channel_id=channel_id, page=0, per_page=self.settings.posts_page_size
            )
        )
        self._emit(MarkReadRequest(channel_id=channel_id))
        self._notify()

    def clear_selection(self) -> None:
        self.store.clear_channel_selection()
        self.reactions.clear()
        self._notify()

    def load_older_posts(self) -> bool:
        """Request the next page of history for the selected channel.

        Returns:
            False when there is no channel, no more history, or a fetch is
            already outstanding.
        """
        store = self.store
        if not store.selected_channel_id or not store.has_more_posts or store.posts_loading:
            return False
        store.posts_loading = True
        self._emit(
            FetchPostsRequest(
                channel_id=store.selected_channel_id,
                page=store.posts_page + 1,
                per_page=self.settings.posts_page_size,
            )
        )
        self._notify()
        return True

    # ===== Threads and composer =====

    def open_thread(self, root_id: str) -> None:
        self.store.open_thread(root_id)
        self._emit(FetchThreadRequest(root_id=root_id))
        self._notify()

    def close_thread(self) -> None:
        self.store.close_thread()
        self._notify()

    def set_reply_to(self, post_id: str) -> None:
        self.store.set_reply_to(post_id)
        self._notify()

    def clear_reply_to(self) -> None:
        self.store.clear_reply_to()
        self._notify()

    # ===== Sending =====

    def send_message(
        self,
        message: str,
        file_ids: Optional[list[str]] = None,
        root_id: Optional[str] = None,
    ) -> Optional[Post]:
        """Send a message optimistically to the selected channel.

        Args:
            message: Message text.
            file_ids: Ids of files already uploaded by the host.
            root_id: Thread root to reply to; defaults to the reply target.

        Returns:
            The pending post, or None if the send was skipped.
        """
        post = self.sending.send(message, file_ids, root_id, author=self.current_user)
        if post is not None:
            self._notify()
        return post

    def retry_send(self, pending_id: str) -> Optional[Post]:
        """Retry a failed send.

        Raises:
            ValueError: If the send is unknown or has not failed.
        """
        post = self.sending.retry(pending_id)
        self._notify()
        return post

    def discard_send(self, pending_id: str) -> None:
        """Discard a failed send.

        Raises:
            ValueError: If the send is unknown or has not failed.
        """
        self.sending.discard(pending_id)
        self._notify()

    # ===== Reactions, read state, typing, search =====

    def toggle_reaction(self, post_id: str, emoji_name: str) -> bool:
        """Add or remove the current user's reaction.

        The change is applied locally right away and the matching request is
        emitted.

        Returns:
            True if the reaction was added, False if it was removed.

        Raises:
            EngineNotReadyError: If the current user is not known yet.
        """
        user = self._require_user()
        if self.reactions.has_reaction(post_id, user.id, emoji_name):
            self.reactions.remove_reaction(post_id, user.id, emoji_name)
            self._emit(RemoveReactionRequest(post_id=post_id, emoji_name=emoji_name))
            added = False
        else:
            self.reactions.add_reaction(
                Reaction(
                    post_id=post_id,
                    user_id=user.id,
                    emoji_name=emoji_name,
                    username=user.username,
                )
            )
            self._emit(AddReactionRequest(post_id=post_id, emoji_name=emoji_name))
            added = True
        self._notify()
        return added

    def mark_read(self, channel_id: Optional[str] = None) -> None:
        """Reset a channel's counters and tell the host.

        Raises:
            ValueError: If no channel is given and none is selected.
        """
        channel_id = channel_id or self.store.selected_channel_id
        if not channel_id:
            raise ValueError("No channel to mark as read")
        self.unreads.mark_channel_read(channel_id)
        self._emit(MarkReadRequest(channel_id=channel_id))
        self._notify()

    def notify_typing(self, root_id: str = "") -> bool:
        """Signal that the user is typing in the selected channel.

        Returns:
            True if a typing request was emitted, False if throttled or no
            channel is selected.
        """
        channel_id = self.store.selected_channel_id
        if not channel_id:
            return False
        if not self.typing_throttle.try_acquire(channel_id, root_id):
            return False
        self._emit(TypingRequest(channel_id=channel_id, root_id=root_id))
        return True

    def search(self, terms: str) -> bool:
        """Search posts in the selected team.

        Returns:
            False (and clears search state) when the terms are blank.
        """
        terms = terms.strip()
        if not terms:
            self.store.clear_search()
            self._notify()
            return False
        self.store.start_search(terms)
        self._emit(SearchRequest(terms=terms, team_id=self.store.selected_team_id))
        self._notify()
        return True

    def dismiss_error(self) -> None:
        self.last_error = None
        self._notify()

    # ===== Accessors =====

    @property
    def posts(self) -> list[Post]:
        return [p.model_copy(deep=True) for p in self.store.posts]

    @property
    def thread_posts(self) -> list[Post]:
        return [p.model_copy(deep=True) for p in self.store.thread_posts]

    def reactions_for(self, post_id: str) -> list[Reaction]:
        return [r.model_copy() for r in self.reactions.get_reactions(post_id)]

    def unread_for(self, channel_id: str) -> ChannelUnread:
        unread = self.unreads.get_unread(channel_id)
        return unread.model_copy() if unread else ChannelUnread(channel_id=channel_id)

    def typing_users(self, channel_id: str) -> list[TypingEntry]:
        """Who is typing in a channel, excluding the current user."""
        own_id = self.current_user.id if self.current_user else None
        return [e.model_copy() for e in self.presence.typing_users(channel_id, own_id)]

    @property
    def connection_status(self) -> ConnectionStatus:
        return self.connection.status.model_copy()

    def snapshot(self) -> EngineSnapshot:
        """Build a deep-copied, immutable view of the current state."""
        store = self.store
        return EngineSnapshot.model_validate(
            {
                "taken_at": self.clock.now(),
                "current_user": self.current_user,
                "teams": store.teams,
                "selected_team_id": store.selected_team_id,
                "channels": store.channels,
                "dm_channels": store.dm_channels,
                "favorite_channel_ids": store.favorite_channel_ids,
                "selected_channel_id": store.selected_channel_id,
                "posts": store.posts,
                "has_more_posts": store.has_more_posts,
                "thread_root_id": store.thread_root_id,
                "thread_posts": store.thread_posts,
                "reply_to_post_id": store.reply_to_post_id,
                "reactions": self.reactions.reactions,
                "unreads": self.unreads.unreads,
                "typing": self.presence.typing_entries,
                "user_statuses": self.presence.user_statuses,
                "connection": self.connection.status,
                "channels_loading": store.channels_loading,
                "posts_loading": store.posts_loading,
                "thread_loading": store.thread_loading,
                "search_terms": store.search_terms,
                "search_loading": store.search_loading,
                "search_results": store.search_results,
                "last_error": self.last_error,
            }
        ).model_copy(deep=True)

    def validate(self) -> list[str]:
        """Collect consistency issues from every component."""
        issues = []
        for state in (self.store, self.reactions, self.unreads, self.presence, self.connection):
            issues.extend(f"{state.component}: {issue}" for issue in state.validate_state())
        return issues

    # ===== Listeners and lifecycle =====

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a listener called with a fresh snapshot after each change.

        Returns:
            A callable that unregisters the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Cancel engine timers and forget outstanding sends."""
        if self._sweep_timer is not None:
            self._sweep_timer.cancel()
            self._sweep_timer = None
        self.typing_throttle.reset()
        self.sending.reset()
        self._listeners.clear()
        logger.info("SyncEngine closed")

    # ===== Internals =====

    def _require_user(self) -> User:
        if self.current_user is None:
            raise EngineNotReadyError("Current user is not known yet")
        return self.current_user

    def _emit(self, request: OutboundRequest) -> None:
        try:
            self.sink(request)
        except Exception:
            logger.exception(f"Outbound sink failed for {request.get_summary()}")

    def _revision(self) -> int:
        return sum(
            state.update_count
            for state in (self.store, self.reactions, self.unreads, self.presence, self.connection)
        )

    def _sweep_typing(self) -> None:
        self.presence.clear_stale_typing(self.clock.now())

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Snapshot listener raised")
