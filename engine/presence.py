"""Presence and typing state.

Typing entries are ephemeral: each inbound typing signal refreshes the entry
for its (user, channel) pair, and a periodic sweep drops entries older than the
TTL. There is no explicit "stopped typing" event.
"""

from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import Field

from engine.base_state import ComponentState
from engine.clock import LogicalClock, Timer
from engine.entities import StatusValue, TypingEntry, UserStatus

DEFAULT_TYPING_TTL = timedelta(seconds=5)


class PresenceState(ComponentState):
    """Typing indicators and user presence statuses.

    Args:
        component: Always "presence".
        typing_entries: Live typing entries, oldest refresh first.
        user_statuses: Map of user id to presence status.
        typing_ttl: Age after which a typing entry is swept.
    """

    component: str = Field(default="presence", frozen=True)
    typing_entries: list[TypingEntry] = Field(default_factory=list)
    user_statuses: dict[str, StatusValue] = Field(default_factory=dict)
    typing_ttl: timedelta = Field(default=DEFAULT_TYPING_TTL)

    def add_typing(
        self, user_id: str, channel_id: str, now: datetime, username: str = ""
    ) -> None:
        """Refresh the typing entry for a (user, channel) pair.

        Any existing entry for the exact pair is removed and a fresh one is
        appended, so the entry's age restarts from zero.
        """
        self.typing_entries = [
            e
            for e in self.typing_entries
            if not (e.user_id == user_id and e.channel_id == channel_id)
        ]
        self.typing_entries.append(
            TypingEntry(
                user_id=user_id,
                username=username or user_id,
                channel_id=channel_id,
                timestamp=now,
            )
        )
        self.touch(now)

    def clear_stale_typing(self, now: datetime) -> int:
        """Remove every entry older than the TTL.

        Returns:
            Number of entries removed.
        """
        cutoff = now - self.typing_ttl
        fresh = [e for e in self.typing_entries if e.timestamp >= cutoff]
        removed = len(self.typing_entries) - len(fresh)
        if removed:
            self.typing_entries = fresh
            self.touch(now)
        return removed

    def typing_users(
        self, channel_id: str, exclude_user_id: Optional[str] = None
    ) -> list[TypingEntry]:
        """Entries for one channel, optionally hiding one user (usually oneself)."""
        return [
            e
            for e in self.typing_entries
            if e.channel_id == channel_id and e.user_id != exclude_user_id
        ]

    def set_user_statuses(self, statuses: list[UserStatus]) -> None:
        """Merge a batch of statuses into the map."""
        for status in statuses:
            self.user_statuses[status.user_id] = status.status
        self.touch()

    def update_user_status(self, user_id: str, status: StatusValue) -> None:
        """Replace one user's status."""
        self.user_statuses[user_id] = status
        self.touch()

    def get_snapshot(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "typing_entries": [e.model_dump(mode="json") for e in self.typing_entries],
            "user_statuses": dict(self.user_statuses),
        }

    def validate_state(self) -> list[str]:
        issues = []
        seen: set[tuple[str, str]] = set()
        for entry in self.typing_entries:
            key = (entry.user_id, entry.channel_id)
            if key in seen:
                issues.append(
                    f"Duplicate typing entry for user {entry.user_id} in {entry.channel_id}"
                )
            seen.add(key)
        return issues

    def clear(self) -> None:
        self.typing_entries.clear()
        self.user_statuses.clear()
        self.update_count = 0

    @property
    def summary(self) -> str:
        return f"{len(self.typing_entries)} typing, {len(self.user_statuses)} statuses"


class TypingThrottle:
    """Call-site policy bounding outbound typing signals.

    At most one signal per window per compose session (channel id plus thread
    root id). The window is a timer on the logical clock; the throttle does
    not touch PresenceState.
    """

    def __init__(self, clock: LogicalClock, window: timedelta = timedelta(seconds=3)):
        self._clock = clock
        self._window = window
        self._open: dict[tuple[str, str], Timer] = {}

    def try_acquire(self, channel_id: str, root_id: str = "") -> bool:
        """Return True if a typing signal may be sent now for this session."""
        key = (channel_id, root_id)
        if key in self._open:
            return False
        self._open[key] = self._clock.call_later(
            self._window, lambda: self._open.pop(key, None), name=f"typing-throttle:{channel_id}"
        )
        return True

    def reset(self) -> None:
        """Close every open window."""
        for timer in self._open.values():
            timer.cancel()
        self._open.clear()
