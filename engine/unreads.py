"""Unread and mention counters per channel."""

from typing import Any, Optional

from pydantic import Field

from engine.base_state import ComponentState
from engine.entities import ChannelUnread


class UnreadState(ComponentState):
    """Per-channel unread counters.

    The tracker never looks at which channel is selected; callers decide
    whether an increment applies.

    Args:
        component: Always "unreads".
        unreads: Map of channel id to its counters.
    """

    component: str = Field(default="unreads", frozen=True)
    unreads: dict[str, ChannelUnread] = Field(default_factory=dict)

    def increment_unread(self, channel_id: str, mention: bool = False) -> ChannelUnread:
        """Bump the message count (and mention count if ``mention``).

        Creates a zeroed counter first when the channel has none.
        """
        current = self.unreads.get(channel_id) or ChannelUnread(channel_id=channel_id)
        updated = current.model_copy(
            update={
                "msg_count": current.msg_count + 1,
                "mention_count": current.mention_count + (1 if mention else 0),
            }
        )
        self.unreads[channel_id] = updated
        self.touch()
        return updated

    def mark_channel_read(self, channel_id: str) -> None:
        """Reset both counters for a channel to zero."""
        self.unreads[channel_id] = ChannelUnread(channel_id=channel_id)
        self.touch()

    def set_unread(self, unread: ChannelUnread) -> None:
        self.unreads[unread.channel_id] = unread
        self.touch()

    def set_bulk_unreads(self, unreads: list[ChannelUnread]) -> None:
        for unread in unreads:
            self.unreads[unread.channel_id] = unread
        self.touch()

    def get_unread(self, channel_id: str) -> Optional[ChannelUnread]:
        return self.unreads.get(channel_id)

    def total_unread(self) -> tuple[int, int]:
        """Return (messages, mentions) summed over every channel."""
        messages = sum(u.msg_count for u in self.unreads.values())
        mentions = sum(u.mention_count for u in self.unreads.values())
        return messages, mentions

    def get_snapshot(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "unreads": {cid: u.model_dump() for cid, u in self.unreads.items()},
        }

    def validate_state(self) -> list[str]:
        issues = []
        for channel_id, unread in self.unreads.items():
            if unread.channel_id != channel_id:
                issues.append(f"Counter for {unread.channel_id} filed under {channel_id}")
        return issues

    def clear(self) -> None:
        self.unreads.clear()
        self.update_count = 0

    @property
    def summary(self) -> str:
        messages, mentions = self.total_unread()
        return f"{messages} unread ({mentions} mentions) in {len(self.unreads)} channels"
