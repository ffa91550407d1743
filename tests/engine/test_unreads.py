"""Unit tests for UnreadState and ConnectionState."""

import pytest
from pydantic import ValidationError

from engine.connection import ConnectionState
from engine.entities import ChannelUnread
from engine.unreads import UnreadState


class TestUnreadState:
    """Test per-channel unread counters."""

    def test_increment_creates_counter(self):
        state = UnreadState()

        unread = state.increment_unread("C2")

        assert unread.msg_count == 1
        assert unread.mention_count == 0
        assert state.get_unread("C2") == unread

    def test_mention_increments_both_counts(self):
        state = UnreadState()
        state.increment_unread("C2")

        unread = state.increment_unread("C2", mention=True)

        assert unread.msg_count == 2
        assert unread.mention_count == 1

    @pytest.mark.parametrize("count", [1, 3, 10])
    def test_mark_read_resets_regardless_of_count(self, count):
        state = UnreadState()
        for _ in range(count):
            state.increment_unread("C2", mention=True)

        assert state.get_unread("C2").msg_count == count
        state.mark_channel_read("C2")

        assert state.get_unread("C2") == ChannelUnread(channel_id="C2")

    def test_set_and_bulk_set(self):
        state = UnreadState()
        state.set_unread(ChannelUnread(channel_id="C1", msg_count=4))
        state.set_bulk_unreads(
            [
                ChannelUnread(channel_id="C2", msg_count=2, mention_count=1),
                ChannelUnread(channel_id="C1", msg_count=1),
            ]
        )

        assert state.get_unread("C1").msg_count == 1
        assert state.total_unread() == (3, 1)

    def test_counts_cannot_go_negative(self):
        with pytest.raises(ValidationError):
            ChannelUnread(channel_id="C1", msg_count=-1)

    def test_validate_flags_misfiled_counter(self):
        state = UnreadState()
        state.unreads["C1"] = ChannelUnread(channel_id="C2")

        assert state.validate_state() != []

    def test_clear(self):
        state = UnreadState()
        state.increment_unread("C1")

        state.clear()

        assert state.unreads == {}
        assert state.total_unread() == (0, 0)


class TestConnectionState:
    """Test the advisory connection signal."""

    def test_starts_disconnected(self):
        state = ConnectionState()

        assert state.status.connected is False
        assert state.is_reconnecting is False

    def test_reconnecting(self):
        state = ConnectionState()

        state.set_status(False, reconnect_attempt=2)

        assert state.is_reconnecting is True
        assert state.summary == "disconnected (attempt 2)"

    def test_connected_replaces_status(self):
        state = ConnectionState()
        state.set_status(False, reconnect_attempt=2)

        state.set_connected()

        assert state.status.connected is True
        assert state.status.reconnect_attempt == 0
        assert state.validate_state() == []

    def test_snapshot(self):
        state = ConnectionState()
        state.set_status(False, 1)

        assert state.get_snapshot() == {
            "component": "connection",
            "connected": False,
            "reconnect_attempt": 1,
            "is_reconnecting": True,
        }
