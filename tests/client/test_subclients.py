"""Unit tests for the bridge sub-clients.

Each sub-client is driven with a mocked HTTP client so the tests check the
paths and bodies it sends and the models it builds from responses.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from client._actions import ActionsClient, AsyncActionsClient
from client._events import AsyncEventsClient, EventsClient
from client._state import (
    AsyncClockClient,
    AsyncOutboundClient,
    AsyncStateClient,
    ClockClient,
    OutboundClient,
    StateClient,
)
from client.exceptions import BadRequestError
from engine.events import TypingEvent

NOW = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)
NOW_JSON = "2025-01-15T09:00:00Z"


def action_body(action: str, performed: bool = True, **extra) -> dict:
    return {
        "action": action,
        "performed": performed,
        "current_time": NOW_JSON,
        "message": "",
        **extra,
    }


def pending_post_body(post_id: str = "pending_1") -> dict:
    return {
        "id": post_id,
        "channel_id": "C1",
        "user_id": "U1",
        "message": "hello",
        "create_at": NOW_JSON,
        "pending": True,
    }


@pytest.fixture
def mock_http():
    return MagicMock()


@pytest.fixture
def mock_async_http():
    http = MagicMock()
    http.get = AsyncMock()
    http.post = AsyncMock()
    return http


# =============================================================================
# EventsClient
# =============================================================================


class TestEventsClient:
    def test_dispatch_raw_event(self, mock_http):
        mock_http.post.return_value = {"event_type": "typing", "status": "applied"}
        client = EventsClient(mock_http)

        result = client.dispatch({"type": "typing", "user_id": "U2", "channel_id": "C1"})

        mock_http.post.assert_called_once_with(
            "/events", json={"type": "typing", "user_id": "U2", "channel_id": "C1"}
        )
        assert result.status == "applied"

    def test_dispatch_model_event(self, mock_http):
        mock_http.post.return_value = {"event_type": "typing", "status": "applied"}
        client = EventsClient(mock_http)

        client.dispatch(TypingEvent(user_id="U2", channel_id="C1"))

        sent = mock_http.post.call_args.kwargs["json"]
        assert sent["type"] == "typing"
        assert sent["user_id"] == "U2"

    def test_dispatch_batch(self, mock_http):
        mock_http.post.return_value = {
            "results": [{"event_type": "nope", "status": "ignored"}],
            "counts": {"applied": 0, "ignored": 1, "rejected": 0, "stale": 0, "failed": 0},
        }
        client = EventsClient(mock_http)

        result = client.dispatch_batch([{"type": "nope"}])

        mock_http.post.assert_called_once_with("/events/batch", json={"events": [{"type": "nope"}]})
        assert result.counts["ignored"] == 1
        assert result.results[0].status == "ignored"

    def test_types(self, mock_http):
        mock_http.get.return_value = {"types": ["new_post", "typing"]}

        assert EventsClient(mock_http).types() == ["new_post", "typing"]
        mock_http.get.assert_called_once_with("/events/types", params=None)


class TestAsyncEventsClient:
    async def test_dispatch(self, mock_async_http):
        mock_async_http.post.return_value = {"event_type": "posts", "status": "stale"}

        result = await AsyncEventsClient(mock_async_http).dispatch({"type": "posts"})

        assert result.status == "stale"

    async def test_types(self, mock_async_http):
        mock_async_http.get.return_value = {"types": ["typing"]}

        assert await AsyncEventsClient(mock_async_http).types() == ["typing"]


# =============================================================================
# ActionsClient
# =============================================================================


class TestActionsClient:
    """Tests for the synchronous ActionsClient."""

    @pytest.mark.parametrize(
        "method,args,path,body",
        [
            ("select_team", ("T1",), "/actions/select-team", {"team_id": "T1"}),
            ("select_channel", ("C1",), "/actions/select-channel", {"channel_id": "C1"}),
            ("clear_selection", (), "/actions/clear-selection", None),
            ("load_older", (), "/actions/load-older", None),
            ("open_thread", ("P1",), "/actions/open-thread", {"root_id": "P1"}),
            ("close_thread", (), "/actions/close-thread", None),
            ("mark_read", ("C2",), "/actions/mark-read", {"channel_id": "C2"}),
            ("typing", (), "/actions/typing", {"root_id": ""}),
            ("reply_to", ("P1",), "/actions/reply-to", {"post_id": "P1"}),
            ("clear_reply_to", (), "/actions/clear-reply-to", None),
            ("search", ("deploy",), "/actions/search", {"terms": "deploy"}),
            ("dismiss_error", (), "/actions/dismiss-error", None),
        ],
    )
    def test_simple_actions(self, mock_http, method, args, path, body):
        mock_http.post.return_value = action_body(method)
        client = ActionsClient(mock_http)

        result = getattr(client, method)(*args)

        mock_http.post.assert_called_once_with(path, json=body)
        assert result.action == method
        assert result.current_time == NOW

    def test_send(self, mock_http):
        mock_http.post.return_value = action_body("send", post=pending_post_body())
        client = ActionsClient(mock_http)

        result = client.send("hello", file_ids=["F1"], root_id="P1")

        mock_http.post.assert_called_once_with(
            "/actions/send", json={"message": "hello", "file_ids": ["F1"], "root_id": "P1"}
        )
        assert result.post.id == "pending_1"
        assert result.post.pending is True

    def test_send_omits_unset_root(self, mock_http):
        mock_http.post.return_value = action_body("send", performed=False, post=None)

        result = ActionsClient(mock_http).send("   ")

        assert mock_http.post.call_args.kwargs["json"] == {"message": "   ", "file_ids": []}
        assert result.performed is False
        assert result.post is None

    def test_retry_and_discard(self, mock_http):
        mock_http.post.side_effect = [
            action_body("retry", post=pending_post_body()),
            action_body("discard"),
        ]
        client = ActionsClient(mock_http)

        assert client.retry("pending_1").post.pending is True
        assert client.discard("pending_1").action == "discard"
        assert mock_http.post.call_args_list[1].args == ("/actions/discard",)

    def test_retry_error_propagates(self, mock_http):
        mock_http.post.side_effect = BadRequestError("Send pending_1 has not failed")

        with pytest.raises(BadRequestError):
            ActionsClient(mock_http).retry("pending_1")

    def test_toggle_reaction(self, mock_http):
        mock_http.post.return_value = action_body("toggle_reaction", added=True)

        result = ActionsClient(mock_http).toggle_reaction("P1", "smile")

        mock_http.post.assert_called_once_with(
            "/actions/toggle-reaction", json={"post_id": "P1", "emoji_name": "smile"}
        )
        assert result.added is True


class TestAsyncActionsClient:
    async def test_select_channel(self, mock_async_http):
        mock_async_http.post.return_value = action_body("select_channel")

        result = await AsyncActionsClient(mock_async_http).select_channel("C1")

        mock_async_http.post.assert_awaited_once_with(
            "/actions/select-channel", json={"channel_id": "C1"}
        )
        assert result.performed is True

    async def test_send(self, mock_async_http):
        mock_async_http.post.return_value = action_body("send", post=pending_post_body())

        result = await AsyncActionsClient(mock_async_http).send("hello")

        assert result.post.message == "hello"

    async def test_toggle_reaction(self, mock_async_http):
        mock_async_http.post.return_value = action_body("toggle_reaction", added=False)

        result = await AsyncActionsClient(mock_async_http).toggle_reaction("P1", "smile")

        assert result.added is False


# =============================================================================
# State, outbound and clock
# =============================================================================


class TestStateClient:
    def test_posts(self, mock_http):
        mock_http.get.return_value = {
            "channel_id": "C1",
            "posts": [pending_post_body()],
            "has_more": False,
            "loading": False,
        }

        result = StateClient(mock_http).posts()

        mock_http.get.assert_called_once_with("/state/posts", params=None)
        assert result.posts[0].id == "pending_1"

    def test_reactions_path(self, mock_http):
        mock_http.get.return_value = {"post_id": "P1", "reactions": []}

        StateClient(mock_http).reactions("P1")

        mock_http.get.assert_called_once_with("/state/reactions/P1", params=None)

    def test_typing_path(self, mock_http):
        mock_http.get.return_value = {"channel_id": "C1", "typing": []}

        assert StateClient(mock_http).typing("C1").typing == []
        mock_http.get.assert_called_once_with("/state/typing/C1", params=None)

    def test_connection(self, mock_http):
        mock_http.get.return_value = {
            "connected": False,
            "reconnect_attempt": 1,
            "is_reconnecting": True,
        }

        assert StateClient(mock_http).connection().is_reconnecting is True


class TestOutboundClient:
    def test_drain(self, mock_http):
        mock_http.post.return_value = {
            "requests": [
                {"type": "fetch_posts", "channel_id": "C1", "page": 0, "per_page": 30},
                {"type": "mark_read", "channel_id": "C1"},
            ],
            "count": 2,
        }

        result = OutboundClient(mock_http).drain()

        mock_http.post.assert_called_once_with("/outbound/drain", json=None)
        assert result.count == 2
        assert result.of_type("mark_read") == [{"type": "mark_read", "channel_id": "C1"}]

    def test_peek(self, mock_http):
        mock_http.get.return_value = {"requests": [], "count": 0}

        assert OutboundClient(mock_http).peek().requests == []
        mock_http.get.assert_called_once_with("/outbound", params=None)


class TestClockClient:
    def test_advance(self, mock_http):
        mock_http.post.return_value = {
            "previous_time": NOW_JSON,
            "current_time": "2025-01-15T09:00:05Z",
            "timers_fired": 5,
        }

        result = ClockClient(mock_http).advance(5)

        mock_http.post.assert_called_once_with("/clock/advance", json={"seconds": 5})
        assert result.timers_fired == 5
        assert (result.current_time - result.previous_time).total_seconds() == 5

    def test_get(self, mock_http):
        mock_http.get.return_value = {
            "current_time": NOW_JSON,
            "pending_timers": 1,
            "next_due_time": "2025-01-15T09:00:01Z",
        }

        assert ClockClient(mock_http).get().pending_timers == 1


class TestAsyncReadClients:
    async def test_state_get(self, mock_async_http):
        mock_async_http.get.return_value = {"channel_id": "C1", "typing": []}

        result = await AsyncStateClient(mock_async_http).typing("C1")

        assert result.channel_id == "C1"

    async def test_outbound_drain(self, mock_async_http):
        mock_async_http.post.return_value = {"requests": [], "count": 0}

        result = await AsyncOutboundClient(mock_async_http).drain()

        assert result.count == 0

    async def test_clock_advance(self, mock_async_http):
        mock_async_http.post.return_value = {
            "previous_time": NOW_JSON,
            "current_time": NOW_JSON,
            "timers_fired": 0,
        }

        result = await AsyncClockClient(mock_async_http).advance(0.5)

        mock_async_http.post.assert_awaited_once_with("/clock/advance", json={"seconds": 0.5})
        assert result.timers_fired == 0
