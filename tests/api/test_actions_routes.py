"""Integration tests for the user action routes (/actions/*)."""

from tests.fixtures.entities import create_post
from tests.fixtures.events import post_confirmed_event, post_failed_event, posts_event


class TestSelectionRoutes:
    def test_select_team(self, client_with_engine):
        client, engine = client_with_engine

        response = client.post("/actions/select-team", json={"team_id": "T1"})

        assert response.status_code == 200
        data = response.json()
        assert data["action"] == "select_team"
        assert data["performed"] is True
        assert engine.store.selected_team_id == "T1"
        assert engine.sink.of_type("fetch_channels")[0].team_id == "T1"

    def test_select_team_requires_id(self, client_with_engine):
        client, _ = client_with_engine

        response = client.post("/actions/select-team", json={"team_id": ""})

        assert response.status_code == 422

    def test_select_channel(self, client_with_ready_engine):
        client, engine = client_with_ready_engine

        response = client.post("/actions/select-channel", json={"channel_id": "C1"})

        assert response.status_code == 200
        assert engine.store.selected_channel_id == "C1"

    def test_clear_selection(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.select_channel("C1")

        response = client.post("/actions/clear-selection")

        assert response.status_code == 200
        assert engine.store.selected_channel_id is None

    def test_load_older_without_history(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.select_channel("C1")
        engine.dispatch(posts_event([create_post("P1")], has_more=False, channel_id="C1"))

        response = client.post("/actions/load-older")

        assert response.json()["performed"] is False

    def test_thread_routes(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.select_channel("C1")

        assert client.post("/actions/open-thread", json={"root_id": "P1"}).status_code == 200
        assert engine.store.thread_root_id == "P1"

        assert client.post("/actions/close-thread").status_code == 200
        assert engine.store.thread_root_id is None


class TestSendRoutes:
    """Tests for send, retry and discard."""

    def test_send_returns_pending_post(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.select_channel("C1")

        response = client.post("/actions/send", json={"message": "hello"})

        assert response.status_code == 200
        data = response.json()
        assert data["performed"] is True
        assert data["post"]["pending"] is True
        assert data["post"]["message"] == "hello"
        assert engine.posts[0].id == data["post"]["id"]

    def test_blank_send_is_not_performed(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.select_channel("C1")

        response = client.post("/actions/send", json={"message": "   "})

        assert response.json()["performed"] is False
        assert response.json()["post"] is None

    def test_retry_and_discard_failed_send(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.select_channel("C1")
        pending = engine.send_message("hello")
        engine.dispatch(post_failed_event(pending.id))

        response = client.post("/actions/retry", json={"pending_id": pending.id})
        assert response.status_code == 200
        assert response.json()["post"]["pending"] is True

        engine.dispatch(post_failed_event(pending.id))
        response = client.post("/actions/discard", json={"pending_id": pending.id})
        assert response.status_code == 200
        assert engine.posts == []

    def test_retry_pending_send_is_bad_request(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.select_channel("C1")
        pending = engine.send_message("hello")

        response = client.post("/actions/retry", json={"pending_id": pending.id})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid Value"
        assert "has not failed" in response.json()["detail"]

    def test_discard_confirmed_send_is_bad_request(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.select_channel("C1")
        pending = engine.send_message("hello")
        engine.dispatch(post_confirmed_event(pending.id, create_post("srv_1", message="hello")))

        response = client.post("/actions/discard", json={"pending_id": pending.id})

        assert response.status_code == 400


class TestOtherActions:
    def test_toggle_reaction(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        body = {"post_id": "P1", "emoji_name": "smile"}

        assert client.post("/actions/toggle-reaction", json=body).json()["added"] is True
        assert client.post("/actions/toggle-reaction", json=body).json()["added"] is False
        assert engine.reactions_for("P1") == []

    def test_toggle_reaction_before_current_user(self, client_with_engine):
        client, _ = client_with_engine

        response = client.post(
            "/actions/toggle-reaction", json={"post_id": "P1", "emoji_name": "smile"}
        )

        assert response.status_code == 503
        assert response.json()["error"] == "Engine Not Ready"

    def test_mark_read(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.dispatch({"type": "unread_increment", "channel_id": "C2"})

        response = client.post("/actions/mark-read", json={"channel_id": "C2"})

        assert response.status_code == 200
        assert engine.unread_for("C2").msg_count == 0

    def test_mark_read_without_channel_is_bad_request(self, client_with_ready_engine):
        client, _ = client_with_ready_engine

        response = client.post("/actions/mark-read", json={})

        assert response.status_code == 400

    def test_typing_is_throttled(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.select_channel("C1")

        first = client.post("/actions/typing", json={})
        second = client.post("/actions/typing", json={})

        assert first.json()["performed"] is True
        assert second.json()["performed"] is False
        assert second.json()["message"] == "Throttled"

    def test_reply_target(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.select_channel("C1")

        client.post("/actions/reply-to", json={"post_id": "P1"})
        assert engine.store.reply_to_post_id == "P1"

        client.post("/actions/clear-reply-to")
        assert engine.store.reply_to_post_id is None

    def test_search(self, client_with_ready_engine):
        client, engine = client_with_ready_engine

        response = client.post("/actions/search", json={"terms": "deploy"})

        assert response.json()["performed"] is True
        assert engine.store.search_loading is True

    def test_dismiss_error(self, client_with_ready_engine):
        client, engine = client_with_ready_engine
        engine.dispatch({"type": "error", "message": "boom"})

        client.post("/actions/dismiss-error")

        assert engine.last_error is None
