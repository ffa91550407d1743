"""Raw inbound event payloads, shaped as the host delivers them.

Each builder returns a plain dict so tests exercise decoding as well as
handling.
"""

from typing import Any

from engine.entities import Channel, Post, Reaction, User


def current_user_event(user: User) -> dict[str, Any]:
    return {"type": "current_user", "user": user.model_dump(mode="json")}


def channels_event(channels: list[Channel], team_id: str | None = None) -> dict[str, Any]:
    event: dict[str, Any] = {
        "type": "channels",
        "channels": [c.model_dump(mode="json") for c in channels],
    }
    if team_id is not None:
        event["team_id"] = team_id
    return event


def posts_event(
    posts: list[Post], has_more: bool = False, channel_id: str | None = None
) -> dict[str, Any]:
    return {
        "type": "posts",
        "posts": [p.model_dump(mode="json") for p in posts],
        "has_more": has_more,
        "channel_id": channel_id,
    }


def older_posts_event(
    posts: list[Post], has_more: bool = False, channel_id: str | None = None
) -> dict[str, Any]:
    event = posts_event(posts, has_more, channel_id)
    event["type"] = "older_posts"
    return event


def new_post_event(post: Post, mention: bool = False) -> dict[str, Any]:
    return {"type": "new_post", "post": post.model_dump(mode="json"), "mention": mention}


def post_confirmed_event(pending_id: str, post: Post) -> dict[str, Any]:
    return {
        "type": "post_confirmed",
        "pending_id": pending_id,
        "post": post.model_dump(mode="json"),
    }


def post_failed_event(pending_id: str, error: str = "Server rejected the post") -> dict[str, Any]:
    return {"type": "post_failed", "pending_id": pending_id, "error": error}


def thread_event(root_id: str, posts: list[Post]) -> dict[str, Any]:
    return {
        "type": "thread",
        "root_id": root_id,
        "posts": [p.model_dump(mode="json") for p in posts],
    }


def reactions_event(post_id: str, reactions: list[Reaction]) -> dict[str, Any]:
    return {
        "type": "reactions",
        "post_id": post_id,
        "reactions": [r.model_dump(mode="json") for r in reactions],
    }


def reaction_added_event(reaction: Reaction) -> dict[str, Any]:
    return {"type": "reaction_added", "reaction": reaction.model_dump(mode="json")}


def typing_event(user_id: str, channel_id: str, username: str | None = None) -> dict[str, Any]:
    event: dict[str, Any] = {"type": "typing", "user_id": user_id, "channel_id": channel_id}
    if username is not None:
        event["username"] = username
    return event


def error_event(message: str, scope: str = "general") -> dict[str, Any]:
    return {"type": "error", "message": message, "scope": scope}


# Malformed payloads for rejection testing
INVALID_EVENTS = {
    "typing_without_channel": {"type": "typing", "user_id": "U2"},
    "post_deleted_without_id": {"type": "post_deleted"},
    "reaction_added_without_reaction": {"type": "reaction_added"},
    "connection_negative_attempt": {
        "type": "connection_status",
        "connected": False,
        "reconnect_attempt": -1,
    },
}
