"""Read-only state endpoints.

Every response is built from copies of engine state; nothing here mutates the
engine.
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel

from api.dependencies import EngineDep
from engine import EngineSnapshot
from engine.entities import ChannelUnread, Post, Reaction, TypingEntry


router = APIRouter(
    prefix="/state",
    tags=["state"],
)


class PostsResponse(BaseModel):
    """Timeline of the selected channel.

    Attributes:
        channel_id: Selected channel, if any.
        posts: Posts, newest first.
        has_more: Whether older history can be fetched.
        loading: Whether a history fetch is outstanding.
    """

    channel_id: Optional[str] = None
    posts: list[Post]
    has_more: bool
    loading: bool


class ThreadResponse(BaseModel):
    """The open thread.

    Attributes:
        root_id: Root of the open thread, if any.
        posts: Root plus replies, oldest first.
        loading: Whether a thread fetch is outstanding.
    """

    root_id: Optional[str] = None
    posts: list[Post]
    loading: bool


class ReactionsResponse(BaseModel):
    post_id: str
    reactions: list[Reaction]


class UnreadsResponse(BaseModel):
    """Unread counters for every tracked channel.

    Attributes:
        unreads: Counters keyed by channel id.
        total_messages: Sum of unread messages.
        total_mentions: Sum of unread mentions.
    """

    unreads: dict[str, ChannelUnread]
    total_messages: int
    total_mentions: int


class TypingResponse(BaseModel):
    channel_id: str
    typing: list[TypingEntry]


class ConnectionResponse(BaseModel):
    connected: bool
    reconnect_attempt: int
    is_reconnecting: bool


@router.get("", response_model=EngineSnapshot)
async def get_state(engine: EngineDep):
    """Get a full snapshot of the engine state."""
    return engine.snapshot()


@router.get("/posts", response_model=PostsResponse)
async def get_posts(engine: EngineDep):
    store = engine.store
    return PostsResponse(
        channel_id=store.selected_channel_id,
        posts=engine.posts,
        has_more=store.has_more_posts,
        loading=store.posts_loading,
    )


@router.get("/thread", response_model=ThreadResponse)
async def get_thread(engine: EngineDep):
    store = engine.store
    return ThreadResponse(
        root_id=store.thread_root_id,
        posts=engine.thread_posts,
        loading=store.thread_loading,
    )


@router.get("/reactions/{post_id}", response_model=ReactionsResponse)
async def get_reactions(post_id: str, engine: EngineDep):
    """Get the reactions on one post (empty when none are known)."""
    return ReactionsResponse(post_id=post_id, reactions=engine.reactions_for(post_id))


@router.get("/unreads", response_model=UnreadsResponse)
async def get_unreads(engine: EngineDep):
    messages, mentions = engine.unreads.total_unread()
    return UnreadsResponse(
        unreads={cid: u.model_copy() for cid, u in engine.unreads.unreads.items()},
        total_messages=messages,
        total_mentions=mentions,
    )


@router.get("/typing/{channel_id}", response_model=TypingResponse)
async def get_typing(channel_id: str, engine: EngineDep):
    """Get who is typing in a channel, excluding the current user."""
    return TypingResponse(channel_id=channel_id, typing=engine.typing_users(channel_id))


@router.get("/connection", response_model=ConnectionResponse)
async def get_connection(engine: EngineDep):
    status = engine.connection_status
    return ConnectionResponse(
        connected=status.connected,
        reconnect_attempt=status.reconnect_attempt,
        is_reconnecting=engine.connection.is_reconnecting,
    )
