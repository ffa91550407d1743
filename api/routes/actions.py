"""User action endpoints.

Each endpoint maps to one SyncEngine user action. Actions mutate engine state
immediately and queue outbound requests for the host to drain.
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from api.dependencies import EngineDep
from api.models import ActionResponse
from engine import SyncEngine
from engine.entities import Post


router = APIRouter(
    prefix="/actions",
    tags=["actions"],
)


class SelectTeamRequest(BaseModel):
    team_id: str = Field(..., min_length=1)


class SelectChannelRequest(BaseModel):
    channel_id: str = Field(..., min_length=1)


class OpenThreadRequest(BaseModel):
    root_id: str = Field(..., min_length=1)


class SendRequest(BaseModel):
    """Request model for sending a message.

    Attributes:
        message: Message text; may be blank when files are attached.
        file_ids: Ids of files the host already uploaded.
        root_id: Thread root to reply to. Defaults to the reply target.
    """

    message: str = ""
    file_ids: list[str] = Field(default_factory=list)
    root_id: Optional[str] = None


class PendingSendRequest(BaseModel):
    """Request model addressing an outstanding send by its correlation id."""

    pending_id: str = Field(..., min_length=1)


class ToggleReactionRequest(BaseModel):
    post_id: str = Field(..., min_length=1)
    emoji_name: str = Field(..., min_length=1)


class MarkReadRequest(BaseModel):
    channel_id: Optional[str] = None


class TypingRequest(BaseModel):
    root_id: str = ""


class ReplyToRequest(BaseModel):
    post_id: str = Field(..., min_length=1)


class SearchRequest(BaseModel):
    terms: str = ""


class SendActionResponse(ActionResponse):
    """Action response carrying the optimistic post, if one was created."""

    post: Optional[Post] = None


class ToggleReactionResponse(ActionResponse):
    """Action response telling whether the reaction was added or removed."""

    added: bool


def _response(
    engine: SyncEngine, action: str, performed: bool = True, message: str = ""
) -> ActionResponse:
    return ActionResponse(
        action=action,
        performed=performed,
        current_time=engine.clock.now(),
        message=message,
    )


# Route Handlers


@router.post("/select-team", response_model=ActionResponse)
async def select_team(request: SelectTeamRequest, engine: EngineDep):
    """Switch team. Channel lists and the timeline are reset."""
    engine.select_team(request.team_id)
    return _response(engine, "select_team", message=f"Selected team {request.team_id}")


@router.post("/select-channel", response_model=ActionResponse)
async def select_channel(request: SelectChannelRequest, engine: EngineDep):
    """Switch channel. The timeline, thread and reply target are reset."""
    engine.select_channel(request.channel_id)
    return _response(
        engine, "select_channel", message=f"Selected channel {request.channel_id}"
    )


@router.post("/clear-selection", response_model=ActionResponse)
async def clear_selection(engine: EngineDep):
    engine.clear_selection()
    return _response(engine, "clear_selection")


@router.post("/load-older", response_model=ActionResponse)
async def load_older(engine: EngineDep):
    """Request the next page of history for the selected channel."""
    requested = engine.load_older_posts()
    message = "Requested older posts" if requested else "Nothing to load"
    return _response(engine, "load_older", performed=requested, message=message)


@router.post("/open-thread", response_model=ActionResponse)
async def open_thread(request: OpenThreadRequest, engine: EngineDep):
    engine.open_thread(request.root_id)
    return _response(engine, "open_thread", message=f"Opened thread {request.root_id}")


@router.post("/close-thread", response_model=ActionResponse)
async def close_thread(engine: EngineDep):
    engine.close_thread()
    return _response(engine, "close_thread")


@router.post("/send", response_model=SendActionResponse)
async def send(request: SendRequest, engine: EngineDep):
    """Send a message optimistically.

    Blank messages without files, or sends with no channel selected, are
    skipped and reported with ``performed`` False.
    """
    post = engine.send_message(request.message, request.file_ids, request.root_id)
    return SendActionResponse(
        action="send",
        performed=post is not None,
        current_time=engine.clock.now(),
        message=f"Pending as {post.id}" if post else "Nothing to send",
        post=post,
    )


@router.post("/retry", response_model=SendActionResponse)
async def retry(request: PendingSendRequest, engine: EngineDep):
    """Retry a failed send. Returns 400 if the send has not failed."""
    post = engine.retry_send(request.pending_id)
    return SendActionResponse(
        action="retry",
        current_time=engine.clock.now(),
        message=f"Retrying {request.pending_id}",
        post=post,
    )


@router.post("/discard", response_model=ActionResponse)
async def discard(request: PendingSendRequest, engine: EngineDep):
    """Discard a failed send. Returns 400 if the send has not failed."""
    engine.discard_send(request.pending_id)
    return _response(engine, "discard", message=f"Discarded {request.pending_id}")


@router.post("/toggle-reaction", response_model=ToggleReactionResponse)
async def toggle_reaction(request: ToggleReactionRequest, engine: EngineDep):
    """Add or remove the current user's reaction.

    Returns 503 until the host has delivered the current user.
    """
    added = engine.toggle_reaction(request.post_id, request.emoji_name)
    return ToggleReactionResponse(
        action="toggle_reaction",
        current_time=engine.clock.now(),
        message=f"{'Added' if added else 'Removed'} :{request.emoji_name}:",
        added=added,
    )


@router.post("/mark-read", response_model=ActionResponse)
async def mark_read(request: MarkReadRequest, engine: EngineDep):
    engine.mark_read(request.channel_id)
    return _response(engine, "mark_read")


@router.post("/typing", response_model=ActionResponse)
async def typing(request: TypingRequest, engine: EngineDep):
    """Signal typing in the selected channel, subject to throttling."""
    sent = engine.notify_typing(request.root_id)
    return _response(engine, "typing", performed=sent, message="" if sent else "Throttled")


@router.post("/reply-to", response_model=ActionResponse)
async def reply_to(request: ReplyToRequest, engine: EngineDep):
    engine.set_reply_to(request.post_id)
    return _response(engine, "reply_to")


@router.post("/clear-reply-to", response_model=ActionResponse)
async def clear_reply_to(engine: EngineDep):
    engine.clear_reply_to()
    return _response(engine, "clear_reply_to")


@router.post("/search", response_model=ActionResponse)
async def search(request: SearchRequest, engine: EngineDep):
    """Search posts in the selected team. Blank terms clear the search."""
    requested = engine.search(request.terms)
    return _response(engine, "search", performed=requested)


@router.post("/dismiss-error", response_model=ActionResponse)
async def dismiss_error(engine: EngineDep):
    engine.dismiss_error()
    return _response(engine, "dismiss_error")
