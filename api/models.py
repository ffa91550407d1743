"""Shared request and response models for API endpoints."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from engine import DispatchStatus


class DispatchResponse(BaseModel):
    """Result of dispatching one inbound event.

    Attributes:
        event_type: The ``type`` tag of the event, if it had one.
        status: How the router handled the event.
    """

    event_type: Optional[str] = None
    status: DispatchStatus


class ActionResponse(BaseModel):
    """Base response model for user action endpoints.

    Attributes:
        action: Name of the action that ran.
        performed: Whether the action did anything (False for skipped no-ops).
        current_time: Engine clock time after the action.
        message: Human-readable description of the result.
    """

    action: str
    performed: bool = True
    current_time: datetime
    message: str = ""


class ClockStateResponse(BaseModel):
    """Logical clock state.

    Attributes:
        current_time: Current logical time.
        pending_timers: Number of live timers.
        next_due_time: When the next timer fires, if any.
    """

    current_time: datetime
    pending_timers: int = Field(ge=0)
    next_due_time: Optional[datetime] = None
