"""Logical clock endpoints.

In normal operation the bridge advances the clock from wall time in the
background. These endpoints let a host or test inspect it and advance it by
hand, which fires due timers (typing sweep, send timeouts) immediately.
"""

from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from api.dependencies import EngineDep
from api.models import ClockStateResponse


router = APIRouter(
    prefix="/clock",
    tags=["clock"],
)


class AdvanceClockRequest(BaseModel):
    """Request model for advancing the clock.

    Attributes:
        seconds: Number of logical seconds to advance.
    """

    seconds: float = Field(
        ...,
        gt=0,
        description="Number of seconds to advance (must be positive)",
    )


class AdvanceClockResponse(BaseModel):
    """Response model for clock advancement.

    Attributes:
        previous_time: Logical time before advancing.
        current_time: Logical time after advancing.
        timers_fired: Number of timer callbacks that ran.
    """

    previous_time: datetime
    current_time: datetime
    timers_fired: int


@router.get("", response_model=ClockStateResponse)
async def get_clock(engine: EngineDep):
    """Get the current logical time and timer queue summary."""
    clock = engine.clock
    return ClockStateResponse(
        current_time=clock.now(),
        pending_timers=len(clock.pending_timers),
        next_due_time=clock.next_due_time,
    )


@router.post("/advance", response_model=AdvanceClockResponse)
async def advance_clock(request: AdvanceClockRequest, engine: EngineDep):
    """Advance logical time, firing any timers that fall due."""
    previous_time = engine.clock.now()
    fired = engine.advance_clock(request.seconds)
    return AdvanceClockResponse(
        previous_time=previous_time,
        current_time=engine.clock.now(),
        timers_fired=fired,
    )
