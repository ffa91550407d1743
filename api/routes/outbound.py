"""Outbound request endpoints.

The bridge's engine writes outbound requests into a buffer; the host polls
this router to collect and perform them.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from api.dependencies import OutboundBufferDep
from engine.outbound import AnyOutboundRequest


router = APIRouter(
    prefix="/outbound",
    tags=["outbound"],
)


class OutboundResponse(BaseModel):
    """Buffered outbound requests.

    Attributes:
        requests: Requests in the order the engine issued them.
        count: Number of requests returned.
    """

    requests: list[AnyOutboundRequest]
    count: int


@router.get("", response_model=OutboundResponse)
async def peek_outbound(buffer: OutboundBufferDep):
    """List buffered requests without removing them."""
    requests = buffer.requests
    return OutboundResponse(requests=requests, count=len(requests))


@router.post("/drain", response_model=OutboundResponse)
async def drain_outbound(buffer: OutboundBufferDep):
    """Return buffered requests and clear the buffer."""
    requests = buffer.drain()
    return OutboundResponse(requests=requests, count=len(requests))
