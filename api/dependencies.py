"""Dependency injection providers for the FastAPI application.

The bridge hosts exactly one SyncEngine per application instance. It is
created in the app lifespan and stored on ``app.state``; route handlers get it
through the EngineDep dependency, which tests override with their own engine.
"""

from typing import Annotated

from fastapi import Depends, Request

from engine import EngineNotReadyError, SyncEngine
from engine.outbound import OutboundBuffer


def get_engine(request: Request) -> SyncEngine:
    """Get the SyncEngine hosted by this application.

    Args:
        request: The incoming request (injected by FastAPI).

    Returns:
        The application's SyncEngine.

    Raises:
        EngineNotReadyError: If the lifespan has not created the engine yet.
    """
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise EngineNotReadyError("SyncEngine not initialized")
    return engine


def get_outbound_buffer(engine: Annotated[SyncEngine, Depends(get_engine)]) -> OutboundBuffer:
    """Get the buffer collecting the engine's outbound requests.

    Raises:
        EngineNotReadyError: If the engine was built with a different sink.
    """
    if not isinstance(engine.sink, OutboundBuffer):
        raise EngineNotReadyError("Engine outbound sink is not a buffer")
    return engine.sink


# Type aliases for dependency injection
EngineDep = Annotated[SyncEngine, Depends(get_engine)]
OutboundBufferDep = Annotated[OutboundBuffer, Depends(get_outbound_buffer)]
