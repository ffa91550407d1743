"""Main entry point for the chansync host bridge FastAPI application.

This module creates the FastAPI app that hosts one SyncEngine and exposes
inbound event ingestion, user actions, state reads, outbound request draining
and clock control over HTTP.

To run the development server:
    uvicorn main:app --reload

To run in production:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI

from api.exceptions import register_exception_handlers
from api.routes import actions as actions_routes
from api.routes import clock as clock_routes
from api.routes import events as events_routes
from api.routes import outbound as outbound_routes
from api.routes import state as state_routes
from engine import EngineSettings, SyncEngine, get_settings

logger = logging.getLogger(__name__)


async def drive_clock(engine: SyncEngine, tick_seconds: float) -> None:
    """Advance the engine's logical clock in step with wall time.

    Runs until cancelled. Each tick advances by the wall time actually elapsed
    so that slow ticks do not make logical time drift.

    Args:
        engine: The engine whose clock to drive.
        tick_seconds: Wall-clock interval between advances.
    """
    last = datetime.now(timezone.utc)
    while True:
        await asyncio.sleep(tick_seconds)
        now = datetime.now(timezone.utc)
        elapsed = (now - last).total_seconds()
        last = now
        if elapsed > 0:
            engine.advance_clock(elapsed)


def create_app(
    settings: Optional[EngineSettings] = None, drive_clock_from_wall_time: bool = True
) -> FastAPI:
    """Build a host bridge application.

    Args:
        settings: Engine settings. Defaults to get_settings().
        drive_clock_from_wall_time: Start the background clock driver. Tests
            turn this off and advance the clock through the API.

    Returns:
        A configured FastAPI application.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the engine at startup and tear it down at shutdown."""
        logging.basicConfig(level=settings.log_level.upper())
        logger.info("Starting chansync bridge")
        engine = SyncEngine(settings=settings)
        app.state.engine = engine

        driver: Optional[asyncio.Task] = None
        if drive_clock_from_wall_time:
            driver = asyncio.create_task(drive_clock(engine, settings.clock_tick_seconds))

        yield  # App runs and handles requests here

        logger.info("Shutting down chansync bridge")
        if driver is not None:
            driver.cancel()
            try:
                await driver
            except asyncio.CancelledError:
                pass
        engine.close()
        app.state.engine = None

    app = FastAPI(
        title="chansync",
        description="Channel synchronization and optimistic-update reconciliation engine",
        version="0.1.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    app.include_router(events_routes.router)
    app.include_router(actions_routes.router)
    app.include_router(state_routes.router)
    app.include_router(outbound_routes.router)
    app.include_router(clock_routes.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for monitoring.

        Returns:
            A dictionary indicating the service is healthy.
        """
        return {"status": "healthy"}

    return app


app = create_app()
