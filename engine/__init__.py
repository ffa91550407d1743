"""chansync engine package.

This package contains the channel synchronization and optimistic-update
reconciliation engine: entity models, inbound event and outbound request
types, the logical clock, the per-concern component states, the event router
and the SyncEngine composition root.
"""

from engine.base_state import ComponentState
from engine.clock import LogicalClock, Timer
from engine.config import EngineSettings, get_settings
from engine.correlation import CorrelationId, PendingRequestTable, new_correlation_id
from engine.engine import EngineNotReadyError, SyncEngine
from engine.events import InboundEvent, UnknownEventType, decode_event
from engine.outbound import OutboundBuffer, OutboundRequest, OutboundSink
from engine.router import DispatchStatus, EventRouter
from engine.snapshot import EngineSnapshot

__all__ = [
    "ComponentState",
    "LogicalClock",
    "Timer",
    "EngineSettings",
    "get_settings",
    "CorrelationId",
    "PendingRequestTable",
    "new_correlation_id",
    "SyncEngine",
    "EngineNotReadyError",
    "InboundEvent",
    "UnknownEventType",
    "decode_event",
    "OutboundBuffer",
    "OutboundRequest",
    "OutboundSink",
    "DispatchStatus",
    "EventRouter",
    "EngineSnapshot",
]
