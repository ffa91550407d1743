"""Connection health signal reported by the host."""

from typing import Any

from pydantic import Field

from engine.base_state import ComponentState
from engine.entities import ConnectionStatus


class ConnectionState(ComponentState):
    """Latest transport status. Purely advisory; holds no retry logic.

    Args:
        component: Always "connection".
        status: The last reported status.
    """

    component: str = Field(default="connection", frozen=True)
    status: ConnectionStatus = Field(default_factory=ConnectionStatus)

    def set_status(self, connected: bool, reconnect_attempt: int = 0) -> None:
        """Replace the status wholesale."""
        self.status = ConnectionStatus(
            connected=connected, reconnect_attempt=reconnect_attempt
        )
        self.touch()

    def set_connected(self) -> None:
        self.set_status(True, 0)

    @property
    def is_reconnecting(self) -> bool:
        """Disconnected with at least one reconnect attempt under way."""
        return not self.status.connected and self.status.reconnect_attempt > 0

    def get_snapshot(self) -> dict[str, Any]:
        return {
            "component": self.component,
            **self.status.model_dump(),
            "is_reconnecting": self.is_reconnecting,
        }

    def validate_state(self) -> list[str]:
        if self.status.connected and self.status.reconnect_attempt:
            return ["Connected status still reports a reconnect attempt"]
        return []

    def clear(self) -> None:
        self.status = ConnectionStatus()
        self.update_count = 0

    @property
    def summary(self) -> str:
        if self.status.connected:
            return "connected"
        return f"disconnected (attempt {self.status.reconnect_attempt})"
