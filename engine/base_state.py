"""Base class for all engine component states."""

from abc import abstractmethod
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ComponentState(BaseModel):
    """Base class for the state owned by each engine component.

    Each subclass tracks the state of one reconciliation concern (e.g. the
    timeline, reactions, unread counters). Components are mutable containers
    that are modified in-place by their documented operations; nothing outside
    the engine is expected to touch them directly.

    Args:
        component: Identifies which component this state belongs to.
        last_updated: Clock time when this state was last modified.
        update_count: Number of times this state has been modified.
    """

    component: str = Field(description="Identifies which component this state belongs to")
    last_updated: datetime | None = Field(
        default=None, description="Clock time when this state was last modified"
    )
    update_count: int = Field(
        default=0, description="Number of times this state has been modified"
    )

    def touch(self, now: datetime | None = None) -> None:
        """Record that a mutation happened.

        Args:
            now: Clock time of the mutation, if known.
        """
        if now is not None:
            self.last_updated = now
        self.update_count += 1

    @abstractmethod
    def get_snapshot(self) -> dict[str, Any]:
        """Return a JSON-serializable snapshot of this component's state.

        Returns:
            Dictionary representation suitable for API responses.
        """
        pass

    @abstractmethod
    def validate_state(self) -> list[str]:
        """Validate internal consistency and return any issues.

        After applying many events the state might become inconsistent; this
        catches corruption and helps with debugging.

        Returns:
            List of validation error messages (empty list if valid).
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Reset this state to its empty default.

        After calling clear(), the state should pass validate_state() with no
        errors. The ``component`` name is kept.
        """
        pass

    @property
    def summary(self) -> str:
        """Return a brief human-readable summary of the current state."""
        return f"{self.component} state"
