"""Correlation ids and the pending-request table.

A correlation id ties an outbound send request to the optimistic post it
created, so that a later confirmation or failure event can be matched back to
that post. Ids are released when their request settles; the most recently
released ones are remembered and refused if registered again.
"""

import logging
from collections import deque
from datetime import datetime
from typing import Any, NewType, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, PrivateAttr

from engine.clock import Timer
from engine.entities import SendParams

logger = logging.getLogger(__name__)

CorrelationId = NewType("CorrelationId", str)

CORRELATION_PREFIX = "pending_"

RELEASED_HISTORY = 1024  # Released ids remembered for reuse checks


def new_correlation_id() -> CorrelationId:
    """Generate a fresh correlation id."""
    return CorrelationId(f"{CORRELATION_PREFIX}{uuid4().hex}")


def is_correlation_id(value: str) -> bool:
    """Whether a post id looks like a client-generated correlation id."""
    return value.startswith(CORRELATION_PREFIX)


class PendingRequest(BaseModel):
    """One outstanding send tracked by the table.

    Args:
        correlation_id: Id shared by the request and its optimistic post.
        params: The original send parameters, re-issued verbatim on retry.
        created_at: When the send was first issued.
        attempts: How many times the request has been issued.
        failed_error: Failure message while the request is in the failed state.
        author_id: Id of the user who sent it.
        author_name: Display name of the user who sent it.
    """

    correlation_id: str
    params: SendParams
    created_at: datetime
    attempts: int = 1
    failed_error: Optional[str] = None
    author_id: str = ""
    author_name: str = ""
    timeout: Optional[Timer] = Field(default=None, exclude=True)

    class Config:
        arbitrary_types_allowed = True

    def disarm(self) -> None:
        """Cancel the confirmation timeout, if any."""
        if self.timeout is not None:
            self.timeout.cancel()
            self.timeout = None


class PendingRequestTable(BaseModel):
    """Explicit table of outstanding sends keyed by correlation id.

    Entries are added on send and removed when the request settles (confirmed
    or discarded). The last ``released_history`` released ids are remembered
    and refused by register(); older ones are forgotten so the table stays
    bounded.
    """

    requests: dict[str, PendingRequest] = Field(default_factory=dict)
    released_history: int = Field(default=RELEASED_HISTORY, gt=0)

    _released: deque = PrivateAttr()

    def model_post_init(self, __context: Any) -> None:
        self._released = deque(maxlen=self.released_history)

    def __len__(self) -> int:
        return len(self.requests)

    def __contains__(self, correlation_id: object) -> bool:
        return correlation_id in self.requests

    def get(self, correlation_id: str) -> Optional[PendingRequest]:
        """Return the entry for an id, or None if unknown or released."""
        return self.requests.get(correlation_id)

    def register(
        self, correlation_id: CorrelationId, params: SendParams, created_at: datetime
    ) -> PendingRequest:
        """Track a new outstanding request.

        Raises:
            ValueError: If the id is already tracked or was recently released.
        """
        if correlation_id in self.requests:
            raise ValueError(f"Correlation id {correlation_id} is already pending")
        if correlation_id in self._released:
            raise ValueError(f"Correlation id {correlation_id} was released and cannot be reused")
        entry = PendingRequest(
            correlation_id=correlation_id, params=params, created_at=created_at
        )
        self.requests[correlation_id] = entry
        return entry

    def release(self, correlation_id: str) -> Optional[PendingRequest]:
        """Stop tracking an id and retire it.

        Returns:
            The released entry, or None if the id was not tracked.
        """
        entry = self.requests.pop(correlation_id, None)
        if entry is None:
            return None
        entry.disarm()
        self._released.append(correlation_id)
        return entry

    def was_released(self, correlation_id: str) -> bool:
        """Whether an id is among the recently settled ones."""
        return correlation_id in self._released

    def clear(self) -> None:
        """Drop all entries, retiring their ids."""
        for correlation_id in list(self.requests):
            self.release(correlation_id)
