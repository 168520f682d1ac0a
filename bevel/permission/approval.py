"""
ApprovalQueue - correlates "ask" approval requests with user responses.

An ApprovalQueue is an explicit, session-scoped object: create one per
conversation and pass it to the agent as its approval callback. Each
request suspends the calling operation until respond() or cancel() is
called for its id, or until the optional timeout expires (treated as a
denial).

Usage:
    approvals = ApprovalQueue(timeout=300.0)
    agent = Bevel(on_permission_request=approvals).use(git)

    # elsewhere, e.g. an HTTP handler driven by the UI
    for item in approvals.pending():
        approvals.respond(item.id, approved=True)
"""

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING, Any, Sequence

from pydantic import BaseModel, Field

from bevel.utils.logging import get_logger

if TYPE_CHECKING:
    from bevel.config.settings import BevelSettings

logger = get_logger(__name__)


class PendingApproval(BaseModel):
    """An approval request waiting for a decision."""

    id: str
    operation: str  # Qualified operation name
    args: list[Any] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.now)


class ApprovalQueue:
    """
    Coordinator for pending approval decisions.

    Uses asyncio.Event to suspend the requesting operation until a
    decision is recorded.
    """

    def __init__(self, timeout: float | None = None) -> None:
        """
        Args:
            timeout: Seconds to wait for a decision before denying.
                None waits indefinitely.
        """
        self._timeout = timeout
        self._pending: dict[str, PendingApproval] = {}
        self._events: dict[str, asyncio.Event] = {}
        self._decisions: dict[str, bool] = {}
        self._waiters: set[str] = set()
        self._next_id = 1

    @classmethod
    def from_settings(cls, settings: "BevelSettings | None" = None) -> "ApprovalQueue":
        """Create a queue using `approval_timeout`, from the global `settings` by default."""
        import bevel.config.settings as config_settings

        if settings is None:
            settings = config_settings.settings
        return cls(timeout=settings.approval_timeout)

    async def __call__(self, operation: str, args: Sequence[Any]) -> bool:
        """Request approval and wait for the decision."""
        pending = self.request(operation, args)
        return await self.wait(pending.id)

    def request(self, operation: str, args: Sequence[Any]) -> PendingApproval:
        """Record a new approval request and return it."""
        approval_id = str(self._next_id)
        self._next_id += 1

        pending = PendingApproval(id=approval_id, operation=operation, args=list(args))
        self._pending[approval_id] = pending
        self._events[approval_id] = asyncio.Event()

        logger.info("approval_requested", approval_id=approval_id, operation=operation)
        return pending

    async def wait(self, approval_id: str, timeout: float | None = None) -> bool:
        """
        Wait for the decision on a request.

        Args:
            approval_id: Id returned by request()
            timeout: Overrides the queue timeout for this wait

        Returns:
            True if approved; False if denied, cancelled or timed out

        Raises:
            KeyError: If the id was never requested or was already consumed
        """
        event = self._events.get(approval_id)
        if event is None:
            raise KeyError(approval_id)

        timeout = timeout if timeout is not None else self._timeout
        self._waiters.add(approval_id)
        try:
            await asyncio.wait_for(event.wait(), timeout=timeout)
            return self._decisions.get(approval_id, False)
        except asyncio.TimeoutError:
            logger.warning(
                "approval_timeout",
                approval_id=approval_id,
                timeout=timeout,
            )
            return False
        finally:
            self._waiters.discard(approval_id)
            self._pending.pop(approval_id, None)
            self._events.pop(approval_id, None)
            self._decisions.pop(approval_id, None)

    def respond(self, approval_id: str, approved: bool) -> bool:
        """
        Record a decision and wake the waiting operation.

        A decision for a request nobody is waiting on settles it for good:
        nothing is retained and a later wait() on the id raises KeyError.

        Returns:
            False if the id is unknown or already decided
        """
        pending = self._pending.pop(approval_id, None)
        if pending is None:
            return False

        if approval_id in self._waiters:
            self._decisions[approval_id] = bool(approved)
            self._events[approval_id].set()
        else:
            self._events.pop(approval_id, None)

        logger.info(
            "approval_resolved",
            approval_id=approval_id,
            operation=pending.operation,
            approved=bool(approved),
        )
        return True

    def cancel(self, approval_id: str) -> bool:
        """Deny a pending request, e.g. when the session ends."""
        if approval_id not in self._pending:
            return False
        logger.info("approval_cancelled", approval_id=approval_id)
        return self.respond(approval_id, False)

    def cancel_all(self) -> int:
        """Deny every pending request. Returns how many were cancelled."""
        ids = list(self._pending)
        for approval_id in ids:
            self.cancel(approval_id)
        return len(ids)

    def pending(self) -> list[PendingApproval]:
        """Snapshot of requests still waiting for a decision."""
        return list(self._pending.values())

    def __len__(self) -> int:
        return len(self._pending)


__all__ = ["ApprovalQueue", "PendingApproval"]
