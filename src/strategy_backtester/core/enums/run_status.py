"""
Backtest run lifecycle and position state enumerations.
"""

from enum import StrEnum


class RunStatus(StrEnum):
    """
    Lifecycle states of a backtest run.

    PENDING -> RUNNING -> COMPLETED | FAILED | CANCELLED.
    A pending run may also fail or be cancelled before it starts.
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is possible."""
        return self in [RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED]

    @property
    def is_active(self) -> bool:
        """Check if the run is queued or executing."""
        return self in [RunStatus.PENDING, RunStatus.RUNNING]

    def can_transition_to(self, target: "RunStatus") -> bool:
        """Check whether moving from this status to ``target`` is allowed."""
        allowed = {
            RunStatus.PENDING: {RunStatus.RUNNING, RunStatus.FAILED, RunStatus.CANCELLED},
            RunStatus.RUNNING: {RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED},
        }
        return target in allowed.get(self, set())


class PositionState(StrEnum):
    """Simulator position state. Only long positions exist."""

    FLAT = "flat"
    LONG = "long"
