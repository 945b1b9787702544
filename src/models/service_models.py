"""Pydantic models for service layer return types.

These models give the sync services explicit result values at their
boundaries, so callers branch on outcomes instead of on exceptions.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

from src.core.errors import ErrorCategory
from src.domain.habit import Habit


class RemoteResult(BaseModel):
    """Result of a single call to the remote habits API."""

    success: bool = Field(..., description="Whether the remote call was confirmed")
    completion_id: str | None = Field(default=None, description="Completion ID returned by a create call")
    error: str | None = Field(default=None, description="Error message if failed")
    error_category: ErrorCategory | None = Field(default=None, description="Classified failure category")


class ToggleOutcome(StrEnum):
    """Terminal state of a completion toggle."""

    COMMITTED = "committed"
    QUEUED = "queued"
    ROLLED_BACK = "rolled_back"


class ToggleResult(BaseModel):
    """Outcome of toggling a habit's completion."""

    habit: Habit
    outcome: ToggleOutcome
    period_key: str
    error: str | None = None


class DeletionOutcome(StrEnum):
    """Terminal state of a habit deletion."""

    REMOVED = "removed"
    SOFT_DELETED = "soft_deleted"


class DeletionResult(BaseModel):
    """Outcome of deleting a habit."""

    habit_id: str
    outcome: DeletionOutcome
    error: str | None = None


class FlushReport(BaseModel):
    """Counts for a single pass over one pending queue."""

    attempted: int = 0
    flushed: int = 0
    failed: int = 0


class SyncReport(BaseModel):
    """Summary of a sync pass over all pending queues."""

    completions: FlushReport = Field(default_factory=FlushReport)
    deletions: FlushReport = Field(default_factory=FlushReport)
    remaining: int = 0
