"""Habit domain models and enums."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from src.core.config import Constants


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class Frequency(StrEnum):
    """Cadence a habit is tracked at."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class Habit(BaseModel):
    """Local projection of a habit owned by the remote API."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Habit ID (may be an offline placeholder before first sync)")
    title: str = Field(default="", description="Habit title")
    frequency: Frequency = Field(default=Frequency.DAILY, description="daily, weekly or monthly")
    completed_today: bool = Field(default=False, description="Completed in the current period")
    streak_count: int = Field(default=0, description="Current streak length")
    todays_completion_id: str | None = Field(
        default=None, description="Remote completion ID for the current period"
    )
    updated: bool = Field(default=False, description="Projection has local edits not yet confirmed remotely")
    deleted: bool = Field(default=False, description="Soft-deleted locally after a failed remote delete")

    @property
    def needs_sync(self) -> bool:
        """Whether the row should show its sync indicator."""
        return self.updated or Constants.OFFLINE_ID_MARKER in self.id

    def toggled(self) -> "Habit":
        """Return a copy with completion flipped and the streak moved in lockstep."""
        completed = not self.completed_today
        return self.model_copy(
            update={
                "completed_today": completed,
                "streak_count": self.streak_count + 1 if completed else self.streak_count - 1,
            }
        )


class PendingCompletion(BaseModel):
    """A completion toggle waiting to be replayed against the remote API."""

    habit_id: str = Field(..., description="Habit the toggle belongs to")
    date: str = Field(..., description="Period key the toggle applies to")
    completed: bool = Field(..., description="Target completion state")
    frequency: Frequency = Field(..., description="Cadence of the habit when queued")
    completion_id: str | None = Field(
        default=None, description="Remote completion known when queued, deleted on replay of an un-complete"
    )
    queued_at: str = Field(default_factory=_utc_now_iso, description="Enqueue timestamp (ISO format)")

    def to_remote_payload(self) -> dict[str, object]:
        """Body sent to the remote create-completion endpoint."""
        return {
            "habit_id": self.habit_id,
            "date": self.date,
            "completed": self.completed,
            "frequency": str(self.frequency),
        }


class PendingDeletion(BaseModel):
    """A habit deletion waiting to be replayed against the remote API."""

    habit_id: str = Field(..., description="Habit to delete")
    queued_at: str = Field(default_factory=_utc_now_iso, description="Enqueue timestamp (ISO format)")
