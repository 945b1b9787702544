"""Domain models and DTOs."""

from src.domain.habit import Frequency, Habit, PendingCompletion, PendingDeletion


__all__ = [
    "Frequency",
    "Habit",
    "PendingCompletion",
    "PendingDeletion",
]
