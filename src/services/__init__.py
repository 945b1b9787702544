from src.services import (
    completion_service,
    habit_row,
    habit_service,
    period_keys,
)


__all__ = [
    "completion_service",
    "habit_row",
    "habit_service",
    "period_keys",
]
