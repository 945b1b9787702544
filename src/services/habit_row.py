"""Per-row view state for a habit list item.

The row holds what is currently displayed and forwards taps, buttons or
swipes to the reconciler; it does not care which input triggered them.
"""

import logging

from src.domain.habit import Habit
from src.models.service_models import DeletionOutcome, DeletionResult, ToggleResult
from src.services.completion_service import CompletionReconciler


logger = logging.getLogger(__name__)


class HabitRow:
    """Displayed state of one habit row."""

    def __init__(self, habit: Habit, reconciler: CompletionReconciler) -> None:
        self.habit = habit
        self.removed = False
        self._reconciler = reconciler

    @property
    def show_sync_indicator(self) -> bool:
        return self.habit.needs_sync

    async def on_complete(self) -> ToggleResult:
        result = await self._reconciler.toggle_completion_detailed(self.habit)
        self.habit = result.habit
        return result

    async def on_delete(self) -> DeletionResult:
        """Delete the habit; the row leaves the list whether removal was confirmed or queued."""
        result = await self._reconciler.delete_habit(self.habit.id)
        self.removed = True
        if result.outcome is DeletionOutcome.SOFT_DELETED:
            self.habit = self.habit.model_copy(update={"deleted": True})
        return result
