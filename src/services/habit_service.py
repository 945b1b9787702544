"""Habit list population and lookups against the local projection."""

import logging

from src.core.api_client import HabitsAPIClient
from src.core.config import constants
from src.core.errors import HabitNotFoundError
from src.core.local_store import LocalStore
from src.core.logging import span
from src.domain.habit import Habit
from src.services.completion_service import CompletionReconciler


logger = logging.getLogger(__name__)


async def list_habits(*, store: LocalStore) -> list[Habit]:
    """Habits to show in the list (soft-deleted ones hidden)."""
    return await store.list_habits()


async def get_habit(*, store: LocalStore, habit_id: str) -> Habit:
    """Fetch a habit from the projection.

    Raises:
        HabitNotFoundError: If the habit is not in the projection
    """
    habit = await store.get_habit(habit_id)
    if habit is None:
        msg = f"Habit not found: {habit_id}"
        raise HabitNotFoundError(msg)
    return habit


async def refresh_habits(
    *,
    store: LocalStore,
    api: HabitsAPIClient,
    reconciler: CompletionReconciler,
) -> list[Habit]:
    """Populate the projection from the remote habit list.

    Pending records are flushed first. Habits that still have queued
    completions keep their local copy, and habits with a queued deletion
    stay soft-deleted, so unsynced intent is not overwritten.

    Raises:
        RemoteAPIError: If the remote list cannot be fetched
    """
    with span("habit_service.refresh_habits"):
        await reconciler.sync_pending_completions()

        remote_habits = await api.list_habits()
        pending_habit_ids = {record.habit_id for record in await reconciler.pending_completions.list_pending()}
        deleted_habit_ids = {record.habit_id for record in await reconciler.pending_deletions.list_pending()}
        local_by_id = {habit.id: habit for habit in await store.list_habits(include_deleted=True)}

        remote_ids = {habit.id for habit in remote_habits}
        merged = []
        for habit in remote_habits:
            local = local_by_id.get(habit.id)
            if habit.id in deleted_habit_ids:
                merged.append(habit.model_copy(update={"deleted": True}))
            elif local is not None and habit.id in pending_habit_ids:
                merged.append(local)
            else:
                merged.append(habit)

        # Local-only habits still carrying unsynced intent stay in the projection
        for local in local_by_id.values():
            if local.id in remote_ids:
                continue
            if local.id in pending_habit_ids or constants.OFFLINE_ID_MARKER in local.id:
                merged.append(local)

        await store.save_habits(merged)
        logger.info(
            "Refreshed habit projection",
            extra={"count": len(merged), "kept_local": len(pending_habit_ids & local_by_id.keys())},
        )
        return [habit for habit in merged if not habit.deleted]
