"""Completion reconciliation: optimistic toggles with a local queue as durability backstop.

A toggle always shows its new state immediately. When the remote write cannot
be confirmed (offline, or the call fails) the toggle is written to the local
projection and the pending queue in one transaction, so it is replayed later by
sync_pending_completions. Remote calls report failure through RemoteResult;
compensation of the optimistic state happens on that failure variant.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from src.core.api_client import HabitsAPIClient
from src.core.config import constants
from src.core.connectivity import ConnectivityGate
from src.core.errors import LocalStorageError
from src.core.local_store import LocalStore
from src.core.logging import log_with_habit_context, span
from src.domain.habit import Habit, PendingCompletion, PendingDeletion
from src.models.service_models import (
    DeletionOutcome,
    DeletionResult,
    RemoteResult,
    SyncReport,
    ToggleOutcome,
    ToggleResult,
)
from src.services.notification_service import NoticeChannel
from src.services.pending_store import PendingCompletionStore, PendingDeletionStore
from src.services.period_keys import derive_period_key


logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CompletionReconciler:
    """Decides the write path for completion toggles and habit deletions."""

    def __init__(
        self,
        *,
        store: LocalStore,
        api: HabitsAPIClient,
        gate: ConnectivityGate,
        notices: NoticeChannel,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._store = store
        self._api = api
        self._gate = gate
        self._notices = notices
        self._clock = clock
        self.pending_completions = PendingCompletionStore(store)
        self.pending_deletions = PendingDeletionStore(store)
        self._sync_lock = asyncio.Lock()

    async def _is_online(self) -> bool:
        try:
            return await self._gate.is_online()
        except Exception as e:
            logger.warning("Connectivity check raised, treating as offline: %s", e)
            return False

    async def _persist_locally(self, habit: Habit, record: PendingCompletion) -> Habit:
        """Flip the stored habit and queue the toggle; completes even if the caller is cancelled."""
        try:
            return await asyncio.shield(self._store.record_offline_toggle(habit, record))
        except LocalStorageError:
            self._notices.error(constants.STORAGE_ERROR_NOTICE_TITLE, constants.STORAGE_ERROR_NOTICE_MESSAGE)
            raise

    async def _write_remote(self, habit: Habit, record: PendingCompletion) -> RemoteResult:
        if habit.completed_today and habit.todays_completion_id:
            return await self._api.delete_completion(habit.todays_completion_id)
        return await self._api.create_completion(record)

    async def toggle_completion_detailed(self, habit: Habit) -> ToggleResult:
        """Toggle a habit's completion for the current period.

        Returns:
            ToggleResult with the habit state the row should show and how the toggle ended

        Raises:
            LocalStorageError: If the toggle had to be stored locally and the store failed
        """
        with span("completion_service.toggle_completion"):
            period_key = derive_period_key(habit.frequency, self._clock())
            record = PendingCompletion(
                habit_id=habit.id,
                date=period_key,
                completed=not habit.completed_today,
                frequency=habit.frequency,
                completion_id=habit.todays_completion_id,
            )
            optimistic = habit.toggled()

            if not await self._is_online():
                await self._persist_locally(habit, record)
                self._notices.info(constants.OFFLINE_NOTICE_TITLE, constants.OFFLINE_NOTICE_MESSAGE)
                log_with_habit_context(
                    logger, "info", "Toggle queued while offline", habit_id=habit.id, period_key=period_key
                )
                return ToggleResult(
                    habit=optimistic.model_copy(update={"updated": True}),
                    outcome=ToggleOutcome.QUEUED,
                    period_key=period_key,
                )

            result = await self._write_remote(habit, record)

            if not result.success:
                await self._persist_locally(habit, record)
                compensated = optimistic.toggled()
                log_with_habit_context(
                    logger,
                    "warning",
                    "Remote write failed, toggle queued and rolled back",
                    habit_id=habit.id,
                    period_key=period_key,
                    error=result.error,
                )
                return ToggleResult(
                    habit=compensated,
                    outcome=ToggleOutcome.ROLLED_BACK,
                    period_key=period_key,
                    error=result.error,
                )

            committed = optimistic.model_copy(
                update={"todays_completion_id": result.completion_id if record.completed else None, "updated": False}
            )
            if await self._record_committed(committed, period_key):
                try:
                    await self.sync_pending_completions()
                except LocalStorageError as e:
                    logger.error("Opportunistic sync after toggle failed: %s", e)

            log_with_habit_context(logger, "info", "Toggle committed", habit_id=habit.id, period_key=period_key)
            return ToggleResult(habit=committed, outcome=ToggleOutcome.COMMITTED, period_key=period_key)

    async def toggle_completion(self, habit: Habit) -> Habit:
        """Toggle a habit's completion and return the habit the row should now show."""
        result = await self.toggle_completion_detailed(habit)
        return result.habit

    async def _record_committed(self, habit: Habit, period_key: str) -> bool:
        """Store the confirmed state and drop older queued toggles for the same period.

        Returns False if the local store failed; the remote write stands either way.
        """
        try:
            await self._store.record_committed_toggle(habit, period_key)
        except LocalStorageError as e:
            logger.warning("Failed to record committed toggle for habit %s: %s", habit.id, e)
            return False
        return True

    async def delete_habit(self, habit_id: str) -> DeletionResult:
        """Delete a habit remotely, soft-deleting and queueing it locally if that fails."""
        with span("completion_service.delete_habit"):
            result = await self._api.delete_habit(habit_id)

            if result.success:
                await self._store.remove_habit(habit_id)
                log_with_habit_context(logger, "info", "Habit deleted", habit_id=habit_id)
                return DeletionResult(habit_id=habit_id, outcome=DeletionOutcome.REMOVED)

            try:
                await asyncio.shield(self._store.record_failed_deletion(PendingDeletion(habit_id=habit_id)))
            except LocalStorageError:
                self._notices.error(constants.STORAGE_ERROR_NOTICE_TITLE, constants.STORAGE_ERROR_NOTICE_MESSAGE)
                raise

            log_with_habit_context(
                logger, "warning", "Remote delete failed, habit soft-deleted", habit_id=habit_id, error=result.error
            )
            return DeletionResult(habit_id=habit_id, outcome=DeletionOutcome.SOFT_DELETED, error=result.error)

    async def _replay_completion(self, record: PendingCompletion) -> RemoteResult:
        if not record.completed and record.completion_id:
            return await self._api.delete_completion(record.completion_id)
        return await self._api.create_completion(record)

    async def _replay_deletion(self, record: PendingDeletion) -> RemoteResult:
        return await self._api.delete_habit(record.habit_id)

    async def sync_pending_completions(self) -> SyncReport:
        """Replay queued toggles and deletions; failed records stay queued for the next pass.

        Passes run one at a time, so a record is never replayed by two overlapping passes.
        """
        async with self._sync_lock:
            with span("completion_service.sync_pending_completions"):
                completions = await self.pending_completions.flush_all(self._replay_completion)
                deletions = await self.pending_deletions.flush_all(self._replay_deletion)
                remaining = await self.pending_completions.count() + await self.pending_deletions.count()

                if completions.attempted or deletions.attempted:
                    logger.info(
                        "Sync pass finished",
                        extra={
                            "completions_flushed": completions.flushed,
                            "completions_failed": completions.failed,
                            "deletions_flushed": deletions.flushed,
                            "deletions_failed": deletions.failed,
                            "remaining": remaining,
                        },
                    )
                return SyncReport(completions=completions, deletions=deletions, remaining=remaining)
