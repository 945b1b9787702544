"""Pending queues for completion toggles and habit deletions made while unsynced."""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from src.core.errors import LocalStorageError
from src.core.local_store import LocalStore
from src.core.logging import span
from src.domain.habit import PendingCompletion, PendingDeletion
from src.models.service_models import FlushReport, RemoteResult


logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", PendingCompletion, PendingDeletion)


CompletionApplier = Callable[[PendingCompletion], Awaitable[RemoteResult]]
DeletionApplier = Callable[[PendingDeletion], Awaitable[RemoteResult]]


async def _apply_safely(apply: Callable[[RecordT], Awaitable[RemoteResult]], record: RecordT) -> RemoteResult:
    """Run one replay, turning an unexpected exception into a failed result."""
    try:
        return await apply(record)
    except LocalStorageError:
        raise
    except Exception as e:
        logger.exception("Replay of pending record raised")
        return RemoteResult(success=False, error=str(e))


class PendingCompletionStore:
    """Durable queue of completion toggles keyed by habit and period.

    This store is the only record of a toggle made while offline, so
    storage errors propagate instead of being swallowed.
    """

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    async def enqueue(self, record: PendingCompletion) -> None:
        """Queue a toggle, superseding any queued toggle for the same habit and period."""
        await self._store.enqueue_completion(record)

    async def list_pending(self) -> list[PendingCompletion]:
        return [record for _, record in await self._store.list_pending_completions()]

    async def count(self) -> int:
        return await self._store.count_pending_completions()

    async def flush_all(self, apply: CompletionApplier) -> FlushReport:
        """Replay every queued toggle in enqueue order.

        Successful entries are removed by queue sequence, so a toggle
        re-queued for the same period while the flush runs is kept. Failed
        entries stay queued unchanged for the next flush.
        """
        with span("pending_store.flush_completions"):
            report = FlushReport()
            for seq, record in await self._store.list_pending_completions():
                report.attempted += 1
                result = await _apply_safely(apply, record)
                if result.success:
                    await self._store.remove_pending_completion(seq)
                    report.flushed += 1
                else:
                    report.failed += 1
                    logger.info(
                        "Pending completion left queued",
                        extra={"habit_id": record.habit_id, "date": record.date, "error": result.error},
                    )
            return report


class PendingDeletionStore:
    """Durable queue of habit deletions that could not be confirmed remotely."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    async def list_pending(self) -> list[PendingDeletion]:
        return [record for _, record in await self._store.list_pending_deletions()]

    async def count(self) -> int:
        return await self._store.count_pending_deletions()

    async def flush_all(self, apply: DeletionApplier) -> FlushReport:
        """Replay queued deletions; confirmed ones also drop the soft-deleted habit."""
        with span("pending_store.flush_deletions"):
            report = FlushReport()
            for seq, record in await self._store.list_pending_deletions():
                report.attempted += 1
                result = await _apply_safely(apply, record)
                if result.success:
                    await self._store.complete_pending_deletion(seq, record.habit_id)
                    report.flushed += 1
                else:
                    report.failed += 1
            return report
