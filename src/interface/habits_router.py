"""HTTP surface the habit list UI talks to."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from src.core.api_client import HabitsAPIClient, api_client
from src.core.connectivity import connectivity_gate
from src.core.errors import HabitNotFoundError, LocalStorageError, RemoteAPIError
from src.core.local_store import LocalStore, local_store
from src.domain.habit import Habit, PendingCompletion, PendingDeletion
from src.models.service_models import DeletionResult, SyncReport, ToggleResult
from src.services import habit_service
from src.services.completion_service import CompletionReconciler
from src.services.habit_row import HabitRow
from src.services.notification_service import notice_channel


logger = logging.getLogger(__name__)

router = APIRouter(tags=["habits"])

_reconciler: CompletionReconciler | None = None


def get_store() -> LocalStore:
    return local_store


def get_api() -> HabitsAPIClient:
    return api_client


def get_reconciler() -> CompletionReconciler:
    """Shared reconciler wired to the global store, API client and connectivity gate."""
    global _reconciler  # noqa: PLW0603
    if _reconciler is None:
        _reconciler = CompletionReconciler(
            store=local_store,
            api=api_client,
            gate=connectivity_gate,
            notices=notice_channel,
        )
    return _reconciler


StoreDep = Annotated[LocalStore, Depends(get_store)]
ApiDep = Annotated[HabitsAPIClient, Depends(get_api)]
ReconcilerDep = Annotated[CompletionReconciler, Depends(get_reconciler)]


class PendingQueues(BaseModel):
    """Records still waiting to be replayed."""

    completions: list[PendingCompletion]
    deletions: list[PendingDeletion]


def _storage_failure(e: LocalStorageError) -> HTTPException:
    logger.error("local_storage_failure", extra={"error": str(e)})
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/habits")
async def list_habits(store: StoreDep) -> list[Habit]:
    """Habits currently in the local projection."""
    try:
        return await habit_service.list_habits(store=store)
    except LocalStorageError as e:
        raise _storage_failure(e) from e


@router.post("/habits/refresh")
async def refresh_habits(store: StoreDep, api: ApiDep, reconciler: ReconcilerDep) -> list[Habit]:
    """Repopulate the projection from the remote API."""
    try:
        return await habit_service.refresh_habits(store=store, api=api, reconciler=reconciler)
    except RemoteAPIError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e
    except LocalStorageError as e:
        raise _storage_failure(e) from e


@router.post("/habits/{habit_id}/toggle")
async def toggle_habit(habit_id: str, store: StoreDep, reconciler: ReconcilerDep) -> ToggleResult:
    """Toggle today's completion for a habit."""
    try:
        row = HabitRow(await habit_service.get_habit(store=store, habit_id=habit_id), reconciler)
        return await row.on_complete()
    except HabitNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Habit not found: {habit_id}") from e
    except LocalStorageError as e:
        raise _storage_failure(e) from e


@router.delete("/habits/{habit_id}")
async def delete_habit(habit_id: str, reconciler: ReconcilerDep) -> DeletionResult:
    """Delete a habit, soft-deleting it locally if the remote call fails."""
    try:
        return await reconciler.delete_habit(habit_id)
    except LocalStorageError as e:
        raise _storage_failure(e) from e


@router.post("/sync")
async def sync_pending(reconciler: ReconcilerDep) -> SyncReport:
    """Replay everything still queued."""
    try:
        return await reconciler.sync_pending_completions()
    except LocalStorageError as e:
        raise _storage_failure(e) from e


@router.get("/sync/pending")
async def list_pending(reconciler: ReconcilerDep) -> PendingQueues:
    try:
        return PendingQueues(
            completions=await reconciler.pending_completions.list_pending(),
            deletions=await reconciler.pending_deletions.list_pending(),
        )
    except LocalStorageError as e:
        raise _storage_failure(e) from e
