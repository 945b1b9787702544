"""habit-sync - offline-tolerant habit completion sync for the habit list."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.core.config import settings
from src.core.connectivity import connectivity_gate
from src.core.local_store import local_store
from src.core.logging import configure_logfire, instrument_fastapi, instrument_httpx
from src.interface.habits_router import get_reconciler, router as habits_router


logger = logging.getLogger(__name__)


async def sync_on_resume() -> None:
    """Flush anything queued while the app was closed or offline, if the remote is reachable."""
    if not settings.sync_on_startup:
        logger.info("startup_sync", extra={"status": "disabled"})
        return

    if not await connectivity_gate.is_online():
        logger.info("startup_sync", extra={"status": "offline"})
        return

    try:
        report = await get_reconciler().sync_pending_completions()
    except Exception as e:
        logger.error("startup_sync", extra={"status": "failed", "error": str(e)})
        return

    logger.info(
        "startup_sync",
        extra={
            "status": "ok",
            "completions_flushed": report.completions.flushed,
            "deletions_flushed": report.deletions.flushed,
            "remaining": report.remaining,
        },
    )


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()
    instrument_httpx()

    await local_store.connect()
    logger.info("Local store ready", extra={"db_path": str(local_store.path)})

    # Startup does not wait for the flush
    startup_sync = asyncio.create_task(sync_on_resume())
    yield
    # Shutdown
    startup_sync.cancel()
    with suppress(asyncio.CancelledError):
        await startup_sync
    await local_store.close()


app = FastAPI(
    title="habit-sync",
    description="Offline-tolerant habit completion sync",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(habits_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)


@app.get("/health/sync")
async def sync_health_check() -> JSONResponse:
    """Report how many records are still waiting to be replayed."""
    reconciler = get_reconciler()
    pending_completions = await reconciler.pending_completions.count()
    pending_deletions = await reconciler.pending_deletions.count()
    overall_status = "healthy" if pending_completions + pending_deletions == 0 else "pending"

    return JSONResponse(
        content={
            "status": overall_status,
            "pending_completions": pending_completions,
            "pending_deletions": pending_deletions,
        },
        status_code=200,
    )
