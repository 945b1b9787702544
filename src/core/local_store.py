"""SQLite-backed local durable store for the habit projection and pending queues.

Every record lives under its own key (habit id, or habit id + period key for
pending completions), so writes are per-key upserts instead of rewrites of a
whole serialized collection. All writes go through a single asyncio lock and
run inside one SQLite transaction each.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite

from src.core.config import Constants, settings
from src.core.errors import LocalStorageError
from src.domain.habit import Habit, PendingCompletion, PendingDeletion


logger = logging.getLogger(__name__)


SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS habits (
        id TEXT PRIMARY KEY,
        data TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS pending_completions (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        habit_id TEXT NOT NULL,
        date TEXT NOT NULL,
        completed INTEGER NOT NULL,
        frequency TEXT NOT NULL,
        completion_id TEXT,
        queued_at TEXT NOT NULL,
        UNIQUE (habit_id, date)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS pending_deletions (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        habit_id TEXT NOT NULL UNIQUE,
        queued_at TEXT NOT NULL
    )
    """,
)


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


def _row_to_pending_completion(row: aiosqlite.Row | tuple[Any, ...]) -> tuple[int, PendingCompletion]:
    seq, habit_id, date, completed, frequency, completion_id, queued_at = row
    record = PendingCompletion(
        habit_id=habit_id,
        date=date,
        completed=bool(completed),
        frequency=frequency,
        completion_id=completion_id,
        queued_at=queued_at,
    )
    return seq, record


class LocalStore:
    """Durable local projection of habits plus the pending completion and deletion queues."""

    def __init__(self, db_path: str | None = None) -> None:
        """Initialize the store without opening the database."""
        self._path = get_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._connect_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def connect(self) -> aiosqlite.Connection:
        """Open the SQLite connection and create tables if needed."""
        if self._conn is not None:
            return self._conn

        async with self._connect_lock:
            if self._conn is not None:
                return self._conn

            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                conn = await aiosqlite.connect(str(self._path))
                await conn.execute("PRAGMA journal_mode = WAL")
                for statement in SCHEMA:
                    await conn.execute(statement)
                await conn.commit()
            except (aiosqlite.Error, OSError) as e:
                logger.error("local_store_connect_failed", extra={"db_path": str(self._path), "error": str(e)})
                msg = f"Failed to open local store at {self._path}: {e}"
                raise LocalStorageError(msg) from e

            self._conn = conn
            logger.info("Opened local store", extra={"db_path": str(self._path)})
            return conn

    async def close(self) -> None:
        """Close the SQLite connection."""
        if self._conn is None:
            return
        try:
            await self._conn.close()
            logger.info("Closed local store", extra={"db_path": str(self._path)})
        except aiosqlite.Error as e:
            logger.warning("Error closing local store", extra={"error": str(e)})
        finally:
            self._conn = None

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        """Serialize a write and run it in one transaction, rolling back on any failure."""
        conn = await self.connect()
        async with self._write_lock:
            try:
                yield conn
                await conn.commit()
            except (aiosqlite.Error, ValueError, TypeError) as e:
                await conn.rollback()
                logger.error(f"{operation}_failed", extra={"error": str(e)})
                msg = f"Local store {operation} failed: {e}"
                raise LocalStorageError(msg) from e
            except BaseException:
                await conn.rollback()
                raise

    async def _fetchall(self, operation: str, query: str, params: tuple[Any, ...] = ()) -> list[Any]:
        conn = await self.connect()
        try:
            cursor = await conn.execute(query, params)
            return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            logger.error(f"{operation}_failed", extra={"error": str(e)})
            msg = f"Local store {operation} failed: {e}"
            raise LocalStorageError(msg) from e

    @staticmethod
    def _decode_habit(raw: str) -> Habit:
        try:
            return Habit.model_validate_json(raw)
        except ValueError as e:
            msg = f"Corrupt habit record in local store: {e}"
            raise LocalStorageError(msg) from e

    # Habit projection

    async def save_habits(self, habits: list[Habit]) -> None:
        """Replace the whole projection with a freshly fetched habit list."""
        async with self._transaction("save_habits") as conn:
            await conn.execute("DELETE FROM habits")
            await conn.executemany(
                "INSERT INTO habits (id, data) VALUES (?, ?)",
                [(habit.id, habit.model_dump_json()) for habit in habits],
            )
        logger.info("Saved habit projection", extra={"count": len(habits)})

    async def upsert_habit(self, habit: Habit) -> None:
        async with self._transaction("upsert_habit") as conn:
            await conn.execute(
                "INSERT INTO habits (id, data) VALUES (?, ?) ON CONFLICT(id) DO UPDATE SET data = excluded.data",
                (habit.id, habit.model_dump_json()),
            )

    async def get_habit(self, habit_id: str) -> Habit | None:
        rows = await self._fetchall("get_habit", "SELECT data FROM habits WHERE id = ?", (habit_id,))
        if not rows:
            return None
        return self._decode_habit(rows[0][0])

    async def list_habits(self, *, include_deleted: bool = False) -> list[Habit]:
        """List habits in the projection, hiding soft-deleted ones unless asked."""
        rows = await self._fetchall("list_habits", "SELECT data FROM habits ORDER BY rowid")
        habits = [self._decode_habit(row[0]) for row in rows]
        if include_deleted:
            return habits
        return [habit for habit in habits if not habit.deleted]

    async def remove_habit(self, habit_id: str) -> None:
        async with self._transaction("remove_habit") as conn:
            await conn.execute("DELETE FROM habits WHERE id = ?", (habit_id,))

    async def _flip_stored_habit(self, conn: aiosqlite.Connection, habit: Habit) -> Habit:
        """Flip completion on the stored copy of a habit, inserting it if absent."""
        cursor = await conn.execute("SELECT data FROM habits WHERE id = ?", (habit.id,))
        row = await cursor.fetchone()
        stored = self._decode_habit(row[0]) if row else habit
        flipped = stored.toggled().model_copy(update={"updated": True})
        await conn.execute(
            "INSERT INTO habits (id, data) VALUES (?, ?) ON CONFLICT(id) DO UPDATE SET data = excluded.data",
            (flipped.id, flipped.model_dump_json()),
        )
        return flipped

    # Pending completions

    @staticmethod
    async def _upsert_pending_completion(conn: aiosqlite.Connection, record: PendingCompletion) -> None:
        # A newer toggle for the same period supersedes the queued one and moves to the back
        await conn.execute(
            "DELETE FROM pending_completions WHERE habit_id = ? AND date = ?",
            (record.habit_id, record.date),
        )
        await conn.execute(
            "INSERT INTO pending_completions (habit_id, date, completed, frequency, completion_id, queued_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                record.habit_id,
                record.date,
                int(record.completed),
                str(record.frequency),
                record.completion_id,
                record.queued_at,
            ),
        )

    async def enqueue_completion(self, record: PendingCompletion) -> None:
        async with self._transaction("enqueue_completion") as conn:
            await self._upsert_pending_completion(conn, record)
        logger.info(
            "Queued pending completion",
            extra={"habit_id": record.habit_id, "date": record.date, "completed": record.completed},
        )

    async def record_offline_toggle(self, habit: Habit, record: PendingCompletion) -> Habit:
        """Flip the stored habit and queue its completion in one transaction.

        Returns:
            The habit as now stored in the projection
        """
        async with self._transaction("record_offline_toggle") as conn:
            stored = await self._flip_stored_habit(conn, habit)
            await self._upsert_pending_completion(conn, record)
        logger.info(
            "Recorded local toggle",
            extra={"habit_id": habit.id, "date": record.date, "completed": record.completed},
        )
        return stored

    async def record_committed_toggle(self, habit: Habit, date: str) -> int:
        """Store a remotely confirmed toggle and drop queued toggles it supersedes, in one transaction.

        The stored habit is only updated if it is already in the projection.

        Returns:
            Number of queued completions dropped for the habit and period
        """
        async with self._transaction("record_committed_toggle") as conn:
            await conn.execute("UPDATE habits SET data = ? WHERE id = ?", (habit.model_dump_json(), habit.id))
            cursor = await conn.execute(
                "DELETE FROM pending_completions WHERE habit_id = ? AND date = ?",
                (habit.id, date),
            )
            dropped = cursor.rowcount
        if dropped:
            logger.info("Dropped superseded pending completion", extra={"habit_id": habit.id, "date": date})
        return dropped

    async def list_pending_completions(self) -> list[tuple[int, PendingCompletion]]:
        """Queued completions with their queue sequence, in enqueue order."""
        rows = await self._fetchall(
            "list_pending_completions",
            "SELECT seq, habit_id, date, completed, frequency, completion_id, queued_at "
            "FROM pending_completions ORDER BY seq",
        )
        return [_row_to_pending_completion(row) for row in rows]

    async def remove_pending_completion(self, seq: int) -> bool:
        """Remove one queued entry by sequence; False if it was already superseded or gone."""
        async with self._transaction("remove_pending_completion") as conn:
            cursor = await conn.execute("DELETE FROM pending_completions WHERE seq = ?", (seq,))
            return cursor.rowcount > 0

    async def count_pending_completions(self) -> int:
        rows = await self._fetchall("count_pending_completions", "SELECT COUNT(*) FROM pending_completions")
        return int(rows[0][0])

    # Pending deletions

    async def record_failed_deletion(self, record: PendingDeletion) -> Habit | None:
        """Soft-delete the stored habit and queue its remote deletion in one transaction."""
        async with self._transaction("record_failed_deletion") as conn:
            cursor = await conn.execute("SELECT data FROM habits WHERE id = ?", (record.habit_id,))
            row = await cursor.fetchone()
            soft_deleted = None
            if row:
                soft_deleted = self._decode_habit(row[0]).model_copy(update={"deleted": True})
                await conn.execute(
                    "UPDATE habits SET data = ? WHERE id = ?",
                    (soft_deleted.model_dump_json(), record.habit_id),
                )
            await conn.execute(
                "INSERT INTO pending_deletions (habit_id, queued_at) VALUES (?, ?) "
                "ON CONFLICT(habit_id) DO UPDATE SET queued_at = excluded.queued_at",
                (record.habit_id, record.queued_at),
            )
        logger.info("Queued pending deletion", extra={"habit_id": record.habit_id})
        return soft_deleted

    async def list_pending_deletions(self) -> list[tuple[int, PendingDeletion]]:
        rows = await self._fetchall(
            "list_pending_deletions",
            "SELECT seq, habit_id, queued_at FROM pending_deletions ORDER BY seq",
        )
        return [(seq, PendingDeletion(habit_id=habit_id, queued_at=queued_at)) for seq, habit_id, queued_at in rows]

    async def complete_pending_deletion(self, seq: int, habit_id: str) -> None:
        """Drop a replayed deletion and the soft-deleted habit it refers to."""
        async with self._transaction("complete_pending_deletion") as conn:
            await conn.execute("DELETE FROM pending_deletions WHERE seq = ?", (seq,))
            await conn.execute("DELETE FROM habits WHERE id = ?", (habit_id,))

    async def count_pending_deletions(self) -> int:
        rows = await self._fetchall("count_pending_deletions", "SELECT COUNT(*) FROM pending_deletions")
        return int(rows[0][0])

    # Collection views

    async def export_collection(self, key: str) -> list[dict[str, Any]]:
        """Return a stored collection as the JSON-serializable array kept under a storage key."""
        if key == Constants.HABITS_STORAGE_KEY:
            return [habit.model_dump(mode="json") for habit in await self.list_habits(include_deleted=True)]
        if key == Constants.PENDING_COMPLETIONS_STORAGE_KEY:
            return [record.model_dump(mode="json") for _, record in await self.list_pending_completions()]
        if key == Constants.PENDING_DELETIONS_STORAGE_KEY:
            return [record.model_dump(mode="json") for _, record in await self.list_pending_deletions()]
        msg = f"Unknown storage key: {key}"
        raise KeyError(msg)


# Global local store instance
local_store = LocalStore()
