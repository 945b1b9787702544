"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import logfire
import pytest

from src.core.local_store import LocalStore
from src.domain.habit import Frequency, Habit
from src.services.completion_service import CompletionReconciler
from src.services.notification_service import Notice, NoticeChannel
from tests.unit.mocks import FakeHabitsAPI, StaticConnectivityGate


FIXED_NOW = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)


@pytest.fixture
async def local_store(tmp_path) -> AsyncGenerator[LocalStore]:
    """Local store backed by a throwaway SQLite file."""
    store = LocalStore(db_path=str(tmp_path / "habit_sync.db"))
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
def fake_api() -> FakeHabitsAPI:
    return FakeHabitsAPI()


@pytest.fixture
def gate() -> StaticConnectivityGate:
    return StaticConnectivityGate(online=True)


@pytest.fixture
def notices() -> NoticeChannel:
    return NoticeChannel()


@pytest.fixture
def published_notices(notices: NoticeChannel) -> list[Notice]:
    """Notices published on the channel during the test."""
    received: list[Notice] = []
    notices.subscribe(received.append)
    return received


@pytest.fixture
def reconciler(local_store, fake_api, gate, notices) -> CompletionReconciler:
    return CompletionReconciler(
        store=local_store,
        api=fake_api,
        gate=gate,
        notices=notices,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def daily_habit() -> Habit:
    """Daily habit not yet completed, with a streak of 3."""
    return Habit(id="42", title="Drink water", frequency=Frequency.DAILY, completed_today=False, streak_count=3)


@pytest.fixture
async def stored_daily_habit(local_store, daily_habit) -> Habit:
    await local_store.save_habits([daily_habit])
    return daily_habit


@pytest.fixture(scope="session", autouse=True)
def quiet_logfire() -> None:
    """Configure logfire locally so spans never try to export during tests."""
    logfire.configure(send_to_logfire=False, console=False)
