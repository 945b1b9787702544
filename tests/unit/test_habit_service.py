"""Tests for habit list population and lookups."""

import pytest

from src.core.errors import HabitNotFoundError
from src.domain.habit import Habit
from src.services import habit_service


@pytest.mark.unit
class TestGetHabit:
    """Tests for get_habit."""

    async def test_returns_stored_habit(self, local_store, stored_daily_habit):
        habit = await habit_service.get_habit(store=local_store, habit_id="42")

        assert habit == stored_daily_habit

    async def test_missing_habit_raises(self, local_store):
        with pytest.raises(HabitNotFoundError, match="Habit not found"):
            await habit_service.get_habit(store=local_store, habit_id="missing")


@pytest.mark.unit
class TestRefreshHabits:
    """Tests for refresh_habits."""

    async def test_populates_projection_from_remote(self, local_store, fake_api, reconciler):
        fake_api.habits = [Habit(id="1", title="Read"), Habit(id="2", title="Run")]

        habits = await habit_service.refresh_habits(store=local_store, api=fake_api, reconciler=reconciler)

        assert [habit.id for habit in habits] == ["1", "2"]
        assert [habit.id for habit in await habit_service.list_habits(store=local_store)] == ["1", "2"]

    async def test_flushes_queue_before_fetching(self, local_store, fake_api, gate, reconciler):
        gate.online = False
        await reconciler.toggle_completion(Habit(id="1"))
        fake_api.habits = [Habit(id="1", completed_today=True, streak_count=1)]

        await habit_service.refresh_habits(store=local_store, api=fake_api, reconciler=reconciler)

        assert fake_api.call_names() == ["create_completion", "list_habits"]
        assert await reconciler.pending_completions.count() == 0

    async def test_keeps_local_copy_while_completion_still_queued(self, local_store, fake_api, gate, reconciler):
        await local_store.save_habits([Habit(id="1", streak_count=3)])
        gate.online = False
        await reconciler.toggle_completion(Habit(id="1", streak_count=3))
        fake_api.failing_habit_ids = {"1"}
        fake_api.habits = [Habit(id="1", completed_today=False, streak_count=3)]

        habits = await habit_service.refresh_habits(store=local_store, api=fake_api, reconciler=reconciler)

        assert habits[0].completed_today is True
        assert habits[0].streak_count == 4

    async def test_habit_with_queued_deletion_stays_hidden(self, local_store, fake_api, reconciler):
        await local_store.save_habits([Habit(id="1"), Habit(id="2")])
        fake_api.habits = [Habit(id="1"), Habit(id="2")]
        fake_api.failing_habit_ids = {"1"}
        await reconciler.delete_habit("1")

        habits = await habit_service.refresh_habits(store=local_store, api=fake_api, reconciler=reconciler)

        assert [habit.id for habit in habits] == ["2"]
        assert (await local_store.get_habit("1")).deleted is True

    async def test_local_only_habit_with_queued_completion_survives(self, local_store, fake_api, gate, reconciler):
        gate.online = False
        await reconciler.toggle_completion(Habit(id="9", title="Journal"))
        fake_api.failing_habit_ids = {"9"}
        fake_api.habits = [Habit(id="1")]

        habits = await habit_service.refresh_habits(store=local_store, api=fake_api, reconciler=reconciler)

        assert [habit.id for habit in habits] == ["1", "9"]
        assert (await local_store.get_habit("9")).completed_today is True

    async def test_placeholder_habit_survives_refresh(self, local_store, fake_api, reconciler):
        await local_store.save_habits([Habit(id="offline-3", title="Stretch")])
        fake_api.habits = [Habit(id="1")]

        habits = await habit_service.refresh_habits(store=local_store, api=fake_api, reconciler=reconciler)

        assert [habit.id for habit in habits] == ["1", "offline-3"]

    async def test_synced_habit_missing_remotely_is_dropped(self, local_store, fake_api, reconciler):
        await local_store.save_habits([Habit(id="1"), Habit(id="2")])
        fake_api.habits = [Habit(id="1")]

        habits = await habit_service.refresh_habits(store=local_store, api=fake_api, reconciler=reconciler)

        assert [habit.id for habit in habits] == ["1"]
        assert await local_store.get_habit("2") is None
