"""Tests for the flush run when the application starts."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.core.errors import LocalStorageError
from src.domain.habit import Habit
from src.main import sync_on_resume
from src.models.service_models import SyncReport
from tests.unit.mocks import StaticConnectivityGate


@pytest.fixture
def mock_reconciler() -> MagicMock:
    reconciler = MagicMock()
    reconciler.sync_pending_completions = AsyncMock(return_value=SyncReport())
    return reconciler


@pytest.mark.unit
class TestSyncOnResume:
    """Tests for sync_on_resume."""

    async def test_offline_startup_makes_no_remote_calls(self, reconciler, gate, fake_api):
        gate.online = False
        await reconciler.toggle_completion(Habit(id="1"))

        with (
            patch("src.main.connectivity_gate", StaticConnectivityGate(online=False)),
            patch("src.main.get_reconciler", return_value=reconciler),
        ):
            await sync_on_resume()

        assert fake_api.calls == []
        assert await reconciler.pending_completions.count() == 1

    async def test_online_startup_flushes_queue(self, reconciler, gate, fake_api):
        gate.online = False
        await reconciler.toggle_completion(Habit(id="1"))

        with (
            patch("src.main.connectivity_gate", StaticConnectivityGate(online=True)),
            patch("src.main.get_reconciler", return_value=reconciler),
        ):
            await sync_on_resume()

        assert fake_api.call_names() == ["create_completion"]
        assert await reconciler.pending_completions.count() == 0

    async def test_disabled_startup_sync_skips_probe(self, mock_reconciler, monkeypatch):
        gate = StaticConnectivityGate(online=True)
        monkeypatch.setattr("src.main.settings.sync_on_startup", False)

        with patch("src.main.connectivity_gate", gate), patch("src.main.get_reconciler", return_value=mock_reconciler):
            await sync_on_resume()

        assert gate.probes == 0
        mock_reconciler.sync_pending_completions.assert_not_called()

    async def test_storage_failure_during_startup_sync_is_logged(self, mock_reconciler):
        mock_reconciler.sync_pending_completions = AsyncMock(side_effect=LocalStorageError("database is locked"))

        with (
            patch("src.main.connectivity_gate", StaticConnectivityGate(online=True)),
            patch("src.main.get_reconciler", return_value=mock_reconciler),
        ):
            await sync_on_resume()

        mock_reconciler.sync_pending_completions.assert_awaited_once()
