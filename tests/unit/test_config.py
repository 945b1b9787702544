"""Tests for configuration validation."""

from src.core.config import Constants, Settings


def test_probe_url_defaults_to_health_endpoint() -> None:
    settings = Settings(api_base_url="https://habits.example.test/api/", connectivity_probe_url=None)

    assert settings.probe_url == "https://habits.example.test/api/health"


def test_probe_url_override() -> None:
    settings = Settings(connectivity_probe_url="https://status.example.test/ping")

    assert settings.probe_url == "https://status.example.test/ping"


def test_settings_read_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "https://env.example.test")
    monkeypatch.setenv("SYNC_ON_STARTUP", "false")

    settings = Settings()

    assert settings.api_base_url == "https://env.example.test"
    assert settings.sync_on_startup is False


def test_storage_keys() -> None:
    assert Constants.HABITS_STORAGE_KEY == "habits"
    assert Constants.PENDING_COMPLETIONS_STORAGE_KEY == "pending_completions"