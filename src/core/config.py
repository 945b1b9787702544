"""Configuration management for habit-sync."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote Habits API Configuration
    api_base_url: str = Field(default="http://127.0.0.1:8000/api", description="Remote habits API base URL")
    api_token: str | None = Field(default=None, description="Bearer token for the remote habits API")

    # Connectivity probe
    connectivity_probe_url: str | None = Field(
        default=None, description="URL probed to decide online/offline (defaults to {api_base_url}/health)"
    )

    # Local durable store
    sqlite_db_path: str = Field(default="./data/habit_sync.db", description="SQLite file backing the local store")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Sync behaviour
    sync_on_startup: bool = Field(default=True, description="Flush pending records when the application starts")

    @property
    def probe_url(self) -> str:
        """Resolved connectivity probe URL."""
        return self.connectivity_probe_url or f"{self.api_base_url.rstrip('/')}/health"


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: int = 30
    CONNECTIVITY_PROBE_TIMEOUT_SECONDS: float = 3.0

    # Local storage keys
    HABITS_STORAGE_KEY: str = "habits"
    PENDING_COMPLETIONS_STORAGE_KEY: str = "pending_completions"
    PENDING_DELETIONS_STORAGE_KEY: str = "pending_deletions"

    # Placeholder marker for habits created before their first sync
    OFFLINE_ID_MARKER: str = "offline"

    # User-facing notices
    OFFLINE_NOTICE_TITLE: str = "Offline Mode"
    OFFLINE_NOTICE_MESSAGE: str = "Changes will sync when online."
    STORAGE_ERROR_NOTICE_TITLE: str = "Could not save change"
    STORAGE_ERROR_NOTICE_MESSAGE: str = "Your change was not saved. Please try again."


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
