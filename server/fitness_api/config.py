"""Application configuration loaded from environment variables."""
import os
import logging
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_prefix="FITNESS_")

    # Database paths
    data_path: str = os.getenv("DATA_PATH", os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
    database_file: str = "fitness_metrics.db"

    @property
    def database_path(self) -> str:
        if self.database_file == ":memory:" or os.path.isabs(self.database_file):
            return self.database_file
        return os.path.join(self.data_path, self.database_file)

    # API configuration
    api_host: str = "127.0.0.1"
    api_port: int = 5000

    # CORS
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Google OAuth / Fit
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_token_url: str = "https://oauth2.googleapis.com/token"
    google_fit_base_url: str = "https://www.googleapis.com/fitness/v1"
    upstream_timeout: float = 30.0
    token_cache_ttl_seconds: int = 3300

    # Insight generation (OpenAI-compatible chat completions)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    insight_model: str = "gpt-4o-mini"
    insight_timeout: float = 60.0

    # Sync
    sync_default_days: int = 30
    scheduler_interval_hours: int = 24


REQUIRED_SETTINGS = {
    "google_client_id": "Google OAuth client id",
    "google_client_secret": "Google OAuth client secret",
}

RECOMMENDED_SETTINGS = {
    "openai_api_key": "API key for AI insights",
}


def validate_environment(settings: Settings) -> None:
    """
    Check that required settings are present.

    Raises ValueError listing every missing required setting. Missing
    recommended settings are only logged.
    """
    missing = [name for name in REQUIRED_SETTINGS if not getattr(settings, name)]
    if missing:
        details = "\n".join(
            f"- FITNESS_{name.upper()}: {REQUIRED_SETTINGS[name]}" for name in missing
        )
        raise ValueError(
            f"Missing required environment variables:\n{details}\n"
            "Add them to your .env file or hosting provider before starting the server."
        )

    for name, description in RECOMMENDED_SETTINGS.items():
        if not getattr(settings, name):
            log.warning(f"[CONFIG] FITNESS_{name.upper()} not set. {description}")


@lru_cache
def get_settings() -> Settings:
    return Settings()
