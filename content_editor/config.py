"""Application configuration via environment variables."""

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class Settings(BaseSettings):
    """Typed application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="", case_sensitive=False)

    app_port: int = Field(8000, alias="APP_PORT")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    openrouter_base_url: str = Field("https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL")
    openrouter_api_key: str | None = Field(default=None, alias="OPENROUTER_API_KEY")
    openrouter_referer: str = Field("http://localhost:3000", alias="OPENROUTER_REFERER")
    openrouter_title: str = Field("Page Content Regeneration", alias="OPENROUTER_TITLE")
    regen_model: str = Field("openai/gpt-4o", alias="REGEN_MODEL")
    regen_timeout_seconds: float = Field(120.0, alias="REGEN_TIMEOUT_SECONDS")
    regen_min_content_chars: int = Field(50, alias="REGEN_MIN_CONTENT_CHARS")
    regen_intent_truncate_chars: int = Field(9000, alias="REGEN_INTENT_TRUNCATE_CHARS")
    fetch_user_agent: str = Field("content-editor-bot/0.1 (local dev)", alias="FETCH_USER_AGENT")
    fetch_rate_limit_seconds: float = Field(0.0, alias="FETCH_RATE_LIMIT_SECONDS")
    fetch_timeout_seconds: float = Field(20.0, alias="FETCH_TIMEOUT_SECONDS")

    @property
    def regeneration_enabled(self) -> bool:
        """Return True if an API key for the regeneration model is configured."""
        return bool(self.openrouter_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Install the root handler once; later calls only adjust the level."""
    name = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)
    logging.getLogger().setLevel(getattr(logging, name, logging.INFO))
