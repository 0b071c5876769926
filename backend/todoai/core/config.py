"""Application configuration managed via environment variables."""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "TodoAI Backend"
    # Verbose error details are only returned when debug is on.
    debug: bool = False
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://todoai@localhost:5432/todoai"
    cors_origins: List[str] = ["http://localhost:3000"]

    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    # Zone used to read "today", time slots and weekdays from due timestamps.
    timezone: str = "Asia/Seoul"

    jwt_secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    opik_enabled: bool = False
    opik_api_key: str | None = None
    opik_project: str = "todoai"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()


settings = get_settings()
