"""Runtime configuration, read from environment variables (prefix MATCH_SERVER_) or a local .env file."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MATCH_SERVER_", env_file=".env", extra="ignore"
    )

    database_url: str = "sqlite:///./matches.db"
    host: str = "0.0.0.0"
    port: int = 3001

    log_level: str = "INFO"
    log_json: bool = False

    # Number of accepted moves after which a match is ended (no rules engine behind the move gate)
    forced_end_move_count: int = Field(default=10, ge=1)

    # 1 means a failed store write is logged and dropped
    persist_max_attempts: int = Field(default=1, ge=1)
    persist_retry_delay: float = Field(default=0.5, ge=0)


@lru_cache
def get_settings() -> Settings:
    return Settings()
