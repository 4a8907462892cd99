"""Application settings.

All values can be overridden through environment variables prefixed with
`ZONEGRID_` (or a local `.env` file), e.g. `ZONEGRID_DATABASE_URL`.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ZONEGRID_", env_file=".env", extra="ignore")

    # Server / storage
    database_url: str = "sqlite:///./zonegrid.db"
    cors_origins: str = "*"

    # Client side (drag & drop coordinator)
    api_base_url: str = "http://localhost:8000"
    drag_throttle_ms: int = 16
    operation_lock_ms: int = 500
    drop_watchdog_ms: int = 10_000

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, v: str) -> str:
        if v not in ("text", "json"):
            raise ValueError("log_format must be 'text' or 'json'")
        return v

    @property
    def cors_origin_list(self) -> list:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def drag_throttle_seconds(self) -> float:
        return self.drag_throttle_ms / 1000

    @property
    def operation_lock_seconds(self) -> float:
        return self.operation_lock_ms / 1000

    @property
    def drop_watchdog_seconds(self) -> float:
        return self.drop_watchdog_ms / 1000


@lru_cache
def get_settings() -> Settings:
    return Settings()
