import logging
import sys
from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App config
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]
    DEBUG: bool = False

    # Storage: "redis" for Upstash, "memory" for a process-local store
    STORAGE_BACKEND: Literal["memory", "redis"] = "memory"

    # Upstash Redis
    UPSTASH_REDIS_REST_URL: str | None = None
    UPSTASH_REDIS_REST_TOKEN: str | None = None

    # Notification relay
    NOTIFY_URL: str | None = None
    NOTIFY_TIMEOUT_SECONDS: float = 3.0

    # Consistency windows
    OPTIMISTIC_GRACE_SECONDS: float = 10.0
    PENDING_WRITE_TTL_SECONDS: float = 60.0

    # Periodic AI sweep, 0 disables it
    AI_SWEEP_INTERVAL_SECONDS: int = 30

    @field_validator("UPSTASH_REDIS_REST_URL")
    @classmethod
    def validate_redis_url(cls, v: str | None) -> str | None:
        if v is not None and not v.startswith("https://"):
            raise ValueError("UPSTASH_REDIS_REST_URL must be a valid HTTPS URL")
        return v

    @field_validator("UPSTASH_REDIS_REST_TOKEN")
    @classmethod
    def validate_redis_token(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("UPSTASH_REDIS_REST_TOKEN cannot be empty")
        return v

    @field_validator("NOTIFY_URL")
    @classmethod
    def strip_notify_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.rstrip("/")

    @model_validator(mode="after")
    def require_redis_credentials(self) -> "Settings":
        if self.STORAGE_BACKEND == "redis" and not (
            self.UPSTASH_REDIS_REST_URL and self.UPSTASH_REDIS_REST_TOKEN
        ):
            raise ValueError("Redis storage requires UPSTASH_REDIS_REST_URL and TOKEN")
        return self


def configure_logging(debug: bool = False) -> None:
    """Configure logging for the application."""
    log_level = logging.DEBUG if debug else logging.INFO
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    configure_logging(settings.DEBUG)
    logger.info("Settings loaded successfully")
    logger.debug("Storage backend: %s", settings.STORAGE_BACKEND)
    logger.debug("Notify URL: %s", settings.NOTIFY_URL)
    return settings
