# app/core/config.py
from dataclasses import dataclass
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables at runtime.

    These settings are used for:
    - DB connection
    - Arrival tracking windows
    - Facilitator profile lookup
    - Statistics cache backend and TTL
    - Logging output
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    APP_NAME: str = "Facilitator Activity"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")

    DB_URL: str = Field(
        "sqlite+aiosqlite:///./facilitator_activity.db",
        description="SQLAlchemy-compatible database URL",
    )

    SITE_TIMEZONE: str = Field(
        "UTC",
        description="Default time zone used when a facilitator has none configured.",
    )

    # --- Arrival tracking ---
    ARRIVAL_GRACE_MINUTES: int = Field(
        default=5,
        ge=0,
        description="Minutes after the scheduled start that count as a lesser late.",
    )
    ARRIVAL_PRE_WINDOW_MINUTES: int = Field(
        default=30,
        ge=0,
        description="How many minutes before the scheduled start to look for scans.",
    )
    ARRIVAL_BACKFILL_DAYS: int = Field(
        default=7,
        ge=1,
        description="How many past days the arrival backfill covers by default.",
    )

    ACCESS_SCANS_ENABLED: bool = Field(
        default=True,
        description="Whether an access-scan source is available for arrival tracking.",
    )

    FACILITATOR_PROFILE_BUNDLE: str = Field(
        default="coordinator",
        description="Profile bundle that carries facilitator capacity and hours.",
    )

    # --- Statistics cache ---
    STATS_CACHE_TTL_SECONDS: int = Field(
        default=300,
        ge=0,
        description="Lifetime of cached summaries, in seconds.",
    )
    REDIS_URL: str | None = Field(
        default=None,
        description="Redis URL for the shared stats cache. In-process cache when unset.",
    )

    # --- Logging ---
    LOG_LEVEL: str = Field(default="INFO", description="Minimum log level.")
    LOG_JSON: bool = Field(
        default=False,
        description="Render logs as JSON lines instead of console output.",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the app.
    """
    return Settings()


@dataclass(frozen=True)
class EngineConfig:
    """
    Immutable configuration handed to the statistics and arrival components.

    Engine code never reads `get_settings()` directly; callers build one of
    these and pass it into constructors.
    """

    grace_minutes: int = 5
    pre_window_minutes: int = 30
    backfill_days: int = 7
    profile_bundle: str = "coordinator"
    site_timezone: str = "UTC"
    cache_ttl_seconds: int = 300

    @classmethod
    def from_settings(cls, settings: Settings) -> "EngineConfig":
        return cls(
            grace_minutes=settings.ARRIVAL_GRACE_MINUTES,
            pre_window_minutes=settings.ARRIVAL_PRE_WINDOW_MINUTES,
            backfill_days=settings.ARRIVAL_BACKFILL_DAYS,
            profile_bundle=settings.FACILITATOR_PROFILE_BUNDLE,
            site_timezone=settings.SITE_TIMEZONE,
            cache_ttl_seconds=settings.STATS_CACHE_TTL_SECONDS,
        )
