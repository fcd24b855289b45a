"""Application settings using pydantic-settings.

Settings are loaded from environment variables (or a .env file) with
defaults suitable for local runs. Command line flags override them.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from groupsync.application.concurrency import default_worker_count
from groupsync.domain.services import ResolutionPolicy

_LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


class SyncSettings(BaseSettings):
    """Group sync settings.

    Environment variables:
        TEAMLINK_MAX_WORKERS: Concurrent group syncs (default: CPU count)
        TEAMLINK_RESOLUTION_POLICY: strict or best_effort (default: strict)
        TEAMLINK_CASE_INSENSITIVE_IDS: Compare target member IDs ignoring
            case (default: true)
        TEAMLINK_DRY_RUN: Reconcile without writing (default: false)
        TEAMLINK_LOG_LEVEL: Minimum log level (default: info)
    """

    model_config = SettingsConfigDict(
        env_prefix="TEAMLINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_workers: int = Field(
        default_factory=lambda: min(default_worker_count(), 256),
        description="Number of groups synced concurrently",
        ge=1,
        le=256,
    )
    resolution_policy: ResolutionPolicy = Field(
        default=ResolutionPolicy.STRICT,
        description="Reaction to unreadable subgroups during resolution",
    )
    case_insensitive_ids: bool = Field(
        default=True,
        description="Compare target member IDs ignoring case",
    )
    dry_run: bool = Field(
        default=False,
        description="Reconcile and report without writing to the target",
    )
    log_level: str = Field(default="info", description="Minimum log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate the log level name."""
        normalized = value.lower()
        if normalized not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {value}"
            )
        return normalized


@lru_cache
def get_settings() -> SyncSettings:
    """Get cached sync settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return SyncSettings()
