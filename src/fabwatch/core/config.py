"""Centralized application settings using pydantic-settings.

All environment variable reads are consolidated here. Import `get_settings`
from this module rather than reading os.environ directly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All env vars are prefixed with FABWATCH_ (case-insensitive).
    """

    model_config = SettingsConfigDict(
        env_prefix="FABWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8000

    # Scheduler
    scheduler_enabled: bool = True
    tick_interval_seconds: float = Field(default=2.0, gt=0)
    analysis_interval: int = Field(default=10, ge=1)
    history_capacity: int = Field(default=1000, ge=1)

    # Startup backfill (simulated history before live ticking)
    backfill_count: int = Field(default=480, ge=0)
    backfill_spacing_seconds: float = Field(default=360.0, gt=0)

    # Alerts
    alert_cooldown_seconds: float = Field(default=300.0, ge=0)
    current_yield: float = 95.0

    # Query / push surfaces
    capability_window: int = Field(default=50, ge=1)
    snapshot_readings: int = Field(default=100, ge=0)
    snapshot_alerts: int = Field(default=50, ge=0)
    subscriber_queue_size: int = Field(default=256, ge=1)

    # Simulator
    simulator_seed: int | None = None
    simulator_noise_level: float = Field(default=0.3, ge=0)

    # Logging
    log_format: Literal["console", "json"] = "console"
    log_level: str = "INFO"

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton."""
    return Settings()
