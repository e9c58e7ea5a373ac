"""Configuration management for JourneyNav."""

import logging
from datetime import timedelta
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from journeynav.core.exceptions import ConfigurationError


class Environment(str, Enum):
    """Application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    TEXT = "text"


class EngineConfig(BaseModel):
    """Journey stitching configuration."""

    active_window_minutes: float = Field(
        default=30.0,
        gt=0.0,
        description="Inactivity gap after which a journey is closed",
    )
    anonymous_identity: str = Field(
        default="anonymous",
        min_length=1,
        description="Identity assigned to touchpoints without a user id",
    )

    @property
    def active_window(self) -> timedelta:
        return timedelta(minutes=self.active_window_minutes)


class SchedulerConfig(BaseModel):
    """Periodic analysis scheduling."""

    enabled: bool = True
    dropoff_interval_seconds: float = Field(
        default=10 * 60, gt=0.0, description="Drop-off analysis interval"
    )
    conversion_path_interval_seconds: float = Field(
        default=60 * 60, gt=0.0, description="Conversion path mining interval"
    )
    optimization_interval_seconds: float = Field(
        default=4 * 60 * 60, gt=0.0, description="Optimization generation interval"
    )


class AnalyzerThresholds(BaseModel):
    """Configurable thresholds for analyzers."""

    min_dropoff_rate: float = Field(default=0.3, ge=0.0, le=1.0)
    critical_dropoff_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    top_paths_for_optimization: int = Field(default=5, ge=1)
    friction_threshold_ms: float = Field(default=60_000, ge=0.0)
    low_value_threshold: float = Field(default=30, ge=0.0, le=100.0)


class HealthConfig(BaseModel):
    """Health check thresholds."""

    analysis_overdue_minutes: float = Field(default=30.0, gt=0.0)

    @property
    def analysis_overdue(self) -> timedelta:
        return timedelta(minutes=self.analysis_overdue_minutes)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: LogFormat = LogFormat.TEXT
    log_file: Path | None = None

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """Application settings.

    Environment Variables:
        Core:
            JN_ENVIRONMENT=development
            JN_DEBUG=false

        Nested sections use a double underscore:
            JN_ENGINE__ACTIVE_WINDOW_MINUTES=30
            JN_SCHEDULER__ENABLED=true
            JN_SCHEDULER__DROPOFF_INTERVAL_SECONDS=600
            JN_THRESHOLDS__MIN_DROPOFF_RATE=0.3
            JN_HEALTH__ANALYSIS_OVERDUE_MINUTES=30
            JN_LOGGING__LEVEL=INFO
            JN_LOGGING__FORMAT=json
    """

    model_config = SettingsConfigDict(
        env_prefix="JN_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    engine: EngineConfig = Field(default_factory=EngineConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    thresholds: AnalyzerThresholds = Field(default_factory=AnalyzerThresholds)
    health: HealthConfig = Field(default_factory=HealthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: Path | None = None, **overrides: Any) -> "Settings":
        """Load settings from the environment, optionally reading a .env file first."""
        if env_file:
            load_dotenv(env_file)
        else:
            # Try to load .env from project root
            root_dir = Path(__file__).parent.parent.parent.parent
            env_path = root_dir / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        return cls(**overrides)

    def validate_required_settings(self) -> None:
        """Check cross-field consistency that single fields cannot express."""
        errors = []

        if self.thresholds.critical_dropoff_rate < self.thresholds.min_dropoff_rate:
            errors.append(
                "critical_dropoff_rate must not be below min_dropoff_rate"
            )

        overdue_seconds = self.health.analysis_overdue_minutes * 60
        if (
            self.scheduler.enabled
            and self.scheduler.dropoff_interval_seconds > overdue_seconds
        ):
            errors.append(
                "dropoff_interval_seconds exceeds the analysis overdue threshold; "
                "health checks would always report degraded"
            )

        if errors:
            raise ConfigurationError(f"Configuration errors: {'; '.join(errors)}")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    try:
        settings = Settings.from_env()
        settings.validate_required_settings()
        return settings
    except (ValidationError, ConfigurationError) as e:
        logging.error(f"Configuration error: {e}")
        raise
