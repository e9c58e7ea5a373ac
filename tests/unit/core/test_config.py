"""Tests for configuration management."""

import os
from datetime import timedelta

import pytest
from pydantic import ValidationError

from journeynav.core.config import (
    Environment,
    LogFormat,
    Settings,
    get_settings,
)
from journeynav.core.exceptions import ConfigurationError


@pytest.fixture
def clean_env(monkeypatch):
    """Make sure no JN_ variables leak in from the outer environment."""
    for key in list(os.environ):
        if key.startswith("JN_"):
            monkeypatch.delenv(key)
    return monkeypatch


class TestSettingsDefaults:
    """Test default settings."""

    def test_defaults(self, clean_env) -> None:
        """Test default values for every section."""
        settings = Settings()

        assert settings.environment == Environment.DEVELOPMENT
        assert settings.debug is False
        assert settings.engine.active_window == timedelta(minutes=30)
        assert settings.engine.anonymous_identity == "anonymous"
        assert settings.scheduler.enabled is True
        assert settings.scheduler.dropoff_interval_seconds == 600
        assert settings.scheduler.conversion_path_interval_seconds == 3600
        assert settings.scheduler.optimization_interval_seconds == 14400
        assert settings.thresholds.min_dropoff_rate == 0.3
        assert settings.thresholds.critical_dropoff_rate == 0.5
        assert settings.health.analysis_overdue == timedelta(minutes=30)
        assert settings.logging.level == "INFO"
        assert settings.logging.format == LogFormat.TEXT


class TestSettingsFromEnvironment:
    """Test loading settings from environment variables."""

    def test_nested_overrides(self, clean_env) -> None:
        """Test double-underscore nested variables."""
        clean_env.setenv("JN_ENVIRONMENT", "production")
        clean_env.setenv("JN_ENGINE__ACTIVE_WINDOW_MINUTES", "45")
        clean_env.setenv("JN_SCHEDULER__ENABLED", "false")
        clean_env.setenv("JN_LOGGING__FORMAT", "json")

        settings = Settings()

        assert settings.environment == Environment.PRODUCTION
        assert settings.engine.active_window == timedelta(minutes=45)
        assert settings.scheduler.enabled is False
        assert settings.logging.format == LogFormat.JSON

    def test_log_level_normalized(self, clean_env) -> None:
        """Test that log levels are upper-cased."""
        clean_env.setenv("JN_LOGGING__LEVEL", "debug")
        assert Settings().logging.level == "DEBUG"

    def test_invalid_log_level(self, clean_env) -> None:
        """Test that unknown log levels are rejected."""
        clean_env.setenv("JN_LOGGING__LEVEL", "chatty")
        with pytest.raises(ValidationError):
            Settings()

    def test_invalid_window(self, clean_env) -> None:
        """Test that a non-positive window is rejected."""
        clean_env.setenv("JN_ENGINE__ACTIVE_WINDOW_MINUTES", "0")
        with pytest.raises(ValidationError):
            Settings()

    def test_from_env_file(self, clean_env, tmp_path) -> None:
        """Test loading variables from a .env file."""
        # Register the key so load_dotenv's write is undone after the test
        clean_env.setenv("JN_DEBUG", "placeholder")
        clean_env.delenv("JN_DEBUG")
        env_file = tmp_path / ".env"
        env_file.write_text("JN_DEBUG=true\n")

        settings = Settings.from_env(env_file=env_file)

        assert settings.debug is True

    def test_from_env_overrides(self, clean_env) -> None:
        """Test keyword overrides."""
        settings = Settings.from_env(debug=True)
        assert settings.debug is True


class TestValidateRequiredSettings:
    """Test cross-field validation."""

    def test_valid_defaults(self, clean_env) -> None:
        """Test that defaults pass validation."""
        Settings().validate_required_settings()

    def test_critical_below_minimum(self, clean_env) -> None:
        """Test inconsistent drop-off thresholds."""
        settings = Settings(
            thresholds={"min_dropoff_rate": 0.6, "critical_dropoff_rate": 0.5}
        )
        with pytest.raises(ConfigurationError, match="critical_dropoff_rate"):
            settings.validate_required_settings()

    def test_dropoff_interval_beyond_overdue(self, clean_env) -> None:
        """Test a drop-off interval that health checks would always flag."""
        settings = Settings(scheduler={"dropoff_interval_seconds": 3600})
        with pytest.raises(ConfigurationError, match="dropoff_interval_seconds"):
            settings.validate_required_settings()

    def test_disabled_scheduler_skips_interval_check(self, clean_env) -> None:
        """Test that the interval check only applies when scheduling."""
        settings = Settings(
            scheduler={"enabled": False, "dropoff_interval_seconds": 3600}
        )
        settings.validate_required_settings()


class TestGetSettings:
    """Test the cached settings accessor."""

    def test_cached(self, clean_env) -> None:
        """Test that the same instance is returned."""
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()

    def test_invalid_configuration_raises(self, clean_env) -> None:
        """Test that inconsistent settings fail loudly."""
        clean_env.setenv("JN_THRESHOLDS__MIN_DROPOFF_RATE", "0.9")
        get_settings.cache_clear()
        try:
            with pytest.raises(ConfigurationError):
                get_settings()
        finally:
            get_settings.cache_clear()
