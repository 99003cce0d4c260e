"""Unit tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from fabwatch.core.config import Settings
from fabwatch.core.logging import configure_logging


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("FABWATCH_ANALYSIS_INTERVAL", raising=False)
        settings = Settings(_env_file=None)

        assert settings.analysis_interval == 10
        assert settings.tick_interval_seconds == 2.0
        assert settings.history_capacity == 1000
        assert settings.backfill_count == 480
        assert settings.alert_cooldown_seconds == 300.0

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("FABWATCH_ANALYSIS_INTERVAL", "3")
        monkeypatch.setenv("FABWATCH_SCHEDULER_ENABLED", "false")

        settings = Settings(_env_file=None)

        assert settings.analysis_interval == 3
        assert settings.scheduler_enabled is False

    def test_invalid_value_rejected(self, monkeypatch):
        monkeypatch.setenv("FABWATCH_ANALYSIS_INTERVAL", "0")

        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_cors_origin_list(self):
        settings = Settings(_env_file=None, cors_origins="http://a, http://b,")
        assert settings.cors_origin_list == ["http://a", "http://b"]


class TestLogging:
    def test_unknown_format_rejected(self):
        with pytest.raises(ValueError, match="log format"):
            configure_logging("xml")

    def test_unknown_format_rejected_by_settings(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, log_format="xml")
