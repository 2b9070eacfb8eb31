"""Tests for ``accesslog.core.settings``."""

from __future__ import annotations

import pytest
import structlog
from pydantic import ValidationError

from accesslog.core.settings import DEFAULT_FORMAT, AccessLogSettings


class TestAccessLogSettings:
    def test_defaults(self, monkeypatch):
        for var in ("ACCESSLOG_FORMAT", "ACCESSLOG_EXCLUDE", "ACCESSLOG_LOG_LEVEL"):
            monkeypatch.delenv(var, raising=False)
        settings = AccessLogSettings(_env_file=None)
        assert settings.format == DEFAULT_FORMAT
        assert settings.exclude == []
        assert settings.logger_name == "accesslog.access"
        assert settings.log_level == "INFO"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ACCESSLOG_FORMAT", "%s %b")
        monkeypatch.setenv("ACCESSLOG_EXCLUDE", '["/health", "/metrics"]')
        monkeypatch.setenv("ACCESSLOG_LOG_LEVEL", "debug")
        settings = AccessLogSettings(_env_file=None)
        assert settings.format == "%s %b"
        assert settings.exclude == ["/health", "/metrics"]
        assert settings.log_level == "DEBUG"

    def test_invalid_level(self):
        with pytest.raises(ValidationError):
            AccessLogSettings(log_level="LOUD", _env_file=None)

    def test_configure_logging(self):
        AccessLogSettings(log_format="json", log_level="WARNING", _env_file=None).configure_logging()
        assert structlog.is_configured()
