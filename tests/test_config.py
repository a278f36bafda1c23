"""Tests for environment-driven settings."""

from __future__ import annotations

from eureka_roles.config import EurekaSettings


class TestEurekaSettings:
    """Environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        """Settings fall back to their defaults without environment."""
        monkeypatch.delenv("EUREKA_DENY_UNRECOGNIZED_ROLES", raising=False)
        monkeypatch.delenv("EUREKA_SERVICE_PORT", raising=False)
        monkeypatch.delenv("EUREKA_LOG_FORMAT", raising=False)
        settings = EurekaSettings(_env_file=None)
        assert settings.deny_unrecognized_roles is False
        assert settings.service_port == 8000
        assert settings.log_format == "json"

    def test_environment_overrides(self, monkeypatch):
        """EUREKA_ variables override the defaults."""
        monkeypatch.setenv("EUREKA_DENY_UNRECOGNIZED_ROLES", "true")
        monkeypatch.setenv("EUREKA_SERVICE_PORT", "9100")
        monkeypatch.setenv("EUREKA_LOG_FORMAT", "console")
        settings = EurekaSettings(_env_file=None)
        assert settings.deny_unrecognized_roles is True
        assert settings.service_port == 9100
        assert settings.log_format == "console"
