"""Eureka Roles — Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class EurekaSettings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "EUREKA_",
        "extra": "ignore",
    }

    # ── Policy service ─────────────────────────────────────────
    service_host: str = "0.0.0.0"
    service_port: int = 8000
    service_title: str = "Eureka Roles — Policy Service"

    # ── Guard ──────────────────────────────────────────────────
    # When set, identities whose role only resolved through the
    # low-privilege fallback are denied instead of served.
    deny_unrecognized_roles: bool = False

    # ── Logging ────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "json"


settings = EurekaSettings()
