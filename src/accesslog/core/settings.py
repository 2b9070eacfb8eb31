"""
Access-log settings.

All values can be overridden via environment variables prefixed with
``ACCESSLOG_`` (for example ``ACCESSLOG_FORMAT`` or
``ACCESSLOG_EXCLUDE='["/health"]'``).
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from accesslog.core.logging import configure_logging

DEFAULT_FORMAT = '%a "%r" %s %b "%{Referer}i" "%{User-Agent}i" %T'


class AccessLogSettings(BaseSettings):
    """Settings for the access-log middleware.

    Order of precedence (highest → lowest):
        1. Environment variables (``ACCESSLOG_FORMAT``, etc.)
        2. ``.env`` file
        3. Defaults below
    """

    # ── Format ───────────────────────────────────────────────────────────
    format: str = Field(default=DEFAULT_FORMAT, description="Access-log format string")

    # ── Filtering ────────────────────────────────────────────────────────
    exclude: list[str] = Field(
        default_factory=list,
        description="Request paths that are never logged (exact match)",
    )
    exclude_regex: list[str] = Field(
        default_factory=list,
        description="Regular expressions; matching request paths are never logged",
    )

    # ── Output ───────────────────────────────────────────────────────────
    logger_name: str = Field(default="accesslog.access", description="Logger receiving the lines")
    log_level: str = Field(default="INFO", description="Level the lines are emitted at")
    log_format: Literal["json", "console"] = Field(default="console", description="Renderer")
    service_name: str = Field(default="accesslog", description="service.name metadata")

    model_config = SettingsConfigDict(env_prefix="ACCESSLOG_", env_file=".env", extra="ignore")

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level

    def configure_logging(self) -> None:
        """Apply the output settings to the structlog pipeline."""
        configure_logging(
            level=self.log_level,
            json_format=self.log_format == "json",
            service=self.service_name,
        )
