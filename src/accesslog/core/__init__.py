"""Core primitives: errors, logging, settings."""

from accesslog.core.errors import (
    PLACEHOLDER,
    AccessLogError,
    CompileError,
    ConfigError,
    ErrorCategory,
    InvalidConfigError,
    RegistrationError,
)
from accesslog.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_context,
    get_logger,
    unbind_context,
)
from accesslog.core.settings import DEFAULT_FORMAT, AccessLogSettings

__all__ = [
    "PLACEHOLDER",
    "AccessLogError",
    "CompileError",
    "ConfigError",
    "ErrorCategory",
    "InvalidConfigError",
    "RegistrationError",
    "LogContext",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_context",
    "get_logger",
    "unbind_context",
    "DEFAULT_FORMAT",
    "AccessLogSettings",
]
