"""Sinks receive finished access-log lines."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from accesslog.core.errors import InvalidConfigError
from accesslog.core.logging import get_logger

_LEVELS = ("debug", "info", "warning", "error", "critical")


@runtime_checkable
class AccessLogSink(Protocol):
    def emit(self, line: str) -> None: ...


class StructlogSink:
    """Emit each line as the event of a structlog logger.

    Timestamp, level and any bound correlation fields are added by the
    structlog processor chain.
    """

    def __init__(self, logger_name: str = "accesslog.access", level: str = "INFO"):
        method = level.lower()
        if method not in _LEVELS:
            raise InvalidConfigError("log_level", level)
        self.logger_name = logger_name
        self.level = level.upper()
        self._method = method

    def emit(self, line: str) -> None:
        getattr(get_logger(self.logger_name), self._method)(line)

    def __repr__(self) -> str:
        return f"StructlogSink({self.logger_name!r}, level={self.level!r})"


__all__ = ["AccessLogSink", "StructlogSink"]
