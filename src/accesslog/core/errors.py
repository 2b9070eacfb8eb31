"""
Structured error types for the access-log engine.

Manifesto:
    Template problems are programmer errors and must surface at startup,
    never in the middle of a request. Every error carries a category and
    enough context to be logged as a single structured event.

Architecture:
    ::

        AccessLogError  (category, context, cause)
          ├── CompileError        (PARSE)     template, offset, reason
          ├── RegistrationError   (REGISTRY)  label
          └── ConfigError         (CONFIG)
                └── InvalidConfigError        key, value

    Unresolved custom tags and absent headers are *not* errors: they
    render :data:`PLACEHOLDER` and the rest of the line continues.

Tags:
    error-handling, exception-hierarchy, accesslog, compile-errors

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum
from typing import Any

PLACEHOLDER = "-"
"""Rendered in place of any value that cannot be resolved."""


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    PARSE = "PARSE"
    REGISTRY = "REGISTRY"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"


class AccessLogError(Exception):
    """
    Base exception for all access-log errors.

    Subclasses set ``default_category``; instances may add free-form
    context with :meth:`with_context` and serialize with :meth:`to_dict`.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> AccessLogError:
        """
        Add context to this error (fluent API).

        Usage:
            raise RegistrationError("bad label").with_context(direction="request")
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class CompileError(AccessLogError):
    """
    A format string could not be compiled.

    ``offset`` is the index into ``template`` where the offending
    directive starts (for an unterminated sub-format, where its ``(``
    starts).
    """

    default_category = ErrorCategory.PARSE

    def __init__(self, template: str, offset: int, reason: str, **kwargs: Any):
        self.template = template
        self.offset = offset
        self.reason = reason
        super().__init__(f"{reason} at offset {offset}", **kwargs)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["template"] = self.template
        result["offset"] = self.offset
        result["reason"] = self.reason
        return result


class RegistrationError(AccessLogError):
    """A custom tag registration was rejected."""

    default_category = ErrorCategory.REGISTRY

    def __init__(self, label: str, message: str, **kwargs: Any):
        self.label = label
        super().__init__(message, **kwargs)


class ConfigError(AccessLogError):
    """Configuration error. Never recoverable at runtime."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None, **kwargs: Any):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}", **kwargs)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["key"] = self.key
        result["value"] = repr(self.value)
        return result


__all__ = [
    "PLACEHOLDER",
    "ErrorCategory",
    "AccessLogError",
    "CompileError",
    "RegistrationError",
    "ConfigError",
    "InvalidConfigError",
]
