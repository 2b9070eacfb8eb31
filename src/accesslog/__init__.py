"""
accesslog - formatted access-log lines for ASGI applications.

Compile an Apache-style format string once, render one line per
request/response exchange, and emit it through structlog::

    from fastapi import FastAPI
    from accesslog import AccessLogFormat, AccessLogMiddleware, request_id_span

    fmt = AccessLogFormat('%t %a "%r" %s %b(bytes) %T %{user}xi').register_request_tag(
        "user", lambda req: req.headers.get("x-user") or "-"
    )
    app = FastAPI()
    app.add_middleware(AccessLogMiddleware, log_format=fmt, span_factory=request_id_span())
"""

__version__ = "0.1.0"

from accesslog.core.errors import (
    PLACEHOLDER,
    AccessLogError,
    CompileError,
    ConfigError,
    InvalidConfigError,
    RegistrationError,
)
from accesslog.core.logging import configure_logging, get_logger
from accesslog.core.settings import DEFAULT_FORMAT, AccessLogSettings
from accesslog.format import (
    AccessLogFormat,
    Headers,
    RenderContext,
    RequestView,
    ResponseView,
    TagRegistry,
    Template,
    compile_format,
    render,
)
from accesslog.middleware import (
    AccessLogMiddleware,
    AccessLogSink,
    SpanFactory,
    StructlogSink,
    request_id_span,
)

__all__ = [
    "PLACEHOLDER",
    "DEFAULT_FORMAT",
    "AccessLogError",
    "AccessLogFormat",
    "AccessLogMiddleware",
    "AccessLogSettings",
    "AccessLogSink",
    "CompileError",
    "ConfigError",
    "Headers",
    "InvalidConfigError",
    "RegistrationError",
    "RenderContext",
    "RequestView",
    "ResponseView",
    "SpanFactory",
    "StructlogSink",
    "TagRegistry",
    "Template",
    "compile_format",
    "configure_logging",
    "get_logger",
    "render",
    "request_id_span",
]
