"""Starlette integration.

Manifesto:
    Transport, timing and output stay outside the format engine; this
    package is the thin layer that connects them.

Tags:
    accesslog, middleware, starlette

Doc-Types:
    api-reference
"""

from accesslog.middleware.access_log import AccessLogMiddleware, request_view
from accesslog.middleware.sink import AccessLogSink, StructlogSink
from accesslog.middleware.span import SpanFactory, request_id_span

__all__ = [
    "AccessLogMiddleware",
    "AccessLogSink",
    "SpanFactory",
    "StructlogSink",
    "request_id_span",
    "request_view",
]
