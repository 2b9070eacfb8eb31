"""Span factories: per-request correlation fields.

A span factory is called once per request, before handling, with the
:class:`RequestView`. It returns a mapping of correlation fields; the
middleware binds them into the structlog context while the request is
handled and again while its access line is emitted, so every log line of
the request carries the same fields.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from typing import Any

from accesslog.format.context import RequestView

SpanFactory = Callable[[RequestView], Mapping[str, Any]]


def request_id_span(header: str = "X-Request-ID", field: str = "request_id") -> SpanFactory:
    """Correlate on an incoming request-id header, or a fresh uuid4 hex."""

    def make_span(request: RequestView) -> Mapping[str, Any]:
        return {field: request.headers.get(header) or uuid.uuid4().hex}

    return make_span


__all__ = ["SpanFactory", "request_id_span"]
