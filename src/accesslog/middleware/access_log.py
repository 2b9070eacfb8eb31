"""
Access-log middleware: one formatted line per request.

Manifesto:
    The access line is written when the response body has been fully
    sent, so ``%b`` is the number of bytes that actually went out and
    ``%T`` / ``%D`` cover the whole exchange.

Architecture:
    ::

        dispatch(request)
          ├── excluded path?  → call_next, no line
          ├── start instants (UTC wall clock, perf_counter_ns)
          ├── span = span_factory(RequestView)
          ├── with LogContext(**span): response = call_next(request)
          │     handler raised → emit a 500 line (0 bytes), re-raise
          └── response.body_iterator wrapped:
                count bytes while streaming
                on exhaustion/close: RenderContext → render → sink.emit
                (inside LogContext(**span))

Tags:
    accesslog, api, middleware, access-log, starlette

Doc-Types:
    api-reference
"""

from __future__ import annotations

import re
import time
from collections.abc import AsyncIterator, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from accesslog.core.errors import InvalidConfigError
from accesslog.core.logging import LogContext
from accesslog.core.settings import AccessLogSettings
from accesslog.format.context import Headers, RenderContext, RequestView, ResponseView
from accesslog.format.renderer import AccessLogFormat
from accesslog.middleware.sink import AccessLogSink, StructlogSink
from accesslog.middleware.span import SpanFactory


def request_view(request: Request) -> RequestView:
    """Snapshot the parts of a Starlette request the engine can see."""
    scope = request.scope
    version = scope.get("http_version")
    return RequestView(
        method=request.method,
        path=request.url.path,
        query=scope.get("query_string", b"").decode("latin-1"),
        http_version=f"HTTP/{version}" if version else "",
        remote_addr=request.client.host if request.client else None,
        headers=Headers.from_raw(scope.get("headers", [])),
    )


class AccessLogMiddleware(BaseHTTPMiddleware):
    """Render and emit one access-log line per request.

    Parameters
    ----------
    app:
        The ASGI application to wrap.
    log_format:
        An :class:`AccessLogFormat` (with its custom tags registered) or a
        format string. Defaults to ``settings.format``.
    exclude:
        Paths that are never logged (exact match).
    exclude_regex:
        Patterns; a path matching any of them is never logged.
    span_factory:
        Optional ``RequestView -> Mapping`` returning correlation fields.
    sink:
        Receives the finished lines. Defaults to a :class:`StructlogSink`.
    settings:
        :class:`AccessLogSettings`; its exclusions are merged with the
        explicit ones.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_format: AccessLogFormat | str | None = None,
        *,
        exclude: Iterable[str] = (),
        exclude_regex: Iterable[str] = (),
        span_factory: SpanFactory | None = None,
        sink: AccessLogSink | None = None,
        settings: AccessLogSettings | None = None,
    ) -> None:
        super().__init__(app)
        settings = settings or AccessLogSettings()

        if log_format is None:
            log_format = settings.format
        if isinstance(log_format, str):
            log_format = AccessLogFormat(log_format)
        self.log_format = log_format.freeze()

        self.exclude = frozenset([*settings.exclude, *exclude])
        self.exclude_regex = tuple(
            _compile_pattern(p) for p in [*settings.exclude_regex, *exclude_regex]
        )
        self.span_factory = span_factory
        self.sink = sink or StructlogSink(settings.logger_name, settings.log_level)

    def is_excluded(self, path: str) -> bool:
        return path in self.exclude or any(p.search(path) for p in self.exclude_regex)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if self.is_excluded(request.url.path):
            return await call_next(request)

        start_time = datetime.now(timezone.utc)
        started = time.perf_counter_ns()
        req_view = request_view(request)
        span: Mapping[str, Any] = self.span_factory(req_view) if self.span_factory else {}

        with LogContext(**span):
            try:
                response = await call_next(request)
            except Exception:
                # The server turns this into a 500 outside the middleware.
                self._emit(req_view, span, ResponseView(status=500), start_time, started)
                raise

        response.body_iterator = self._logged_body(  # type: ignore[attr-defined]
            response,
            response.body_iterator,  # type: ignore[attr-defined]
            req_view,
            span,
            start_time,
            started,
        )
        return response

    async def _logged_body(
        self,
        response: Response,
        body: AsyncIterator[bytes | str],
        req_view: RequestView,
        span: Mapping[str, Any],
        start_time: datetime,
        started: int,
    ) -> AsyncIterator[bytes | str]:
        size = 0
        try:
            async for chunk in body:
                size += len(chunk.encode("utf-8") if isinstance(chunk, str) else chunk)
                yield chunk
        finally:
            # HEAD bodies are dropped by the server.
            if req_view.method == "HEAD":
                size = 0
            res_view = ResponseView(
                status=response.status_code,
                body_size=size,
                headers=Headers.from_raw(response.raw_headers),
            )
            self._emit(req_view, span, res_view, start_time, started)

    def _emit(
        self,
        req_view: RequestView,
        span: Mapping[str, Any],
        res_view: ResponseView,
        start_time: datetime,
        started: int,
    ) -> None:
        ctx = RenderContext(
            request=req_view,
            response=res_view,
            start_time=start_time,
            elapsed_ns=time.perf_counter_ns() - started,
        )
        line = self.log_format.render(ctx)
        with LogContext(**span):
            self.sink.emit(line)


def _compile_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise InvalidConfigError("exclude_regex", pattern, cause=exc) from exc


__all__ = ["AccessLogMiddleware", "request_view"]
