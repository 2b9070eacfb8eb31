"""Built-in directive evaluators.

Every evaluator is a pure function of the :class:`RenderContext` (the
environment directive additionally reads ``os.environ``).
"""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import timezone

from accesslog.core.errors import PLACEHOLDER
from accesslog.format.context import Headers, RenderContext, RequestView

Evaluator = Callable[[RenderContext], str]

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def request_time(ctx: RenderContext) -> str:
    start = ctx.start_time
    if start.tzinfo is not None:
        start = start.astimezone(timezone.utc)
    return start.strftime(TIMESTAMP_FORMAT)


def remote_addr(ctx: RenderContext) -> str:
    return ctx.request.remote_addr or PLACEHOLDER


def request_line(ctx: RenderContext) -> str:
    req = ctx.request
    target = f"{req.path}?{req.query}" if req.query else req.path
    return f"{req.method} {target} {req.http_version or PLACEHOLDER}"


def method(ctx: RenderContext) -> str:
    return ctx.request.method


def url_path(ctx: RenderContext) -> str:
    return ctx.request.path


def query(ctx: RenderContext) -> str:
    return ctx.request.query or PLACEHOLDER


def version(ctx: RenderContext) -> str:
    return ctx.request.http_version or PLACEHOLDER


def status(ctx: RenderContext) -> str:
    return str(ctx.response.status)


def body_size(ctx: RenderContext) -> str:
    return str(ctx.response.body_size)


def elapsed_seconds(ctx: RenderContext) -> str:
    return f"{ctx.elapsed_ns / 1e9:.6f}"


def elapsed_millis(ctx: RenderContext) -> str:
    return f"{ctx.elapsed_ns / 1e6:.6f}"


BUILTIN_DIRECTIVES: dict[str, Evaluator] = {
    "t": request_time,
    "a": remote_addr,
    "r": request_line,
    "M": method,
    "U": url_path,
    "Q": query,
    "V": version,
    "s": status,
    "b": body_size,
    "T": elapsed_seconds,
    "D": elapsed_millis,
}

RESERVED_KEYS: frozenset[str] = frozenset(BUILTIN_DIRECTIVES) | {"%"}


def format_header(headers: Headers, name: str) -> str:
    """One value as-is, several as a ``["v1","v2"]`` list, none as ``-``."""
    values = headers.get_all(name)
    if not values:
        return PLACEHOLDER
    if len(values) == 1:
        return values[0]
    return json.dumps(list(values), separators=(",", ":"), ensure_ascii=False)


def environ(name: str) -> str:
    return os.environ.get(name, PLACEHOLDER)


def real_ip(request: RequestView) -> str:
    """Client address as reported by proxies, falling back to the peer."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    forwarded = request.headers.get("forwarded")
    if forwarded:
        for part in forwarded.split(",")[0].split(";"):
            key, _, value = part.strip().partition("=")
            if key.lower() == "for" and value:
                return value.strip('"')
    return request.remote_addr or PLACEHOLDER


__all__ = [
    "Evaluator",
    "BUILTIN_DIRECTIVES",
    "RESERVED_KEYS",
    "TIMESTAMP_FORMAT",
    "format_header",
    "environ",
    "real_ip",
]
