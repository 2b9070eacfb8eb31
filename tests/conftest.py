"""
Shared pytest fixtures for accesslog tests.

This module provides:
- A fixed RenderContext factory for deterministic rendering tests
- An in-memory sink for middleware tests
- structlog context isolation
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
import structlog

# Ensure accesslog package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from accesslog.format.context import Headers, RenderContext, RequestView, ResponseView


START = datetime(2024, 3, 9, 14, 5, 7, 123456, tzinfo=timezone.utc)


class ListSink:
    """Collects emitted lines together with the structlog context at emit time."""

    def __init__(self) -> None:
        self.lines: list[str] = []
        self.contexts: list[dict] = []

    def emit(self, line: str) -> None:
        self.lines.append(line)
        self.contexts.append(dict(structlog.contextvars.get_contextvars()))


@pytest.fixture(autouse=True)
def _clean_log_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def make_context():
    """Build a RenderContext with sensible defaults; override any field."""

    def _make(
        *,
        method: str = "GET",
        path: str = "/index",
        query: str = "",
        http_version: str = "HTTP/1.1",
        remote_addr: str | None = "127.0.0.1",
        request_headers: dict | None = None,
        status: int = 200,
        body_size: int = 12,
        response_headers: dict | None = None,
        start_time: datetime = START,
        elapsed_ns: int = 278_000,
    ) -> RenderContext:
        return RenderContext(
            request=RequestView(
                method=method,
                path=path,
                query=query,
                http_version=http_version,
                remote_addr=remote_addr,
                headers=Headers.from_mapping(request_headers or {}),
            ),
            response=ResponseView(
                status=status,
                body_size=body_size,
                headers=Headers.from_mapping(response_headers or {}),
            ),
            start_time=start_time,
            elapsed_ns=elapsed_ns,
        )

    return _make


@pytest.fixture
def ctx(make_context) -> RenderContext:
    return make_context()


@pytest.fixture
def sink() -> ListSink:
    return ListSink()
