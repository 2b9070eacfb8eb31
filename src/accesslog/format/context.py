"""
Render context: the read-only snapshot of one request/response exchange.

The caller (normally :class:`~accesslog.middleware.AccessLogMiddleware`)
assembles a :class:`RenderContext` once the response is known and hands
it to the renderer. Nothing here performs I/O or knows about a web
framework; views are plain frozen dataclasses.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime


class Headers:
    """Ordered multimap of header name → values with case-insensitive lookup.

    Insertion order of names and of values under each name is preserved;
    names keep the casing they were first seen with.
    """

    __slots__ = ("_names", "_values")

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()):
        names: dict[str, str] = {}
        values: dict[str, list[str]] = {}
        for name, value in pairs:
            key = name.lower()
            names.setdefault(key, name)
            values.setdefault(key, []).append(value)
        self._names = names
        self._values = {key: tuple(vals) for key, vals in values.items()}

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str | Iterable[str]]) -> Headers:
        """Build from ``{name: value}`` or ``{name: [value, ...]}``."""
        pairs: list[tuple[str, str]] = []
        for name, value in mapping.items():
            if isinstance(value, str):
                pairs.append((name, value))
            else:
                pairs.extend((name, v) for v in value)
        return cls(pairs)

    @classmethod
    def from_raw(cls, raw: Iterable[tuple[bytes, bytes]]) -> Headers:
        """Build from ASGI ``(name, value)`` byte pairs."""
        return cls((name.decode("latin-1"), value.decode("latin-1")) for name, value in raw)

    def get_all(self, name: str) -> tuple[str, ...]:
        return self._values.get(name.lower(), ())

    def get(self, name: str, default: str | None = None) -> str | None:
        values = self.get_all(name)
        return values[0] if values else default

    def items(self) -> Iterator[tuple[str, tuple[str, ...]]]:
        """Yield ``(name, values)`` in first-seen order."""
        for key, name in self._names.items():
            yield name, self._values[key]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def __len__(self) -> int:
        return len(self._names)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return list(self.items()) == list(other.items())

    def __hash__(self) -> int:
        return hash(tuple(self.items()))

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"


@dataclass(frozen=True)
class RequestView:
    """Read-only view of the request handed to request-tag evaluators."""

    method: str
    path: str
    query: str = ""
    http_version: str = ""
    remote_addr: str | None = None
    headers: Headers = field(default_factory=Headers)


@dataclass(frozen=True)
class ResponseView:
    """Read-only view of the response handed to response-tag evaluators."""

    status: int
    body_size: int = 0
    headers: Headers = field(default_factory=Headers)


@dataclass(frozen=True)
class RenderContext:
    """Everything needed to render one line.

    ``start_time`` is the wall-clock instant the exchange started (UTC);
    ``elapsed_ns`` is the precomputed handling duration in nanoseconds.
    """

    request: RequestView
    response: ResponseView
    start_time: datetime
    elapsed_ns: int = 0


__all__ = ["Headers", "RequestView", "ResponseView", "RenderContext"]
