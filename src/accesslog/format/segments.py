"""Compiled representation of an access-log format string."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Union


class Direction(str, Enum):
    """Which side of the exchange a header or custom tag reads from."""

    REQUEST = "request"
    RESPONSE = "response"


class DirectiveKind(str, Enum):
    BUILTIN = "builtin"
    HEADER = "header"
    CUSTOM_TAG = "custom_tag"
    ENVIRON = "environ"
    REAL_IP = "real_ip"


@dataclass(frozen=True)
class DirectiveSpec:
    """One directive as written in the format string.

    ``key`` is the single-character key for built-ins; ``param`` is the
    ``{NAME}`` part for header, custom-tag and environment directives.
    ``sub_format`` is the text between the parentheses that may follow any
    directive; it is appended verbatim and never evaluated.
    """

    kind: DirectiveKind
    key: str | None = None
    param: str | None = None
    direction: Direction | None = None
    sub_format: str | None = None


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Directive:
    spec: DirectiveSpec


Segment = Union[Literal, Directive]


@dataclass(frozen=True)
class Template:
    """An immutable, ordered sequence of segments compiled from ``source``."""

    source: str
    segments: tuple[Segment, ...]

    def __iter__(self) -> Iterator[Segment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def directives(self) -> Iterator[DirectiveSpec]:
        for segment in self.segments:
            if isinstance(segment, Directive):
                yield segment.spec

    def custom_tags(self, direction: Direction) -> frozenset[str]:
        """Labels of the ``%{NAME}xi`` / ``%{NAME}xo`` directives in this template."""
        return frozenset(
            spec.param
            for spec in self.directives()
            if spec.kind is DirectiveKind.CUSTOM_TAG
            and spec.direction is direction
            and spec.param is not None
        )


__all__ = [
    "Direction",
    "DirectiveKind",
    "DirectiveSpec",
    "Literal",
    "Directive",
    "Segment",
    "Template",
]
