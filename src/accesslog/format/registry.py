"""Custom tag registry.

Manifesto:
    Custom tags let applications put their own values in the access line
    (a user id, a cache status, a rendered header dump) without touching
    the engine. Registration happens at startup; once the registry is
    frozen it is shared read-only by every request.

Tags:
    accesslog, registry, custom-tags, extension-point

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from accesslog.core.errors import RegistrationError
from accesslog.core.logging import get_logger
from accesslog.format.context import RequestView, ResponseView
from accesslog.format.directives import RESERVED_KEYS
from accesslog.format.parser import NAME_PATTERN
from accesslog.format.segments import Direction

logger = get_logger(__name__)

RequestTagFn = Callable[[RequestView], Any]
ResponseTagFn = Callable[[ResponseView], Any]


class TagRegistry:
    """Maps ``(direction, label)`` to a custom tag evaluator.

    Registering a label twice replaces the earlier evaluator. Evaluators
    must be safe to call concurrently: they receive a read-only view and
    should not mutate shared state.
    """

    def __init__(self) -> None:
        self._tags: dict[Direction, dict[str, Callable[[Any], Any]]] = {
            Direction.REQUEST: {},
            Direction.RESPONSE: {},
        }
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> TagRegistry:
        """Reject any further registration."""
        self._frozen = True
        return self

    def register_request_tag(self, label: str, fn: RequestTagFn) -> TagRegistry:
        """Register ``fn`` for ``%{label}xi``."""
        self._register(Direction.REQUEST, label, fn)
        return self

    def register_response_tag(self, label: str, fn: ResponseTagFn) -> TagRegistry:
        """Register ``fn`` for ``%{label}xo``."""
        self._register(Direction.RESPONSE, label, fn)
        return self

    def lookup(self, direction: Direction, label: str) -> Callable[[Any], Any] | None:
        return self._tags[direction].get(label)

    def labels(self, direction: Direction) -> frozenset[str]:
        return frozenset(self._tags[direction])

    def _register(self, direction: Direction, label: str, fn: Callable[[Any], Any]) -> None:
        if self._frozen:
            reason = "Registry is frozen"
        elif label in RESERVED_KEYS:
            reason = f"{label!r} is a built-in directive key"
        elif not NAME_PATTERN.fullmatch(label):
            reason = f"Invalid tag label {label!r}"
        elif not callable(fn):
            reason = f"Evaluator for {label!r} is not callable"
        else:
            reason = None
        if reason is not None:
            raise RegistrationError(label, reason).with_context(direction=direction.value)

        replaced = label in self._tags[direction]
        self._tags[direction][label] = fn
        logger.debug(
            "custom_tag_registered",
            label=label,
            direction=direction.value,
            replaced=replaced,
        )


__all__ = ["TagRegistry", "RequestTagFn", "ResponseTagFn"]
