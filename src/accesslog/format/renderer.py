"""
Renderer: evaluates a compiled :class:`Template` against a :class:`RenderContext`.

Segments are independent: each directive is resolved on its own and the
outputs are concatenated in order. Nothing that happens while resolving
one directive can abort the rest of the line; unresolvable values render
``-``.

Examples:
    >>> fmt = AccessLogFormat("%s %b(bytes)")
    >>> fmt.render(ctx)
    '200 12(bytes)'

Tags:
    accesslog, renderer, format-string

Doc-Types:
    api-reference
"""

from __future__ import annotations

from accesslog.core.errors import PLACEHOLDER
from accesslog.core.logging import get_logger
from accesslog.core.settings import DEFAULT_FORMAT
from accesslog.format import directives
from accesslog.format.context import RenderContext
from accesslog.format.parser import compile_format
from accesslog.format.registry import RequestTagFn, ResponseTagFn, TagRegistry
from accesslog.format.segments import Direction, DirectiveKind, DirectiveSpec, Literal, Template

logger = get_logger(__name__)


def render(template: Template, ctx: RenderContext, registry: TagRegistry) -> str:
    """Render ``template`` for one exchange."""
    parts: list[str] = []
    for segment in template:
        if isinstance(segment, Literal):
            parts.append(segment.text)
            continue
        spec = segment.spec
        parts.append(_resolve(spec, ctx, registry))
        if spec.sub_format is not None:
            parts.append(f"({spec.sub_format})")
    return "".join(parts)


def _resolve(spec: DirectiveSpec, ctx: RenderContext, registry: TagRegistry) -> str:
    kind = spec.kind
    if kind is DirectiveKind.BUILTIN:
        return directives.BUILTIN_DIRECTIVES[spec.key](ctx)  # type: ignore[index]
    if kind is DirectiveKind.HEADER:
        headers = (
            ctx.request.headers if spec.direction is Direction.REQUEST else ctx.response.headers
        )
        return directives.format_header(headers, spec.param)  # type: ignore[arg-type]
    if kind is DirectiveKind.ENVIRON:
        return directives.environ(spec.param)  # type: ignore[arg-type]
    if kind is DirectiveKind.REAL_IP:
        return directives.real_ip(ctx.request)
    return _resolve_custom(spec, ctx, registry)


def _resolve_custom(spec: DirectiveSpec, ctx: RenderContext, registry: TagRegistry) -> str:
    direction = spec.direction or Direction.REQUEST
    fn = registry.lookup(direction, spec.param)  # type: ignore[arg-type]
    if fn is None:
        return PLACEHOLDER
    view = ctx.request if direction is Direction.REQUEST else ctx.response
    try:
        value = fn(view)
    except Exception as exc:  # noqa: BLE001
        # A broken evaluator degrades one field, never the line.
        logger.warning(
            "custom_tag_failed",
            label=spec.param,
            direction=direction.value,
            error=f"{type(exc).__name__}: {exc}",
        )
        return PLACEHOLDER
    return value if isinstance(value, str) else str(value)


class AccessLogFormat:
    """A compiled format plus its custom tag registry.

    Register custom tags fluently, then :meth:`freeze` before serving
    (the middleware does this for you)::

        fmt = (
            AccessLogFormat('%a "%r" %s %{user}xi')
            .register_request_tag("user", lambda req: req.headers.get("x-user", "-"))
        )
    """

    DEFAULT = DEFAULT_FORMAT

    def __init__(self, fmt: str | None = None, registry: TagRegistry | None = None):
        self.template = compile_format(self.DEFAULT if fmt is None else fmt)
        self.registry = registry or TagRegistry()

    @property
    def source(self) -> str:
        return self.template.source

    def register_request_tag(self, label: str, fn: RequestTagFn) -> AccessLogFormat:
        self.registry.register_request_tag(label, fn)
        self._warn_unreferenced(Direction.REQUEST, label)
        return self

    def register_response_tag(self, label: str, fn: ResponseTagFn) -> AccessLogFormat:
        self.registry.register_response_tag(label, fn)
        self._warn_unreferenced(Direction.RESPONSE, label)
        return self

    def freeze(self) -> AccessLogFormat:
        self.registry.freeze()
        return self

    def render(self, ctx: RenderContext) -> str:
        return render(self.template, ctx, self.registry)

    def _warn_unreferenced(self, direction: Direction, label: str) -> None:
        if label not in self.template.custom_tags(direction):
            logger.warning(
                "custom_tag_unreferenced",
                label=label,
                direction=direction.value,
                format=self.template.source,
            )

    def __repr__(self) -> str:
        return f"AccessLogFormat({self.template.source!r})"


__all__ = ["render", "AccessLogFormat"]
