"""Format engine: compile a format string once, render it per request.

Manifesto:
    Parsing happens at startup and fails loudly; rendering happens on the
    hot path and never fails.

Tags:
    accesslog, format, compiler, renderer

Doc-Types:
    api-reference
"""

from accesslog.format.context import Headers, RenderContext, RequestView, ResponseView
from accesslog.format.parser import compile_format
from accesslog.format.registry import TagRegistry
from accesslog.format.renderer import AccessLogFormat, render
from accesslog.format.segments import (
    Direction,
    Directive,
    DirectiveKind,
    DirectiveSpec,
    Literal,
    Segment,
    Template,
)

__all__ = [
    "AccessLogFormat",
    "Direction",
    "Directive",
    "DirectiveKind",
    "DirectiveSpec",
    "Headers",
    "Literal",
    "RenderContext",
    "RequestView",
    "ResponseView",
    "Segment",
    "TagRegistry",
    "Template",
    "compile_format",
    "render",
]
