"""
Format-string compiler.

Grammar::

    %%            literal "%"
    %X            built-in directive, X in "tarMUQVsbTD" (see directives.py)
    %{NAME}i      request header NAME
    %{NAME}o      response header NAME
    %{NAME}xi     custom request tag NAME
    %{NAME}xo     custom response tag NAME
    %{NAME}e      environment variable NAME
    %{r}a         real client address (proxy headers, then peer)

Any directive may be followed directly by ``(text)``; the text is kept
as the directive's sub-format and appended verbatim after its value.
Everything else is literal. Compilation is all-or-nothing: it either
returns a complete :class:`Template` or raises :class:`CompileError`.

Tags:
    accesslog, parser, compiler, format-string

Doc-Types:
    api-reference
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from accesslog.core.errors import CompileError
from accesslog.core.logging import get_logger
from accesslog.format.directives import BUILTIN_DIRECTIVES
from accesslog.format.segments import (
    Directive,
    DirectiveKind,
    DirectiveSpec,
    Direction,
    Literal,
    Segment,
    Template,
)

logger = get_logger(__name__)

NAME_PATTERN = re.compile(r"[A-Za-z0-9_\-]+")


def compile_format(template: str, known_custom_tags: Iterable[str] | None = None) -> Template:
    """Compile ``template`` into a :class:`Template`.

    Args:
        template: The format string.
        known_custom_tags: Labels the caller intends to register. When given,
            custom tags outside this set are reported with a warning; they
            still compile and render ``-`` until registered.

    Raises:
        CompileError: On any malformed directive.
    """
    segments: list[Segment] = []
    literal: list[str] = []
    pos = 0
    end = len(template)

    def flush() -> None:
        text = "".join(literal)
        if text:
            segments.append(Literal(text))
        literal.clear()

    while pos < end:
        pct = template.find("%", pos)
        if pct == -1:
            literal.append(template[pos:])
            break
        literal.append(template[pos:pct])

        if pct + 1 >= end:
            raise CompileError(template, pct, "dangling '%' at end of format")

        char = template[pct + 1]
        if char == "%":
            literal.append("%")
            pos = pct + 2
            continue

        if char == "{":
            spec, pos = _parse_braced(template, pct)
        elif char in BUILTIN_DIRECTIVES:
            spec, pos = DirectiveSpec(DirectiveKind.BUILTIN, key=char), pct + 2
        else:
            raise CompileError(template, pct, f"unknown directive '%{char}'")

        if pos < end and template[pos] == "(":
            close = template.find(")", pos + 1)
            if close == -1:
                raise CompileError(template, pos, "unterminated sub-format '('")
            spec = DirectiveSpec(
                spec.kind,
                key=spec.key,
                param=spec.param,
                direction=spec.direction,
                sub_format=template[pos + 1 : close],
            )
            pos = close + 1

        flush()
        segments.append(Directive(spec))

    flush()
    compiled = Template(source=template, segments=tuple(segments))

    if known_custom_tags is not None:
        known = frozenset(known_custom_tags)
        for direction in Direction:
            for label in sorted(compiled.custom_tags(direction) - known):
                logger.warning("custom_tag_unknown", label=label, direction=direction.value)

    return compiled


def _parse_braced(template: str, pct: int) -> tuple[DirectiveSpec, int]:
    """Parse ``%{NAME}<suffix>`` starting at ``pct``; return the spec and next index."""
    close = template.find("}", pct + 2)
    if close == -1:
        raise CompileError(template, pct, "unterminated '{'")

    name = template[pct + 2 : close]
    if not NAME_PATTERN.fullmatch(name):
        raise CompileError(template, pct, f"invalid directive name {name!r}")

    rest = close + 1
    if template.startswith("xi", rest):
        return DirectiveSpec(DirectiveKind.CUSTOM_TAG, param=name, direction=Direction.REQUEST), rest + 2
    if template.startswith("xo", rest):
        return DirectiveSpec(DirectiveKind.CUSTOM_TAG, param=name, direction=Direction.RESPONSE), rest + 2

    suffix = template[rest : rest + 1]
    if suffix == "i":
        return DirectiveSpec(DirectiveKind.HEADER, param=name, direction=Direction.REQUEST), rest + 1
    if suffix == "o":
        return DirectiveSpec(DirectiveKind.HEADER, param=name, direction=Direction.RESPONSE), rest + 1
    if suffix == "e":
        return DirectiveSpec(DirectiveKind.ENVIRON, param=name), rest + 1
    if suffix == "a":
        if name != "r":
            raise CompileError(template, pct, f"unknown address directive '%{{{name}}}a'")
        return DirectiveSpec(DirectiveKind.REAL_IP, param=name), rest + 1

    raise CompileError(template, pct, f"unknown directive type after '%{{{name}}}'")


__all__ = ["NAME_PATTERN", "compile_format"]
