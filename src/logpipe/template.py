"""
Message template rendering.

Templates use bare positional placeholders:

    render("loaded {} rows from {}", 120, "prices.csv")

Whatever sits between the braces is ignored; placeholders are filled
strictly in argument order. Rendering never fails:
  - no argument left for a "{"   → the rest of the template is literal
  - "{" without a closing "}"    → the rest of the template is literal
  - a None argument              → its placeholder renders as nothing
  - surplus arguments            → dropped

Argument styling is decided by `arg_kind`, a single-dispatch hook.
Integers are EMPHASIS, everything else VALUE. Register extra types with:

    @arg_kind.register
    def _(value: Decimal) -> ArgKind:
        return ArgKind.INTEGER if value == value.to_integral() else ArgKind.OTHER
"""

from __future__ import annotations

from enum import Enum
from functools import singledispatch
from typing import Any, Iterable, NamedTuple, Sequence

from logpipe.redact import redact


class Style(str, Enum):
    PLAIN = "plain"
    VALUE = "value"
    EMPHASIS = "emphasis"


class ArgKind(str, Enum):
    INTEGER = "integer"
    TEXT = "text"
    OTHER = "other"


class Segment(NamedTuple):
    """A run of output text and how to color it."""
    text: str
    style: Style = Style.PLAIN


# ── Argument kinds ────────────────────────────────────────────────

@singledispatch
def arg_kind(value: Any) -> ArgKind:
    return ArgKind.OTHER


@arg_kind.register
def _(value: bool) -> ArgKind:
    return ArgKind.OTHER


@arg_kind.register
def _(value: int) -> ArgKind:
    return ArgKind.INTEGER


@arg_kind.register
def _(value: str) -> ArgKind:
    return ArgKind.TEXT


KIND_STYLES: dict[ArgKind, Style] = {
    ArgKind.INTEGER: Style.EMPHASIS,
    ArgKind.TEXT: Style.VALUE,
    ArgKind.OTHER: Style.VALUE,
}


def style_for(value: Any) -> Style:
    return KIND_STYLES[arg_kind(value)]


# ── Rendering ─────────────────────────────────────────────────────

def render(template: str, args: Sequence[Any] = ()) -> list[Segment]:
    """Turn a template and positional args into styled segments."""
    segments: list[Segment] = []
    pos = 0
    next_arg = 0
    end = len(template)

    while pos < end:
        brace = template.find("{", pos)
        if brace == -1 or next_arg >= len(args):
            break
        close = template.find("}", brace + 1)
        if close == -1:
            break

        if brace > pos:
            segments.append(Segment(template[pos:brace]))

        value = args[next_arg]
        next_arg += 1
        if value is not None:
            segments.append(Segment(str(value), style_for(value)))

        pos = close + 1

    if pos < end:
        segments.append(Segment(template[pos:]))

    return segments


def render_redacted(
    template: str,
    args: Sequence[Any] = (),
    blacklist: Iterable[str] = (),
) -> list[Segment]:
    """
    Redact the template, render it, then redact argument text too so a
    blacklisted value cannot slip in through a placeholder.
    """
    blacklist = tuple(blacklist)
    if not blacklist:
        return render(template, args)

    segments = render(redact(template, blacklist), args)
    return [
        seg if seg.style is Style.PLAIN else Segment(redact(seg.text, blacklist), seg.style)
        for seg in segments
    ]


def plain_text(segments: Iterable[Segment]) -> str:
    """Concatenate segment text, dropping styles."""
    return "".join(seg.text for seg in segments)


def render_text(template: str, args: Sequence[Any] = ()) -> str:
    return plain_text(render(template, args))
