"""
Tests for template rendering.

Covers:
- Positional placeholder filling
- Graceful degradation (missing args, unclosed braces, None args)
- Argument kinds and segment styles
- Redacted rendering
"""

from decimal import Decimal
from functools import singledispatch

import pytest

from logpipe import template
from logpipe.template import (
    ArgKind,
    Segment,
    Style,
    arg_kind,
    plain_text,
    render,
    render_redacted,
    render_text,
)


@pytest.fixture
def scoped_arg_kind(monkeypatch):
    """A copy of arg_kind installed for one test; registrations die with it."""
    scoped = singledispatch(arg_kind.dispatch(object))
    for cls, func in arg_kind.registry.items():
        if cls is not object:
            scoped.register(cls, func)
    monkeypatch.setattr(template, "arg_kind", scoped)
    return scoped


# ═══════════════════════════════════════════════════════════════════
#  Placeholders
# ═══════════════════════════════════════════════════════════════════

class TestPlaceholders:
    def test_literal_only(self):
        assert render("no placeholders here") == [Segment("no placeholders here", Style.PLAIN)]

    def test_empty_template(self):
        assert render("") == []

    def test_fills_in_order(self):
        assert render_text("{} + {} = {}", [1, 2, 3]) == "1 + 2 = 3"

    def test_brace_contents_ignored(self):
        assert render_text("user {name} id {0}", ["ada", 7]) == "user ada id 7"

    def test_surplus_args_dropped(self):
        assert render_text("only {}", [1, 2, 3]) == "only 1"

    def test_missing_args_leave_literal_tail(self):
        assert render_text("got {} and {}", [5]) == "got 5 and {}"

    def test_no_args_leaves_template_untouched(self):
        assert render_text("dict literal {'a': 1}", []) == "dict literal {'a': 1}"

    def test_unclosed_brace_is_literal(self):
        assert render_text("value {} then { never closed", [1, 2]) == "value 1 then { never closed"

    def test_none_consumes_slot_silently(self):
        segments = render("a={} b={}", [None, 2])
        assert plain_text(segments) == "a= b=2"
        assert Segment("2", Style.EMPHASIS) in segments
        assert len(segments) == 3

    def test_arg_never_reused(self):
        assert render_text("{} {} {}", ["x"]) == "x {} {}"

    def test_adjacent_placeholders(self):
        assert render("{}{}", [1, "a"]) == [
            Segment("1", Style.EMPHASIS),
            Segment("a", Style.VALUE),
        ]

    def test_closing_brace_without_open_is_literal(self):
        assert render_text("} {} }", [1]) == "} 1 }"

    def test_pure(self):
        args = [1, "two"]
        assert render("{} {}", args) == render("{} {}", args)
        assert args == [1, "two"]


# ═══════════════════════════════════════════════════════════════════
#  Argument kinds
# ═══════════════════════════════════════════════════════════════════

class TestArgKinds:
    @pytest.mark.parametrize("value, kind", [
        (42, ArgKind.INTEGER),
        (-1, ArgKind.INTEGER),
        (2**70, ArgKind.INTEGER),
        ("text", ArgKind.TEXT),
        (True, ArgKind.OTHER),
        (1.5, ArgKind.OTHER),
        ([1, 2], ArgKind.OTHER),
    ])
    def test_kind(self, value, kind):
        assert arg_kind(value) == kind

    def test_integer_and_text_styled_differently(self):
        segments = render("count {} name {}", [3, "ada"])
        styles = {seg.text: seg.style for seg in segments}
        assert styles["3"] == Style.EMPHASIS
        assert styles["ada"] == Style.VALUE
        assert styles["count "] == Style.PLAIN

    def test_float_is_value(self):
        assert render("{}", [0.25]) == [Segment("0.25", Style.VALUE)]

    def test_registered_kind(self, scoped_arg_kind):
        class TicketId(str):
            pass

        @scoped_arg_kind.register
        def _(value: TicketId) -> ArgKind:
            return ArgKind.INTEGER

        assert render("{}", [TicketId("T-9")]) == [Segment("T-9", Style.EMPHASIS)]
        assert scoped_arg_kind(Decimal("1")) == ArgKind.OTHER
        assert TicketId not in arg_kind.registry


# ═══════════════════════════════════════════════════════════════════
#  Redacted rendering
# ═══════════════════════════════════════════════════════════════════

class TestRenderRedacted:
    def test_template_redacted(self):
        assert plain_text(render_redacted("token SECRET123", [], ["secret"])) == "token ******123"

    def test_argument_text_redacted(self):
        segments = render_redacted("login {} with {}", ["ada", "Hunter2"], ["hunter2"])
        assert plain_text(segments) == "login ada with *******"
        assert segments[-1].style == Style.VALUE

    def test_empty_blacklist_matches_plain_render(self):
        template, args = "n={} s={}", [1, "x"]
        assert render_redacted(template, args, []) == render(template, args)
