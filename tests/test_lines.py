"""Tests for display lines, escaping and string wrapping."""

import random

import pytest
from rich.cells import cell_len

from jexview.errors import InvariantViolation
from jexview.lines import (
    Chunk,
    Line,
    LineContent,
    LineCursor,
    display_width,
    escaped_str,
    text_width,
)

_ALPHABET = 'ab Z09"\\\n\t\x01\x7f\u00a0\u00ad\u0301\u200b\u2028\ue000中é😀'


class TestDisplayWidth:
    """Column width of a character once escaped."""

    def test_plain_ascii(self):
        assert display_width("a") == 1
        assert display_width(" ") == 1

    def test_simple_escapes(self):
        for ch in '"\\\b\f\n\r\t':
            assert display_width(ch) == 2

    def test_unicode_escapes(self):
        assert display_width("\x01") == 6  # Cc
        assert display_width("\u200b") == 6  # Cf
        assert display_width("\u00a0") == 6  # Zs other than space
        assert display_width("\u2028") == 6  # Zl
        assert display_width("\ue000") == 6  # Co
        assert display_width("\u0301") == 6  # Mn

    def test_astral_escape_takes_two_units(self):
        assert display_width("\U000e0001") == 12

    def test_wide_characters(self):
        assert display_width("中") == 2
        assert display_width("😀") == 2
        assert display_width("é") == 1


class TestEscapedStr:
    """JSON-style escaping used for display."""

    def test_plain_unchanged(self):
        assert escaped_str("hello world") == "hello world"

    def test_simple(self):
        assert escaped_str('a"b\\c\n') == 'a\\"b\\\\c\\n'

    def test_control(self):
        assert escaped_str("\x01") == "\\u0001"

    def test_surrogate_pair(self):
        assert escaped_str("\U000e0001") == "\\udb40\\udc01"

    def test_printable_unicode_kept(self):
        assert escaped_str("中é") == "中é"

    def test_width_additivity(self):
        rng = random.Random(7)
        for _ in range(200):
            s = "".join(rng.choice(_ALPHABET) for _ in range(rng.randint(0, 12)))
            assert cell_len(escaped_str(s)) == sum(display_width(ch) for ch in s)
            assert text_width(s) == cell_len(escaped_str(s))


def _chunks(cursor: LineCursor) -> list[tuple[int, int]]:
    cursor.chunk_count()
    return list(cursor._bounds)


class TestLineCursor:
    """Wrapping a string value into rows."""

    def test_fits_on_one_row(self):
        cursor = LineCursor("abc", 10)
        assert cursor.chunk_count() == 1
        assert cursor.current == Chunk(0, 0, 3, True, True)

    def test_wraps(self):
        cursor = LineCursor("abcdefghij", 7)
        assert _chunks(cursor) == [(0, 6), (6, 10)]

    def test_extra_row_for_closing_quote(self):
        cursor = LineCursor("abcdef", 7)
        assert _chunks(cursor) == [(0, 6), (6, 6)]

    def test_trailing_comma_reserved(self):
        cursor = LineCursor("abcde", 7, trail=1)
        assert _chunks(cursor) == [(0, 5), (5, 5)]

    def test_lead_and_indent(self):
        cursor = LineCursor("abcdefghij", 7, lead=2, indent=2, trail=1)
        assert _chunks(cursor) == [(0, 4), (4, 9), (9, 10)]

    def test_continuation_takes_a_character(self):
        cursor = LineCursor("\x01\x01", 7, indent=2)
        assert _chunks(cursor) == [(0, 1), (1, 2), (2, 2)]

    def test_empty_string(self):
        cursor = LineCursor("", 7)
        assert _chunks(cursor) == [(0, 0)]

    def test_move_edges(self):
        cursor = LineCursor("abcdefghij", 7)
        assert cursor.move_prev() is False
        assert cursor.move_next() is True
        assert cursor.is_last
        assert cursor.move_next() is False
        assert cursor.index == 1
        assert cursor.move_prev() is True
        assert cursor.is_first

    def test_at_end(self):
        cursor = LineCursor.at_end("a" * 30, 7)
        assert cursor.is_last
        assert cursor.index == cursor.chunk_count() - 1

    def test_copy_is_independent(self):
        cursor = LineCursor("a" * 30, 7)
        other = cursor.copy()
        other.move_next()
        assert cursor.index == 0
        assert other.index == 1

    def test_set_width_keeps_current_start(self):
        cursor = LineCursor("abcdefghijklmnopqrstuvwxyz", 7)
        assert _chunks(cursor) == [(0, 6), (6, 13), (13, 20), (20, 26)]
        cursor.move_next()
        cursor.move_next()
        assert cursor.current.start == 13
        cursor.set_width(10)
        assert cursor.index == 1
        assert cursor.current.start <= 13 < cursor.current.end

    def test_set_width_first_row_stays_first(self):
        cursor = LineCursor("a" * 40, 12)
        cursor.set_width(7)
        assert cursor.index == 0

    def test_too_narrow(self):
        with pytest.raises(InvariantViolation):
            LineCursor("abc", 6)
        cursor = LineCursor("abc", 7)
        with pytest.raises(InvariantViolation):
            cursor.set_width(3)


class TestLine:
    """Rendering structural lines."""

    def test_leaf_with_key_and_comma(self):
        line = Line(LineContent.NUMBER, 1, "a", 2, True)
        assert line.plain() == '  "a" : 1,'

    def test_leaf_values(self):
        assert Line(LineContent.NULL).plain() == "null"
        assert Line(LineContent.BOOL, False).plain() == "false"
        assert Line(LineContent.NUMBER, 1.5).plain() == "1.5"

    def test_string_escaped(self):
        line = Line(LineContent.STRING, 'x"y\n')
        assert line.plain() == '"x\\"y\\n"'

    def test_brackets(self):
        assert Line(LineContent.OBJECT_START, key="k").plain() == '"k" : {'
        assert Line(LineContent.ARRAY_END, indent=2, comma=True).plain() == "  ],"

    def test_folded_summary(self):
        line = Line(LineContent.FOLDED_ARRAY, 2, "b", 2, False)
        assert line.plain() == '  "b" : [...] (2 children)'
        line = Line(LineContent.FOLDED_OBJECT, 3, None, 0, True)
        assert line.plain() == "{...}, (3 children)"

    def test_lead_width(self):
        assert Line(LineContent.NULL, indent=4).lead_width() == 4
        assert Line(LineContent.NULL, key="ab", indent=2).lead_width() == 9
        assert len(Line(LineContent.NULL, key="ab", indent=2).prefix()) == 9

    def test_selected_style(self):
        text = Line(LineContent.NUMBER, 1).render(selected=True)
        assert any("on dark_blue" in str(span.style) for span in text.spans)
        text = Line(LineContent.NUMBER, 1).render()
        assert not any("on dark_blue" in str(span.style) for span in text.spans)

    def test_render_chunks(self):
        line = Line(LineContent.STRING, "abcdefghij", None, 2, True)
        cursor = line.line_cursor(7)
        rows = [line.render_chunk(cursor.current).plain]
        while cursor.move_next():
            rows.append(line.render_chunk(cursor.current).plain)
        assert rows == ['  "abcd', "  efghi", '  j",']

    def test_only_strings_wrap(self):
        with pytest.raises(InvariantViolation):
            Line(LineContent.NUMBER, 1).line_cursor(10)
