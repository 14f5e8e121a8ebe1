"""Display lines, JSON string escaping and wrapped string chunks."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import Enum, auto
from typing import NamedTuple

from rich.cells import cell_len
from rich.text import Text

from jexview.errors import InvariantViolation
from jexview.values import scalar_text


class LineContent(Enum):
    NULL = auto()
    BOOL = auto()
    NUMBER = auto()
    STRING = auto()
    ARRAY_START = auto()
    ARRAY_END = auto()
    FOLDED_ARRAY = auto()
    OBJECT_START = auto()
    OBJECT_END = auto()
    FOLDED_OBJECT = auto()


# Smallest viewport width the wrapping code accepts.
MIN_WIDTH = 7

_SIMPLE_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}
_ESCAPED_CATEGORIES = frozenset(
    {"Cc", "Cf", "Cs", "Co", "Zl", "Zp", "Mn", "Mc", "Me"}
)
_char_width_cache: dict[str, int] = {}


def is_unicode_escaped(ch: str) -> bool:
    """True for characters rendered as ``\\uXXXX`` instead of themselves."""
    category = unicodedata.category(ch)
    if category == "Zs":
        return ch != " "
    return category in _ESCAPED_CATEGORIES


def display_width(ch: str) -> int:
    """Return the number of columns *ch* takes once escaped for display."""
    if " " <= ch < "\x7f":
        return 2 if ch == '"' or ch == "\\" else 1
    if ch in _SIMPLE_ESCAPES:
        return 2
    w = _char_width_cache.get(ch)
    if w is None:
        if is_unicode_escaped(ch):
            w = 12 if ord(ch) > 0xFFFF else 6
        else:
            w = cell_len(ch)
        _char_width_cache[ch] = w
    return w


def text_width(s: str) -> int:
    return sum(display_width(ch) for ch in s)


def _escape_char(ch: str) -> str:
    simple = _SIMPLE_ESCAPES.get(ch)
    if simple is not None:
        return simple
    if not is_unicode_escaped(ch):
        return ch
    code = ord(ch)
    if code > 0xFFFF:
        code -= 0x10000
        return "\\u%04x\\u%04x" % (0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF))
    return "\\u%04x" % code


def escaped_str(s: str) -> str:
    """Escape *s* the way it is shown between quotes."""
    if s.isascii() and s.isprintable() and '"' not in s and "\\" not in s:
        return s
    return "".join(_escape_char(ch) for ch in s)


class Chunk(NamedTuple):
    """One wrapped row of a string value: ``text[start:end]``."""

    index: int
    start: int
    end: int
    first: bool
    last: bool


class LineCursor:
    """Walks the wrapped rows of a single string leaf at a fixed width.

    The first row shares its columns with the line prefix (*lead* columns
    of indent and key) and the opening quote. Later rows are indented by
    *indent*. The last row keeps room for the closing quote and *trail*
    columns after it (the trailing comma).
    """

    def __init__(
        self,
        text: str,
        width: int,
        lead: int = 0,
        indent: int = 0,
        trail: int = 0,
    ) -> None:
        if width < MIN_WIDTH:
            raise InvariantViolation(f"width {width} is below {MIN_WIDTH}")
        self.text = text
        self.width = width
        self.lead = lead
        self.indent = indent
        self.trail = trail
        self.index = 0
        self._bounds: list[tuple[int, int]] = []
        self._complete = False
        self._extend()

    @classmethod
    def at_end(
        cls, text: str, width: int, lead: int = 0, indent: int = 0, trail: int = 0
    ) -> LineCursor:
        cursor = cls(text, width, lead, indent, trail)
        while cursor.move_next():
            pass
        return cursor

    def __repr__(self) -> str:
        return (
            f"LineCursor(width={self.width}, index={self.index}, "
            f"chunks={len(self._bounds)}{'' if self._complete else '+'})"
        )

    def _budget(self, first: bool) -> int:
        if first:
            return self.width - self.lead - 1
        return self.width - self.indent

    def _extend(self) -> bool:
        """Compute the next row; ``False`` once the closing quote is placed."""
        if self._complete:
            return False
        first = not self._bounds
        start = self._bounds[-1][1] if self._bounds else 0
        budget = self._budget(first)
        text = self.text
        n = len(text)
        pos = start
        used = 0
        while pos < n:
            w = display_width(text[pos])
            # Continuation rows always take a character so wrapping progresses.
            if used + w > budget and (first or pos > start):
                break
            used += w
            pos += 1
        self._bounds.append((start, pos))
        if pos == n and used + 1 + self.trail <= budget:
            self._complete = True
        return True

    @property
    def current(self) -> Chunk:
        start, end = self._bounds[self.index]
        last = self._complete and self.index == len(self._bounds) - 1
        return Chunk(self.index, start, end, self.index == 0, last)

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self._complete and self.index == len(self._bounds) - 1

    def chunk_count(self) -> int:
        while self._extend():
            pass
        return len(self._bounds)

    def move_next(self) -> bool:
        if self.index + 1 < len(self._bounds) or self._extend():
            self.index += 1
            return True
        return False

    def move_prev(self) -> bool:
        if self.index == 0:
            return False
        self.index -= 1
        return True

    def copy(self) -> LineCursor:
        other = LineCursor.__new__(LineCursor)
        other.__dict__.update(self.__dict__)
        other._bounds = list(self._bounds)
        return other

    def set_width(
        self, width: int, lead: int | None = None, indent: int | None = None
    ) -> None:
        """Re-wrap in place, staying on the row holding the current start."""
        lead = self.lead if lead is None else lead
        indent = self.indent if indent is None else indent
        if (width, lead, indent) == (self.width, self.lead, self.indent):
            return
        if width < MIN_WIDTH:
            raise InvariantViolation(f"width {width} is below {MIN_WIDTH}")
        old_index = self.index
        target = self._bounds[old_index][0]
        self.width = width
        self.lead = lead
        self.indent = indent
        self.index = 0
        self._bounds = []
        self._complete = False
        self._extend()
        if old_index == 0:
            return
        while self._bounds[self.index][1] <= target and self.move_next():
            pass


# -- Styling ---------------------------------------------------------------

_KEY_STYLE = "cyan"
_PUNCT_STYLE = "white"
_NOTE_STYLE = "dim italic"
_SELECTED_BG = "on dark_blue"
_CONTENT_STYLE = {
    LineContent.NULL: "magenta",
    LineContent.BOOL: "magenta",
    LineContent.NUMBER: "yellow",
    LineContent.STRING: "green",
    LineContent.ARRAY_START: "bold white",
    LineContent.ARRAY_END: "bold white",
    LineContent.FOLDED_ARRAY: "bold white",
    LineContent.OBJECT_START: "bold white",
    LineContent.OBJECT_END: "bold white",
    LineContent.FOLDED_OBJECT: "bold white",
}
_BRACKETS = {
    LineContent.ARRAY_START: "[",
    LineContent.ARRAY_END: "]",
    LineContent.FOLDED_ARRAY: "[...]",
    LineContent.OBJECT_START: "{",
    LineContent.OBJECT_END: "}",
    LineContent.FOLDED_OBJECT: "{...}",
}
_FOLDED = (LineContent.FOLDED_ARRAY, LineContent.FOLDED_OBJECT)


@dataclass(frozen=True)
class Line:
    """Everything needed to draw one structural position.

    *value* is the leaf value, or the child count of a folded container.
    """

    content: LineContent
    value: object = None
    key: str | None = None
    indent: int = 0
    comma: bool = False

    def prefix(self) -> str:
        if self.key is None:
            return " " * self.indent
        return f'{" " * self.indent}"{escaped_str(self.key)}" : '

    def lead_width(self) -> int:
        """Columns taken by indent and key before the value starts."""
        if self.key is None:
            return self.indent
        return self.indent + text_width(self.key) + 5

    def line_cursor(self, width: int, at_end: bool = False) -> LineCursor:
        if self.content is not LineContent.STRING:
            raise InvariantViolation(f"{self.content} lines do not wrap")
        factory = LineCursor.at_end if at_end else LineCursor
        return factory(
            self.value, width, self.lead_width(), self.indent, 1 if self.comma else 0
        )

    def _body(self) -> str:
        content = self.content
        if content in _BRACKETS:
            return _BRACKETS[content]
        return scalar_text(self.value)

    def _append_prefix(self, text: Text) -> None:
        text.append(" " * self.indent)
        if self.key is not None:
            text.append(f'"{escaped_str(self.key)}"', _KEY_STYLE)
            text.append(" : ", _PUNCT_STYLE)

    def render(self, selected: bool = False) -> Text:
        """Render the whole line on a single row."""
        if self.content is LineContent.STRING:
            chunk = Chunk(0, 0, len(self.value), True, True)
            return self.render_chunk(chunk, selected)
        style = _CONTENT_STYLE[self.content]
        if selected:
            style = f"{style} {_SELECTED_BG}"
        text = Text(no_wrap=True)
        self._append_prefix(text)
        text.append(self._body(), style)
        if self.comma:
            text.append(",", _PUNCT_STYLE)
        if self.content in _FOLDED:
            text.append(f" ({self.value} children)", _NOTE_STYLE)
        return text

    def render_chunk(self, chunk: Chunk, selected: bool = False) -> Text:
        """Render one wrapped row of a string line."""
        style = _CONTENT_STYLE[LineContent.STRING]
        if selected:
            style = f"{style} {_SELECTED_BG}"
        text = Text(no_wrap=True)
        body = escaped_str(self.value[chunk.start : chunk.end])
        if chunk.first:
            self._append_prefix(text)
            body = '"' + body
        else:
            text.append(" " * self.indent)
        if chunk.last:
            body += '"'
        text.append(body, style)
        if chunk.last and self.comma:
            text.append(",", _PUNCT_STYLE)
        return text

    def plain(self) -> str:
        return self.render().plain
