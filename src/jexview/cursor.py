"""Structural and combined cursors over a sequence of JSON documents.

A ``ValueCursor`` addresses one structural line: a leaf, or the opening or
closing bracket of a container. A ``GlobalCursor`` pairs it with a
``LineCursor`` so rows inside a wrapped string can be addressed too.

Requirements:
  * produce the current line without flattening the document
  * step forward and backward in O(depth)
  * dehydrate into a hashable, ordered ``ValuePath`` (used for folds)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum

from rich.text import Text
from textual.geometry import Region

from jexview.errors import InvariantViolation
from jexview.lines import MIN_WIDTH, Line, LineContent, LineCursor
from jexview.values import (
    is_array,
    is_container,
    is_object,
    object_pairs,
    scalar_text,
)

FoldKey = tuple[int, tuple[int, ...]]
_NO_FOLDS: frozenset = frozenset()


class FocusPosition(IntEnum):
    START = 0
    VALUE = 1
    END = 2

    @staticmethod
    def starting(value: object) -> FocusPosition:
        return FocusPosition.START if is_container(value) else FocusPosition.VALUE

    @staticmethod
    def ending(value: object) -> FocusPosition:
        return FocusPosition.END if is_container(value) else FocusPosition.VALUE


@dataclass(frozen=True, eq=False)
class CursorFrame:
    """An open ancestor: the container and the index of its focused child.

    Objects carry their ordered pairs so the position can be re-seeked by
    number instead of resuming an iterator.
    """

    container: object
    index: int
    pairs: tuple | None = None

    @classmethod
    def open(cls, container: object, index: int) -> CursorFrame:
        if is_object(container):
            return cls(container, index, object_pairs(container))
        return cls(container, index)

    def __len__(self) -> int:
        return len(self.pairs if self.pairs is not None else self.container)

    @property
    def key(self) -> str | None:
        if self.pairs is None:
            return None
        return self.pairs[self.index][0]

    @property
    def child(self) -> object:
        if self.pairs is None:
            return self.container[self.index]
        return self.pairs[self.index][1]

    @property
    def is_last(self) -> bool:
        return self.index == len(self) - 1

    def moved(self, index: int) -> CursorFrame:
        return CursorFrame(self.container, index, self.pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CursorFrame):
            return NotImplemented
        return (
            self.index == other.index
            and self.key == other.key
            and (self.container is other.container or self.container == other.container)
        )

    def __repr__(self) -> str:
        kind = "Object" if self.pairs is not None else "Array"
        return f"{kind}Frame(index={self.index}, key={self.key!r})"


@dataclass(frozen=True, eq=True, order=False)
class ValuePath:
    """Position of a ``ValueCursor`` independent of the document data."""

    top_index: int
    frames: tuple[int, ...] = ()
    focus_position: FocusPosition = FocusPosition.START

    @property
    def fold_key(self) -> FoldKey:
        return (self.top_index, self.frames)

    def as_tuple(self) -> tuple[int, tuple[int, ...], int]:
        return (self.top_index, self.frames, int(self.focus_position))

    @classmethod
    def from_tuple(cls, data) -> ValuePath:
        top_index, frames, position = data
        return cls(int(top_index), tuple(frames), FocusPosition(position))

    def _cmp(self, other: ValuePath) -> int:
        if self.top_index != other.top_index:
            return -1 if self.top_index < other.top_index else 1
        for mine, theirs in zip(self.frames, other.frames):
            if mine != theirs:
                return -1 if mine < theirs else 1
        if len(self.frames) == len(other.frames):
            return int(self.focus_position) - int(other.focus_position)
        # One path addresses an ancestor of the other's focus.
        shorter, sign = (self, 1) if len(self.frames) < len(other.frames) else (other, -1)
        if shorter.focus_position is FocusPosition.VALUE:
            raise InvariantViolation("cannot compare paths into different documents")
        before = shorter.focus_position is FocusPosition.START
        return -sign if before else sign

    def __lt__(self, other: ValuePath) -> bool:
        return self._cmp(other) < 0

    def __le__(self, other: ValuePath) -> bool:
        return self._cmp(other) <= 0

    def __gt__(self, other: ValuePath) -> bool:
        return self._cmp(other) > 0

    def __ge__(self, other: ValuePath) -> bool:
        return self._cmp(other) >= 0


class ValueCursor:
    """Walks a document sequence one structural line at a time."""

    def __init__(
        self,
        values: tuple,
        top_index: int = 0,
        frames: list[CursorFrame] | None = None,
        focus: object = None,
        focus_position: FocusPosition | None = None,
    ) -> None:
        self.values = values
        self.top_index = top_index
        self.frames: list[CursorFrame] = frames if frames is not None else []
        self.focus = values[top_index] if focus is None and not self.frames else focus
        if focus_position is None:
            focus_position = FocusPosition.starting(self.focus)
        self.focus_position = focus_position

    @classmethod
    def new(cls, values: tuple) -> ValueCursor | None:
        if not values:
            return None
        return cls(values, 0)

    @classmethod
    def new_end(cls, values: tuple) -> ValueCursor | None:
        if not values:
            return None
        last = len(values) - 1
        return cls(values, last, focus_position=FocusPosition.ending(values[last]))

    def copy(self) -> ValueCursor:
        return ValueCursor(
            self.values,
            self.top_index,
            list(self.frames),
            self.focus,
            self.focus_position,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueCursor):
            return NotImplemented
        same_values = self.values is other.values or self.values == other.values
        return same_values and self.to_path() == other.to_path()

    def __repr__(self) -> str:
        return f"ValueCursor({self.to_path()!r})"

    # -- Paths -------------------------------------------------------------

    def to_path(self) -> ValuePath:
        return ValuePath(
            self.top_index,
            tuple(frame.index for frame in self.frames),
            self.focus_position,
        )

    @property
    def fold_key(self) -> FoldKey:
        return (self.top_index, tuple(frame.index for frame in self.frames))

    @classmethod
    def from_path(cls, values: tuple, path: ValuePath) -> ValueCursor:
        if not 0 <= path.top_index < len(values):
            raise InvariantViolation(f"no document at index {path.top_index}")
        focus = values[path.top_index]
        frames = []
        for index in path.frames:
            if not is_container(focus) or not 0 <= index < len(focus):
                raise InvariantViolation("shape of path does not match documents")
            frame = CursorFrame.open(focus, index)
            frames.append(frame)
            focus = frame.child
        expected = FocusPosition.starting(focus)
        if (expected is FocusPosition.VALUE) != (
            path.focus_position is FocusPosition.VALUE
        ):
            raise InvariantViolation(f"{path.focus_position!r} does not fit focus")
        return cls(values, path.top_index, frames, focus, path.focus_position)

    # -- Lines -------------------------------------------------------------

    def current_key(self) -> str | None:
        if self.focus_position is FocusPosition.END or not self.frames:
            return None
        return self.frames[-1].key

    def current_indent(self, width: int) -> int:
        return max(0, min(len(self.frames) * 2, width - MIN_WIDTH))

    def has_comma(self, folded: bool = False) -> bool:
        if self.focus_position is FocusPosition.START and not folded:
            return False
        return bool(self.frames) and not self.frames[-1].is_last

    def is_folded(self, folds) -> bool:
        return (
            self.focus_position is FocusPosition.START
            and bool(folds)
            and self.fold_key in folds
        )

    def current_line(self, folds, width: int) -> Line:
        focus = self.focus
        position = self.focus_position
        folded = self.is_folded(folds)
        if is_object(focus):
            if position is FocusPosition.START:
                content = LineContent.FOLDED_OBJECT if folded else LineContent.OBJECT_START
            elif position is FocusPosition.END:
                content = LineContent.OBJECT_END
            else:
                raise InvariantViolation(f"illegal object line: {position!r}")
        elif is_array(focus):
            if position is FocusPosition.START:
                content = LineContent.FOLDED_ARRAY if folded else LineContent.ARRAY_START
            elif position is FocusPosition.END:
                content = LineContent.ARRAY_END
            else:
                raise InvariantViolation(f"illegal array line: {position!r}")
        elif position is not FocusPosition.VALUE:
            raise InvariantViolation(f"illegal leaf line: {position!r}")
        elif focus is None:
            content = LineContent.NULL
        elif isinstance(focus, bool):
            content = LineContent.BOOL
        elif isinstance(focus, str):
            content = LineContent.STRING
        else:
            content = LineContent.NUMBER
        value = len(focus) if folded else (None if is_container(focus) else focus)
        return Line(
            content,
            value,
            self.current_key(),
            self.current_indent(width),
            self.has_comma(folded),
        )

    # -- Movement ----------------------------------------------------------

    def _focus_frame_child(self, frame: CursorFrame, at_end: bool) -> None:
        self.frames.append(frame)
        self.focus = frame.child
        if at_end:
            self.focus_position = FocusPosition.ending(self.focus)
        else:
            self.focus_position = FocusPosition.starting(self.focus)

    def advance(self, folds=_NO_FOLDS) -> bool:
        """Step to the next structural line; ``False`` at the very end.

        * open bracket of an unfolded container: descend into it
        * leaf, close bracket or folded container: move to the next
          sibling, or to the parent's close bracket after the last one
        * no parent: move to the next document
        """
        if self.focus_position is FocusPosition.START and not self.is_folded(folds):
            if len(self.focus) == 0:
                self.focus_position = FocusPosition.END
            else:
                self._focus_frame_child(CursorFrame.open(self.focus, 0), False)
            return True
        if not self.frames:
            if self.top_index + 1 >= len(self.values):
                return False
            self.top_index += 1
            self.focus = self.values[self.top_index]
            self.focus_position = FocusPosition.starting(self.focus)
            return True
        frame = self.frames.pop()
        if frame.is_last:
            self.focus = frame.container
            self.focus_position = FocusPosition.END
        else:
            self._focus_frame_child(frame.moved(frame.index + 1), False)
        return True

    def regress(self, folds=_NO_FOLDS) -> bool:
        """Step to the previous structural line; ``False`` at the very start."""
        if self.focus_position is FocusPosition.END:
            if len(self.focus) == 0:
                self.focus_position = FocusPosition.START
            else:
                last = len(self.focus) - 1
                self._focus_frame_child(CursorFrame.open(self.focus, last), True)
        elif not self.frames:
            if self.top_index == 0:
                return False
            self.top_index -= 1
            self.focus = self.values[self.top_index]
            self.focus_position = FocusPosition.ending(self.focus)
        else:
            frame = self.frames.pop()
            if frame.index == 0:
                self.focus = frame.container
                self.focus_position = FocusPosition.START
            else:
                self._focus_frame_child(frame.moved(frame.index - 1), True)
        # A folded container has a single line: its open bracket.
        if (
            self.focus_position is FocusPosition.END
            and folds
            and self.fold_key in folds
        ):
            self.focus_position = FocusPosition.START
        return True

    # -- Search ------------------------------------------------------------

    def leaf_text(self) -> str | None:
        if is_container(self.focus):
            return None
        return scalar_text(self.focus)

    def regex_matches(self, pattern: re.Pattern) -> bool:
        leaf = self.leaf_text()
        if leaf is not None and pattern.search(leaf):
            return True
        # Closing brackets match their key too, unlike the key shown on screen.
        key = self.frames[-1].key if self.frames else None
        return key is not None and pattern.search(key) is not None

    def search(self, pattern: re.Pattern) -> ValueCursor | None:
        """Next match after this position, wrapping around once; folds ignored."""
        start = self.to_path()
        cursor = self.copy()
        while cursor.advance():
            if cursor.regex_matches(pattern):
                return cursor
        cursor = ValueCursor(self.values, 0)
        while cursor.to_path() != start:
            if cursor.regex_matches(pattern):
                return cursor
            if not cursor.advance():
                raise InvariantViolation("hit the end before the starting position")
        return None

    def search_back(self, pattern: re.Pattern) -> ValueCursor | None:
        """Previous match before this position, wrapping around once."""
        start = self.to_path()
        cursor = self.copy()
        while cursor.regress():
            if cursor.regex_matches(pattern):
                return cursor
        cursor = ValueCursor.new_end(self.values)
        while cursor.to_path() != start:
            if cursor.regex_matches(pattern):
                return cursor
            if not cursor.regress():
                raise InvariantViolation("hit the start before the starting position")
        return None

    def descends_from_or_matches(self, other: ValueCursor) -> bool:
        if self.top_index != other.top_index:
            return False
        if len(self.frames) < len(other.frames):
            return False
        return all(
            mine.index == theirs.index
            for mine, theirs in zip(self.frames, other.frames)
        )


@dataclass(frozen=True, order=True)
class GlobalPath:
    value_path: ValuePath
    sub_line: int = 0


class GlobalCursor:
    """A ``ValueCursor`` plus the wrapped row when the focus is a string."""

    def __init__(
        self,
        value_cursor: ValueCursor,
        width: int,
        folds=_NO_FOLDS,
        at_end: bool = False,
    ) -> None:
        if width < MIN_WIDTH:
            raise InvariantViolation(f"width {width} is below {MIN_WIDTH}")
        self.value_cursor = value_cursor
        self.width = width
        self.line_cursor: LineCursor | None = None
        self._reset_line_cursor(folds, at_end)

    @classmethod
    def new(cls, values: tuple, width: int, folds=_NO_FOLDS) -> GlobalCursor | None:
        cursor = ValueCursor.new(values)
        if cursor is None:
            return None
        return cls(cursor, width, folds)

    @classmethod
    def new_end(cls, values: tuple, width: int, folds=_NO_FOLDS) -> GlobalCursor | None:
        cursor = ValueCursor.new_end(values)
        if cursor is None:
            return None
        return cls(cursor, width, folds, at_end=True)

    @classmethod
    def at(
        cls,
        value_cursor: ValueCursor,
        width: int,
        folds=_NO_FOLDS,
        at_end: bool = False,
    ) -> GlobalCursor:
        return cls(value_cursor.copy(), width, folds, at_end)

    def copy(self) -> GlobalCursor:
        other = GlobalCursor.__new__(GlobalCursor)
        other.value_cursor = self.value_cursor.copy()
        other.width = self.width
        other.line_cursor = self.line_cursor.copy() if self.line_cursor else None
        return other

    def __repr__(self) -> str:
        return f"GlobalCursor({self.to_path()!r}, width={self.width})"

    def _reset_line_cursor(self, folds, at_end: bool) -> None:
        if isinstance(self.value_cursor.focus, str):
            line = self.value_cursor.current_line(folds, self.width)
            self.line_cursor = line.line_cursor(self.width, at_end)
        else:
            self.line_cursor = None

    def to_path(self) -> GlobalPath:
        sub_line = self.line_cursor.index if self.line_cursor else 0
        return GlobalPath(self.value_cursor.to_path(), sub_line)

    @property
    def at_first_line(self) -> bool:
        return self.line_cursor is None or self.line_cursor.is_first

    @property
    def at_last_line(self) -> bool:
        if self.line_cursor is None:
            return True
        if self.line_cursor.is_last:
            return True
        # Rows are computed lazily; probe one ahead.
        probe = self.line_cursor.copy()
        return not probe.move_next()

    def resize_to(self, width: int) -> None:
        if width < MIN_WIDTH:
            raise InvariantViolation(f"width {width} is below {MIN_WIDTH}")
        if width == self.width:
            return
        self.width = width
        if self.line_cursor is not None:
            line = self.value_cursor.current_line(_NO_FOLDS, width)
            self.line_cursor.set_width(width, line.lead_width(), line.indent)

    def advance(self, folds=_NO_FOLDS, width: int | None = None) -> bool:
        if width is not None:
            self.resize_to(width)
        if self.line_cursor is not None and self.line_cursor.move_next():
            return True
        if not self.value_cursor.advance(folds):
            return False
        self._reset_line_cursor(folds, at_end=False)
        return True

    def regress(self, folds=_NO_FOLDS, width: int | None = None) -> bool:
        if width is not None:
            self.resize_to(width)
        if self.line_cursor is not None and self.line_cursor.move_prev():
            return True
        if not self.value_cursor.regress(folds):
            return False
        self._reset_line_cursor(folds, at_end=True)
        return True

    def current_line(self, folds=_NO_FOLDS, selected: bool = False) -> Text:
        line = self.value_cursor.current_line(folds, self.width)
        if self.line_cursor is not None:
            return line.render_chunk(self.line_cursor.current, selected)
        return line.render(selected)

    def render_lines(
        self,
        selection: ValueCursor | None,
        folds,
        rect: Region,
    ) -> list[Text]:
        """Up to ``rect.height`` rows starting at this cursor."""
        cursor = self.copy()
        cursor.resize_to(rect.width)
        selected_path = selection.to_path() if selection is not None else None
        lines: list[Text] = []
        while len(lines) < rect.height:
            selected = cursor.value_cursor.to_path() == selected_path
            lines.append(cursor.current_line(folds, selected))
            if len(lines) < rect.height and not cursor.advance(folds):
                break
        return lines
