"""A pane: one document sequence with its own selection, scroll and folds."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from rich.text import Text
from textual.geometry import Region

from jexview._fold import FoldMixin
from jexview._search import SearchMixin
from jexview.cursor import GlobalCursor, GlobalPath, ValueCursor, ValuePath
from jexview.query import QueryEngine, default_engine

logger = logging.getLogger(__name__)

DEFAULT_RECT = Region(0, 0, 80, 24)


@dataclass(frozen=True)
class VisibleRange:
    """Inclusive range of display rows the viewport currently shows."""

    first: GlobalPath
    last: GlobalPath
    # The final step landed on the first wrapped row of its target.
    ends_on_first_line: bool = True
    # The final row is the last wrapped row of its target.
    last_is_complete: bool = True

    def contains(self, path: ValuePath) -> bool:
        return self.first.value_path <= path <= self.last.value_path


@dataclass(frozen=True)
class ErrorView:
    """Diagnostics of a query that could not be run."""

    messages: tuple[str, ...]

    def lines(self) -> list[str]:
        return [line for message in self.messages for line in message.split("\n")]


class JsonView(FoldMixin, SearchMixin):
    """Viewport over a non-empty document sequence.

    The selection always lies inside the visible range: every operation
    that moves the selection or changes the geometry scrolls to keep it
    there.
    """

    def __init__(self, values: tuple, rect: Region = DEFAULT_RECT) -> None:
        if not values:
            raise ValueError("a pane needs at least one document")
        self.values = values
        self.rect = rect
        self.folds: set[tuple[int, tuple[int, ...]]] = set()
        self.selection = ValueCursor(values, 0)
        self.scroll = GlobalCursor(ValueCursor(values, 0), rect.width)

    @classmethod
    def new(cls, values, rect: Region = DEFAULT_RECT) -> JsonView | None:
        """Build a pane, or ``None`` when there is nothing to show."""
        values = tuple(values)
        if not values:
            return None
        return cls(values, rect)

    def __repr__(self) -> str:
        return (
            f"JsonView(documents={len(self.values)}, "
            f"selection={self.selection.to_path()!r}, rect={self.rect!r})"
        )

    @property
    def height(self) -> int:
        return max(1, self.rect.height)

    def visible_range(self, folds=None) -> VisibleRange:
        folds = self.folds if folds is None else folds
        cursor = self.scroll.copy()
        first = cursor.to_path()
        for _ in range(self.height - 1):
            if not cursor.advance(folds):
                break
        return VisibleRange(
            first,
            cursor.to_path(),
            cursor.at_first_line,
            cursor.at_last_line,
        )

    def is_visible(self) -> bool:
        return self.visible_range().contains(self.selection.to_path())

    def _reveal_selection(self) -> None:
        """Nudge the scroll cursor until the selection is on screen."""
        target = self.selection.to_path()
        nudges = 0
        while True:
            visible = self.visible_range()
            if visible.contains(target):
                break
            if target < visible.first.value_path:
                moved = self.scroll.regress(self.folds)
            else:
                moved = self.scroll.advance(self.folds)
            if not moved:
                break
            nudges += 1
        if nudges:
            logger.debug("scrolled %d rows to reveal %r", nudges, target)

    # -- Navigation --------------------------------------------------------

    def advance_cursor(self) -> None:
        visible = self.visible_range()
        if (
            self.selection.to_path() == visible.last.value_path
            and not visible.last_is_complete
        ):
            self.scroll.advance(self.folds)
            return
        if self.selection.advance(self.folds):
            self._reveal_selection()

    def regress_cursor(self) -> None:
        visible = self.visible_range()
        if (
            self.selection.to_path() == visible.first.value_path
            and visible.first.sub_line > 0
        ):
            self.scroll.regress(self.folds)
            return
        if self.selection.regress(self.folds):
            self._reveal_selection()

    def page_down(self) -> None:
        for _ in range(self.height - 1):
            if not self.scroll.advance(self.folds):
                break
        for _ in range(self.height - 1):
            if not self.selection.advance(self.folds):
                break
        self._reveal_selection()

    def page_up(self) -> None:
        for _ in range(self.height - 1):
            if not self.scroll.regress(self.folds):
                break
        for _ in range(self.height - 1):
            if not self.selection.regress(self.folds):
                break
        self._reveal_selection()

    def resize_to(self, rect: Region) -> None:
        if rect == self.rect:
            return
        logger.debug("resizing pane from %r to %r", self.rect, rect)
        self.rect = rect
        self.scroll.resize_to(rect.width)
        self._reveal_selection()

    # -- Queries -----------------------------------------------------------

    def apply_query(
        self,
        text: str,
        rect: Region | None = None,
        engine: QueryEngine | None = None,
    ) -> View:
        """Run *text* over this pane's documents and build the derived view."""
        engine = engine or default_engine()
        try:
            result = engine.run(self.values, text)
        except Exception as e:
            logger.exception("query engine failed on %r", text)
            return ErrorView((f"query failed: {e}",))
        if result.errors:
            return ErrorView(tuple(result.errors))
        return JsonView.new(result.values, rect or self.rect)

    # -- Rendering ---------------------------------------------------------

    def render_lines(self, has_focus: bool = True) -> list[Text]:
        selection = self.selection if has_focus else None
        return self.scroll.render_lines(selection, self.folds, self.rect)

    def is_selected(self, path: ValuePath) -> bool:
        return self.selection.to_path() == path


View = Union[JsonView, ErrorView, None]
