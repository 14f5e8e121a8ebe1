"""Application state: the view forest, the displayed pane pair and focus.

Kept free of Textual so every command the app binds to a key can be driven
directly.
"""

from __future__ import annotations

import logging
import re
from enum import Enum, auto
from pathlib import Path

from textual.geometry import Region

from jexview._search import compile_search
from jexview.config import ViewerConfig
from jexview.errors import InvariantViolation
from jexview.query import QueryEngine, default_engine
from jexview.values import dump_documents, load_documents
from jexview.view import DEFAULT_RECT, JsonView, View
from jexview.view_tree import (
    ViewForest,
    ViewForestIndex,
    ViewFrame,
    ViewTree,
    ViewTreeIndex,
)

logger = logging.getLogger(__name__)


class Focus(Enum):
    LEFT = auto()
    RIGHT = auto()

    def swap(self) -> Focus:
        return Focus.RIGHT if self is Focus.LEFT else Focus.LEFT


def remember(history: list[str], item: str, limit: int) -> None:
    """Put *item* at the front of *history*, avoiding duplicates."""
    if not item:
        return
    if item in history:
        history.remove(item)
    history.insert(0, item)
    del history[limit:]


def read_documents(path: str | Path) -> tuple:
    """Read a file of JSON documents. Raises ``OSError`` or ``ValueError``."""
    return load_documents(Path(path).read_text(encoding="utf-8"))


class Session:
    """Everything the viewer shows, and the commands that change it."""

    def __init__(
        self,
        forest: ViewForest,
        config: ViewerConfig | None = None,
        engine: QueryEngine | None = None,
    ) -> None:
        self.config = config or ViewerConfig()
        self.engine = engine or default_engine()
        self.forest = forest
        self.index = ViewForestIndex()
        self.focus = Focus.LEFT
        self.show_tree = self.config.show_tree
        self.search_re: re.Pattern | None = None
        self.search_reverse = False
        self.search_history: list[str] = []
        self.query_history: list[str] = []
        self.status_msg = ""
        self.left_rect = DEFAULT_RECT
        self.right_rect = DEFAULT_RECT

    @classmethod
    def from_documents(
        cls, values, name: str, config: ViewerConfig | None = None
    ) -> Session:
        return cls(ViewForest([ViewTree.from_documents(values, name)]), config)

    @classmethod
    def from_file(cls, path: str | Path, config: ViewerConfig | None = None) -> Session:
        return cls.from_documents(read_documents(path), str(path), config)

    # -- Lookup ------------------------------------------------------------

    def current_frames(self) -> tuple[ViewFrame, ViewFrame, str]:
        frames = self.forest.index(self.index)
        if frames is None:
            raise InvariantViolation(f"view index invalidated: {self.index!r}")
        return frames

    def focused_frame(self) -> ViewFrame:
        left, right, _ = self.current_frames()
        return left if self.focus is Focus.LEFT else right

    def focused_view(self) -> View:
        return self.focused_frame().view

    def _focused_path(self) -> list[int]:
        """Child-index path from the tree root to the focused node."""
        within = self.index.within_tree
        if self.focus is Focus.LEFT:
            return list(within.parent)
        return list(within.parent) + [within.child]

    def current_query(self) -> str | None:
        """Query that produced the focused pane, ``None`` for a root."""
        path = self._focused_path()
        if not path:
            return None
        node = self.forest.trees[self.index.tree].index_tree(path[:-1])
        if node is None:
            raise InvariantViolation(f"view index invalidated: {self.index!r}")
        return node.children[path[-1]][0]

    # -- Layout ------------------------------------------------------------

    def resize(self, left: Region, right: Region) -> None:
        self.left_rect = left
        self.right_rect = right
        left_frame, right_frame, _ = self.current_frames()
        for frame, rect in ((left_frame, left), (right_frame, right)):
            if isinstance(frame.view, JsonView):
                frame.view.resize_to(rect)

    # -- Queries -----------------------------------------------------------

    def submit_query(self, text: str) -> View:
        """Query the focused pane and show the result as its new child."""
        text = text.strip()
        view = self.focused_view()
        if not isinstance(view, JsonView):
            self.status_msg = "No documents to query"
            return None
        remember(self.query_history, text, self.config.history_size)
        logger.debug("running query %r", text)
        result = view.apply_query(text, self.right_rect, self.engine)

        path = self._focused_path()
        node = self.forest.trees[self.index.tree].index_tree(path)
        if node is None:
            raise InvariantViolation(f"view index invalidated: {self.index!r}")
        child = node.push_child(text, ViewFrame(result, text))
        self.index.within_tree = ViewTreeIndex(path, child)
        self.focus = Focus.RIGHT
        self._report_query(result)
        return result

    def edit_query(self, text: str) -> View:
        """Replace the focused pane's query and recompute it from its parent.

        The edited pane keeps its place in the tree; its own children are
        left as they were. On a root pane there is no query to edit, so the
        text becomes a new child instead.
        """
        text = text.strip()
        path = self._focused_path()
        if not path:
            return self.submit_query(text)
        parent = self.forest.trees[self.index.tree].index_tree(path[:-1])
        if parent is None or not 0 <= path[-1] < len(parent.children):
            raise InvariantViolation(f"view index invalidated: {self.index!r}")
        remember(self.query_history, text, self.config.history_size)
        logger.debug("re-running query %r on the parent pane", text)

        source = parent.view_frame.view
        rect = self.left_rect if self.focus is Focus.LEFT else self.right_rect
        if isinstance(source, JsonView):
            result = source.apply_query(text, rect, self.engine)
        else:
            result = None
        _, node = parent.children[path[-1]]
        node.view_frame = ViewFrame(result, text)
        parent.children[path[-1]] = (text, node)
        self._report_query(result)
        return result

    def _report_query(self, result: View) -> None:
        if result is None:
            self.status_msg = "Query produced no documents"
        elif isinstance(result, JsonView):
            self.status_msg = ""
        else:
            self.status_msg = "Query failed"

    # -- Search ------------------------------------------------------------

    def search(self, text: str, reverse: bool = False) -> bool:
        if not text:
            return False
        remember(self.search_history, text, self.config.history_size)
        try:
            self.search_re = compile_search(text, self.config.smart_case)
        except re.error as e:
            self.status_msg = f"Invalid regex: {e}"
            return False
        self.search_reverse = reverse
        return self.search_next()

    def search_next(self, reverse: bool = False) -> bool:
        """Repeat the last search; *reverse* flips its direction."""
        if self.search_re is None:
            self.status_msg = "No previous search"
            return False
        view = self.focused_view()
        if not isinstance(view, JsonView):
            self.status_msg = "No documents to search"
            return False
        if view.search(self.search_re, reverse=self.search_reverse != reverse):
            self.status_msg = ""
            return True
        self.status_msg = f"Pattern not found: {self.search_re.pattern}"
        return False

    # -- Panes -------------------------------------------------------------

    def next_pane(self) -> bool:
        if not self.index.advance(self.forest):
            self.status_msg = "Already at the last pane"
            return False
        logger.debug("showing pane pair %r", self.index)
        return True

    def prev_pane(self) -> bool:
        if not self.index.regress(self.forest):
            self.status_msg = "Already at the first pane"
            return False
        logger.debug("showing pane pair %r", self.index)
        return True

    def swap_focus(self) -> None:
        self.focus = self.focus.swap()

    def toggle_tree(self) -> None:
        self.show_tree = not self.show_tree

    # -- Files -------------------------------------------------------------

    def open_file(self, path: str | Path) -> bool:
        """Load another file as a new tree and show it."""
        try:
            values = read_documents(path)
        except (OSError, ValueError) as e:
            self.status_msg = f"Cannot open {path}: {e}"
            return False
        self.forest.trees.append(ViewTree.from_documents(values, str(path), self.left_rect))
        self.index = ViewForestIndex(len(self.forest.trees) - 1)
        self.focus = Focus.LEFT
        self.status_msg = f'"{path}" loaded'
        logger.debug("opened %s as tree %d", path, self.index.tree)
        return True

    def save(self, path: str | Path) -> bool:
        """Write the focused pane's documents, one pretty-printed value each."""
        view = self.focused_view()
        if not isinstance(view, JsonView):
            self.status_msg = "Nothing to save"
            return False
        try:
            Path(path).write_text(dump_documents(view.values), encoding="utf-8")
        except OSError as e:
            self.status_msg = f"Cannot write {path}: {e}"
            return False
        self.status_msg = f'"{path}" written'
        return True
