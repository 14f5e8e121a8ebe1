"""Tree of derived query panes, and the forest of trees for all open files."""

from __future__ import annotations

from dataclasses import dataclass, field

from rich.text import Text
from textual.geometry import Region

from jexview.errors import InvariantViolation
from jexview.query import IDENTITY_QUERY
from jexview.view import DEFAULT_RECT, JsonView, View

NEW_QUERY_NAME = "New Query"

_PARENT_STYLE = "blue"
_CHILD_STYLE = "yellow"


@dataclass
class ViewFrame:
    view: View
    name: str


@dataclass
class ViewTree:
    """A named pane plus the panes derived from it, each labelled by its query."""

    view_frame: ViewFrame
    children: list[tuple[str, ViewTree]] = field(default_factory=list)

    @classmethod
    def from_documents(
        cls, values, name: str, rect: Region = DEFAULT_RECT
    ) -> ViewTree:
        tree = cls(ViewFrame(JsonView.new(values, rect), name))
        tree.push_trivial_child()
        return tree

    def push_trivial_child(self) -> int:
        """Add an identity query child so the tree always has a pane pair."""
        view = self.view_frame.view
        child_view = JsonView.new(view.values, view.rect) if isinstance(view, JsonView) else None
        return self.push_child(IDENTITY_QUERY, ViewFrame(child_view, NEW_QUERY_NAME))

    def push_child(self, query: str, frame: ViewFrame) -> int:
        self.children.append((query, ViewTree(frame)))
        return len(self.children) - 1

    def index_tree(self, path) -> ViewTree | None:
        focus = self
        for i in path:
            if not 0 <= i < len(focus.children):
                return None
            focus = focus.children[i][1]
        return focus

    def index(self, ix: ViewTreeIndex) -> tuple[ViewFrame, ViewFrame, str] | None:
        focus = self.index_tree(ix.parent)
        if focus is None or not 0 <= ix.child < len(focus.children):
            return None
        query, child = focus.children[ix.child]
        return focus.view_frame, child.view_frame, query

    def render_tree(self, index: ViewTreeIndex | None) -> list[Text]:
        """One row per node, with box-drawing branches.

        The displayed parent is drawn blue and the displayed child yellow.
        """
        pointer = (tuple(index.parent), index.child) if index is not None else None
        is_parent = pointer is not None and not pointer[0]
        rows = [_render_entry(self.view_frame.name, is_parent, False)]
        for i, (_, child) in enumerate(self.children):
            end = i == len(self.children) - 1
            is_child = is_parent and pointer[1] == i
            _render_inner(child, "", end, _descend(pointer, i), is_child, rows)
        return rows


def _descend(pointer, i: int):
    if pointer is None or not pointer[0] or pointer[0][0] != i:
        return None
    return (pointer[0][1:], pointer[1])


def _render_inner(
    tree: ViewTree,
    prefix: str,
    end: bool,
    pointer,
    is_child: bool,
    rows: list[Text],
) -> None:
    is_parent = pointer is not None and not pointer[0]
    row = Text(prefix + ("└" if end else "├"))
    row.append_text(_render_entry(tree.view_frame.name, is_parent, is_child))
    rows.append(row)
    new_prefix = prefix + (" " if end else "│")
    for i, (_, child) in enumerate(tree.children):
        last = i == len(tree.children) - 1
        child_is_child = is_parent and pointer[1] == i
        _render_inner(child, new_prefix, last, _descend(pointer, i), child_is_child, rows)


def _render_entry(name: str, is_parent: bool, is_child: bool) -> Text:
    if is_parent and is_child:
        raise InvariantViolation(f"{name!r} can't be both a parent and a child")
    if is_parent:
        return Text(name, style=_PARENT_STYLE)
    if is_child:
        return Text(name, style=_CHILD_STYLE)
    return Text(name)


@dataclass
class ViewTreeIndex:
    """Which (parent, child) pane pair of a tree is displayed.

    *parent* is the path of child indices from the root to the displayed
    parent, *child* the displayed child's index under it.
    """

    parent: list[int] = field(default_factory=list)
    child: int = 0

    def copy(self) -> ViewTreeIndex:
        return ViewTreeIndex(list(self.parent), self.child)

    def advance(self, tree: ViewTree) -> bool:
        """Move to the next pair in pre-order; ``False`` after the last one."""
        return self._advance_inner(tree, 0)

    def _advance_inner(self, tree: ViewTree, offset: int) -> bool:
        if offset == len(self.parent):
            # We're at the parent.
            _, child = tree.children[self.child]
            if child.children:
                self.parent.append(self.child)
                self.child = 0
                return True
            if self.child == len(tree.children) - 1:
                return False
            self.child += 1
            return True
        child_ix = self.parent[offset]
        _, child = tree.children[child_ix]
        if self._advance_inner(child, offset + 1):
            return True
        if child_ix == len(tree.children) - 1:
            return False
        self.child = child_ix + 1
        del self.parent[offset:]
        return True

    def regress(self) -> bool:
        """Pop one level or step to the previous sibling.

        Not the inverse of ``advance``: it never re-enters the previous
        sibling's descendants.
        """
        if self.child == 0:
            if not self.parent:
                return False
            self.child = self.parent.pop()
        else:
            self.child -= 1
        return True


@dataclass
class ViewForestIndex:
    tree: int = 0
    within_tree: ViewTreeIndex = field(default_factory=ViewTreeIndex)

    def copy(self) -> ViewForestIndex:
        return ViewForestIndex(self.tree, self.within_tree.copy())

    def advance(self, forest: ViewForest) -> bool:
        if self.within_tree.advance(forest.trees[self.tree]):
            return True
        if self.tree + 1 >= len(forest.trees):
            return False
        self.tree += 1
        self.within_tree = ViewTreeIndex()
        return True

    def regress(self, forest: ViewForest) -> bool:
        if self.within_tree.regress():
            return True
        if self.tree == 0:
            return False
        self.tree -= 1
        self.within_tree = ViewTreeIndex()
        return True


@dataclass
class ViewForest:
    """One view tree per open file."""

    trees: list[ViewTree] = field(default_factory=list)

    def index(self, ix: ViewForestIndex) -> tuple[ViewFrame, ViewFrame, str] | None:
        if not 0 <= ix.tree < len(self.trees):
            return None
        return self.trees[ix.tree].index(ix.within_tree)

    def index_tree(self, ix: ViewForestIndex) -> ViewTree | None:
        """The node holding the displayed parent pane."""
        if not 0 <= ix.tree < len(self.trees):
            return None
        return self.trees[ix.tree].index_tree(ix.within_tree.parent)

    def render_tree(self, ix: ViewForestIndex) -> Text:
        rows: list[Text] = []
        for i, tree in enumerate(self.trees):
            rows.extend(tree.render_tree(ix.within_tree if i == ix.tree else None))
        return Text("\n").join(rows)
