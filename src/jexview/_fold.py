"""Fold mixin for JsonView."""

from __future__ import annotations

from jexview.cursor import FocusPosition, GlobalCursor, ValueCursor
from jexview.values import is_container


class FoldMixin:
    """Fold set operations for JsonView.

    Folds are keyed on ``(top_index, frame_indices)`` of the container, so
    they survive any cursor movement and need no mutation of the documents.
    """

    def toggle_fold(self) -> bool:
        """Fold or unfold the container at the selection.

        Returns ``False`` (and does nothing) when the selection is a leaf.
        """
        selection = self.selection
        if not is_container(selection.focus):
            return False
        key = selection.fold_key
        if key in self.folds:
            self.folds.discard(key)
            return True
        self.folds.add(key)
        if selection.focus_position is FocusPosition.END:
            selection.focus_position = FocusPosition.START
        if self.scroll.value_cursor.descends_from_or_matches(selection):
            self.scroll = GlobalCursor.at(selection, self.rect.width, self.folds)
        return True

    def unfold_around_cursor(self) -> None:
        """Remove every fold hiding the selection."""
        top_index, frames = self.selection.fold_key
        for depth in range(len(frames)):
            self.folds.discard((top_index, frames[:depth]))

    def fold_all(self) -> None:
        """Fold every top-level container (vim ``zM``)."""
        for top_index, value in enumerate(self.values):
            if is_container(value) and len(value):
                self.folds.add((top_index, ()))
        self.selection = ValueCursor(self.values, self.selection.top_index)
        self.scroll = GlobalCursor.at(
            ValueCursor(self.values, self.scroll.value_cursor.top_index),
            self.rect.width,
            self.folds,
        )

    def unfold_all(self) -> None:
        """Clear the fold set (vim ``zR``)."""
        self.folds.clear()
