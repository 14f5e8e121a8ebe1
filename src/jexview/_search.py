"""Search mixin for JsonView."""

from __future__ import annotations

import re

from jexview.cursor import GlobalCursor


def compile_search(pattern: str, smart_case: bool = True) -> re.Pattern:
    """Compile a search pattern the way vim's smartcase does.

    A trailing ``\\c`` forces ignore-case, ``\\C`` forces case-sensitive,
    otherwise an all-lowercase pattern ignores case. Raises ``re.error``.
    """
    flags = 0
    if pattern.endswith("\\c"):
        pattern = pattern[:-2]
        flags = re.IGNORECASE
    elif pattern.endswith("\\C"):
        pattern = pattern[:-2]
    elif smart_case and pattern.islower():
        flags = re.IGNORECASE
    return re.compile(pattern, flags)


class SearchMixin:
    """Cyclic search over the pane's documents."""

    def search(self, pattern: re.Pattern, reverse: bool = False) -> bool:
        """Move the selection to the next (or previous) match.

        The match is unfolded and scrolled into view. Returns ``False`` when
        nothing else matches, leaving the pane untouched.
        """
        if reverse:
            hit = self.selection.search_back(pattern)
        else:
            hit = self.selection.search(pattern)
        if hit is None:
            return False
        self.selection = hit
        self.unfold_around_cursor()
        if not self.visible_range().contains(hit.to_path()):
            self.scroll = GlobalCursor.at(hit, self.rect.width, self.folds)
        return True
