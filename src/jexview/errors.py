"""Exceptions shared across the viewer core."""

from __future__ import annotations


class InvariantViolation(AssertionError):
    """A cursor, pane or tree invariant was broken by the caller."""
