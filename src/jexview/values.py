"""Immutable JSON values, document loading and persistence."""

from __future__ import annotations

import json


class JsonObject(dict):
    """Read-only JSON object that keeps its pairs addressable by position."""

    __slots__ = ("pairs",)

    def __init__(self, pairs=()) -> None:
        super().__init__(pairs)
        # Duplicate keys collapse to the last value, in first-seen order.
        self.pairs: tuple[tuple[str, object], ...] = tuple(dict.items(self))

    def _readonly(self, *args, **kwargs):
        raise TypeError("JsonObject is immutable")

    __setitem__ = _readonly
    __delitem__ = _readonly
    clear = _readonly
    pop = _readonly
    popitem = _readonly
    setdefault = _readonly
    update = _readonly

    def __hash__(self) -> int:  # type: ignore[override]
        return hash(self.pairs)

    def __repr__(self) -> str:
        return f"JsonObject({dict.__repr__(self)})"


def freeze(value: object) -> object:
    """Convert decoded JSON (dicts/lists) into shared immutable values."""
    if isinstance(value, JsonObject):
        return value
    if isinstance(value, dict):
        return JsonObject((k, freeze(v)) for k, v in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def is_array(value: object) -> bool:
    return isinstance(value, (list, tuple))


def is_object(value: object) -> bool:
    return isinstance(value, dict)


def is_container(value: object) -> bool:
    return isinstance(value, (list, tuple, dict))


def object_pairs(value: dict) -> tuple[tuple[str, object], ...]:
    """Return the ordered pairs of an object, positional access in O(1)."""
    if isinstance(value, JsonObject):
        return value.pairs
    return tuple(value.items())


def scalar_text(value: object) -> str:
    """Canonical text of a leaf value (strings are returned raw)."""
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in " \t\r\n":
        pos += 1
    return pos


def load_documents(text: str) -> tuple[object, ...]:
    """Parse a stream of whitespace separated JSON values (JSON-lines too).

    Raises ``json.JSONDecodeError`` on malformed input.
    """
    decoder = json.JSONDecoder()
    docs: list[object] = []
    pos = _skip_ws(text, 0)
    while pos < len(text):
        value, pos = decoder.raw_decode(text, pos)
        docs.append(freeze(value))
        pos = _skip_ws(text, pos)
    return tuple(docs)


def dump_documents(values) -> str:
    """Serialize a document sequence, one pretty-printed value per document."""
    return "".join(
        json.dumps(value, indent=4, ensure_ascii=False) + "\n" for value in values
    )
