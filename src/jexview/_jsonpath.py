"""JSONPath evaluation used by the default query engine."""

from __future__ import annotations

import json
import re
from typing import NamedTuple

from jexview.values import freeze, is_array, is_object, object_pairs


class Segment(NamedTuple):
    """One compiled path step: ``child``, ``index``, ``wildcard`` or ``descend``."""

    kind: str
    key: str | int | None = None


def compile_jsonpath(path: str) -> list[Segment]:
    """Compile a path supporting:
    - $ (root)
    - .key / ['key'] (child)
    - [n] (array index, negative counts from the end)
    - .* / [*] (wildcard)
    - ..key / ..* (recursive descent)

    Raises ``ValueError`` for anything else.
    """
    path = path.strip()
    if not path.startswith("$"):
        raise ValueError("JSONPath must start with $")

    segments: list[Segment] = []
    rest = path[1:]
    while rest:
        if rest.startswith(".."):
            key, rest = _next_segment(rest[2:])
            if key is None:
                raise ValueError("'..' must be followed by a key")
            segments.append(Segment("descend", None if key == "*" else key))
        elif rest.startswith("."):
            key, rest = _next_segment(rest[1:])
            if key is None:
                raise ValueError("'.' must be followed by a key")
            segments.append(_bracket_or_key(key))
        elif rest.startswith("["):
            end = rest.find("]")
            if end == -1:
                raise ValueError("Unclosed bracket")
            segments.append(_bracket_or_key(rest[1:end], bracket=True))
            rest = rest[end + 1 :]
        else:
            raise ValueError(f"unexpected {rest[0]!r} in path")
    return segments


def _bracket_or_key(token: str, bracket: bool = False) -> Segment:
    token = token.strip()
    if token == "*":
        return Segment("wildcard")
    if bracket and token.lstrip("-").isdigit():
        return Segment("index", int(token))
    if bracket and len(token) >= 2 and token[0] == token[-1] and token[0] in "'\"":
        return Segment("child", token[1:-1])
    if bracket:
        raise ValueError(f"bad subscript [{token}]")
    return Segment("child", token)


def _next_segment(path: str) -> tuple[str | None, str]:
    """Extract the next dotted key from path. Returns (key, remaining)."""
    if not path or path[0] in ".[]":
        return None, path

    end = len(path)
    for i, ch in enumerate(path):
        if ch in ".[]":
            end = i
            break

    return path[:end], path[end:]


def jsonpath_find(data: object, segments: list[Segment]) -> list[object]:
    """Return every value *segments* selects in *data*, in document order."""
    results: list[object] = []
    _traverse(data, segments, 0, results)
    return results


def _children(data: object):
    if is_object(data):
        return [v for _, v in object_pairs(data)]
    if is_array(data):
        return list(data)
    return []


def _traverse(
    data: object,
    segments: list[Segment],
    pos: int,
    results: list[object],
) -> None:
    """Traverse JSON data following the compiled path."""
    if pos == len(segments):
        results.append(data)
        return

    segment = segments[pos]
    if segment.kind == "child":
        if is_object(data) and segment.key in data:
            _traverse(data[segment.key], segments, pos + 1, results)
    elif segment.kind == "index":
        idx = segment.key
        if is_array(data) and -len(data) <= idx < len(data):
            _traverse(data[idx], segments, pos + 1, results)
    elif segment.kind == "wildcard":
        for child in _children(data):
            _traverse(child, segments, pos + 1, results)
    else:
        _recursive_descent(data, segment.key, segments, pos + 1, results)


def _recursive_descent(
    data: object,
    target_key: str | None,
    segments: list[Segment],
    pos: int,
    results: list[object],
) -> None:
    """Recursively search for target_key (any key when ``None``) in data."""
    if is_object(data):
        for k, v in object_pairs(data):
            if target_key is None or k == target_key:
                _traverse(v, segments, pos, results)
            _recursive_descent(v, target_key, segments, pos, results)
    elif is_array(data):
        for v in data:
            if target_key is None:
                _traverse(v, segments, pos, results)
            _recursive_descent(v, target_key, segments, pos, results)


_OPERATORS = ("!=", ">=", "<=", "~", "=", ">", "<")


def parse_jsonpath_filter(pattern: str) -> tuple[str, str, object]:
    """Parse JSONPath with optional value filter.

    Supports:
      $.path=value    (equals)
      $.path!=value   (not equals)
      $.path>value    (greater than)
      $.path<value    (less than)
      $.path>=value   (greater or equal)
      $.path<=value   (less or equal)
      $.path~regex    (regex match)

    The first operator outside brackets wins. Returns (path, operator,
    value) or (path, "", None) if no filter.
    """
    bracket_depth = 0
    for idx, ch in enumerate(pattern):
        if ch == "[":
            bracket_depth += 1
        elif ch == "]":
            bracket_depth -= 1
        elif bracket_depth == 0:
            for op in _OPERATORS:
                if pattern.startswith(op, idx):
                    value_str = pattern[idx + len(op) :]
                    if op == "~":
                        return (pattern[:idx], op, re.compile(value_str.strip()))
                    return (pattern[:idx], op, parse_json_value(value_str))

    return (pattern, "", None)


def parse_json_value(value_str: str) -> object:
    """Parse a value string into a frozen JSON value."""
    value_str = value_str.strip()
    if not value_str:
        return None

    try:
        return freeze(json.loads(value_str))
    except json.JSONDecodeError:
        pass

    if len(value_str) >= 2 and value_str[0] == "'" and value_str[-1] == "'":
        return value_str[1:-1]

    return value_str


def _same_kind(a: object, b: object) -> bool:
    return isinstance(a, bool) == isinstance(b, bool)


def jsonpath_value_matches(actual: object, op: str, expected: object) -> bool:
    """Check if actual value matches the expected value with given operator."""
    if op == "=" or op == "==":
        return _same_kind(actual, expected) and actual == expected
    elif op == "!=":
        return not (_same_kind(actual, expected) and actual == expected)
    elif op == "~":
        if not isinstance(actual, str):
            actual = json.dumps(actual, ensure_ascii=False)
        return expected.search(actual) is not None
    elif op in (">", "<", ">=", "<="):
        if not _same_kind(actual, expected):
            return False
        try:
            if op == ">":
                return actual > expected
            if op == "<":
                return actual < expected
            if op == ">=":
                return actual >= expected
            return actual <= expected
        except TypeError:
            return False
    return False
