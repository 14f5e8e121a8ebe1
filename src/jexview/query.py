"""Query engines: turn a document sequence plus query text into a new sequence."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

from jexview._jsonpath import (
    compile_jsonpath,
    jsonpath_find,
    jsonpath_value_matches,
    parse_jsonpath_filter,
)

IDENTITY_QUERY = "$"


@dataclass(frozen=True)
class QueryResult:
    """Either the resulting documents or the diagnostics explaining why not."""

    values: tuple = ()
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors


class QueryEngine(Protocol):
    def run(self, documents: tuple, query: str) -> QueryResult:
        """Run *query* over *documents*; bad queries are reported, not raised."""
        ...


class JsonPathEngine:
    """JSONPath with an optional trailing value filter.

    The path is applied to each document in turn and the selected values
    are concatenated in order. With a filter only the selected values that
    satisfy it are kept, e.g. ``$.items[*].price>10``.
    """

    def run(self, documents: tuple, query: str) -> QueryResult:
        query = query.strip()
        if not query:
            return QueryResult(errors=("empty query",))
        try:
            path, op, expected = parse_jsonpath_filter(query)
            segments = compile_jsonpath(path)
        except re.error as e:
            return QueryResult(errors=(f"{query}: invalid regex: {e}",))
        except ValueError as e:
            return QueryResult(errors=(f"{query}: {e}",))

        results: list[object] = []
        for document in documents:
            for value in jsonpath_find(document, segments):
                if op and not jsonpath_value_matches(value, op, expected):
                    continue
                results.append(value)
        return QueryResult(values=tuple(results))


_default_engine = JsonPathEngine()


def default_engine() -> QueryEngine:
    return _default_engine
