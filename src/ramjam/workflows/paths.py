"""Restricted path queries over parsed JSON.

Supported forms, tried in this order:

- `$[?(@.field==value)]` with an optional `.rest`, filtering a root array
- `$[N]` with an optional `.rest`, indexing a root array
- dotted paths such as `$.user.tags[0]` or `items[2].id`
"""

from __future__ import annotations

import re
from typing import Any

from ramjam.workflows.errors import PathQueryError
from ramjam.workflows.expressions import stringify

FILTER_PATTERN = re.compile(r"""^\$\[\?\(@\.([A-Za-z0-9_\-]+)==['"]?([^'"]+)['"]?\)\](?:\.(.*))?$""")
INDEX_PATTERN = re.compile(r"^\$\[([0-9]+)\](?:\.(.*))?$")


class _NoJSON:
    """Marker for an empty response body."""

    def __repr__(self) -> str:
        return "NO_JSON"


NO_JSON = _NoJSON()


def evaluate_path(data: Any, path: str) -> Any:
    """Select a value from `data` using a path query.

    Args:
        data: Parsed JSON value.
        path: Path query.

    Returns:
        The selected value. An equality filter without a trailing path
        returns the list of all matching elements.

    Raises:
        PathQueryError: If the query is empty or cannot be applied to `data`.
    """
    query = path.strip()
    if not query:
        raise PathQueryError(path, "empty path")
    if data is NO_JSON:
        raise PathQueryError(path, "response body is empty")

    match = FILTER_PATTERN.match(query)
    if match:
        return _evaluate_filter(data, path, *match.groups())

    match = INDEX_PATTERN.match(query)
    if match:
        return _evaluate_index(data, path, int(match.group(1)), match.group(2))

    return _evaluate_segments(data, query)


def _evaluate_filter(data: Any, path: str, field: str, expected: str, rest: str | None) -> Any:
    if not isinstance(data, list):
        raise PathQueryError(path, f"expected array for filter {path}")
    matches = [item for item in data if isinstance(item, dict) and stringify(item.get(field)) == expected]
    if not matches:
        raise PathQueryError(path, f"no match for filter {path}")
    if rest:
        return evaluate_path(matches[0], rest)
    return matches


def _evaluate_index(data: Any, path: str, index: int, rest: str | None) -> Any:
    if not isinstance(data, list):
        raise PathQueryError(path, f"expected array for index {path}")
    if index >= len(data):
        raise PathQueryError(path, f"index out of range for {path}")
    selected = data[index]
    if rest:
        return evaluate_path(selected, rest)
    return selected


def _evaluate_segments(data: Any, query: str) -> Any:
    if query.startswith("$."):
        query = query[2:]
    elif query.startswith("$"):
        query = query[1:]

    current = data
    for segment in query.split("."):
        if not segment:
            continue
        name, index = _split_segment(segment)
        if name:
            if not isinstance(current, dict):
                raise PathQueryError(query, f"expected object for segment {name}")
            # Missing keys select null
            current = current.get(name)
        if index is not None:
            if not isinstance(current, list):
                raise PathQueryError(query, f"expected array for segment {segment}")
            if not 0 <= index < len(current):
                raise PathQueryError(query, f"index out of range for segment {segment}")
            current = current[index]
    return current


def _split_segment(segment: str) -> tuple[str, int | None]:
    """Split `name[N]` into its name and index."""
    if "[" not in segment or not segment.endswith("]"):
        return segment, None
    name, _, raw_index = segment.partition("[")
    raw_index = raw_index[:-1]
    if not raw_index:
        return name, None
    try:
        return name, int(raw_index)
    except ValueError:
        raise PathQueryError(segment, f"invalid index in segment {segment}") from None
