"""Variable substitution for workflow documents.

Handles `${name}` placeholders in strings and, recursively, in the strings held
by nested mappings and sequences. Placeholders naming an unknown variable are
left verbatim so they remain visible in requests and output.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator, Mapping, MutableMapping
from typing import Any

# Pattern to match ${...} expressions
VARIABLE_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute(value: Any, variables: Mapping[str, str]) -> Any:
    """Replace known `${name}` placeholders in a value.

    Args:
        value: A string, or a mapping/sequence possibly containing strings.
        variables: Variable values by name.

    Returns:
        A value of the same shape with placeholders replaced. Mapping keys and
        non-string scalars are returned unchanged.
    """
    if isinstance(value, str):
        return _substitute_string(value, variables)
    elif isinstance(value, dict):
        return {key: substitute(item, variables) for key, item in value.items()}
    elif isinstance(value, list):
        return [substitute(item, variables) for item in value]
    return value


def _substitute_string(value: str, variables: Mapping[str, str]) -> str:
    def replace_match(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables:
            return variables[name]
        return match.group(0)

    return VARIABLE_PATTERN.sub(replace_match, value)


def stringify(value: Any) -> str:
    """String form used for comparisons and captured variables.

    Scalars render the way they appear in JSON (`true`, `null`, `30`);
    containers render as compact JSON.
    """
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


class VariableStore(MutableMapping[str, str]):
    """Per-document variables, seeded with `base_url` and extended by captures."""

    def __init__(self, base_url: str = "", **values: str) -> None:
        self._values: dict[str, str] = {"base_url": base_url, **values}

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __setitem__(self, name: str, value: str) -> None:
        self._values[name] = value

    def __delitem__(self, name: str) -> None:
        del self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"VariableStore({self._values!r})"

    def substitute(self, value: Any) -> Any:
        """Replace placeholders in `value` using the current variables."""
        return substitute(value, self)
