"""Response validator for workflow expectations.

Validates HTTP responses against workflow step expectations. The first
mismatch raises; later expectations are not evaluated.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx

from ramjam.workflows.errors import ExpectationError, HeaderExpectationError, PathQueryError
from ramjam.workflows.expressions import VariableStore, stringify
from ramjam.workflows.models import ExpectConfig, HeaderExpectation, JSONPathMatch
from ramjam.workflows.paths import evaluate_path


class ResponseValidator:
    """Validates responses against workflow expectations."""

    def __init__(self, variables: VariableStore, log: Callable[[str], None] | None = None) -> None:
        """Initialize the validator.

        Args:
            variables: Variables used to resolve expected values.
            log: Receives a line for every assertion when set.
        """
        self.variables = variables
        self.log = log

    def validate_status(self, expect: ExpectConfig, status_code: int) -> None:
        """Compare the status code when one is expected."""
        expected = expect.status
        if expected and status_code != expected:
            raise ExpectationError(
                "status",
                status_code,
                expected,
                f"expected status {expected}, got {status_code}",
            )

    def validate_headers(self, expectations: list[HeaderExpectation], headers: httpx.Headers) -> None:
        """Check every header expectation in declared order."""
        for expectation in expectations:
            name = expectation.name.strip()
            if not name:
                raise HeaderExpectationError("header expectation must specify a name")
            if not expectation.value and not expectation.contains:
                raise HeaderExpectationError(f"header expectation for {name} must specify value or contains")
            if expectation.value and expectation.contains:
                raise HeaderExpectationError(f"header expectation for {name} must specify only one of value or contains")

            actual = headers.get(name, "")
            if expectation.value:
                expected = self.variables.substitute(expectation.value)
                self._log(f"Asserting header {name} == {expected}")
                if actual != expected:
                    raise ExpectationError(
                        f"header '{name}'",
                        actual,
                        expected,
                        f"expected header {name} to equal {_quote(expected)}, got {_quote(actual)}",
                    )
            if expectation.contains:
                expected = self.variables.substitute(expectation.contains)
                self._log(f"Asserting header {name} contains {expected}")
                if expected not in actual:
                    raise ExpectationError(
                        f"header '{name}'",
                        actual,
                        expected,
                        f"expected header {name} to contain {_quote(expected)}, got {_quote(actual)}",
                    )

    def validate_json_paths(self, matchers: list[JSONPathMatch], body: Any) -> None:
        """Compare path query results by their string form."""
        for matcher in matchers:
            try:
                actual = evaluate_path(body, matcher.path)
            except PathQueryError as e:
                raise PathQueryError(matcher.path, f"jsonpath {matcher.path}: {e}") from e
            expected = self.variables.substitute(stringify(matcher.value))
            self._log(f"Asserting {matcher.path} == {expected}")
            actual_text = stringify(actual)
            if actual_text != expected:
                raise ExpectationError(
                    matcher.path,
                    actual_text,
                    expected,
                    f"jsonpath {matcher.path} expected {_quote(expected)}, got {_quote(actual_text)}",
                )

    def _log(self, message: str) -> None:
        if self.log is not None:
            self.log(message)


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'

