"""Error classes for workflow system."""

from __future__ import annotations

from typing import Any


class WorkflowError(Exception):
    """Base exception for workflow errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return self.message


class PathAccessError(WorkflowError):
    """Raised when a workflow path does not exist or cannot be listed."""

    def __init__(self, path: str, reason: str, *, listing: bool = False) -> None:
        self.path = path
        self.reason = reason
        action = "unable to read dir" if listing else "unable to access"
        super().__init__(f"{action} {path}: {reason}")


class NoPathsProvidedError(WorkflowError):
    """Raised when a run is started without any paths."""

    def __init__(self) -> None:
        super().__init__("no paths provided")


class NoFilesFoundError(WorkflowError):
    """Raised when the given paths resolve to no workflow files."""

    def __init__(self) -> None:
        super().__init__("no files found")


class WorkflowParseError(WorkflowError):
    """Raised when a workflow document cannot be read or parsed."""

    def __init__(self, message: str, file_path: str | None = None) -> None:
        self.file_path = file_path
        super().__init__(message)


class BodyFileError(WorkflowError):
    """Raised when a step's `body_file` cannot be read or parsed."""

    def __init__(self, body_file: str, reason: str, *, parsing: bool = False) -> None:
        self.body_file = body_file
        self.reason = reason
        action = "parse" if parsing else "read"
        super().__init__(f"resolve body file: {action} body file {body_file}: {reason}")


class RequestFailedError(WorkflowError):
    """Raised when the HTTP request cannot be built or sent."""

    def __init__(self, reason: str, *, stage: str = "request failed") -> None:
        self.reason = reason
        super().__init__(f"{stage}: {reason}")


class ResponseParseError(WorkflowError):
    """Raised when a non-empty response body is not valid JSON."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"parse response json: {reason}")


class PathQueryError(WorkflowError):
    """Raised when a path query cannot be evaluated against a JSON value."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(message)


class ExpectationError(WorkflowError):
    """Raised when a response doesn't match expectations."""

    def __init__(self, expectation: str, actual: Any, expected: Any, message: str) -> None:
        self.expectation = expectation
        self.actual = actual
        self.expected = expected
        super().__init__(message)


class HeaderExpectationError(WorkflowError):
    """Raised when a header expectation is malformed."""


class CaptureError(WorkflowError):
    """Raised when a value cannot be captured from a response."""

    def __init__(self, variable: str, message: str) -> None:
        self.variable = variable
        super().__init__(message)


class StepError(WorkflowError):
    """A failed step, recorded with its location and the underlying cause."""

    def __init__(self, file: str, step: str, description: str, cause: Exception) -> None:
        self.file = file
        self.step = step
        self.description = description
        self.cause = cause
        super().__init__(str(cause))

    def _format_message(self) -> str:
        return f'step "{self.step}" in {self.file} failed: {self.message}'


class RunFailedError(WorkflowError):
    """Raised when one or more documents of a run reported failures."""

    def __init__(self, errors: list[Exception]) -> None:
        self.errors = list(errors)
        super().__init__(f"workflow failed with {len(self.errors)} errors")

    def __len__(self) -> int:
        return len(self.errors)

    def flatten(self) -> list[Exception]:
        """Return every underlying failure in a stable order."""
        return list(self.errors)
