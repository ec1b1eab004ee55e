"""Data models for workflow documents.

These models represent the structure of workflow YAML files and execution results.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field, PrivateAttr, model_validator

from ramjam.workflows.errors import RunFailedError


def _scalar_text(value: Any) -> Any:
    """Render YAML booleans and dates the way they are written in the document."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return value


# String field that also accepts any YAML scalar
ScalarStr = Annotated[str, BeforeValidator(_scalar_text)]


class _DocumentModel(BaseModel):
    """Base for document sections.

    Unknown keys are ignored and explicit nulls fall back to field defaults.
    """

    model_config = {"extra": "ignore", "populate_by_name": True, "coerce_numbers_to_str": True}

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class Metadata(_DocumentModel):
    """Descriptive information about a workflow document."""

    name: ScalarStr = ""
    author: ScalarStr = ""
    description: ScalarStr = ""


class DocumentConfig(_DocumentModel):
    """Base configuration shared by every step of a document."""

    base_url: str = ""


class RequestConfig(_DocumentModel):
    """Request configuration for a workflow step."""

    method: str = ""
    url: str
    headers: dict[str, ScalarStr] = Field(default_factory=dict)
    body: dict[str, Any] | None = None
    body_file: str | None = None
    params: dict[str, ScalarStr] = Field(default_factory=dict)

    _resolved_body: dict[str, Any] | None = PrivateAttr(default=None)
    _body_source: str | None = PrivateAttr(default=None)

    @property
    def resolved_body(self) -> dict[str, Any] | None:
        """Body to send, materialized from `body_file` or the inline `body`."""
        return self._resolved_body

    @property
    def body_source(self) -> str | None:
        """Where the resolved body came from: `inline` or the body file reference."""
        return self._body_source

    def set_resolved_body(self, body: dict[str, Any] | None, source: str | None) -> None:
        self._resolved_body = body
        self._body_source = source

    def get_method(self) -> str:
        """HTTP method, upper-cased; GET when absent or blank."""
        return self.method.strip().upper() or "GET"


class JSONPathMatch(_DocumentModel):
    """Assert that a path query against the response body yields a value."""

    path: str
    value: Any = None


class HeaderExpectation(_DocumentModel):
    """Assert a response header equals or contains a value."""

    name: ScalarStr = ""
    value: ScalarStr = ""
    contains: ScalarStr = ""


class ExpectConfig(_DocumentModel):
    """Expectation configuration for a workflow step."""

    status: int | None = None
    json_path_match: list[JSONPathMatch] = Field(default_factory=list)
    headers: list[HeaderExpectation] = Field(default_factory=list)


class CaptureConfig(_DocumentModel):
    """Store a value from the response under a variable name."""

    json_path: str = ""
    header: str = ""
    regex: str = ""
    as_var: str = Field(alias="as")


class OutputConfig(_DocumentModel):
    """Message emitted after a step succeeds."""

    print_template: ScalarStr = Field(default="", alias="print")


class WorkflowStep(_DocumentModel):
    """A single step in a workflow."""

    step: ScalarStr
    description: ScalarStr = ""
    request: RequestConfig
    expect: ExpectConfig = Field(default_factory=ExpectConfig)
    capture: list[CaptureConfig] = Field(default_factory=list)
    output: OutputConfig = Field(default_factory=OutputConfig)


class WorkflowDocument(_DocumentModel):
    """A complete workflow document."""

    metadata: Metadata = Field(default_factory=Metadata)
    config: DocumentConfig = Field(default_factory=DocumentConfig)
    workflow: list[WorkflowStep] = Field(default_factory=list)


@dataclass
class DocumentResult:
    """Result of executing a single workflow document."""

    path: str
    index: int
    lines: list[str] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return bool(self.errors)


@dataclass
class RunResult:
    """Aggregated result of executing every collected document.

    `documents` are kept in completion order.
    """

    documents: list[DocumentResult] = field(default_factory=list)

    @property
    def errors(self) -> list[Exception]:
        """All failures, ordered by document position and then by step."""
        errors: list[Exception] = []
        for document in sorted(self.documents, key=lambda d: d.index):
            errors.extend(document.errors)
        return errors

    @property
    def lines(self) -> list[str]:
        """Progress lines, grouped per document."""
        return [line for document in self.documents for line in document.lines]

    @property
    def ok(self) -> bool:
        return not any(document.failed for document in self.documents)

    def raise_for_errors(self) -> None:
        """Raise `RunFailedError` carrying every failure, if there are any."""
        errors = self.errors
        if errors:
            raise RunFailedError(errors)
