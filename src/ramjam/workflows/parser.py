"""Workflow parser for YAML workflow documents.

Parses workflow YAML files into workflow models and resolves request bodies.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from ramjam.workflows.errors import BodyFileError, WorkflowParseError
from ramjam.workflows.models import WorkflowDocument, WorkflowStep

logger = logging.getLogger(__name__)


class WorkflowParser:
    """Parses workflow YAML files."""

    def parse_file(self, path: str | Path) -> WorkflowDocument:
        """Parse a workflow file.

        Args:
            path: Path to the workflow YAML file.

        Returns:
            Parsed WorkflowDocument object.

        Raises:
            WorkflowParseError: If the file cannot be read or parsed.
        """
        path = Path(path)

        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise WorkflowParseError(f"read {path}: {e}", file_path=str(path)) from e

        return self.parse_string(content, file_path=str(path))

    def parse_string(self, content: str, file_path: str | None = None) -> WorkflowDocument:
        """Parse workflow content from a string.

        Args:
            content: YAML content string.
            file_path: Optional file path for error reporting.

        Returns:
            Parsed WorkflowDocument object.
        """
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise WorkflowParseError(self._describe(f"invalid YAML: {e}", file_path), file_path=file_path) from e

        return self.parse_dict(data, file_path=file_path)

    def parse_dict(self, data: Any, file_path: str | None = None) -> WorkflowDocument:
        """Parse workflow data from a dictionary.

        Args:
            data: Workflow data dictionary.
            file_path: Optional file path for error reporting.

        Returns:
            Parsed WorkflowDocument object.
        """
        if not isinstance(data, dict):
            raise WorkflowParseError(
                self._describe("workflow document must be a mapping", file_path), file_path=file_path
            )
        try:
            document = WorkflowDocument.model_validate(data)
        except ValidationError as e:
            raise WorkflowParseError(self._describe(str(e), file_path), file_path=file_path) from e

        logger.debug("Parsed %s with %d step(s)", file_path or "<string>", len(document.workflow))
        return document

    def resolve_body(self, step: WorkflowStep, base_dir: str | Path) -> None:
        """Materialize the body a step will send.

        A `body_file` is read relative to `base_dir` unless absolute and must
        contain a JSON object. Without one, a non-empty inline `body` is used.

        Raises:
            BodyFileError: If the body file cannot be read or parsed.
        """
        request = step.request
        if not request.body_file:
            if request.body:
                request.set_resolved_body(request.body, "inline")
            return

        body_path = Path(request.body_file)
        if not body_path.is_absolute():
            body_path = Path(base_dir) / body_path

        try:
            content = body_path.read_bytes()
        except OSError as e:
            raise BodyFileError(request.body_file, e.strerror or str(e)) from e

        try:
            body = json.loads(content)
        except ValueError as e:
            raise BodyFileError(request.body_file, str(e), parsing=True) from e
        if not isinstance(body, dict):
            raise BodyFileError(request.body_file, "expected a JSON object", parsing=True)

        request.set_resolved_body(body, request.body_file)

    @staticmethod
    def _describe(message: str, file_path: str | None) -> str:
        if file_path:
            return f"parse {file_path}: {message}"
        return message


def parse_workflow_file(path: str | Path) -> WorkflowDocument:
    """Convenience function to parse a workflow file.

    Args:
        path: Path to the workflow YAML file.

    Returns:
        Parsed WorkflowDocument object.
    """
    parser = WorkflowParser()
    return parser.parse_file(path)


def parse_workflow_string(content: str) -> WorkflowDocument:
    """Convenience function to parse workflow content from a string.

    Args:
        content: YAML content string.

    Returns:
        Parsed WorkflowDocument object.
    """
    parser = WorkflowParser()
    return parser.parse_string(content)
