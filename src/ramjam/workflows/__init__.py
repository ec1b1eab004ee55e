"""Workflow Documents Module for Ramjam.

This module provides:
- Declarative YAML workflow documents
- Variable substitution and captures between steps
- Restricted path queries over JSON responses
- Concurrent execution of many documents with aggregated failures
"""

from __future__ import annotations

from ramjam.workflows.collector import collect_files, collect_paths
from ramjam.workflows.errors import (
    BodyFileError,
    CaptureError,
    ExpectationError,
    HeaderExpectationError,
    NoFilesFoundError,
    NoPathsProvidedError,
    PathAccessError,
    PathQueryError,
    RequestFailedError,
    ResponseParseError,
    RunFailedError,
    StepError,
    WorkflowError,
    WorkflowParseError,
)
from ramjam.workflows.executor import StepExecutor
from ramjam.workflows.expressions import VariableStore, stringify, substitute
from ramjam.workflows.models import (
    CaptureConfig,
    DocumentConfig,
    DocumentResult,
    ExpectConfig,
    HeaderExpectation,
    JSONPathMatch,
    Metadata,
    OutputConfig,
    RequestConfig,
    RunResult,
    WorkflowDocument,
    WorkflowStep,
)
from ramjam.workflows.parser import WorkflowParser
from ramjam.workflows.paths import evaluate_path
from ramjam.workflows.runner import WorkflowRunner, run_paths
from ramjam.workflows.validator import ResponseValidator

__all__ = [
    # Models
    "WorkflowDocument",
    "WorkflowStep",
    "Metadata",
    "DocumentConfig",
    "RequestConfig",
    "ExpectConfig",
    "HeaderExpectation",
    "JSONPathMatch",
    "CaptureConfig",
    "OutputConfig",
    "DocumentResult",
    "RunResult",
    # Core components
    "WorkflowParser",
    "WorkflowRunner",
    "StepExecutor",
    "ResponseValidator",
    "VariableStore",
    "collect_files",
    "collect_paths",
    "evaluate_path",
    "run_paths",
    "stringify",
    "substitute",
    # Errors
    "WorkflowError",
    "WorkflowParseError",
    "PathAccessError",
    "NoPathsProvidedError",
    "NoFilesFoundError",
    "BodyFileError",
    "RequestFailedError",
    "ResponseParseError",
    "PathQueryError",
    "ExpectationError",
    "HeaderExpectationError",
    "CaptureError",
    "StepError",
    "RunFailedError",
]
