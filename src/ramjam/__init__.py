from __future__ import annotations

from ramjam import workflows
from ramjam.config import ConfigError, RunnerConfig
from ramjam.core.version import RAMJAM_VERSION
from ramjam.workflows import RunResult, WorkflowRunner, run_paths

__version__ = RAMJAM_VERSION

__all__ = [
    "__version__",
    # Configuration
    "RunnerConfig",
    "ConfigError",
    # Execution
    "WorkflowRunner",
    "RunResult",
    "run_paths",
    "workflows",
]
