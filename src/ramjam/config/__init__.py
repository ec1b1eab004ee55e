"""Configuration for workflow runs.

Values come from an optional `ramjam.toml` file and are overridden by
command line options:

    [run]
    timeout = 10
    verbose = true
    user-agent = "my-client"
    extensions = [".yaml", ".yml"]

The keys may also be placed at the top level of the file.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ramjam.config._error import ConfigError
from ramjam.workflows.collector import DEFAULT_EXTENSIONS
from ramjam.workflows.executor import DEFAULT_USER_AGENT

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib

__all__ = ["ConfigError", "RunnerConfig", "DEFAULT_CONFIG_FILE", "DEFAULT_TIMEOUT"]

DEFAULT_CONFIG_FILE = "ramjam.toml"
DEFAULT_TIMEOUT = 30.0


@dataclass(repr=False)
class RunnerConfig:
    """Settings for running workflow documents."""

    timeout: float
    verbose: bool
    user_agent: str
    extensions: list[str]

    __slots__ = ("timeout", "verbose", "user_agent", "extensions")

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verbose: bool = False,
        user_agent: str = DEFAULT_USER_AGENT,
        extensions: list[str] | None = None,
    ) -> None:
        self.timeout = timeout
        self.verbose = verbose
        self.user_agent = user_agent
        self.extensions = list(extensions) if extensions is not None else list(DEFAULT_EXTENSIONS)

    def __repr__(self) -> str:
        return (
            f"RunnerConfig(timeout={self.timeout!r}, verbose={self.verbose!r}, "
            f"user_agent={self.user_agent!r}, extensions={self.extensions!r})"
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunnerConfig:
        section = data.get("run", data)
        if not isinstance(section, dict):
            raise ConfigError("`run` must be a table")

        timeout = section.get("timeout", DEFAULT_TIMEOUT)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError(f"`timeout` must be a positive number, got {timeout!r}")

        verbose = section.get("verbose", False)
        if not isinstance(verbose, bool):
            raise ConfigError(f"`verbose` must be a boolean, got {verbose!r}")

        user_agent = section.get("user-agent", DEFAULT_USER_AGENT)
        if not isinstance(user_agent, str) or not user_agent.strip():
            raise ConfigError(f"`user-agent` must be a non-empty string, got {user_agent!r}")

        extensions = section.get("extensions", list(DEFAULT_EXTENSIONS))
        if not isinstance(extensions, list) or not all(isinstance(item, str) and item for item in extensions):
            raise ConfigError(f"`extensions` must be a list of file suffixes, got {extensions!r}")

        return cls(timeout=float(timeout), verbose=verbose, user_agent=user_agent, extensions=extensions)

    @classmethod
    def from_str(cls, content: str) -> RunnerConfig:
        return cls.from_dict(tomllib.loads(content))

    @classmethod
    def from_path(cls, path: str | Path) -> RunnerConfig:
        with open(path, "rb") as fd:
            return cls.from_dict(tomllib.load(fd))

    @classmethod
    def discover(cls) -> RunnerConfig:
        """Load `ramjam.toml` from the working directory, or use defaults."""
        path = Path.cwd() / DEFAULT_CONFIG_FILE
        if path.is_file():
            return cls.from_path(path)
        return cls()

    def update(
        self,
        *,
        timeout: float | None = None,
        verbose: bool | None = None,
        user_agent: str | None = None,
        extensions: list[str] | None = None,
    ) -> None:
        if timeout is not None:
            self.timeout = timeout
        if verbose is not None:
            self.verbose = verbose
        if user_agent is not None:
            self.user_agent = user_agent
        if extensions is not None:
            self.extensions = extensions
