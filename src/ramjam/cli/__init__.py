from __future__ import annotations

from ramjam.cli.commands import get, ramjam, run, version

__all__ = ["ramjam", "run", "get", "version"]
