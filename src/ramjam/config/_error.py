from __future__ import annotations


class ConfigError(Exception):
    """Invalid configuration."""
