from dataclasses import dataclass

from ramjam.config import RunnerConfig


@dataclass
class Data:
    config: RunnerConfig

    __slots__ = ("config",)
