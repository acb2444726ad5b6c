from __future__ import annotations

from enum import IntEnum


class Stage(IntEnum):
    """Computation stages, realized strictly in increasing order."""

    EMPTY = 0
    TOPOLOGY = 1
    MODEL = 2
    INSTANCE = 3
    TIME = 4
    POSITION = 5
    VELOCITY = 6
    DYNAMICS = 7
    ACCELERATION = 8
    REPORT = 9

    def label(self) -> str:
        return self.name.capitalize()


class StageError(RuntimeError):
    """A quantity was read or written at a stage where it is not available."""
