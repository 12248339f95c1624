from __future__ import annotations

from typing import Protocol


class IClock(Protocol):
    def now(self) -> float: ...


class ITimeSource(Protocol):
    def ticks(self) -> int: ...


class Clock(IClock, ITimeSource):
    def now(self) -> float:
        return 0.0

    def ticks(self) -> int:
        return 0


class IStore(Protocol):
    def load(self) -> str: ...


class Mailer:
    """Implements nothing, so it has no matching interface."""
