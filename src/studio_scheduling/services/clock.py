"""Clock abstraction so time-dependent logic can be frozen in tests."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        """Return the current timezone-aware instant."""


@dataclass
class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        """Return the current UTC time."""
        return datetime.now(tz=UTC)
