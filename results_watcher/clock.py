"""Source of the current time used for grace period arithmetic.

The reconciler receives a `Clock` at construction time. Production code uses
`SystemClock` while tests use `FakeClock` to move time forward without
sleeping.
"""

from abc import ABC, abstractmethod
import datetime
import logging

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "Clock",
    "SystemClock",
    "FakeClock",
]


class Clock(ABC):
    """A source of the current time."""

    @abstractmethod
    def now(self) -> datetime.datetime:
        """Return the current time as a timezone aware UTC datetime."""


class SystemClock(Clock):
    """Clock backed by the wall clock."""

    def now(self) -> datetime.datetime:
        """Return the current wall clock time."""
        return datetime.datetime.now(datetime.UTC)


class FakeClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime.datetime | None = None) -> None:
        """Initialize the FakeClock at `start`, or the current time."""
        self._now = _as_utc(start or datetime.datetime.now(datetime.UTC))

    def now(self) -> datetime.datetime:
        """Return the current fake time."""
        return self._now

    def advance(self, delta: datetime.timedelta) -> None:
        """Move the clock by the specified amount (may be negative)."""
        self._now = self._now + delta
        _LOGGER.debug("Advanced clock by %s to %s", delta, self._now)

    def set(self, when: datetime.datetime) -> None:
        """Jump the clock to a specific time."""
        self._now = _as_utc(when)


def _as_utc(when: datetime.datetime) -> datetime.datetime:
    if when.tzinfo is None:
        return when.replace(tzinfo=datetime.UTC)
    return when.astimezone(datetime.UTC)
