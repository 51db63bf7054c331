"""
Injectable time source.

The stock ledger stamps ``updated_at`` on batches and the default ``date``
on transactions from a Clock it is given, never from ``datetime.now()``.
Tests pass a DeterministicClock so ledger replay and dead-stock reports are
reproducible.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

DEFAULT_EPOCH = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


class Clock(ABC):
    """Source of the current UTC time."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Manually driven clock for tests.

    ``now()`` is stable between calls; only ``advance``, ``tick`` and
    ``set_time`` move it.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or DEFAULT_EPOCH

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Step one second forward and return the new time."""
        self.advance()
        return self._current
