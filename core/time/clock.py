"""
RentOps Core Time — Clock
==========================
Order functions never read the wall clock: each takes its acceptance
time as `at`. OrderService draws that time from the Clock it was
built with, so status history and invoice stamps are reproducible.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now_utc(self) -> datetime:
        ...  # pragma: no cover


class SystemClock:
    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Stands still until moved, e.g. to step an order through a day of
    status changes:

        clock = FixedClock(datetime(2026, 3, 1, 9, tzinfo=timezone.utc))
        clock.advance(hours=2)
    """

    def __init__(self, start: datetime) -> None:
        if start.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime.")
        self._current = start

    def now_utc(self) -> datetime:
        return self._current

    def advance(self, **delta) -> None:
        self._current = self._current + timedelta(**delta)
