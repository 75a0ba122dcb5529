"""
Business Day Index — ordinal trading-day navigation over a built range.

The index is a contiguous day range with a boolean trading mask:
  - ``_prefix[i]`` counts trading days among the first ``i`` days
  - ``_trading_offsets`` holds the day offset of every trading day, so a
    trading day's 0-based position in it is its ordinal minus one

Navigation and counting are binary searches over those arrays. Any result
that would land outside the built range raises OutOfRangeError; lookups
with no answer inside the range (a 25th trading day) return None.
"""

from collections.abc import Hashable, Iterator, Sequence
from datetime import date, timedelta
from typing import NamedTuple

import numpy as np

from calendar_engine.dates import days_in_month
from core.errors import InvalidInputError, OutOfRangeError


class DayNavigation(NamedTuple):
    next_date: date | None
    previous_date: date | None
    next_trading_date: date | None
    previous_trading_date: date | None
    trading_day_ordinal: int | None  # 1-based rank among all trading days


class BusinessDayIndex:
    """Read-only trading-day index; rebuild it whenever the holiday set changes."""

    def __init__(self, start_date: date, trading_flags: Sequence[bool]):
        if start_date is None:
            raise InvalidInputError("start_date is required")
        if len(trading_flags) == 0:
            raise InvalidInputError("trading_flags must cover at least one day")
        self.start_date = start_date
        self.end_date = start_date + timedelta(days=len(trading_flags) - 1)

        self._trading = np.asarray(trading_flags, dtype=bool)
        self._prefix = np.zeros(len(self._trading) + 1, dtype=np.int64)
        np.cumsum(self._trading, out=self._prefix[1:])
        self._trading_offsets = np.flatnonzero(self._trading)

    def __len__(self) -> int:
        """Number of trading days in the index."""
        return int(self._trading_offsets.size)

    def __repr__(self) -> str:
        return f"BusinessDayIndex({self.start_date} .. {self.end_date}, trading_days={len(self)})"

    # ── Internals ────────────────────────────────────────────────────

    def _offset(self, dt: date) -> int:
        if dt is None:
            raise InvalidInputError("date is required")
        return (dt - self.start_date).days

    def _in_range(self, offset: int) -> bool:
        return 0 <= offset < self._trading.size

    def _date_at(self, offset: int) -> date:
        return self.start_date + timedelta(days=int(offset))

    def _trading_at(self, position: int, context: str) -> date:
        if not 0 <= position < self._trading_offsets.size:
            raise OutOfRangeError(
                f"{context} falls outside the built calendar ({self.start_date} .. {self.end_date})"
            )
        return self._date_at(self._trading_offsets[position])

    def _month_offsets(self, year: int, month: int) -> tuple[int, int]:
        if year is None or month is None:
            raise InvalidInputError("year and month are required")
        if not 1 <= month <= 12:
            raise InvalidInputError(f"month must be 1-12, got {month}")
        first = self._offset(date(year, month, 1))
        return first, first + days_in_month(year, month) - 1

    # ── Membership ───────────────────────────────────────────────────

    def is_trading_day(self, dt: date) -> bool:
        offset = self._offset(dt)
        if not self._in_range(offset):
            raise OutOfRangeError(f"{dt} is outside the built calendar ({self.start_date} .. {self.end_date})")
        return bool(self._trading[offset])

    def ordinal(self, dt: date) -> int | None:
        """1-based trading-day rank of ``dt``, or None when it is not a trading day."""
        if not self.is_trading_day(dt):
            return None
        return int(self._prefix[self._offset(dt) + 1])

    # ── Navigation ───────────────────────────────────────────────────

    def next_trading_day(self, dt: date) -> date:
        """Smallest trading day strictly after ``dt``."""
        position = int(np.searchsorted(self._trading_offsets, self._offset(dt), side="right"))
        return self._trading_at(position, f"Next trading day after {dt}")

    def previous_trading_day(self, dt: date) -> date:
        """Largest trading day strictly before ``dt``."""
        position = int(np.searchsorted(self._trading_offsets, self._offset(dt), side="left")) - 1
        return self._trading_at(position, f"Previous trading day before {dt}")

    def add_trading_days(self, dt: date, n: int) -> date:
        """Move ``n`` trading days from ``dt``.

        A non-trading ``dt`` first snaps to the next trading day (n >= 0)
        or the previous one (n < 0); that day then counts as step zero.
        """
        if n is None:
            raise InvalidInputError("n is required")
        offset = self._offset(dt)
        on_trading_day = self._in_range(offset) and bool(self._trading[offset])

        if n == 0:
            return dt if on_trading_day else self.next_trading_day(dt)

        if on_trading_day:
            start = int(np.searchsorted(self._trading_offsets, offset, side="left"))
        elif n > 0:
            start = int(np.searchsorted(self._trading_offsets, offset, side="right"))
        else:
            start = int(np.searchsorted(self._trading_offsets, offset, side="left")) - 1
        self._trading_at(start, f"Trading day nearest {dt}")
        return self._trading_at(start + n, f"{dt} {n:+d} trading days")

    # ── Counting ─────────────────────────────────────────────────────

    def count_trading_days(self, start: date, end: date) -> int:
        """Inclusive count over the part of ``[start, end]`` inside the built range."""
        first, last = self._offset(start), self._offset(end)
        if last < first:
            return 0
        first = max(first, 0)
        last = min(last, self._trading.size - 1)
        if last < first:
            return 0
        return int(self._prefix[last + 1] - self._prefix[first])

    def trading_days_in_month(self, year: int, month: int) -> int:
        first, last = self._month_offsets(year, month)
        return self.count_trading_days(self._date_at(first), self._date_at(last))

    def month_trading_days(self, year: int, month: int) -> list[date]:
        first, last = self._month_offsets(year, month)
        lo = int(np.searchsorted(self._trading_offsets, first, side="left"))
        hi = int(np.searchsorted(self._trading_offsets, last, side="right"))
        return [self._date_at(o) for o in self._trading_offsets[lo:hi]]

    def nth_trading_day_of_month(self, year: int, month: int, n: int) -> date | None:
        """n-th trading day of the month counting from the 1st; None if the month has fewer."""
        if n is None or n < 1:
            raise InvalidInputError(f"n must be >= 1, got {n}")
        days = self.month_trading_days(year, month)
        return days[n - 1] if n <= len(days) else None

    def nth_last_trading_day_of_month(self, year: int, month: int, n: int) -> date | None:
        """n-th trading day counting back from month end; None if the month has fewer."""
        if n is None or n < 1:
            raise InvalidInputError(f"n must be >= 1, got {n}")
        days = self.month_trading_days(year, month)
        return days[-n] if n <= len(days) else None

    # ── Materialization ──────────────────────────────────────────────

    def navigation(self) -> Iterator[DayNavigation]:
        """Per-day navigation fields for every day in the range, in date order."""
        size = self._trading.size
        offsets = np.arange(size)
        next_pos = np.searchsorted(self._trading_offsets, offsets, side="right")
        prev_pos = np.searchsorted(self._trading_offsets, offsets, side="left") - 1
        trading_count = self._trading_offsets.size

        for offset in range(size):
            nxt, prv = int(next_pos[offset]), int(prev_pos[offset])
            yield DayNavigation(
                next_date=self._date_at(offset + 1) if offset + 1 < size else None,
                previous_date=self._date_at(offset - 1) if offset > 0 else None,
                next_trading_date=self._date_at(self._trading_offsets[nxt]) if nxt < trading_count else None,
                previous_trading_date=self._date_at(self._trading_offsets[prv]) if prv >= 0 else None,
                trading_day_ordinal=int(self._prefix[offset + 1]) if self._trading[offset] else None,
            )


def running_period_counts(
    keys: Sequence[Hashable], trading_flags: Sequence[bool]
) -> tuple[list[int], dict[Hashable, int]]:
    """Cumulative trading-day count within each period key, plus each period's total.

    ``keys`` must be in date order so a period's days are visited ascending.
    """
    running: list[int] = []
    totals: dict[Hashable, int] = {}
    for key, is_trading in zip(keys, trading_flags):
        totals[key] = totals.get(key, 0) + (1 if is_trading else 0)
        running.append(totals[key])
    return running, totals
