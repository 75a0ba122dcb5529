"""
Date Spine — ordered, restartable sequence of calendar dates for a range.

Day grain drives the calendar build. Coarser grains yield calendar-unit
boundaries inside the range: week grain yields ISO Mondays, month grain the
1st of each month, quarter grain quarter starts, year grain January 1st.
"""

from collections.abc import Iterator
from datetime import date, timedelta
from enum import Enum

from calendar_engine.dates import add_months, month_start, quarter_start, year_start
from core.errors import InvalidInputError, InvalidRangeError


class Grain(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


_MONTH_STEPS = {Grain.MONTH: 1, Grain.QUARTER: 3, Grain.YEAR: 12}
_TRUNCATE = {Grain.MONTH: month_start, Grain.QUARTER: quarter_start, Grain.YEAR: year_start}


class DateSpine:
    """Lazy iterable over ``[start_date, end_date]`` at the given grain.

    Iterating twice walks the range twice; nothing is materialized.
    """

    def __init__(self, start_date: date, end_date: date, grain: Grain | str = Grain.DAY):
        if start_date is None or end_date is None:
            raise InvalidInputError("start_date and end_date are required")
        if start_date > end_date:
            raise InvalidRangeError(f"start_date {start_date} is after end_date {end_date}")
        try:
            self.grain = Grain(grain)
        except ValueError as exc:
            raise InvalidInputError(f"Unsupported grain: {grain!r}") from exc
        self.start_date = start_date
        self.end_date = end_date

    def _first_boundary(self) -> date:
        if self.grain == Grain.DAY:
            return self.start_date
        if self.grain == Grain.WEEK:
            return self.start_date + timedelta(days=(8 - self.start_date.isoweekday()) % 7)
        first = _TRUNCATE[self.grain](self.start_date)
        if first < self.start_date:
            first = add_months(first, _MONTH_STEPS[self.grain])
        return first

    def __iter__(self) -> Iterator[date]:
        current = self._first_boundary()
        if self.grain in _MONTH_STEPS:
            step = _MONTH_STEPS[self.grain]
            while current <= self.end_date:
                yield current
                current = add_months(current, step)
            return

        delta = timedelta(weeks=1) if self.grain == Grain.WEEK else timedelta(days=1)
        while current <= self.end_date:
            yield current
            current += delta

    def __len__(self) -> int:
        if self.grain == Grain.DAY:
            return (self.end_date - self.start_date).days + 1
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"DateSpine({self.start_date}, {self.end_date}, grain={self.grain.value!r})"


def generate(start_date: date, end_date: date, grain: Grain | str = Grain.DAY) -> DateSpine:
    """Build a restartable date spine; raises InvalidRangeError when start > end."""
    return DateSpine(start_date, end_date, grain)
