"""
Cross-Calendar Mapping — move a date between Gregorian, fiscal and retail periods.

Every system has a month-like period: Gregorian months, fiscal months
(fiscal month 1 = the fiscal start month) and retail periods (period 1 =
July). Mapping finds the target period that carries the same month label
and then either keeps the date's offset inside its period, clamped to the
target period's length, or lands on the target period's first day.

Fiscal <-> Retail always goes through Gregorian. Day clamping is lossy, so
round trips are only exact for first-day mappings of aligned periods.
"""

from datetime import date, timedelta
from enum import Enum
from typing import NamedTuple

from calendar_engine.dates import days_in_month
from calendar_engine.fiscal import FiscalYearDeriver
from core.errors import InvalidInputError
from retail.calendar import RetailCalendarDeriver


class CalendarSystem(str, Enum):
    GREGORIAN = "GREGORIAN"
    FISCAL = "FISCAL"
    RETAIL = "RETAIL"

    @classmethod
    def parse(cls, raw: "str | CalendarSystem | None") -> "CalendarSystem":
        if isinstance(raw, CalendarSystem):
            return raw
        if raw is None:
            raise InvalidInputError("Calendar system is required")
        try:
            return cls(str(raw).strip().upper())
        except ValueError as exc:
            raise InvalidInputError(
                f"Unknown calendar system {raw!r}; expected one of {[s.value for s in cls]}"
            ) from exc


class MappingType(str, Enum):
    IDENTICAL = "IDENTICAL"
    POSITION_PRESERVING = "POSITION_PRESERVING"
    FIRST_DAY = "FIRST_DAY"


class MappingResult(NamedTuple):
    input_date: date
    source_calendar: CalendarSystem
    target_calendar: CalendarSystem
    mapped_date: date | None
    mapping_type: MappingType


def _place(period_start: date, period_end: date, offset: int, preserve_day: bool) -> date:
    if not preserve_day:
        return period_start
    return period_start + timedelta(days=min(offset, (period_end - period_start).days))


class CrossCalendarMapper:
    """Maps dates between calendar systems; results outside ``bounds`` map to None."""

    def __init__(
        self,
        fiscal: FiscalYearDeriver,
        retail: RetailCalendarDeriver,
        bounds: tuple[date, date] | None = None,
    ):
        self.fiscal = fiscal
        self.retail = retail
        self.bounds = bounds

    def _within_bounds(self, dt: date) -> bool:
        return self.bounds is None or self.bounds[0] <= dt <= self.bounds[1]

    # ── Into / out of Gregorian ──────────────────────────────────────

    def _to_gregorian(self, dt: date, source: CalendarSystem, preserve_day: bool) -> date:
        if source is CalendarSystem.FISCAL:
            attrs = self.fiscal.derive(dt)
            month_start = self.fiscal.calendar_month_for(attrs.fiscal_year_num, attrs.fiscal_month_num)
            offset = (dt - attrs.fiscal_month_start_date).days
        elif source is CalendarSystem.RETAIL:
            attrs = self.retail.derive(dt)
            period = attrs.retail_period_num
            month = self.retail.month_for_period(period)
            # periods 1-6 (Jul-Dec) sit in the calendar year before the retail year's name
            year = attrs.retail_year_num - 1 if period <= 6 else attrs.retail_year_num
            month_start = date(year, month, 1)
            offset = (dt - attrs.retail_period_start_date).days
        else:
            return dt
        month_end = month_start.replace(day=days_in_month(month_start.year, month_start.month))
        return _place(month_start, month_end, offset, preserve_day)

    def _from_gregorian(self, dt: date, target: CalendarSystem, preserve_day: bool) -> date:
        offset = dt.day - 1
        if target is CalendarSystem.FISCAL:
            attrs = self.fiscal.derive(dt)
            return _place(attrs.fiscal_month_start_date, attrs.fiscal_month_end_date, offset, preserve_day)
        if target is CalendarSystem.RETAIL:
            period = self.retail.period_for_month(dt.month)
            retail_year = dt.year + 1 if period <= 6 else dt.year
            period_start, period_end = self.retail.period_bounds(retail_year, period)
            return _place(period_start, period_end, offset, preserve_day)
        return dt

    # ── Public API ───────────────────────────────────────────────────

    def map(
        self,
        dt: date,
        source: str | CalendarSystem,
        target: str | CalendarSystem,
        preserve_day: bool = True,
    ) -> date | None:
        if dt is None:
            raise InvalidInputError("date is required")
        source = CalendarSystem.parse(source)
        target = CalendarSystem.parse(target)
        if source is target:
            return dt

        gregorian = self._to_gregorian(dt, source, preserve_day)
        if not self._within_bounds(gregorian):
            return None
        if target is CalendarSystem.GREGORIAN:
            return gregorian

        mapped = self._from_gregorian(gregorian, target, preserve_day)
        return mapped if self._within_bounds(mapped) else None

    def describe(
        self,
        dt: date,
        source: str | CalendarSystem,
        target: str | CalendarSystem,
        preserve_day: bool = True,
    ) -> MappingResult:
        source = CalendarSystem.parse(source)
        target = CalendarSystem.parse(target)
        if source is target:
            mapping_type = MappingType.IDENTICAL
        elif preserve_day:
            mapping_type = MappingType.POSITION_PRESERVING
        else:
            mapping_type = MappingType.FIRST_DAY
        return MappingResult(
            input_date=dt,
            source_calendar=source,
            target_calendar=target,
            mapped_date=self.map(dt, source, target, preserve_day),
            mapping_type=mapping_type,
        )
