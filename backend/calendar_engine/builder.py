"""
Business Calendar — builds and serves one immutable calendar version.

Build steps:
  1. Validate BuildConfig and the retail pattern table (fatal on error)
  2. Walk the day spine, deriving Gregorian / fiscal / retail / season /
     holiday attributes per date (independent per date)
  3. One ordered pass builds the BusinessDayIndex and attaches navigation
     and period trading-day counts to every day

A changed holiday set means a fresh build; nothing is patched in place.

Usage:
    calendar = BusinessCalendar.build(BuildConfig(), holidays)
    calendar.add_business_days(date(2023, 12, 22), 3)
"""

import math
from collections.abc import Iterable, Iterator
from dataclasses import replace
from datetime import date, timedelta

import pandas as pd
import structlog

from calendar_engine.dates import days_in_month, nth_weekday_of_month
from calendar_engine.fiscal import FiscalAttributes, FiscalYearDeriver
from calendar_engine.gregorian import GregorianDeriver
from calendar_engine.holidays import Holiday, HolidaySet
from calendar_engine.mapping import CalendarSystem, CrossCalendarMapper, MappingResult
from calendar_engine.models import CalendarDay, HolidayAttributes, TradingAttributes
from calendar_engine.relative import RelativeFlags, relative_flags
from calendar_engine.spine import DateSpine
from calendar_engine.trading import BusinessDayIndex, running_period_counts
from core.config import BuildConfig
from core.errors import InvalidInputError, OutOfRangeError
from retail.calendar import RetailAttributes, RetailCalendarDeriver, scan_year_starts
from retail.seasons import RetailSeason, RetailSeasonClassifier, SeasonClassification

logger = structlog.get_logger()


def _require(**values) -> None:
    missing = [name for name, value in values.items() if value is None]
    if missing:
        raise InvalidInputError(f"Missing required argument(s): {', '.join(missing)}")


class CalendarDayDeriver:
    """Per-date derivation shared by the build pass and ad-hoc lookups."""

    def __init__(self, config: BuildConfig, holidays: HolidaySet):
        self.gregorian = GregorianDeriver(config.week_start)
        self.fiscal = FiscalYearDeriver(config.fiscal_start_month)
        self.retail = RetailCalendarDeriver(config.retail_pattern)
        self.holidays = holidays
        self.seasons = RetailSeasonClassifier(holidays)

    def holiday_attributes(self, dt: date) -> HolidayAttributes:
        is_holiday = self.holidays.is_holiday(dt)
        return HolidayAttributes(
            is_holiday=is_holiday,
            holiday_indicator="Holiday" if is_holiday else "Non-Holiday",
            holiday_desc=self.holidays.holiday_desc(dt),
            **self.holidays.jurisdiction_flags(dt)._asdict(),
        )

    def derive(self, dt: date, retail_year_start: date | None = None) -> CalendarDay:
        return CalendarDay(
            date=dt,
            gregorian=self.gregorian.derive(dt),
            fiscal=self.fiscal.derive(dt),
            retail=self.retail.derive(dt, retail_year_start),
            holiday=self.holiday_attributes(dt),
            season=self.seasons.classify(dt),
            same_business_day_last_year=self.fiscal.same_business_day_last_year(dt),
        )


def _attach_trading(days: list[CalendarDay], index: BusinessDayIndex) -> list[CalendarDay]:
    trading = [day.is_trading_day for day in days]

    def running(key_fn):
        return running_period_counts([key_fn(day) for day in days], trading)

    month_seq, month_totals = running(lambda d: d.gregorian.year_month_key)
    quarter_seq, quarter_totals = running(lambda d: d.gregorian.year_quarter_key)
    fiscal_month_seq, fiscal_month_totals = running(lambda d: d.fiscal.fiscal_month_year_key)
    _, fiscal_quarter_totals = running(lambda d: d.fiscal.fiscal_quarter_year_key)
    period_seq, period_totals = running(lambda d: d.retail.retail_year_month_key)
    _, retail_quarter_totals = running(lambda d: d.retail.retail_quarter_year_key)
    day_of_month_seq, _ = running_period_counts([d.gregorian.year_month_key for d in days], [True] * len(days))

    attached = []
    for i, (day, nav) in enumerate(zip(days, index.navigation())):
        g, f, r = day.gregorian, day.fiscal, day.retail
        attached.append(
            replace(
                day,
                trading=TradingAttributes(
                    **nav._asdict(),
                    day_of_month_seq=day_of_month_seq[i],
                    trading_day_of_month_seq=month_seq[i],
                    trading_day_of_quarter_seq=quarter_seq[i],
                    trading_day_of_fiscal_month_seq=fiscal_month_seq[i],
                    trading_day_of_retail_period_seq=period_seq[i],
                    trading_days_in_month=month_totals[g.year_month_key],
                    trading_days_in_quarter=quarter_totals[g.year_quarter_key],
                    trading_days_in_fiscal_month=fiscal_month_totals[f.fiscal_month_year_key],
                    trading_days_in_fiscal_quarter=fiscal_quarter_totals[f.fiscal_quarter_year_key],
                    trading_days_in_retail_period=period_totals[r.retail_year_month_key],
                    trading_days_in_retail_quarter=retail_quarter_totals[r.retail_quarter_year_key],
                    is_first_day_of_month=day.date == g.month_start_date,
                    is_last_day_of_month=day.date == g.month_end_date,
                    is_first_day_of_quarter=day.date == g.quarter_start_date,
                    is_last_day_of_quarter=day.date == g.quarter_end_date,
                ),
            )
        )
    return attached


class BusinessCalendar:
    """Built calendar: date -> CalendarDay map plus the trading-day index."""

    def __init__(
        self,
        config: BuildConfig,
        deriver: CalendarDayDeriver,
        days: list[CalendarDay],
        index: BusinessDayIndex | None = None,
    ):
        self.config = config
        self.deriver = deriver
        self._days = days
        self._by_date = {day.date: day for day in days}
        if index is None:
            index = BusinessDayIndex(config.start_date, [day.is_trading_day for day in days])
        self.index = index
        self.mapper = CrossCalendarMapper(deriver.fiscal, deriver.retail, bounds=(config.start_date, config.end_date))

    @classmethod
    def build(
        cls,
        config: BuildConfig | None = None,
        holidays: HolidaySet | Iterable[Holiday] = (),
    ) -> "BusinessCalendar":
        config = config or BuildConfig()
        holiday_set = holidays if isinstance(holidays, HolidaySet) else HolidaySet(holidays)
        log = logger.bind(
            start_date=str(config.start_date),
            end_date=str(config.end_date),
            retail_pattern=config.retail_pattern,
        )
        log.info("calendar.build_started", holidays=len(holiday_set))

        # Pattern validation happens here, before any day is derived
        deriver = CalendarDayDeriver(config, holiday_set)
        spine = DateSpine(config.start_date, config.end_date)
        days = [deriver.derive(dt, year_start) for dt, year_start in scan_year_starts(spine)]

        index = BusinessDayIndex(config.start_date, [day.is_trading_day for day in days])
        calendar = cls(config, deriver, _attach_trading(days, index), index)

        log.info(
            "calendar.build_completed",
            days=len(calendar),
            trading_days=len(calendar.index),
            holiday_dates=sum(1 for day in days if day.is_holiday),
        )
        return calendar

    # ── Collection ───────────────────────────────────────────────────

    @property
    def start_date(self) -> date:
        return self.config.start_date

    @property
    def end_date(self) -> date:
        return self.config.end_date

    @property
    def holidays(self) -> HolidaySet:
        return self.deriver.holidays

    def __len__(self) -> int:
        return len(self._days)

    def __iter__(self) -> Iterator[CalendarDay]:
        return iter(self._days)

    def __contains__(self, dt: object) -> bool:
        return dt in self._by_date

    def days(self, start: date | None = None, end: date | None = None) -> Iterator[CalendarDay]:
        """Lazily yield built days within ``[start, end]`` (both optional)."""
        start = start or self.start_date
        end = end or self.end_date
        if start > end:
            return
        first = max((start - self.start_date).days, 0)
        last = min((end - self.start_date).days, len(self._days) - 1)
        for i in range(first, last + 1):
            yield self._days[i]

    def derive_calendar_day(self, dt: date) -> CalendarDay:
        _require(date=dt)
        try:
            return self._by_date[dt]
        except KeyError:
            raise OutOfRangeError(
                f"{dt} is outside the built calendar ({self.start_date} .. {self.end_date})"
            ) from None

    def to_dataframe(self) -> pd.DataFrame:
        """One row per day with flattened attribute columns."""
        return pd.DataFrame.from_records([day.to_record() for day in self._days])

    # ── Business Days ────────────────────────────────────────────────

    def is_business_day(self, dt: date) -> bool:
        return self.index.is_trading_day(dt)

    def next_business_day(self, dt: date) -> date:
        return self.index.next_trading_day(dt)

    def previous_business_day(self, dt: date) -> date:
        return self.index.previous_trading_day(dt)

    def add_business_days(self, dt: date, n: int) -> date:
        return self.index.add_trading_days(dt, n)

    def business_days_between(self, start: date, end: date) -> int:
        _require(start=start, end=end)
        return self.index.count_trading_days(start, end)

    def nth_business_day_of_month(self, year: int, month: int, n: int) -> date | None:
        return self.index.nth_trading_day_of_month(year, month, n)

    def nth_last_business_day_of_month(self, year: int, month: int, n: int) -> date | None:
        return self.index.nth_last_trading_day_of_month(year, month, n)

    def first_business_day_of_month(self, year: int, month: int) -> date | None:
        return self.index.nth_trading_day_of_month(year, month, 1)

    def last_business_day_of_month(self, year: int, month: int) -> date | None:
        return self.index.nth_last_trading_day_of_month(year, month, 1)

    def business_days_elapsed_in_month(self, dt: date) -> int:
        """Trading days from the 1st of the month through ``dt`` inclusive."""
        _require(date=dt)
        return self.index.count_trading_days(dt.replace(day=1), dt)

    def business_days_remaining_in_month(self, dt: date) -> int:
        """Trading days after ``dt`` through month end."""
        _require(date=dt)
        month_end = dt.replace(day=days_in_month(dt.year, dt.month))
        return self.index.count_trading_days(dt + timedelta(days=1), month_end)

    def calculate_completion_date(
        self,
        start_date: date,
        work_units: float,
        daily_capacity: float,
        include_start_date: bool = True,
    ) -> date:
        """Trading day on which ``work_units`` finish at ``daily_capacity`` per trading day."""
        _require(start_date=start_date, work_units=work_units, daily_capacity=daily_capacity)
        if daily_capacity <= 0:
            raise InvalidInputError(f"daily_capacity must be positive, got {daily_capacity}")

        if include_start_date and self.index.is_trading_day(start_date):
            work_start = start_date
        else:
            work_start = self.index.add_trading_days(start_date, 0)
        if work_units <= 0:
            return work_start

        days_needed = math.ceil(work_units / daily_capacity)
        return self.index.add_trading_days(work_start, days_needed - (1 if include_start_date else 0))

    # ── Fiscal ───────────────────────────────────────────────────────

    def fiscal_date_info(self, dt: date) -> FiscalAttributes:
        return self.derive_calendar_day(dt).fiscal

    def same_day_prev_fiscal_year(self, dt: date, n: int = 1) -> date:
        return self.deriver.fiscal.same_day_prev_fiscal_year(dt, n)

    def first_day_of_fiscal_year(self, dt: date) -> date:
        _require(date=dt)
        return self.deriver.fiscal.fiscal_year_start(dt)

    def last_day_of_fiscal_year(self, dt: date) -> date:
        _require(date=dt)
        return self.deriver.fiscal.fiscal_year_end(dt)

    def _first_trading_between(self, start: date, end: date) -> date | None:
        for day in self.days(start, end):
            if day.is_trading_day:
                return day.date
        return None

    def _last_trading_between(self, start: date, end: date) -> date | None:
        for day in reversed(list(self.days(start, end))):
            if day.is_trading_day:
                return day.date
        return None

    def first_business_day_of_fiscal_year(self, dt: date) -> date | None:
        return self._first_trading_between(self.first_day_of_fiscal_year(dt), self.last_day_of_fiscal_year(dt))

    def last_business_day_of_fiscal_year(self, dt: date) -> date | None:
        return self._last_trading_between(self.first_day_of_fiscal_year(dt), self.last_day_of_fiscal_year(dt))

    # ── Retail ───────────────────────────────────────────────────────

    def retail_date_info(self, dt: date) -> RetailAttributes:
        return self.derive_calendar_day(dt).retail

    def retail_period_dates(self, retail_year: int, period: int) -> Iterator[date]:
        """Lazily yield the built dates of a retail period."""
        _require(retail_year=retail_year, period=period)
        start, end = self.deriver.retail.period_bounds(retail_year, period)
        for day in self.days(start, end):
            yield day.date

    def first_day_of_retail_period(self, dt: date) -> date:
        return self.derive_calendar_day(dt).retail.retail_period_start_date

    def last_day_of_retail_period(self, dt: date) -> date:
        return self.derive_calendar_day(dt).retail.retail_period_end_date

    # ── Seasons ──────────────────────────────────────────────────────

    def classify_season(self, dt: date) -> SeasonClassification:
        return self.deriver.seasons.classify(dt)

    def is_in_retail_season(self, dt: date, season: str | RetailSeason) -> bool:
        _require(date=dt, season=season)
        return self.deriver.seasons.is_in_season(dt, season)

    def retail_season_dates(self, year: int, season: str | RetailSeason) -> Iterator[date]:
        """Lazily yield the built dates of ``season`` in calendar year ``year``."""
        _require(year=year, season=season)
        wanted = RetailSeason.parse(season)
        for day in self.days(date(year, 1, 1), date(year, 12, 31)):
            if day.season.season is wanted:
                yield day.date

    def first_day_of_retail_season(self, dt: date) -> date:
        season = self.derive_calendar_day(dt).season.season
        return next(self.retail_season_dates(dt.year, season))

    def last_day_of_retail_season(self, dt: date) -> date:
        season = self.derive_calendar_day(dt).season.season
        return list(self.retail_season_dates(dt.year, season))[-1]

    # ── Holidays ─────────────────────────────────────────────────────

    def get_day_of_week_in_month(self, year: int, month: int, iso_weekday: int, occurrence: int) -> date | None:
        """Date of the ``occurrence``-th ISO weekday in a month; negative counts from month end."""
        _require(year=year, month=month, iso_weekday=iso_weekday, occurrence=occurrence)
        if not 1 <= month <= 12:
            raise InvalidInputError(f"month must be 1-12, got {month}")
        if not 1 <= iso_weekday <= 7:
            raise InvalidInputError(f"iso_weekday must be 1-7, got {iso_weekday}")
        if occurrence == 0:
            raise InvalidInputError("occurrence must be non-zero")
        return nth_weekday_of_month(year, month, iso_weekday, occurrence)

    def get_holiday_date(self, year: int, name: str, jurisdiction: str | None = None) -> date | None:
        return self.holidays.find_holiday(year, name, jurisdiction)

    # ── Mapping / Relative Flags ─────────────────────────────────────

    def map_across_calendars(
        self,
        dt: date,
        source: str | CalendarSystem,
        target: str | CalendarSystem,
        preserve_day: bool = True,
    ) -> date | None:
        return self.mapper.map(dt, source, target, preserve_day)

    def describe_mapping(
        self,
        dt: date,
        source: str | CalendarSystem,
        target: str | CalendarSystem,
        preserve_day: bool = True,
    ) -> MappingResult:
        _require(date=dt)
        return self.mapper.describe(dt, source, target, preserve_day)

    def _day_or_derived(self, dt: date) -> CalendarDay:
        return self._by_date.get(dt) or self.deriver.derive(dt)

    def relative_flags(self, dt: date, today: date) -> RelativeFlags:
        """Flags for ``dt`` relative to ``today``; ``today`` may lie outside the built range."""
        _require(date=dt, today=today)
        return relative_flags(self._day_or_derived(dt), self._day_or_derived(today))
