"""
Calendar Day — one fully derived date across every calendar system.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, NamedTuple

from calendar_engine.fiscal import FiscalAttributes
from calendar_engine.gregorian import GregorianAttributes
from retail.calendar import RetailAttributes
from retail.seasons import SeasonClassification


class HolidayAttributes(NamedTuple):
    is_holiday: bool
    holiday_indicator: str  # Holiday / Non-Holiday
    holiday_desc: str | None
    is_holiday_nsw: bool
    is_holiday_vic: bool
    is_holiday_qld: bool
    is_holiday_sa: bool
    is_holiday_wa: bool
    is_holiday_tas: bool
    is_holiday_act: bool
    is_holiday_nt: bool
    is_holiday_national: bool


class TradingAttributes(NamedTuple):
    """Navigation and period trading-day counts, owned by the business day index."""

    next_date: date | None
    previous_date: date | None
    next_trading_date: date | None
    previous_trading_date: date | None
    trading_day_ordinal: int | None
    day_of_month_seq: int
    trading_day_of_month_seq: int
    trading_day_of_quarter_seq: int
    trading_day_of_fiscal_month_seq: int
    trading_day_of_retail_period_seq: int
    trading_days_in_month: int
    trading_days_in_quarter: int
    trading_days_in_fiscal_month: int
    trading_days_in_fiscal_quarter: int
    trading_days_in_retail_period: int
    trading_days_in_retail_quarter: int
    is_first_day_of_month: bool
    is_last_day_of_month: bool
    is_first_day_of_quarter: bool
    is_last_day_of_quarter: bool


@dataclass(frozen=True)
class CalendarDay:
    date: date
    gregorian: GregorianAttributes
    fiscal: FiscalAttributes
    retail: RetailAttributes
    holiday: HolidayAttributes
    season: SeasonClassification
    same_business_day_last_year: date | None
    # None for days derived outside a calendar build
    trading: TradingAttributes | None = None

    @property
    def date_key(self) -> int:
        return self.gregorian.date_key

    @property
    def is_weekday(self) -> bool:
        return self.gregorian.is_weekday

    @property
    def is_holiday(self) -> bool:
        return self.holiday.is_holiday

    @property
    def is_trading_day(self) -> bool:
        return self.gregorian.is_weekday and not self.holiday.is_holiday

    @property
    def trading_day_desc(self) -> str:
        if not self.gregorian.is_weekday:
            return "Weekend"
        if self.holiday.is_holiday:
            return "Holiday"
        return "Trading Day"

    def to_record(self) -> dict[str, Any]:
        """Flat column -> value mapping, one row of the date dimension."""
        record: dict[str, Any] = {"date": self.date}
        record.update(self.gregorian._asdict())
        record.update(self.fiscal._asdict())
        record["same_business_day_last_year"] = self.same_business_day_last_year
        record.update(self.retail._asdict())
        record.update(self.holiday._asdict())
        record["is_trading_day"] = self.is_trading_day
        record["trading_day_desc"] = self.trading_day_desc
        record["retail_season"] = self.season.season.value
        record["holiday_proximity"] = (
            self.season.holiday_proximity.value if self.season.holiday_proximity is not None else None
        )
        record["retail_season_sort_key"] = self.season.season_sort_key
        record["holiday_proximity_sort_key"] = self.season.proximity_sort_key
        if self.trading is not None:
            record.update(self.trading._asdict())
        else:
            record.update(dict.fromkeys(TradingAttributes._fields))
        return record
