"""
Relative Flags — "current / last N days / to-date" flags against a caller-supplied today.

Nothing here is stored on the CalendarDay: flags are recomputed per query
so a scheduled refresh is never needed.
"""

from dataclasses import dataclass
from datetime import timedelta

from calendar_engine.dates import add_months
from calendar_engine.models import CalendarDay


@dataclass(frozen=True)
class RelativeFlags:
    is_current_date: bool
    is_current_month: bool
    is_current_quarter: bool
    is_current_year: bool
    is_current_fiscal_year: bool
    is_current_retail_year: bool
    is_last_7_days: bool
    is_last_30_days: bool
    is_last_90_days: bool
    is_previous_month: bool
    is_previous_quarter: bool
    is_rolling_12_months: bool
    is_rolling_quarter: bool
    is_year_to_date: bool
    is_fiscal_year_to_date: bool
    is_retail_year_to_date: bool
    is_quarter_to_date: bool
    is_month_to_date: bool


def _within_last(day: CalendarDay, today: CalendarDay, days: int) -> bool:
    return today.date - timedelta(days=days - 1) <= day.date <= today.date


def relative_flags(day: CalendarDay, today: CalendarDay) -> RelativeFlags:
    """Pure comparison of ``day`` against ``today``; both must be derived days."""
    d, t = day.gregorian, today.gregorian
    on_or_before_today = day.date <= today.date

    prev_month = t.month_start_date - timedelta(days=1)
    prev_quarter = t.quarter_start_date - timedelta(days=1)
    prev_quarter_key = prev_quarter.year * 10 + (prev_quarter.month - 1) // 3 + 1

    same_year = d.year_num == t.year_num
    same_quarter = d.year_quarter_key == t.year_quarter_key
    same_month = d.year_month_key == t.year_month_key
    same_fiscal_year = day.fiscal.fiscal_year_num == today.fiscal.fiscal_year_num
    same_retail_year = day.retail.retail_year_num == today.retail.retail_year_num

    return RelativeFlags(
        is_current_date=day.date == today.date,
        is_current_month=same_month,
        is_current_quarter=same_quarter,
        is_current_year=same_year,
        is_current_fiscal_year=same_fiscal_year,
        is_current_retail_year=same_retail_year,
        is_last_7_days=_within_last(day, today, 7),
        is_last_30_days=_within_last(day, today, 30),
        is_last_90_days=_within_last(day, today, 90),
        is_previous_month=d.year_month_key == prev_month.year * 100 + prev_month.month,
        is_previous_quarter=d.year_quarter_key == prev_quarter_key,
        is_rolling_12_months=add_months(today.date, -12) <= day.date <= today.date,
        is_rolling_quarter=add_months(today.date, -3) <= day.date <= today.date,
        is_year_to_date=same_year and on_or_before_today,
        is_fiscal_year_to_date=same_fiscal_year and on_or_before_today,
        is_retail_year_to_date=same_retail_year and on_or_before_today,
        is_quarter_to_date=same_quarter and on_or_before_today,
        is_month_to_date=same_month and on_or_before_today,
    )
