"""
Fiscal Year Deriver — AU July-June fiscal attributes.

The fiscal year starts on the 1st of ``fiscal_start_month`` (July for AU)
and is named for the calendar year it ends in:
  - 2023-07-01 .. 2024-06-30 is FY24
  - quarters and months count from the fiscal start (July = month 1)
  - fiscal weeks are 7-day blocks from the fiscal start, so week 53 holds
    the final one or two days of the year
"""

from datetime import date, timedelta
from typing import NamedTuple

from calendar_engine.dates import add_months, add_years, days_in_month, months_between
from core.errors import InvalidInputError


class FiscalAttributes(NamedTuple):
    fiscal_year_num: int
    fiscal_year_desc: str
    fiscal_start_date_for_year: date
    fiscal_end_date_for_year: date
    fiscal_quarter_num: int
    fiscal_quarter_year_key: int
    fiscal_quarter_desc: str
    fiscal_quarter_start_date: date
    fiscal_quarter_end_date: date
    fiscal_month_num: int
    fiscal_month_year_key: int
    fiscal_month_desc: str
    fiscal_month_start_date: date
    fiscal_month_end_date: date
    fiscal_week_num: int


class FiscalYearDeriver:
    """Derives FiscalAttributes for a configurable fiscal start month."""

    def __init__(self, fiscal_start_month: int = 7):
        if not 1 <= fiscal_start_month <= 12:
            raise ValueError(f"fiscal_start_month must be 1-12, got {fiscal_start_month}")
        self.fiscal_start_month = fiscal_start_month

    # ── Year Boundaries ──────────────────────────────────────────────

    def fiscal_year_start(self, dt: date) -> date:
        year = dt.year if dt.month >= self.fiscal_start_month else dt.year - 1
        return date(year, self.fiscal_start_month, 1)

    def fiscal_year_end(self, dt: date) -> date:
        return add_years(self.fiscal_year_start(dt), 1) - timedelta(days=1)

    def fiscal_year_num(self, dt: date) -> int:
        """Calendar year the fiscal year ends in."""
        return self.fiscal_year_end(dt).year

    def start_of_fiscal_year_num(self, fiscal_year: int) -> date:
        offset = 1 if self.fiscal_start_month > 1 else 0
        return date(fiscal_year - offset, self.fiscal_start_month, 1)

    def calendar_month_for(self, fiscal_year: int, fiscal_month: int) -> date:
        """First day of the calendar month holding ``fiscal_month`` of ``fiscal_year``."""
        return add_months(self.start_of_fiscal_year_num(fiscal_year), fiscal_month - 1)

    # ── Derivation ───────────────────────────────────────────────────

    def derive(self, dt: date) -> FiscalAttributes:
        start = self.fiscal_year_start(dt)
        end = add_years(start, 1) - timedelta(days=1)
        fiscal_year = end.year

        elapsed_months = months_between(start, dt)
        quarter = elapsed_months // 3 + 1
        month = elapsed_months % 12 + 1

        quarter_start = add_months(start, (quarter - 1) * 3)
        month_start = add_months(start, elapsed_months)

        return FiscalAttributes(
            fiscal_year_num=fiscal_year,
            fiscal_year_desc=f"FY{fiscal_year % 100:02d}",
            fiscal_start_date_for_year=start,
            fiscal_end_date_for_year=end,
            fiscal_quarter_num=quarter,
            fiscal_quarter_year_key=fiscal_year * 10 + quarter,
            fiscal_quarter_desc=f"QTR {quarter}",
            fiscal_quarter_start_date=quarter_start,
            fiscal_quarter_end_date=add_months(quarter_start, 3) - timedelta(days=1),
            fiscal_month_num=month,
            fiscal_month_year_key=fiscal_year * 100 + month,
            fiscal_month_desc=f"Month {month:02d}",
            fiscal_month_start_date=month_start,
            fiscal_month_end_date=add_months(month_start, 1) - timedelta(days=1),
            fiscal_week_num=(dt - start).days // 7 + 1,
        )

    # ── Prior-Year Equivalents ───────────────────────────────────────

    def same_day_prev_fiscal_year(self, dt: date, n: int = 1) -> date:
        """Same fiscal month and day-of-month ``n`` fiscal years back.

        A day-of-month the target month does not have (Feb 29 into a
        non-leap year) clamps to that month's last day.
        """
        if dt is None or n is None:
            raise InvalidInputError("date and n are required")
        if n < 0:
            raise InvalidInputError(f"n must be >= 0, got {n}")
        start = self.fiscal_year_start(dt)
        target_month = add_months(add_years(start, -n), months_between(start, dt))
        day = min(dt.day, days_in_month(target_month.year, target_month.month))
        return target_month.replace(day=day)

    def same_business_day_last_year(self, dt: date) -> date | None:
        """Day in the previous fiscal year with the same fiscal week and ISO weekday.

        None when that week does not contain the weekday (the short week 53).
        """
        start = self.fiscal_year_start(dt)
        week = (dt - start).days // 7 + 1
        prev_start = add_years(start, -1)
        week_start = prev_start + timedelta(weeks=week - 1)
        candidate = week_start + timedelta(days=(dt.isoweekday() - week_start.isoweekday()) % 7)
        if candidate >= start:
            return None
        return candidate
