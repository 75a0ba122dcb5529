"""
Tests for the AU July-June fiscal year.

Covers:
  - Fiscal year naming (FY ends in June) and boundaries
  - Fiscal quarter / month / week numbering
  - Same day in a prior fiscal year, including Feb 29 clamping
  - Same business day last year by fiscal week and weekday
"""

from datetime import date

import pytest

from calendar_engine.fiscal import FiscalYearDeriver
from core.errors import InvalidInputError


@pytest.fixture
def fiscal():
    return FiscalYearDeriver(fiscal_start_month=7)


class TestFiscalAttributes:
    def test_first_day_of_fy24(self, fiscal):
        attrs = fiscal.derive(date(2023, 7, 1))
        assert attrs.fiscal_year_num == 2024
        assert attrs.fiscal_year_desc == "FY24"
        assert attrs.fiscal_start_date_for_year == date(2023, 7, 1)
        assert attrs.fiscal_end_date_for_year == date(2024, 6, 30)
        assert attrs.fiscal_quarter_num == 1
        assert attrs.fiscal_quarter_desc == "QTR 1"
        assert attrs.fiscal_month_num == 1
        assert attrs.fiscal_month_desc == "Month 01"
        assert attrs.fiscal_week_num == 1

    def test_january_is_month_seven(self, fiscal):
        attrs = fiscal.derive(date(2024, 1, 15))
        assert attrs.fiscal_year_num == 2024
        assert attrs.fiscal_quarter_num == 3
        assert attrs.fiscal_month_num == 7
        assert attrs.fiscal_quarter_year_key == 20243
        assert attrs.fiscal_month_year_key == 202407
        assert attrs.fiscal_quarter_start_date == date(2024, 1, 1)
        assert attrs.fiscal_quarter_end_date == date(2024, 3, 31)
        assert attrs.fiscal_month_start_date == date(2024, 1, 1)
        assert attrs.fiscal_month_end_date == date(2024, 1, 31)

    def test_last_day_lands_in_week_53(self, fiscal):
        attrs = fiscal.derive(date(2024, 6, 30))
        assert attrs.fiscal_quarter_num == 4
        assert attrs.fiscal_month_num == 12
        assert attrs.fiscal_week_num == 53

    def test_june_belongs_to_fiscal_year_ending_that_june(self, fiscal):
        assert fiscal.fiscal_year_num(date(2023, 6, 30)) == 2023
        assert fiscal.fiscal_year_num(date(2023, 7, 1)) == 2024

    def test_calendar_month_for(self, fiscal):
        assert fiscal.start_of_fiscal_year_num(2024) == date(2023, 7, 1)
        assert fiscal.calendar_month_for(2024, 7) == date(2024, 1, 1)

    def test_invalid_start_month(self):
        with pytest.raises(ValueError):
            FiscalYearDeriver(fiscal_start_month=0)


# ── Prior-Year Equivalents ─────────────────────────────────────────────


class TestSameDayPrevFiscalYear:
    def test_leap_day_clamps(self, fiscal):
        assert fiscal.same_day_prev_fiscal_year(date(2024, 2, 29)) == date(2023, 2, 28)

    def test_zero_years_is_identity(self, fiscal):
        assert fiscal.same_day_prev_fiscal_year(date(2024, 3, 15), 0) == date(2024, 3, 15)

    def test_two_years_back(self, fiscal):
        assert fiscal.same_day_prev_fiscal_year(date(2024, 3, 15), 2) == date(2022, 3, 15)

    def test_negative_n_rejected(self, fiscal):
        with pytest.raises(InvalidInputError):
            fiscal.same_day_prev_fiscal_year(date(2024, 3, 15), -1)

    def test_missing_date_rejected(self, fiscal):
        with pytest.raises(InvalidInputError):
            fiscal.same_day_prev_fiscal_year(None)


class TestSameBusinessDayLastYear:
    def test_matches_fiscal_week_and_weekday(self, fiscal):
        result = fiscal.same_business_day_last_year(date(2024, 1, 15))
        assert result == date(2023, 1, 16)
        assert result.isoweekday() == 1

    def test_short_week_53_has_no_match(self, fiscal):
        assert fiscal.same_business_day_last_year(date(2024, 6, 30)) is None
