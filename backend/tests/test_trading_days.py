"""
Tests for trading-day arithmetic.

Covers:
  - BusinessDayIndex on a synthetic mask (ordinals, navigation, counting)
  - Adding trading days across the Christmas / Boxing Day break
  - Snapping from non-trading days for positive, negative and zero steps
  - Month lookups (n-th, n-th last, elapsed, remaining)
  - Completion dates from work units and daily capacity
  - OutOfRangeError at the edges of the built calendar
"""

from datetime import date

import pytest

from calendar_engine.trading import BusinessDayIndex, running_period_counts
from core.errors import InvalidInputError, OutOfRangeError

# ── Synthetic Index ────────────────────────────────────────────────────


@pytest.fixture
def week_index():
    # Mon 2024-01-01 .. Sun 2024-01-14, with Mon 01-01 as a holiday
    flags = [False, True, True, True, True, False, False, True, True, True, True, True, False, False]
    return BusinessDayIndex(date(2024, 1, 1), flags)


class TestBusinessDayIndex:
    def test_len_counts_trading_days(self, week_index):
        assert len(week_index) == 9

    def test_ordinal(self, week_index):
        assert week_index.ordinal(date(2024, 1, 2)) == 1
        assert week_index.ordinal(date(2024, 1, 8)) == 5
        assert week_index.ordinal(date(2024, 1, 6)) is None

    def test_next_and_previous(self, week_index):
        assert week_index.next_trading_day(date(2024, 1, 5)) == date(2024, 1, 8)
        assert week_index.previous_trading_day(date(2024, 1, 8)) == date(2024, 1, 5)

    def test_count_inclusive(self, week_index):
        assert week_index.count_trading_days(date(2024, 1, 1), date(2024, 1, 14)) == 9
        assert week_index.count_trading_days(date(2024, 1, 6), date(2024, 1, 7)) == 0

    def test_count_reversed_range_is_zero(self, week_index):
        assert week_index.count_trading_days(date(2024, 1, 10), date(2024, 1, 2)) == 0

    def test_count_clips_to_range(self, week_index):
        assert week_index.count_trading_days(date(2023, 12, 1), date(2024, 1, 3)) == 2

    def test_navigation_materialization(self, week_index):
        nav = list(week_index.navigation())
        assert len(nav) == 14
        assert nav[0].previous_date is None
        assert nav[0].previous_trading_date is None
        assert nav[0].next_trading_date == date(2024, 1, 2)
        assert nav[5].next_trading_date == date(2024, 1, 8)
        assert nav[-1].next_date is None
        assert nav[-1].next_trading_date is None
        assert nav[1].trading_day_ordinal == 1

    def test_no_trading_day_after_end(self, week_index):
        with pytest.raises(OutOfRangeError):
            week_index.next_trading_day(date(2024, 1, 12))

    def test_membership_outside_range(self, week_index):
        with pytest.raises(OutOfRangeError):
            week_index.is_trading_day(date(2024, 2, 1))

    def test_empty_mask_rejected(self):
        with pytest.raises(InvalidInputError):
            BusinessDayIndex(date(2024, 1, 1), [])


class TestRunningPeriodCounts:
    def test_restarts_per_key(self):
        running, totals = running_period_counts(["a", "a", "a", "b", "b"], [True, False, True, True, True])
        assert running == [1, 1, 2, 1, 2]
        assert totals == {"a": 2, "b": 2}


# ── Built AU Calendar ──────────────────────────────────────────────────


class TestAddBusinessDays:
    def test_forward_over_christmas(self, calendar):
        assert calendar.add_business_days(date(2023, 12, 22), 3) == date(2023, 12, 29)

    def test_backward(self, calendar):
        assert calendar.add_business_days(date(2023, 12, 22), -3) == date(2023, 12, 19)

    def test_zero_on_trading_day(self, calendar):
        assert calendar.add_business_days(date(2023, 12, 22), 0) == date(2023, 12, 22)

    def test_zero_snaps_forward(self, calendar):
        assert calendar.add_business_days(date(2023, 12, 23), 0) == date(2023, 12, 27)

    def test_non_trading_start_counts_snap_as_step_zero(self, calendar):
        assert calendar.add_business_days(date(2023, 12, 23), 1) == date(2023, 12, 28)
        assert calendar.add_business_days(date(2023, 12, 23), -1) == date(2023, 12, 21)

    def test_past_end_of_calendar(self, calendar):
        with pytest.raises(OutOfRangeError):
            calendar.add_business_days(date(2025, 12, 30), 5)

    def test_missing_n(self, calendar):
        with pytest.raises(InvalidInputError):
            calendar.add_business_days(date(2023, 12, 22), None)


class TestNavigation:
    def test_membership(self, calendar):
        assert not calendar.is_business_day(date(2023, 12, 25))
        assert not calendar.is_business_day(date(2023, 12, 23))
        assert calendar.is_business_day(date(2023, 12, 27))

    def test_state_holiday_is_not_a_trading_day(self, calendar):
        assert not calendar.is_business_day(date(2023, 11, 7))

    def test_next_and_previous(self, calendar):
        assert calendar.next_business_day(date(2023, 12, 22)) == date(2023, 12, 27)
        assert calendar.previous_business_day(date(2023, 12, 27)) == date(2023, 12, 22)

    def test_edges_raise(self, calendar):
        with pytest.raises(OutOfRangeError):
            calendar.next_business_day(date(2025, 12, 31))
        with pytest.raises(OutOfRangeError):
            calendar.previous_business_day(date(2022, 1, 1))

    def test_outside_calendar(self, calendar):
        with pytest.raises(OutOfRangeError):
            calendar.is_business_day(date(2026, 1, 5))


class TestCounting:
    def test_christmas_fortnight(self, calendar):
        assert calendar.business_days_between(date(2023, 12, 18), date(2023, 12, 31)) == 8

    def test_reversed(self, calendar):
        assert calendar.business_days_between(date(2023, 12, 31), date(2023, 12, 18)) == 0

    def test_elapsed_and_remaining_sum_to_month(self, calendar):
        elapsed = calendar.business_days_elapsed_in_month(date(2023, 12, 22))
        remaining = calendar.business_days_remaining_in_month(date(2023, 12, 22))
        assert elapsed == 16
        assert remaining == 3
        assert elapsed + remaining == calendar.index.trading_days_in_month(2023, 12)


class TestMonthLookups:
    def test_nth_from_start(self, calendar):
        assert calendar.nth_business_day_of_month(2023, 12, 1) == date(2023, 12, 1)
        assert calendar.nth_business_day_of_month(2023, 12, 2) == date(2023, 12, 4)

    def test_nth_from_end(self, calendar):
        assert calendar.nth_last_business_day_of_month(2023, 12, 1) == date(2023, 12, 29)
        assert calendar.last_business_day_of_month(2023, 12) == date(2023, 12, 29)

    def test_first_skips_new_years_day(self, calendar):
        assert calendar.first_business_day_of_month(2024, 1) == date(2024, 1, 2)

    def test_beyond_month_count(self, calendar):
        assert calendar.nth_business_day_of_month(2023, 12, 25) is None

    def test_n_must_be_positive(self, calendar):
        with pytest.raises(InvalidInputError):
            calendar.nth_business_day_of_month(2023, 12, 0)

    def test_bad_month(self, calendar):
        with pytest.raises(InvalidInputError):
            calendar.nth_business_day_of_month(2023, 13, 1)


class TestCompletionDate:
    def test_includes_start(self, calendar):
        assert calendar.calculate_completion_date(date(2023, 12, 20), 30, 10) == date(2023, 12, 22)

    def test_rolls_over_holidays(self, calendar):
        assert calendar.calculate_completion_date(date(2023, 12, 20), 40, 10) == date(2023, 12, 27)

    def test_partial_day_rounds_up(self, calendar):
        assert calendar.calculate_completion_date(date(2023, 12, 20), 25, 10) == date(2023, 12, 22)

    def test_excluding_start(self, calendar):
        assert calendar.calculate_completion_date(date(2023, 12, 20), 30, 10, include_start_date=False) == date(
            2023, 12, 27
        )

    def test_no_work(self, calendar):
        assert calendar.calculate_completion_date(date(2023, 12, 23), 0, 10) == date(2023, 12, 27)

    def test_capacity_must_be_positive(self, calendar):
        with pytest.raises(InvalidInputError):
            calendar.calculate_completion_date(date(2023, 12, 20), 10, 0)


class TestRoundTrip:
    @pytest.mark.parametrize("start", [date(2023, 12, 22), date(2023, 12, 27), date(2024, 3, 28), date(2025, 6, 30)])
    @pytest.mark.parametrize("n", [1, 5, 20])
    def test_add_then_subtract(self, calendar, start, n):
        assert calendar.add_business_days(calendar.add_business_days(start, n), -n) == start

    def test_fifth_trading_day_of_december(self, calendar):
        assert calendar.nth_business_day_of_month(2023, 12, 5) == date(2023, 12, 7)
