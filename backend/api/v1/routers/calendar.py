"""
Calendar Router — date dimension lookups, trading-day navigation, mapping.
"""

from dataclasses import asdict
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from api.deps import get_calendar
from calendar_engine.builder import BusinessCalendar

router = APIRouter(prefix="/api/v1/calendar", tags=["calendar"])


# ─── Schemas ────────────────────────────────────────────────────────────────


class CalendarDayResponse(BaseModel):
    date: date
    date_key: int
    is_weekday: bool
    is_holiday: bool
    is_trading_day: bool
    trading_day_desc: str
    holiday_desc: str | None
    fiscal_year_num: int
    fiscal_month_num: int
    retail_year_num: int
    retail_period_num: int
    retail_week_num: int
    retail_season: str
    holiday_proximity: str | None
    attributes: dict[str, Any]


class DateResponse(BaseModel):
    date: date


class TradingDayCountResponse(BaseModel):
    start: date
    end: date
    trading_days: int


class SeasonResponse(BaseModel):
    date: date
    retail_season: str
    holiday_proximity: str | None
    retail_season_sort_key: int
    holiday_proximity_sort_key: int


class MappingResponse(BaseModel):
    input_date: date
    source_calendar: str
    target_calendar: str
    mapped_date: date
    mapping_type: str


class RelativeFlagsResponse(BaseModel):
    date: date
    today: date
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


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=404, detail=detail)


# ─── Endpoints ──────────────────────────────────────────────────────────────


@router.get("/days/{day}", response_model=CalendarDayResponse)
async def get_calendar_day(day: date, calendar: BusinessCalendar = Depends(get_calendar)):
    """Full derived attributes for one date."""
    calendar_day = calendar.derive_calendar_day(day)
    record = calendar_day.to_record()
    return CalendarDayResponse(
        date=calendar_day.date,
        date_key=calendar_day.date_key,
        is_weekday=calendar_day.is_weekday,
        is_holiday=calendar_day.is_holiday,
        is_trading_day=calendar_day.is_trading_day,
        trading_day_desc=calendar_day.trading_day_desc,
        holiday_desc=calendar_day.holiday.holiday_desc,
        fiscal_year_num=calendar_day.fiscal.fiscal_year_num,
        fiscal_month_num=calendar_day.fiscal.fiscal_month_num,
        retail_year_num=calendar_day.retail.retail_year_num,
        retail_period_num=calendar_day.retail.retail_period_num,
        retail_week_num=calendar_day.retail.retail_week_num,
        retail_season=record["retail_season"],
        holiday_proximity=record["holiday_proximity"],
        attributes=record,
    )


@router.get("/trading-days/add", response_model=DateResponse)
async def add_trading_days(
    on: date = Query(..., alias="date"),
    n: int = Query(...),
    calendar: BusinessCalendar = Depends(get_calendar),
):
    """Move n trading days from a date (negative n moves backwards)."""
    return DateResponse(date=calendar.add_business_days(on, n))


@router.get("/trading-days/count", response_model=TradingDayCountResponse)
async def count_trading_days(
    start: date,
    end: date,
    calendar: BusinessCalendar = Depends(get_calendar),
):
    """Inclusive trading-day count; zero when end precedes start."""
    return TradingDayCountResponse(start=start, end=end, trading_days=calendar.business_days_between(start, end))


@router.get("/trading-days/nth", response_model=DateResponse)
async def nth_trading_day(
    year: int,
    month: int,
    n: int,
    from_end: bool = False,
    calendar: BusinessCalendar = Depends(get_calendar),
):
    """n-th trading day of a month, counted from the start or the end."""
    if from_end:
        result = calendar.nth_last_business_day_of_month(year, month, n)
    else:
        result = calendar.nth_business_day_of_month(year, month, n)
    if result is None:
        raise _not_found(f"{year}-{month:02d} has fewer than {n} trading days")
    return DateResponse(date=result)


@router.get("/trading-days/{day}/next", response_model=DateResponse)
async def next_trading_day(day: date, calendar: BusinessCalendar = Depends(get_calendar)):
    return DateResponse(date=calendar.next_business_day(day))


@router.get("/trading-days/{day}/previous", response_model=DateResponse)
async def previous_trading_day(day: date, calendar: BusinessCalendar = Depends(get_calendar)):
    return DateResponse(date=calendar.previous_business_day(day))


@router.get("/seasons/{day}", response_model=SeasonResponse)
async def classify_season(day: date, calendar: BusinessCalendar = Depends(get_calendar)):
    classification = calendar.classify_season(day)
    proximity = classification.holiday_proximity
    return SeasonResponse(
        date=day,
        retail_season=classification.season.value,
        holiday_proximity=proximity.value if proximity is not None else None,
        retail_season_sort_key=classification.season_sort_key,
        holiday_proximity_sort_key=classification.proximity_sort_key,
    )


@router.get("/map", response_model=MappingResponse)
async def map_across_calendars(
    on: date = Query(..., alias="date"),
    source: str = Query(..., description="GREGORIAN, FISCAL or RETAIL"),
    target: str = Query(..., description="GREGORIAN, FISCAL or RETAIL"),
    preserve_day: bool = True,
    calendar: BusinessCalendar = Depends(get_calendar),
):
    """Map a date into another calendar system's equivalent period."""
    result = calendar.describe_mapping(on, source, target, preserve_day)
    if result.mapped_date is None:
        raise _not_found(f"{on} has no {result.target_calendar.value} equivalent inside the built calendar")
    return MappingResponse(
        input_date=result.input_date,
        source_calendar=result.source_calendar.value,
        target_calendar=result.target_calendar.value,
        mapped_date=result.mapped_date,
        mapping_type=result.mapping_type.value,
    )


@router.get("/relative-flags/{day}", response_model=RelativeFlagsResponse)
async def relative_flags(
    day: date,
    today: date | None = None,
    calendar: BusinessCalendar = Depends(get_calendar),
):
    """Relative flags for a date; ``today`` defaults to the current date in the calendar's timezone."""
    if today is None:
        today = datetime.now(ZoneInfo(calendar.config.timezone_label)).date()
    flags = calendar.relative_flags(day, today)
    return RelativeFlagsResponse(date=day, today=today, **asdict(flags))
