"""
Test Configuration — Fixtures for holiday data, a built calendar, and the test client.

The calendar fixture is built once per session over 2022-01-01 .. 2025-12-31
from a small AU holiday feed: national holidays carry an explicit NATIONAL
marker, plus a handful of state-only holidays so trading days differ from
plain weekdays in realistic ways.
"""

from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient

from api.deps import get_calendar
from api.main import app
from calendar_engine.builder import BusinessCalendar
from calendar_engine.holidays import HolidaySet
from core.config import BuildConfig
from integrations.holiday_feed import decode_records

CALENDAR_START = date(2022, 1, 1)
CALENDAR_END = date(2025, 12, 31)

_NATIONAL_HOLIDAYS = [
    ("20220101", "New Year's Day"),
    ("20220103", "New Year's Day Holiday"),
    ("20220126", "Australia Day"),
    ("20220415", "Good Friday"),
    ("20220418", "Easter Monday"),
    ("20220425", "Anzac Day"),
    ("20221225", "Christmas Day"),
    ("20221226", "Boxing Day"),
    ("20221227", "Christmas Day Holiday"),
    ("20230101", "New Year's Day"),
    ("20230102", "New Year's Day Holiday"),
    ("20230126", "Australia Day"),
    ("20230407", "Good Friday"),
    ("20230410", "Easter Monday"),
    ("20230425", "Anzac Day"),
    ("20231225", "Christmas Day"),
    ("20231226", "Boxing Day"),
    ("20240101", "New Year's Day"),
    ("20240126", "Australia Day"),
    ("20240329", "Good Friday"),
    ("20240401", "Easter Monday"),
    ("20240425", "Anzac Day"),
    ("20241225", "Christmas Day"),
    ("20241226", "Boxing Day"),
    ("20250101", "New Year's Day"),
    ("20250127", "Australia Day"),
    ("20250418", "Good Friday"),
    ("20250421", "Easter Monday"),
    ("20250425", "Anzac Day"),
    ("20251225", "Christmas Day"),
    ("20251226", "Boxing Day"),
]

_STATE_HOLIDAYS = [
    ("20230313", "Adelaide Cup Day", "sa"),
    ("20230313", "Labour Day", "vic"),
    ("20230612", "King's Birthday", "nsw"),
    ("20230612", "King's Birthday", "vic"),
    ("20231002", "Labour Day", "nsw"),
    ("20231107", "Melbourne Cup", "vic"),
]


def au_holiday_records() -> list[dict]:
    """Raw records shaped like the data.gov.au holiday resource."""
    rows = [(day, name, "NATIONAL") for day, name in _NATIONAL_HOLIDAYS] + _STATE_HOLIDAYS
    return [
        {
            "_id": i,
            "Date": day,
            "Holiday Name": name,
            "Information": f"{name} is a public holiday",
            "More Information": "",
            "Jurisdiction": jurisdiction,
        }
        for i, (day, name, jurisdiction) in enumerate(sorted(rows), start=1)
    ]


@pytest.fixture
def holiday_records() -> list[dict]:
    return au_holiday_records()


@pytest.fixture(scope="session")
def au_holidays():
    holidays, errors = decode_records(au_holiday_records())
    assert errors == []
    return holidays


@pytest.fixture(scope="session")
def holiday_set(au_holidays) -> HolidaySet:
    return HolidaySet(au_holidays)


@pytest.fixture(scope="session")
def calendar(au_holidays) -> BusinessCalendar:
    """Calendar built once for the whole session; it is immutable."""
    config = BuildConfig(start_date=CALENDAR_START, end_date=CALENDAR_END)
    return BusinessCalendar.build(config, au_holidays)


@pytest.fixture
async def client(calendar):
    """Create an async test client with the prebuilt calendar injected."""

    def override_get_calendar():
        return calendar

    app.dependency_overrides[get_calendar] = override_get_calendar

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
