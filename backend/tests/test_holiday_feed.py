"""
Tests for the data.gov.au holiday feed.

Covers:
  - Record decoding and incremental filtering
  - SQL query construction
  - Retry with tenacity on HTTP errors and unsuccessful payloads
  - Source priority: SQL API -> datastore API -> CSV fallback
  - Fallback persistence (full API loads only)
"""

from datetime import date

import httpx
import pytest
from tenacity import wait_none

from calendar_engine.holidays import Jurisdiction
from core.config import Settings
from core.errors import HolidayFeedError, InvalidInputError
from integrations.base import FeedStatus, HolidaySourceType
from integrations.holiday_feed import (
    CsvFallbackSource,
    DataGovAuApiSource,
    DataGovAuSqlSource,
    build_sql_query,
    decode_record,
    decode_records,
    load_holidays,
)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        holiday_max_retries=3,
        holiday_fallback_path=str(tmp_path / "fallback.csv"),
    )


def _payload(records: list[dict]) -> dict:
    return {"success": True, "result": {"records": records}}


def _transport(responses: list, calls: list) -> httpx.MockTransport:
    """Serve queued responses in order; each entry is a status code or a JSON payload."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        item = responses[min(len(calls), len(responses)) - 1]
        if isinstance(item, int):
            return httpx.Response(item)
        return httpx.Response(200, json=item)

    return httpx.MockTransport(handler)


# ── Decoding ───────────────────────────────────────────────────────────


class TestDecoding:
    def test_decode_record(self, holiday_records):
        holiday = decode_record(holiday_records[0])
        assert holiday.date == date(2022, 1, 1)
        assert holiday.name == "New Year's Day"
        assert holiday.jurisdiction is Jurisdiction.NATIONAL

    def test_bad_date(self):
        with pytest.raises(InvalidInputError):
            decode_record({"Date": "2023-12-25", "Holiday Name": "Christmas Day", "Jurisdiction": "nsw"})

    def test_missing_name(self):
        with pytest.raises(InvalidInputError):
            decode_record({"Date": "20231225", "Holiday Name": " ", "Jurisdiction": "nsw"})

    def test_bad_records_are_reported_not_raised(self, holiday_records):
        records = holiday_records + [{"_id": 999, "Date": "bogus", "Holiday Name": "x", "Jurisdiction": "nsw"}]
        holidays, errors = decode_records(records)
        assert len(holidays) == len(holiday_records)
        assert len(errors) == 1

    def test_latest_date_filter(self, holiday_records):
        holidays, _ = decode_records(holiday_records, latest_date=date(2025, 4, 25))
        assert [h.date for h in holidays] == [date(2025, 12, 25), date(2025, 12, 26)]

    def test_sql_query(self):
        assert build_sql_query("abc") == 'SELECT * from "abc"'
        assert build_sql_query("abc", date(2023, 12, 31)) == """SELECT * from "abc" WHERE "Date" > '20231231'"""


# ── HTTP Sources ───────────────────────────────────────────────────────


@pytest.mark.asyncio
class TestDataGovAuSources:
    async def test_sql_source_sends_query(self, settings, holiday_records):
        calls: list[httpx.Request] = []
        source = DataGovAuSqlSource(settings, transport=_transport([_payload(holiday_records)], calls), wait=wait_none())
        records = await source.fetch_records(date(2023, 12, 31))
        assert len(records) == len(holiday_records)
        assert "WHERE" in calls[0].url.params["sql"]

    async def test_api_source_sends_resource_id(self, settings):
        calls: list[httpx.Request] = []
        source = DataGovAuApiSource(settings, transport=_transport([_payload([])], calls), wait=wait_none())
        assert await source.fetch_records() == []
        assert calls[0].url.params["resource_id"] == settings.holiday_resource_id
        assert calls[0].url.params["limit"] == str(settings.holiday_page_limit)

    async def test_retries_then_succeeds(self, settings, holiday_records):
        calls: list[httpx.Request] = []
        transport = _transport([500, 503, _payload(holiday_records)], calls)
        source = DataGovAuSqlSource(settings, transport=transport, wait=wait_none())
        records = await source.fetch_records()
        assert len(records) == len(holiday_records)
        assert len(calls) == 3

    async def test_gives_up_after_max_retries(self, settings):
        calls: list[httpx.Request] = []
        source = DataGovAuSqlSource(settings, transport=_transport([500], calls), wait=wait_none())
        with pytest.raises(httpx.HTTPStatusError):
            await source.fetch_records()
        assert len(calls) == settings.holiday_max_retries

    async def test_unsuccessful_payload(self, settings):
        calls: list[httpx.Request] = []
        source = DataGovAuSqlSource(settings, transport=_transport([{"success": False}], calls), wait=wait_none())
        with pytest.raises(HolidayFeedError):
            await source.fetch_records()
        assert len(calls) == settings.holiday_max_retries


# ── Loader ─────────────────────────────────────────────────────────────


def _sources(settings, sql_responses, api_responses, calls):
    return [
        DataGovAuSqlSource(settings, transport=_transport(sql_responses, calls), wait=wait_none()),
        DataGovAuApiSource(settings, transport=_transport(api_responses, calls), wait=wait_none()),
    ]


@pytest.mark.asyncio
class TestLoadHolidays:
    async def test_sql_api_preferred(self, settings, holiday_records):
        calls: list[httpx.Request] = []
        result = await load_holidays(settings, sources=_sources(settings, [_payload(holiday_records)], [500], calls))
        assert result.source is HolidaySourceType.SQL_API
        assert result.status is FeedStatus.SUCCESS
        assert result.records_processed == len(holiday_records)
        assert result.completed_at is not None

    async def test_falls_through_to_datastore_api(self, settings, holiday_records):
        calls: list[httpx.Request] = []
        sources = _sources(settings, [500], [_payload(holiday_records)], calls)
        result = await load_holidays(settings, sources=sources)
        assert result.source is HolidaySourceType.API

    async def test_empty_sql_response_moves_on(self, settings, holiday_records):
        calls: list[httpx.Request] = []
        sources = _sources(settings, [_payload([])], [_payload(holiday_records)], calls)
        result = await load_holidays(settings, sources=sources)
        assert result.source is HolidaySourceType.API

    async def test_full_load_saves_fallback(self, settings, holiday_records):
        calls: list[httpx.Request] = []
        await load_holidays(settings, sources=_sources(settings, [_payload(holiday_records)], [500], calls))
        fallback = CsvFallbackSource(settings.holiday_fallback_path)
        assert fallback.exists()
        assert len(fallback.read()) == len(holiday_records)

    async def test_incremental_load_keeps_fallback(self, settings, holiday_records):
        calls: list[httpx.Request] = []
        sources = _sources(settings, [_payload(holiday_records)], [500], calls)
        result = await load_holidays(settings, latest_date=date(2025, 4, 25), sources=sources)
        assert [h.date for h in result.holidays] == [date(2025, 12, 25), date(2025, 12, 26)]
        assert not CsvFallbackSource(settings.holiday_fallback_path).exists()

    async def test_uses_fallback_when_apis_fail(self, settings, holiday_records):
        CsvFallbackSource(settings.holiday_fallback_path).save(holiday_records)
        calls: list[httpx.Request] = []
        result = await load_holidays(settings, sources=_sources(settings, [500], [500], calls))
        assert result.source is HolidaySourceType.FALLBACK_CSV
        assert len(result.holidays) == len(holiday_records)
        assert result.holidays[0].jurisdiction is Jurisdiction.NATIONAL

    async def test_partial_status(self, settings, holiday_records):
        records = holiday_records + [{"_id": 999, "Date": "bogus", "Holiday Name": "x", "Jurisdiction": "nsw"}]
        calls: list[httpx.Request] = []
        result = await load_holidays(settings, sources=_sources(settings, [_payload(records)], [500], calls))
        assert result.status is FeedStatus.PARTIAL
        assert result.records_failed == 1

    async def test_everything_fails(self, settings):
        calls: list[httpx.Request] = []
        with pytest.raises(HolidayFeedError):
            await load_holidays(settings, sources=_sources(settings, [500], [500], calls))
