"""
Australian Public Holiday Feed — data.gov.au with retry and CSV fallback.

Load order:
  1. datastore_search_sql  (supports incremental "Date > latest" queries)
  2. datastore_search      (plain resource dump, filtered client-side)
  3. local CSV fallback    (the last payload an API call returned)

Each API source retries with tenacity before the loader moves on. Only API
payloads are written back to the fallback file, so a stale fallback never
overwrites itself.
"""

import csv
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path
from typing import Any

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from calendar_engine.holidays import Holiday, Jurisdiction
from core.config import Settings, get_settings
from core.errors import HolidayFeedError, InvalidInputError
from integrations.base import FeedResult, FeedStatus, HolidaySource, HolidaySourceType

logger = structlog.get_logger()

RECORD_FIELDS = ["_id", "Date", "Holiday Name", "Information", "More Information", "Jurisdiction"]
RETRYABLE_ERRORS = (httpx.HTTPError, HolidayFeedError)
# JSON decode failures surface as ValueError and are not worth retrying
FETCH_ERRORS = (*RETRYABLE_ERRORS, ValueError)


# ── Decoding ───────────────────────────────────────────────────────────────


def decode_record(record: dict[str, Any]) -> Holiday:
    """Decode one raw record; raises InvalidInputError when it cannot be used."""
    raw_date = str(record.get("Date") or "").strip()
    try:
        holiday_date = datetime.strptime(raw_date, "%Y%m%d").date()
    except ValueError as exc:
        raise InvalidInputError(f"Bad holiday date {raw_date!r}") from exc

    name = str(record.get("Holiday Name") or "").strip()
    if not name:
        raise InvalidInputError(f"Holiday on {holiday_date} has no name")

    return Holiday(
        date=holiday_date,
        name=name,
        jurisdiction=Jurisdiction.parse(record.get("Jurisdiction")),
        information=str(record.get("Information") or "").strip(),
        more_information=str(record.get("More Information") or "").strip(),
    )


def decode_records(
    records: Iterable[dict[str, Any]],
    latest_date: date | None = None,
) -> tuple[list[Holiday], list[str]]:
    """Decode records, dropping any dated on or before ``latest_date``.

    Returns (holidays, errors); undecodable records are skipped and reported.
    """
    holidays: list[Holiday] = []
    errors: list[str] = []
    for record in records:
        try:
            holiday = decode_record(record)
        except InvalidInputError as exc:
            logger.warning("holiday_feed.record_skipped", record_id=record.get("_id"), error=str(exc))
            errors.append(str(exc))
            continue
        if latest_date is not None and holiday.date <= latest_date:
            continue
        holidays.append(holiday)
    return holidays, errors


def build_sql_query(resource_id: str, latest_date: date | None = None) -> str:
    """SQL for datastore_search_sql; incremental when ``latest_date`` is given."""
    query = f'SELECT * from "{resource_id}"'
    if latest_date is not None:
        query += f""" WHERE "Date" > '{latest_date.strftime("%Y%m%d")}'"""
    return query


# ── data.gov.au Sources ────────────────────────────────────────────────────


class DataGovAuSource(HolidaySource):
    """Shared HTTP + retry plumbing for the two data.gov.au endpoints."""

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        wait: wait_base | None = None,
    ):
        self.settings = settings or get_settings()
        self.transport = transport
        self.wait = wait or wait_exponential(multiplier=1, min=1, max=self.settings.holiday_retry_delay_seconds)
        super().__init__()

    def _before_sleep(self, retry_state) -> None:
        self.logger.warning(
            "holiday_feed.retrying",
            attempt=retry_state.attempt_number,
            error=str(retry_state.outcome.exception()),
        )

    async def _get_records(self, url: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.holiday_max_retries),
            wait=self.wait,
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            before_sleep=self._before_sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                async with httpx.AsyncClient(
                    transport=self.transport,
                    timeout=self.settings.holiday_timeout_seconds,
                ) as client:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    payload = response.json()
                if not payload.get("success"):
                    raise HolidayFeedError(f"data.gov.au reported an unsuccessful request: {url}")
                try:
                    return list(payload["result"]["records"])
                except (KeyError, TypeError) as exc:
                    raise HolidayFeedError(f"Malformed data.gov.au payload from {url}") from exc
        raise HolidayFeedError(f"No attempts were made against {url}")


class DataGovAuSqlSource(DataGovAuSource):
    @property
    def source_type(self) -> HolidaySourceType:
        return HolidaySourceType.SQL_API

    async def fetch_records(self, latest_date: date | None = None) -> list[dict[str, Any]]:
        sql = build_sql_query(self.settings.holiday_resource_id, latest_date)
        self.logger.info("holiday_feed.fetching", query=sql)
        return await self._get_records(self.settings.holiday_sql_api_url, {"sql": sql})


class DataGovAuApiSource(DataGovAuSource):
    @property
    def source_type(self) -> HolidaySourceType:
        return HolidaySourceType.API

    async def fetch_records(self, latest_date: date | None = None) -> list[dict[str, Any]]:
        params = {"resource_id": self.settings.holiday_resource_id, "limit": self.settings.holiday_page_limit}
        self.logger.info("holiday_feed.fetching", limit=self.settings.holiday_page_limit)
        # The plain endpoint cannot filter; decode_records drops records up to latest_date
        return await self._get_records(self.settings.holiday_api_url, params)


# ── CSV Fallback ───────────────────────────────────────────────────────────


class CsvFallbackSource(HolidaySource):
    """Holiday records persisted as CSV using the data.gov.au column names."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        super().__init__()

    @property
    def source_type(self) -> HolidaySourceType:
        return HolidaySourceType.FALLBACK_CSV

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> list[dict[str, Any]]:
        with self.path.open(newline="", encoding="utf-8") as handle:
            return [dict(row) for row in csv.DictReader(handle)]

    def save(self, records: Iterable[dict[str, Any]]) -> int:
        """Overwrite the fallback file; returns the number of rows written."""
        rows = list(records)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=RECORD_FIELDS, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(rows)
        self.logger.info("holiday_feed.fallback_saved", path=str(self.path), rows=len(rows))
        return len(rows)

    async def fetch_records(self, latest_date: date | None = None) -> list[dict[str, Any]]:
        if not self.exists():
            raise HolidayFeedError(f"No fallback holiday file at {self.path}")
        return self.read()


# ── Loader ─────────────────────────────────────────────────────────────────


async def load_holidays(
    settings: Settings | None = None,
    latest_date: date | None = None,
    sources: list[HolidaySource] | None = None,
    fallback: CsvFallbackSource | None = None,
) -> FeedResult:
    """Load holidays from the first source that returns records.

    Raises HolidayFeedError when every API source fails or comes back empty
    and no fallback file is available.
    """
    settings = settings or get_settings()
    fallback = fallback or CsvFallbackSource(settings.holiday_fallback_path)
    sources = sources or [DataGovAuSqlSource(settings), DataGovAuApiSource(settings)]

    records: list[dict[str, Any]] = []
    used: HolidaySourceType | None = None
    for source in [*sources, fallback]:
        if source is fallback and not fallback.exists():
            break
        try:
            records = await source.fetch_records(latest_date)
        except FETCH_ERRORS as exc:
            logger.warning("holiday_feed.fetch_failed", source=source.source_type.value, error=str(exc))
            continue
        if records:
            used = source.source_type
            break
        logger.info("holiday_feed.empty_response", source=source.source_type.value)

    if used is None:
        raise HolidayFeedError("Holiday data unavailable from every API source and no fallback file exists")
    if used is HolidaySourceType.FALLBACK_CSV:
        logger.warning("holiday_feed.fallback_used", path=str(fallback.path), records=len(records))
    elif latest_date is None:
        # Incremental payloads are partial and would truncate the fallback
        fallback.save(records)

    holidays, errors = decode_records(records, latest_date)
    if not holidays:
        status = FeedStatus.NO_DATA
    elif errors:
        status = FeedStatus.PARTIAL
    else:
        status = FeedStatus.SUCCESS

    result = FeedResult(
        status=status,
        source=used,
        holidays=holidays,
        records_processed=len(holidays),
        records_failed=len(errors),
        errors=errors,
        metadata={"latest_date": latest_date.isoformat() if latest_date else None},
    ).complete()
    logger.info(
        "holiday_feed.completed",
        source=used.value,
        status=status.value,
        records_processed=result.records_processed,
        records_failed=result.records_failed,
    )
    return result
