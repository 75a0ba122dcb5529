"""
Holiday Source — Abstract Base Class

Every holiday provider (data.gov.au SQL API, standard datastore API, local
CSV fallback) implements this interface so the loader can walk them in
priority order without caring where the records come from.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

import structlog

from calendar_engine.holidays import Holiday

logger = structlog.get_logger()


# ── Source types ───────────────────────────────────────────────────────────


class HolidaySourceType(str, Enum):
    """Where a batch of holiday records came from."""

    SQL_API = "sql_api"  # data.gov.au datastore_search_sql
    API = "api"  # data.gov.au datastore_search
    FALLBACK_CSV = "fallback_csv"  # last good API payload on disk

    @property
    def is_api(self) -> bool:
        return self is not HolidaySourceType.FALLBACK_CSV


class FeedStatus(str, Enum):
    """Result status of a holiday load."""

    SUCCESS = "success"
    PARTIAL = "partial"  # Some records decoded, some skipped
    NO_DATA = "no_data"


# ── Feed result container ─────────────────────────────────────────────────


@dataclass
class FeedResult:
    """Standardized return from a holiday load."""

    status: FeedStatus
    source: HolidaySourceType
    holidays: list[Holiday] = field(default_factory=list)
    records_processed: int = 0
    records_failed: int = 0
    errors: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: datetime | None = None

    def complete(self) -> "FeedResult":
        self.completed_at = datetime.now(timezone.utc)
        return self


# ── Abstract source ───────────────────────────────────────────────────────


class HolidaySource(ABC):
    """
    Base class for holiday providers.

    ``fetch_records`` returns raw records shaped like the data.gov.au
    resource: ``_id``, ``Date`` (YYYYMMDD), ``Holiday Name``, ``Information``,
    ``More Information``, ``Jurisdiction``. Decoding into Holiday objects is
    shared and lives in ``integrations.holiday_feed``.
    """

    def __init__(self):
        self.logger = logger.bind(source=self.source_type.value)

    @property
    @abstractmethod
    def source_type(self) -> HolidaySourceType:
        """Return the source type this provider represents."""
        ...

    @abstractmethod
    async def fetch_records(self, latest_date: date | None = None) -> list[dict[str, Any]]:
        """Fetch raw records, optionally only those dated after ``latest_date``."""
        ...
