"""
Integration adapters package.

Holiday providers feeding the business calendar:
  - data.gov.au SQL API        (incremental, preferred)
  - data.gov.au datastore API  (full dump)
  - local CSV fallback         (last good API payload)

Usage:
    from integrations import load_holidays

    result = await load_holidays(settings)
    calendar = BusinessCalendar.build(config, result.holidays)
"""

from integrations.base import FeedResult, FeedStatus, HolidaySource, HolidaySourceType
from integrations.holiday_feed import (
    CsvFallbackSource,
    DataGovAuApiSource,
    DataGovAuSqlSource,
    decode_records,
    load_holidays,
)

__all__ = [
    "FeedResult",
    "FeedStatus",
    "HolidaySource",
    "HolidaySourceType",
    "CsvFallbackSource",
    "DataGovAuApiSource",
    "DataGovAuSqlSource",
    "decode_records",
    "load_holidays",
]
