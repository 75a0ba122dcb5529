"""
Calendar Errors — shared exception taxonomy.

Lookups that legitimately find nothing (no 25th trading day in a month,
no Good Friday record for a year) return None instead of raising.
"""


class CalendarError(Exception):
    """Base class for all business calendar errors."""


class InvalidInputError(CalendarError, ValueError):
    """Null or out-of-domain argument (bad month, n < 1, unknown system)."""


class InvalidRangeError(InvalidInputError):
    """A date range whose start is after its end."""


class OutOfRangeError(CalendarError, LookupError):
    """Navigation beyond the start or end of the built calendar."""


class CalendarConfigError(CalendarError):
    """Fatal build-time configuration problem, e.g. a non-total pattern table."""


class HolidayFeedError(CalendarError):
    """Holiday ingestion failed on every source, including the local fallback."""
