"""
Retail Seasons — AU marketing season and holiday-proximity labels.

Season rules, first match wins:
  - Nov 1 - Dec 24        Christmas Season
  - Jan 15 - Feb 15       Back to School
  - Good Friday -21d/+1d  Easter Season (needs a Good Friday holiday record)
  - June                  EOFY Sales
  - otherwise             Regular Season

Proximity is independent of season and only labels late December.
"""

from collections.abc import Iterator
from datetime import date, timedelta
from enum import Enum
from typing import NamedTuple

from calendar_engine.dates import date_range
from calendar_engine.holidays import HolidaySet
from core.errors import InvalidInputError


class RetailSeason(str, Enum):
    CHRISTMAS = "Christmas Season"
    BACK_TO_SCHOOL = "Back to School"
    EASTER = "Easter Season"
    EOFY = "EOFY Sales"
    REGULAR = "Regular Season"

    @classmethod
    def parse(cls, raw: "str | RetailSeason | None") -> "RetailSeason":
        """Accept the display label or the enum name, any case."""
        if isinstance(raw, RetailSeason):
            return raw
        if raw is None:
            raise InvalidInputError("Season name is required")
        key = str(raw).strip().lower()
        for season in cls:
            if key in (season.value.lower(), season.name.lower()):
                return season
        raise InvalidInputError(f"Unknown retail season: {raw!r}")


class HolidayProximity(str, Enum):
    CHRISTMAS_EVE = "Christmas Eve Period"
    BOXING_DAY = "Boxing Day"
    POST_CHRISTMAS = "Post-Christmas Sale"


SEASON_SORT_KEYS = {
    RetailSeason.CHRISTMAS: 1,
    RetailSeason.BACK_TO_SCHOOL: 2,
    RetailSeason.EASTER: 3,
    RetailSeason.EOFY: 4,
    RetailSeason.REGULAR: 5,
}
PROXIMITY_SORT_KEYS = {
    HolidayProximity.CHRISTMAS_EVE: 1,
    HolidayProximity.BOXING_DAY: 2,
    HolidayProximity.POST_CHRISTMAS: 3,
}
NO_PROXIMITY_SORT_KEY = 9

EASTER_LEAD_DAYS = 21
EASTER_TRAIL_DAYS = 1


class SeasonClassification(NamedTuple):
    season: RetailSeason
    holiday_proximity: HolidayProximity | None

    @property
    def season_sort_key(self) -> int:
        return SEASON_SORT_KEYS[self.season]

    @property
    def proximity_sort_key(self) -> int:
        if self.holiday_proximity is None:
            return NO_PROXIMITY_SORT_KEY
        return PROXIMITY_SORT_KEYS[self.holiday_proximity]


def holiday_proximity(dt: date) -> HolidayProximity | None:
    if dt.month != 12:
        return None
    if 20 <= dt.day <= 24:
        return HolidayProximity.CHRISTMAS_EVE
    if dt.day == 26:
        return HolidayProximity.BOXING_DAY
    if dt.day >= 27:
        return HolidayProximity.POST_CHRISTMAS
    return None


class RetailSeasonClassifier:
    """Labels dates with a retail season, using the holiday set for Good Friday."""

    def __init__(self, holidays: HolidaySet):
        self.holidays = holidays
        self._good_fridays: dict[int, date | None] = {}

    def good_friday(self, year: int) -> date | None:
        if year not in self._good_fridays:
            self._good_fridays[year] = self.holidays.good_friday(year)
        return self._good_fridays[year]

    def _season(self, dt: date) -> RetailSeason:
        month, day = dt.month, dt.day
        if month == 11 or (month == 12 and day <= 24):
            return RetailSeason.CHRISTMAS
        if (month == 1 and day >= 15) or (month == 2 and day <= 15):
            return RetailSeason.BACK_TO_SCHOOL
        good_friday = self.good_friday(dt.year)
        if good_friday is not None and (
            good_friday - timedelta(days=EASTER_LEAD_DAYS) <= dt <= good_friday + timedelta(days=EASTER_TRAIL_DAYS)
        ):
            return RetailSeason.EASTER
        if month == 6:
            return RetailSeason.EOFY
        return RetailSeason.REGULAR

    def classify(self, dt: date) -> SeasonClassification:
        if dt is None:
            raise InvalidInputError("date is required")
        return SeasonClassification(self._season(dt), holiday_proximity(dt))

    def is_in_season(self, dt: date, season: str | RetailSeason) -> bool:
        return self.classify(dt).season is RetailSeason.parse(season)

    def season_dates(self, year: int, season: str | RetailSeason) -> Iterator[date]:
        """Lazily yield the dates of ``season`` within calendar year ``year``."""
        wanted = RetailSeason.parse(season)
        for dt in date_range(date(year, 1, 1), date(year, 12, 31)):
            if self._season(dt) is wanted:
                yield dt

    def season_bounds(self, dt: date) -> tuple[date, date]:
        """First and last day of ``dt``'s season within its calendar year."""
        season_days = list(self.season_dates(dt.year, self._season(dt)))
        return season_days[0], season_days[-1]
