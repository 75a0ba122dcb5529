"""
Holiday Facts — decoded public holiday records and the per-date index.

Holidays are supplied, never computed. A date is a holiday when at least
one record exists for it in any jurisdiction. Good Friday is the single
derived fact: the earliest Friday holiday in March/April of a year.
"""

from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import NamedTuple

from core.errors import InvalidInputError


class Jurisdiction(str, Enum):
    """AU states/territories plus an explicit national marker."""

    NSW = "NSW"
    VIC = "VIC"
    QLD = "QLD"
    SA = "SA"
    WA = "WA"
    TAS = "TAS"
    ACT = "ACT"
    NT = "NT"
    NATIONAL = "NATIONAL"

    @classmethod
    def parse(cls, raw: "str | Jurisdiction | None") -> "Jurisdiction":
        """Case-insensitive decode; raises InvalidInputError for anything unrecognised."""
        if isinstance(raw, Jurisdiction):
            return raw
        if raw is None:
            raise InvalidInputError("Jurisdiction is required")
        key = str(raw).strip().upper()
        if key in _NATIONAL_ALIASES:
            return cls.NATIONAL
        try:
            return cls(key)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown jurisdiction: {raw!r}") from exc


_NATIONAL_ALIASES = {"NATIONAL", "NAT", "AUS", "AU", "ALL"}
STATE_JURISDICTIONS = tuple(j for j in Jurisdiction if j is not Jurisdiction.NATIONAL)


@dataclass(frozen=True)
class Holiday:
    date: date
    name: str
    jurisdiction: Jurisdiction
    information: str = ""
    more_information: str = ""

    @property
    def label(self) -> str:
        """'Name (JURIS)' as shown in holiday descriptions."""
        return f"{self.name} ({self.jurisdiction.value})"


class JurisdictionFlags(NamedTuple):
    is_holiday_nsw: bool = False
    is_holiday_vic: bool = False
    is_holiday_qld: bool = False
    is_holiday_sa: bool = False
    is_holiday_wa: bool = False
    is_holiday_tas: bool = False
    is_holiday_act: bool = False
    is_holiday_nt: bool = False
    is_holiday_national: bool = False


class HolidaySet:
    """In-memory index of holiday records keyed by date."""

    def __init__(self, holidays: Iterable[Holiday] = ()):
        by_date: dict[date, list[Holiday]] = defaultdict(list)
        for holiday in holidays:
            by_date[holiday.date].append(holiday)
        self._by_date = {
            dt: tuple(sorted(records, key=lambda h: (h.jurisdiction.value, h.name)))
            for dt, records in sorted(by_date.items())
        }
        # A feed that marks national holidays explicitly is trusted over state coverage
        self.has_national_marker = any(
            h.jurisdiction is Jurisdiction.NATIONAL for records in self._by_date.values() for h in records
        )

    def __len__(self) -> int:
        return sum(len(records) for records in self._by_date.values())

    def __iter__(self) -> Iterator[Holiday]:
        for records in self._by_date.values():
            yield from records

    def __contains__(self, dt: object) -> bool:
        return dt in self._by_date

    def dates(self) -> list[date]:
        return list(self._by_date)

    def is_holiday(self, dt: date) -> bool:
        return dt in self._by_date

    def holidays_on(self, dt: date) -> tuple[Holiday, ...]:
        return self._by_date.get(dt, ())

    def holiday_desc(self, dt: date) -> str | None:
        """Distinct 'Name (JURIS)' labels joined with '; ', or None."""
        records = self._by_date.get(dt)
        if not records:
            return None
        return "; ".join(dict.fromkeys(h.label for h in records))

    def jurisdiction_flags(self, dt: date) -> JurisdictionFlags:
        records = self._by_date.get(dt)
        if not records:
            return JurisdictionFlags()
        present = {h.jurisdiction for h in records}
        if self.has_national_marker:
            national = Jurisdiction.NATIONAL in present
        else:
            national = all(j in present for j in STATE_JURISDICTIONS)
        return JurisdictionFlags(
            is_holiday_nsw=national or Jurisdiction.NSW in present,
            is_holiday_vic=national or Jurisdiction.VIC in present,
            is_holiday_qld=national or Jurisdiction.QLD in present,
            is_holiday_sa=national or Jurisdiction.SA in present,
            is_holiday_wa=national or Jurisdiction.WA in present,
            is_holiday_tas=national or Jurisdiction.TAS in present,
            is_holiday_act=national or Jurisdiction.ACT in present,
            is_holiday_nt=national or Jurisdiction.NT in present,
            is_holiday_national=national,
        )

    # ── Lookups ──────────────────────────────────────────────────────

    def good_friday(self, year: int) -> date | None:
        """Earliest Friday holiday in March/April of ``year``."""
        for dt in self._by_date:
            if dt.year == year and dt.month in (3, 4) and dt.isoweekday() == 5:
                return dt
        return None

    def find_holiday(self, year: int, name: str, jurisdiction: str | None = None) -> date | None:
        """Best-scoring holiday date in ``year`` whose name contains ``name``.

        Score is 2 for a name match, doubled when ``jurisdiction`` is given
        and matches; ties go to the earliest date.
        """
        if year is None or not name:
            raise InvalidInputError("year and holiday name are required")
        wanted = Jurisdiction.parse(jurisdiction) if jurisdiction else None
        needle = name.strip().upper()

        best: tuple[int, date] | None = None
        for dt, records in self._by_date.items():
            if dt.year != year:
                continue
            for holiday in records:
                if needle not in holiday.name.upper():
                    continue
                score = 2 * (2 if wanted is not None and holiday.jurisdiction is wanted else 1)
                if best is None or score > best[0] or (score == best[0] and dt < best[1]):
                    best = (score, dt)
        return best[1] if best else None
