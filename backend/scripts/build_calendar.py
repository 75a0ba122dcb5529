#!/usr/bin/env python3
"""Build the business calendar and export it as a flat date dimension.

Examples:
  python backend/scripts/build_calendar.py --output calendar.csv
  python backend/scripts/build_calendar.py --start 2022-01-01 --end 2025-12-31 \
      --pattern 454 --holidays-csv holidays.csv --output calendar.json --pretty
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any

# Add backend/ to path when run as a script.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from calendar_engine.builder import BusinessCalendar
from core.config import BuildConfig, get_settings
from core.errors import InvalidInputError
from integrations.holiday_feed import CsvFallbackSource, decode_records, load_holidays

EXPORT_SUFFIXES = {".csv", ".json"}


def _load_holidays(holidays_csv: str | None) -> tuple[list, str]:
    if holidays_csv:
        source = CsvFallbackSource(holidays_csv)
        if not source.exists():
            raise InvalidInputError(f"Holiday CSV not found: {holidays_csv}")
        holidays, _ = decode_records(source.read())
        return holidays, source.source_type.value
    feed = asyncio.run(load_holidays(get_settings()))
    return feed.holidays, feed.source.value


def _export(calendar: BusinessCalendar, output: Path) -> None:
    frame = calendar.to_dataframe()
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix == ".csv":
        frame.to_csv(output, index=False)
    else:
        frame.to_json(output, orient="records", date_format="iso")


def _build(args: argparse.Namespace) -> dict[str, Any]:
    settings = get_settings()
    config = BuildConfig(
        start_date=date.fromisoformat(args.start) if args.start else settings.calendar_start_date,
        end_date=date.fromisoformat(args.end) if args.end else settings.calendar_end_date,
        retail_pattern=args.pattern or settings.retail_pattern,
        fiscal_start_month=settings.fiscal_start_month,
        week_start=settings.week_start,
        timezone_label=settings.timezone_label,
    )
    output = Path(args.output) if args.output else None
    if output is not None and output.suffix.lower() not in EXPORT_SUFFIXES:
        raise InvalidInputError(f"Unsupported export format {output.suffix!r}; use .csv or .json")

    holidays, holiday_source = _load_holidays(args.holidays_csv)
    calendar = BusinessCalendar.build(config, holidays)
    if output is not None:
        _export(calendar, output)

    return {
        "status": "success",
        "start_date": config.start_date.isoformat(),
        "end_date": config.end_date.isoformat(),
        "retail_pattern": config.retail_pattern,
        "holiday_source": holiday_source,
        "holidays": len(calendar.holidays),
        "days": len(calendar),
        "trading_days": len(calendar.index),
        "output": str(output) if output is not None else None,
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Build and export the business calendar")
    parser.add_argument("--start", help="First date (YYYY-MM-DD); defaults to CALENDAR_START_DATE")
    parser.add_argument("--end", help="Last date (YYYY-MM-DD); defaults to CALENDAR_END_DATE")
    parser.add_argument("--pattern", choices=["445", "454", "544"], help="Retail week pattern")
    parser.add_argument(
        "--holidays-csv",
        help="Read holidays from a data.gov.au-shaped CSV instead of the live feed",
    )
    parser.add_argument("--output", help="Export path ending in .csv or .json")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    args = parser.parse_args()

    try:
        summary = _build(args)
        failed = False
    except Exception as exc:  # noqa: BLE001
        summary = {"status": "failed", "error": str(exc)}
        failed = True

    if args.pretty:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        print(json.dumps(summary))

    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
