"""
Business Calendar Configuration

Uses pydantic-settings for type-safe environment variable loading, plus the
typed BuildConfig consumed by the calendar builder.
"""

from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings

RetailPattern = Literal["445", "454", "544"]

# Find .env file: check CWD first, then parent (project root)
_env_file = Path(".env")
if not _env_file.exists():
    _parent_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if _parent_env.exists():
        _env_file = _parent_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Business Calendar"
    app_version: str = "1.0.0"
    app_env: str = "local"
    debug: bool = False

    # ── Calendar Build ───────────────────────────────────────────────
    calendar_start_date: date = date(2015, 1, 1)
    calendar_end_date: date = date(2035, 12, 31)
    retail_pattern: RetailPattern = "445"
    fiscal_start_month: int = 7
    week_start: int = 0  # 0=Sunday ... 6=Saturday
    timezone_label: str = "Australia/Adelaide"

    # ── Holiday Feed (data.gov.au) ───────────────────────────────────
    holiday_sql_api_url: str = "https://data.gov.au/data/api/action/datastore_search_sql"
    holiday_api_url: str = "https://data.gov.au/data/api/action/datastore_search"
    holiday_resource_id: str = "33673aca-0857-42e5-b8f0-9981b4755686"
    holiday_page_limit: int = 1000
    holiday_max_retries: int = 3
    holiday_retry_delay_seconds: float = 5.0
    holiday_timeout_seconds: float = 30.0
    holiday_fallback_path: str = "australian_holidays_fallback.csv"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {
        "env_file": str(_env_file),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


class BuildConfig(BaseModel):
    """Typed parameters for one calendar build."""

    start_date: date = date(2015, 1, 1)
    end_date: date = date(2035, 12, 31)
    retail_pattern: RetailPattern = "445"
    fiscal_start_month: int = Field(7, ge=1, le=12)
    week_start: int = Field(0, ge=0, le=6)
    timezone_label: str = "Australia/Adelaide"

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_range(self) -> "BuildConfig":
        if self.start_date > self.end_date:
            raise ValueError(f"start_date {self.start_date} is after end_date {self.end_date}")
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> "BuildConfig":
        return cls(
            start_date=settings.calendar_start_date,
            end_date=settings.calendar_end_date,
            retail_pattern=settings.retail_pattern,
            fiscal_start_month=settings.fiscal_start_month,
            week_start=settings.week_start,
            timezone_label=settings.timezone_label,
        )


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    settings = Settings()
    _enforce_runtime_guardrails(settings)
    return settings


def _enforce_runtime_guardrails(settings: Settings) -> None:
    env = settings.app_env.strip().lower()
    is_local = env in {"", "local", "dev", "development", "test"}
    if is_local:
        return

    if settings.debug:
        raise ValueError("Refusing to start with debug=true outside local/dev/test")
    if settings.holiday_max_retries < 1:
        raise ValueError("holiday_max_retries must be at least 1 outside local/dev/test")
