"""Business-day helpers.

Every ``ymd`` in the store is a calendar date in the configured business
timezone, not UTC.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from streakboard.config import settings
from streakboard.utils.errors import InvalidInputError


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def app_today(tz: str | None = None) -> date:
    """Return today's date in the business timezone."""
    return now_utc().astimezone(ZoneInfo(tz or settings.timezone)).date()


def parse_iso_date(value: str | None, default: date | None = None) -> date:
    """Parse an ISO date string with an optional fallback default."""
    if not value:
        if default is None:
            raise ValueError("Missing required date value")
        return default
    return date.fromisoformat(value)


def coerce_date(value: date | str) -> date:
    """Accept a date or a ``YYYY-MM-DD`` string and return a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def require_day(value: date | str | None, label: str = "day") -> date:
    """Coerce a service-level day argument, rejecting missing or malformed values."""
    if value is None or value == "":
        raise InvalidInputError(f"{label} is required")
    try:
        return coerce_date(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Invalid {label}: {value}") from exc


def previous_day(day: date) -> date:
    """Return the calendar day before ``day``."""
    return day - timedelta(days=1)


def trailing_window(days: int, end: date | None = None) -> tuple[date, date]:
    """Return an inclusive ``(start, end)`` range covering ``days`` days."""
    end_day = end or app_today()
    span = max(1, days)
    return end_day - timedelta(days=span - 1), end_day
