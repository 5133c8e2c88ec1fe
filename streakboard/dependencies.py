"""FastAPI dependency injection helpers."""

from __future__ import annotations

from datetime import date

from streakboard.utils.errors import InvalidInputError
from streakboard.utils.supabase_client import get_supabase_client
from streakboard.utils.time import app_today, parse_iso_date
from supabase import Client


def get_db_client() -> Client:
    """Return the anon-key Supabase client used by the read-only endpoints."""
    return get_supabase_client()


def parse_day(value: str | None) -> date:
    """Parse a ``YYYY-MM-DD`` path or query value, defaulting to today."""
    try:
        return parse_iso_date(value, default=app_today())
    except ValueError as exc:
        raise InvalidInputError(f"Invalid date: {value}") from exc
