"""Time helper tests."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from streakboard.utils.errors import InvalidInputError
from streakboard.utils.time import (
    coerce_date,
    parse_iso_date,
    previous_day,
    require_day,
    trailing_window,
)


def test_parse_iso_date_with_default() -> None:
    """Missing input should return default value when provided."""
    default = parse_iso_date("2026-02-01")
    assert parse_iso_date(None, default=default) == default


def test_parse_iso_date_requires_value_without_default() -> None:
    """Missing input without a default is rejected."""
    with pytest.raises(ValueError):
        parse_iso_date("")


def test_coerce_date_accepts_strings_dates_and_datetimes() -> None:
    """Store values arrive as ISO strings, sometimes with a time part."""
    assert coerce_date("2026-03-01") == date(2026, 3, 1)
    assert coerce_date("2026-03-01T08:00:00+08:00") == date(2026, 3, 1)
    assert coerce_date(datetime(2026, 3, 1, 23, 59)) == date(2026, 3, 1)
    assert coerce_date(date(2026, 3, 1)) == date(2026, 3, 1)


def test_previous_day_crosses_month_boundary() -> None:
    """Calendar adjacency spans month ends."""
    assert previous_day(date(2026, 3, 1)) == date(2026, 2, 28)


def test_trailing_window_is_inclusive() -> None:
    """A 7-day window ends on the given day and starts six days earlier."""
    assert trailing_window(7, date(2026, 1, 10)) == (date(2026, 1, 4), date(2026, 1, 10))
    assert trailing_window(0, date(2026, 1, 10)) == (date(2026, 1, 10), date(2026, 1, 10))


@pytest.mark.parametrize("value", [None, "", "not-a-day", "2026-02-30"])
def test_require_day_raises_validation_error(value) -> None:
    """Service-level day arguments fail with the structured input error."""
    with pytest.raises(InvalidInputError):
        require_day(value)


def test_require_day_accepts_dates_and_strings() -> None:
    assert require_day("2026-03-01") == date(2026, 3, 1)
    assert require_day(date(2026, 3, 1)) == date(2026, 3, 1)
