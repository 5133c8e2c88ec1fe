"""Daily score calculation and streak tests."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from streakboard.services.scoring_service import (
    ScoringService,
    next_streak,
    to_display,
    total_score_of,
)
from streakboard.utils.errors import InvalidInputError, TransientStoreError
from tests.fake_supabase import FakeSupabase

DAY = date(2026, 3, 10)


def _score_row(user_id: str, day: date, streak: int) -> dict:
    return {
        "user_id": user_id,
        "ymd": day.isoformat(),
        "base_score": 1,
        "streak_score": 1,
        "bonus_score": 0,
        "current_streak": streak,
        "record_type": "record",
        "bonus_details": [],
    }


@pytest.fixture
def service(fake_db: FakeSupabase) -> ScoringService:
    fake_db.seed(
        "score_milestones",
        {"streak_days": 3, "bonus_score": 1, "milestone_name": "Three days"},
        {"streak_days": 10, "bonus_score": 5, "milestone_name": "Ten days"},
    )
    return ScoringService(fake_db)


def test_first_ever_day_scores_streak_one(service: ScoringService) -> None:
    """A user without prior scores starts a streak of 1 with no bonus."""
    score = service.calculate_daily_score("u1", DAY, "record")

    assert score["current_streak"] == 1
    assert score["base_score"] == 1
    assert score["streak_score"] == 1
    assert score["bonus_score"] == 0
    assert score["bonus_details"] == []
    assert total_score_of(score) == 2


def test_consecutive_day_reaching_milestone_earns_bonus(
    service: ScoringService, fake_db: FakeSupabase
) -> None:
    """Day nine followed by day ten hits the ten-day milestone."""
    fake_db.seed("user_daily_scores", _score_row("u1", DAY - timedelta(days=1), 9))

    score = service.calculate_daily_score("u1", DAY, "record")

    assert score["current_streak"] == 10
    assert score["bonus_score"] == 5
    assert score["bonus_details"] == [{"milestone": 10, "score": 5, "name": "Ten days"}]
    assert total_score_of(score) == 7


def test_gap_resets_streak(service: ScoringService, fake_db: FakeSupabase) -> None:
    """A missing previous day restarts the streak even with older history."""
    fake_db.seed("user_daily_scores", _score_row("u1", DAY - timedelta(days=2), 5))

    score = service.calculate_daily_score("u1", DAY, "checkin")

    assert score["current_streak"] == 1
    assert score["record_type"] == "checkin"


def test_second_call_returns_existing_row(service: ScoringService, fake_db: FakeSupabase) -> None:
    """A day is scored once no matter how many records or check-ins follow."""
    first = service.calculate_daily_score("u1", DAY, "record")
    second = service.calculate_daily_score("u1", DAY, "checkin")

    assert second == first
    assert len(fake_db.rows("user_daily_scores")) == 1
    assert second["record_type"] == "record"


def test_concurrent_insert_returns_winning_row(
    service: ScoringService, fake_db: FakeSupabase
) -> None:
    """Losing the check-then-insert race yields the row the other writer stored."""
    winner = {**_score_row("u1", DAY, 1), "record_type": "checkin"}
    fake_db.before(
        "user_daily_scores", "insert", lambda: fake_db.seed("user_daily_scores", winner)
    )

    score = service.calculate_daily_score("u1", DAY, "record")

    assert score["record_type"] == "checkin"
    assert len(fake_db.rows("user_daily_scores")) == 1


def test_streak_chains_day_over_day(service: ScoringService, fake_db: FakeSupabase) -> None:
    """Scoring consecutive days in order increments the streak by one each day."""
    start = date(2026, 2, 25)
    streaks = [
        service.on_user_record("u1", start + timedelta(days=n))["current_streak"]
        for n in range(12)
    ]

    assert streaks == list(range(1, 13))
    bonuses = {
        row["current_streak"]: row["bonus_score"] for row in fake_db.rows("user_daily_scores")
    }
    assert bonuses[3] == 1
    assert bonuses[10] == 5
    assert sum(bonuses.values()) == 6


def test_resolve_streak_ignores_other_users(
    service: ScoringService, fake_db: FakeSupabase
) -> None:
    """Another user's yesterday does not extend this user's streak."""
    fake_db.seed("user_daily_scores", _score_row("u2", DAY - timedelta(days=1), 4))
    assert service.resolve_streak("u1", DAY) == 1
    assert service.resolve_streak("u2", DAY) == 5


def test_next_streak_rules() -> None:
    """Only the calendar-adjacent previous row continues the chain."""
    assert next_streak(None, DAY) == 1
    assert next_streak({"ymd": "2026-03-09", "current_streak": 4}, DAY) == 5
    assert next_streak({"ymd": "2026-03-08", "current_streak": 4}, DAY) == 1


@pytest.mark.parametrize(
    ("user_id", "day", "record_type"),
    [
        ("", DAY, "record"),
        ("u1", None, "record"),
        ("u1", "not-a-date", "record"),
        ("u1", DAY, "purchase"),
    ],
)
def test_invalid_input_rejected_before_store_access(
    service: ScoringService, fake_db: FakeSupabase, user_id, day, record_type
) -> None:
    """Bad keys or record types never reach the store."""
    fake_db.calls.clear()
    with pytest.raises(InvalidInputError):
        service.calculate_daily_score(user_id, day, record_type)
    assert fake_db.calls == []


def test_store_failure_propagates(service: ScoringService, fake_db: FakeSupabase) -> None:
    """Read failures surface as transient store errors."""
    fake_db.fail("user_daily_scores", "select")
    with pytest.raises(TransientStoreError):
        service.calculate_daily_score("u1", DAY)


def test_missing_milestones_give_zero_bonus(fake_db: FakeSupabase) -> None:
    """An empty milestone table still produces a valid score."""
    fake_db.seed("user_daily_scores", _score_row("u1", DAY - timedelta(days=1), 9))
    score = ScoringService(fake_db).calculate_daily_score("u1", DAY)
    assert score["current_streak"] == 10
    assert score["bonus_score"] == 0


def test_to_display_uses_display_field_names() -> None:
    """Display payload carries the names the clients read."""
    row = {**_score_row("u1", DAY, 10), "bonus_score": 5, "bonus_details": [{"milestone": 10}]}
    assert to_display(row) == {
        "total_score": 7,
        "base_score": 1,
        "streak_score": 1,
        "bonus_score": 5,
        "current_streak": 10,
        "bonus_details": [{"milestone": 10}],
        "record_type": "record",
    }


def test_score_history_is_newest_first_and_windowed(
    service: ScoringService, fake_db: FakeSupabase
) -> None:
    """History covers the trailing window only."""
    fake_db.seed(
        "user_daily_scores",
        _score_row("u1", DAY - timedelta(days=10), 1),
        _score_row("u1", DAY - timedelta(days=1), 1),
        _score_row("u1", DAY, 2),
    )
    rows = service.score_history("u1", days=7, end_day=DAY)
    assert [row["ymd"] for row in rows] == ["2026-03-10", "2026-03-09"]


def test_audit_flags_chain_left_stale_by_deleted_day(
    service: ScoringService, fake_db: FakeSupabase
) -> None:
    """Removing a past day leaves later streaks stale; the audit reports them."""
    for offset, streak in enumerate([1, 2, 3, 4, 5]):
        day = date(2026, 3, 1) + timedelta(days=offset)
        fake_db.seed("user_daily_scores", _score_row("u1", day, streak))
    fake_db.tables["user_daily_scores"] = [
        row for row in fake_db.rows("user_daily_scores") if row["ymd"] != "2026-03-03"
    ]

    issues = service.audit_streak_chain("u1", date(2026, 3, 1), date(2026, 3, 5))

    assert issues == [
        {"ymd": "2026-03-04", "kind": "stale_streak", "stored_streak": 4, "expected_streak": 1},
        {"ymd": "2026-03-05", "kind": "stale_streak", "stored_streak": 5, "expected_streak": 2},
    ]
    assert len(fake_db.rows("user_daily_scores")) == 4


def test_audit_clean_chain_reports_nothing(service: ScoringService) -> None:
    """A chain built in calendar order has no issues."""
    for offset in range(4):
        service.on_user_checkin("u1", DAY + timedelta(days=offset))
    assert service.audit_streak_chain("u1", DAY, DAY + timedelta(days=3)) == []


@pytest.mark.parametrize(
    ("user_id", "start_day", "end_day"),
    [
        ("", DAY, DAY),
        ("u1", "not-a-day", DAY),
        ("u1", DAY, None),
        ("u1", DAY + timedelta(days=1), DAY),
    ],
)
def test_audit_rejects_bad_input(
    service: ScoringService, fake_db: FakeSupabase, user_id, start_day, end_day
) -> None:
    """The audit validates its key and window before reading any rows."""
    fake_db.calls.clear()
    with pytest.raises(InvalidInputError):
        service.audit_streak_chain(user_id, start_day, end_day)
    assert fake_db.calls == []


def test_audit_accepts_iso_strings(service: ScoringService) -> None:
    service.on_user_checkin("u1", DAY)
    assert service.audit_streak_chain("u1", DAY.isoformat(), DAY.isoformat()) == []
