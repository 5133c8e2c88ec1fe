"""Daily score calculation and streak resolution."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from streakboard.config import settings
from streakboard.services.common import SupabaseService
from streakboard.services.milestone_service import MilestoneService, resolve_bonus
from streakboard.utils.errors import DuplicateComputationError, InvalidInputError
from streakboard.utils.time import coerce_date, previous_day, require_day, trailing_window
from supabase import Client

logger = logging.getLogger(__name__)

SCORES_TABLE = "user_daily_scores"
RECORD_TYPES = {"record", "checkin"}
BASE_SCORE = 1


def total_score_of(row: dict[str, Any]) -> int:
    """Return a score row's total, summing the parts when the store omits it."""
    total = row.get("total_score")
    if total is not None:
        return int(total)
    return (
        int(row.get("base_score") or 0)
        + int(row.get("streak_score") or 0)
        + int(row.get("bonus_score") or 0)
    )


def next_streak(previous: dict[str, Any] | None, as_of_day: date) -> int:
    """Derive the streak for ``as_of_day`` from the latest earlier score row.

    The chain continues only when ``previous`` sits on the calendar day right
    before ``as_of_day``; any gap restarts at 1.
    """
    if not previous:
        return 1
    if coerce_date(previous["ymd"]) == previous_day(as_of_day):
        return int(previous["current_streak"]) + 1
    return 1


def to_display(row: dict[str, Any]) -> dict[str, Any]:
    """Shape a score row with the field names the display layer reads."""
    return {
        "total_score": total_score_of(row),
        "base_score": int(row.get("base_score") or 0),
        "streak_score": int(row.get("streak_score") or 0),
        "bonus_score": int(row.get("bonus_score") or 0),
        "current_streak": int(row.get("current_streak") or 0),
        "bonus_details": list(row.get("bonus_details") or []),
        "record_type": row.get("record_type"),
    }


def _validate_key(user_id: str | None, day: date | str | None) -> date:
    if not user_id:
        raise InvalidInputError("user_id is required")
    return require_day(day)


class ScoringService:
    """Per-user daily score records.

    A score row is written at most once per ``(user_id, ymd)`` and is final
    afterwards. Callers must score a user's days in calendar order since the
    streak reads the previous day's stored row.
    """

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.milestones = MilestoneService(client)

    def get_daily_score(self, user_id: str, day: date) -> dict[str, Any] | None:
        """Return the stored score for a user/day, if any."""
        return self.db.select_first(SCORES_TABLE, {"user_id": user_id, "ymd": day.isoformat()})

    def resolve_streak(self, user_id: str, as_of_day: date | str) -> int:
        """Return the streak length ending on ``as_of_day`` (always >= 1)."""
        day = _validate_key(user_id, as_of_day)
        rows = self.db.execute(
            self.db.client.table(SCORES_TABLE)
            .select("ymd,current_streak")
            .eq("user_id", user_id)
            .lt("ymd", day.isoformat())
            .order("ymd", desc=True)
            .limit(1),
            default=[],
            table=SCORES_TABLE,
        )
        previous = rows[0] if rows else None
        streak = next_streak(previous, day)
        logger.debug(
            "Streak for %s on %s is %s (previous %s)",
            user_id,
            day,
            streak,
            previous["ymd"] if previous else None,
        )
        return streak

    def calculate_daily_score(
        self,
        user_id: str,
        day: date | str,
        record_type: str = "record",
    ) -> dict[str, Any]:
        """Compute and persist today's score, or return the existing one."""
        if record_type not in RECORD_TYPES:
            raise InvalidInputError(f"Unknown record_type: {record_type}")
        day_value = _validate_key(user_id, day)

        existing = self.get_daily_score(user_id, day_value)
        if existing:
            logger.info("Score for %s on %s already computed", user_id, day_value)
            return existing

        streak_days = self.resolve_streak(user_id, day_value)
        streak_score = 1 if streak_days > 0 else 0
        bonus = resolve_bonus(streak_days, self.milestones.list_milestones())

        payload = {
            "user_id": user_id,
            "ymd": day_value.isoformat(),
            "base_score": BASE_SCORE,
            "streak_score": streak_score,
            "bonus_score": bonus["bonus_score"],
            "current_streak": streak_days,
            "record_type": record_type,
            "bonus_details": bonus["bonus_details"],
        }

        try:
            saved = self.db.insert_one(SCORES_TABLE, payload)
        except DuplicateComputationError:
            winner = self.get_daily_score(user_id, day_value)
            if winner is None:
                raise
            logger.info(
                "Concurrent score insert for %s on %s; using stored row", user_id, day_value
            )
            return winner

        logger.info(
            "Scored %s on %s: %s base + %s streak + %s bonus, streak %s",
            user_id,
            day_value,
            BASE_SCORE,
            streak_score,
            bonus["bonus_score"],
            streak_days,
        )
        return saved

    def on_user_record(self, user_id: str, day: date | str) -> dict[str, Any]:
        """Score a day triggered by a ledger record."""
        return self.calculate_daily_score(user_id, day, "record")

    def on_user_checkin(self, user_id: str, day: date | str) -> dict[str, Any]:
        """Score a day triggered by a zero-amount check-in."""
        return self.calculate_daily_score(user_id, day, "checkin")

    def _scores_between(
        self, user_id: str, start: date, end: date, descending: bool
    ) -> list[dict[str, Any]]:
        return self.db.execute(
            self.db.client.table(SCORES_TABLE)
            .select("*")
            .eq("user_id", user_id)
            .gte("ymd", start.isoformat())
            .lte("ymd", end.isoformat())
            .order("ymd", desc=descending),
            default=[],
            table=SCORES_TABLE,
        )

    def score_history(
        self,
        user_id: str,
        days: int | None = None,
        end_day: date | None = None,
    ) -> list[dict[str, Any]]:
        """Return the user's score rows in a trailing window, newest first."""
        if not user_id:
            raise InvalidInputError("user_id is required")
        start, end = trailing_window(days or settings.score_history_days, end_day)
        return self._scores_between(user_id, start, end, descending=True)

    def audit_streak_chain(
        self,
        user_id: str,
        start_day: date | str,
        end_day: date | str,
    ) -> list[dict[str, Any]]:
        """Report stored streaks that disagree with the day-over-day chain.

        A deleted, corrected or out-of-order backfilled day leaves every later
        streak stale. This only reports; nothing is rewritten.
        """
        if not user_id:
            raise InvalidInputError("user_id is required")
        start_day = require_day(start_day, "start_day")
        end_day = require_day(end_day, "end_day")
        if start_day > end_day:
            raise InvalidInputError("start_day must not be after end_day")

        rows = self._scores_between(user_id, start_day, end_day, descending=False)
        anchor_rows = self.db.execute(
            self.db.client.table(SCORES_TABLE)
            .select("ymd,current_streak")
            .eq("user_id", user_id)
            .lt("ymd", start_day.isoformat())
            .order("ymd", desc=True)
            .limit(1),
            default=[],
            table=SCORES_TABLE,
        )

        issues: list[dict[str, Any]] = []
        previous = anchor_rows[0] if anchor_rows else None
        seen: set[date] = set()
        for row in rows:
            day = coerce_date(row["ymd"])
            if day in seen:
                issues.append({"ymd": day.isoformat(), "kind": "duplicate_score"})
                continue
            seen.add(day)

            expected = next_streak(previous, day)
            stored = int(row["current_streak"])
            if stored != expected:
                issues.append(
                    {
                        "ymd": day.isoformat(),
                        "kind": "stale_streak",
                        "stored_streak": stored,
                        "expected_streak": expected,
                    }
                )
            previous = {"ymd": day, "current_streak": expected}

        if issues:
            logger.warning(
                "Streak chain for %s has %s issue(s) between %s and %s",
                user_id,
                len(issues),
                start_day,
                end_day,
            )
        return issues

