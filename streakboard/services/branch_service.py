"""Branch score aggregation."""

from __future__ import annotations

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from streakboard.config import settings
from streakboard.services.common import SupabaseService, group_by
from streakboard.services.ledger_service import LedgerService
from streakboard.services.scoring_service import SCORES_TABLE, total_score_of
from streakboard.utils.errors import InvalidInputError
from streakboard.utils.time import require_day, trailing_window
from supabase import Client

logger = logging.getLogger(__name__)

BRANCH_TABLE = "branch_scores_daily"


def average_score(total_score: int, total_members: int) -> float:
    """Return ``total / members`` rounded half-up to two places."""
    if total_members <= 0:
        return 0.0
    value = Decimal(total_score) / Decimal(total_members)
    return float(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def rank_branches(
    roster: list[dict[str, Any]],
    score_by_user: dict[str, int],
    ymd: str,
) -> list[dict[str, Any]]:
    """Roll user scores up per branch and rank by average score.

    Branches keep roster order before sorting, so equal averages rank in the
    order their first member appears.
    """
    branches: list[dict[str, Any]] = []
    for branch_code, members in group_by(roster, "branch_code").items():
        total_score = 0
        active_members = 0
        for member in members:
            score = score_by_user.get(str(member["id"]), 0)
            if score > 0:
                active_members += 1
            total_score += score

        branches.append(
            {
                "branch_code": branch_code,
                "ymd": ymd,
                "total_members": len(members),
                "active_members": active_members,
                "total_score": total_score,
                "avg_score": average_score(total_score, len(members)),
            }
        )

    ranked = sorted(branches, key=lambda row: row["avg_score"], reverse=True)
    for index, row in enumerate(ranked, start=1):
        row["branch_rank"] = index
    return ranked


class BranchService:
    """Per-day branch totals, participation and rank."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.ledger = LedgerService(client)

    def aggregate_branch_scores(self, day: date | str) -> list[dict[str, Any]]:
        """Recompute and upsert every branch row for ``day``."""
        ymd = require_day(day).isoformat()
        roster = self.ledger.list_users_by_branch(None)
        if not roster:
            logger.info("No users with a branch; skipping branch aggregation for %s", ymd)
            return []

        scores = self.db.select_in(
            SCORES_TABLE,
            "user_id",
            [str(user["id"]) for user in roster],
            filters={"ymd": ymd},
            columns="user_id,total_score,base_score,streak_score,bonus_score",
        )
        score_by_user = {str(row["user_id"]): total_score_of(row) for row in scores}

        ranked = rank_branches(roster, score_by_user, ymd)
        self.db.upsert(BRANCH_TABLE, ranked, on_conflict="branch_code,ymd")
        logger.info("Saved %s branch rankings for %s", len(ranked), ymd)
        return ranked

    def branch_for_day(self, branch_code: str, day: date | str) -> dict[str, Any]:
        """Return one branch's stored row, or a zero-valued row when absent."""
        code = (branch_code or "").strip().upper()
        if not code:
            raise InvalidInputError("branch_code is required")
        ymd = require_day(day).isoformat()
        row = self.db.select_first(BRANCH_TABLE, {"branch_code": code, "ymd": ymd})
        if row:
            return row
        return {
            "branch_code": code,
            "ymd": ymd,
            "total_members": 0,
            "active_members": 0,
            "total_score": 0,
            "avg_score": 0.0,
            "branch_rank": None,
        }

    def branch_history(
        self,
        branch_code: str,
        days: int | None = None,
        end_day: date | None = None,
    ) -> list[dict[str, Any]]:
        """Return a branch's daily rows in a trailing window, oldest first."""
        code = (branch_code or "").strip().upper()
        if not code:
            raise InvalidInputError("branch_code is required")
        start, end = trailing_window(days or settings.branch_history_days, end_day)
        return self.db.execute(
            self.db.client.table(BRANCH_TABLE)
            .select("*")
            .eq("branch_code", code)
            .gte("ymd", start.isoformat())
            .lte("ymd", end.isoformat())
            .order("ymd"),
            default=[],
            table=BRANCH_TABLE,
        )
