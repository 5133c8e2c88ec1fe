"""Daily leaderboard snapshots."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from streakboard.config import settings
from streakboard.services.branch_service import BranchService
from streakboard.services.common import SupabaseService
from streakboard.services.scoring_service import SCORES_TABLE, total_score_of
from streakboard.utils.time import require_day
from supabase import Client

logger = logging.getLogger(__name__)

SNAPSHOT_TABLE = "leaderboard_daily"
UNKNOWN_USER = "Unknown user"


def rank_users(
    scores: list[dict[str, Any]],
    users: dict[str, dict[str, Any]],
    profiles: dict[str, dict[str, Any]],
) -> list[dict[str, Any]]:
    """Order score rows by total then streak and attach display fields."""
    ordered = sorted(
        scores,
        key=lambda row: (-total_score_of(row), -int(row.get("current_streak") or 0)),
    )

    entries: list[dict[str, Any]] = []
    for index, score in enumerate(ordered, start=1):
        user_id = str(score["user_id"])
        user = users.get(user_id) or {}
        profile = profiles.get(user_id) or {}
        total_score = total_score_of(score)
        entries.append(
            {
                "rank": index,
                "user_id": user_id,
                "name": profile.get("display_name") or user.get("name") or UNKNOWN_USER,
                "branch_code": user.get("branch_code"),
                "total_score": total_score,
                "base_score": int(score.get("base_score") or 0),
                "streak_score": int(score.get("streak_score") or 0),
                "bonus_score": int(score.get("bonus_score") or 0),
                "current_streak": int(score.get("current_streak") or 0),
                "record_type": score.get("record_type"),
                # Legacy expense-ranking columns still read by older clients.
                "sum_a": 0,
                "sum_b": 0,
                "sum_c": 0,
                "total": total_score,
            }
        )
    return entries


def to_legacy_branch(branch: dict[str, Any]) -> dict[str, Any]:
    """Reshape an aggregated branch row into the completion-rate display schema."""
    total_members = int(branch["total_members"])
    active_members = int(branch["active_members"])
    participation = round(active_members / total_members * 100) if total_members else 0
    return {
        "branch_code": branch["branch_code"],
        "rank": branch["branch_rank"],
        "total_score": branch["total_score"],
        "avg_score": branch["avg_score"],
        "done": active_members,
        "total": total_members,
        "rate": branch["avg_score"],
        "participation_rate": participation,
        # TODO: replace with a real 7-day mean once branch_history feeds the snapshot.
        "avg_7day_score": branch["avg_score"],
    }


class LeaderboardService:
    """Build and read the per-day user and branch rankings."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.branches = BranchService(client)

    def build_leaderboard_snapshot(
        self,
        day: date | str,
        branch_scores: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Rank the day's users and branches and overwrite the day's snapshot.

        ``branch_scores`` reuses an aggregation already run for ``day``;
        when omitted, the branch aggregation runs here.
        """
        ymd = require_day(day).isoformat()
        scores = self.db.select_many(SCORES_TABLE, filters={"ymd": ymd})

        if not scores:
            logger.info("No scores recorded on %s; writing an empty leaderboard", ymd)
            top_users: list[dict[str, Any]] = []
            top_branches: list[dict[str, Any]] = []
        else:
            user_ids = [str(row["user_id"]) for row in scores]
            top_users = rank_users(
                scores,
                self.db.get_users_map(user_ids),
                self.db.get_profiles_map(user_ids),
            )
            if branch_scores is None:
                branch_scores = self.branches.aggregate_branch_scores(ymd)
            top_branches = [to_legacy_branch(branch) for branch in branch_scores]

        self.db.upsert(
            SNAPSHOT_TABLE,
            {"ymd": ymd, "top_json": top_users, "branch_top_json": top_branches},
            on_conflict="ymd",
        )
        logger.info(
            "Saved leaderboard for %s: %s users, %s branches",
            ymd,
            len(top_users),
            len(top_branches),
        )
        return {"ymd": ymd, "top_users": top_users, "top_branches": top_branches}

    def get_leaderboard(self, day: date | str, limit: int | None = None) -> dict[str, Any]:
        """Return the stored snapshot for ``day`` with users cut to ``limit``."""
        ymd = require_day(day).isoformat()
        top_n = limit if limit is not None else settings.leaderboard_top_n
        row = self.db.select_first(
            SNAPSHOT_TABLE, {"ymd": ymd}, columns="ymd,top_json,branch_top_json"
        )
        if not row:
            return {"ymd": ymd, "top_users": [], "top_branches": []}
        return {
            "ymd": ymd,
            "top_users": list(row.get("top_json") or [])[: max(0, top_n)],
            "top_branches": list(row.get("branch_top_json") or []),
        }

    def run_daily_batch(self, day: date | str) -> dict[str, Any]:
        """Aggregate branches, then snapshot the leaderboard for ``day``."""
        ymd = require_day(day).isoformat()
        branch_scores = self.branches.aggregate_branch_scores(ymd)
        snapshot = self.build_leaderboard_snapshot(ymd, branch_scores=branch_scores)
        return {"ymd": ymd, "branches": branch_scores, "snapshot": snapshot}
