"""Milestone bonus configuration and resolution."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from streakboard.services.common import SupabaseService
from supabase import Client

logger = logging.getLogger(__name__)


def resolve_bonus(streak_days: int, milestones: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Return the one-time bonus earned on reaching exactly ``streak_days``.

    Only exact matches fire. When several milestones share the same length,
    all of them contribute.
    """
    bonus_score = 0
    bonus_details: list[dict[str, Any]] = []
    for milestone in milestones:
        if int(milestone["streak_days"]) != streak_days:
            continue
        score = int(milestone["bonus_score"])
        bonus_score += score
        bonus_details.append(
            {
                "milestone": int(milestone["streak_days"]),
                "score": score,
                "name": milestone.get("milestone_name"),
            }
        )
        logger.info("Milestone %s reached, bonus %s", milestone["streak_days"], score)

    return {"bonus_score": bonus_score, "bonus_details": bonus_details}


class MilestoneService:
    """Read-only access to the ``score_milestones`` reference table."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def list_milestones(self) -> list[dict[str, Any]]:
        """Return milestones ordered by streak length ascending."""
        rows = self.db.select_many(
            "score_milestones",
            columns="streak_days,bonus_score,milestone_name",
            order_by="streak_days",
        )
        if not rows:
            logger.info("No score milestones configured; bonuses resolve to zero")
        return rows
