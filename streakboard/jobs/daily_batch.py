"""Nightly branch aggregation and leaderboard snapshot job."""

from __future__ import annotations

import logging
from datetime import date, timedelta

from streakboard.config import settings
from streakboard.services.leaderboard_service import LeaderboardService
from streakboard.utils.supabase_client import get_service_client
from streakboard.utils.time import app_today

logger = logging.getLogger(__name__)


def settlement_day(today: date | None = None) -> date:
    """Return the business day the nightly run settles."""
    base = today or app_today()
    return base - timedelta(days=max(0, settings.daily_batch_day_offset))


async def daily_leaderboard() -> None:
    """Rebuild branch rows and the leaderboard snapshot for the settled day.

    Store errors propagate so the scheduler logs the failed run.
    """
    client = get_service_client()
    leaderboard = LeaderboardService(client)

    day = settlement_day()
    result = leaderboard.run_daily_batch(day)

    logger.info(
        "daily_leaderboard completed for %s: %s branches, %s users",
        result["ymd"],
        len(result["branches"]),
        len(result["snapshot"]["top_users"]),
    )
