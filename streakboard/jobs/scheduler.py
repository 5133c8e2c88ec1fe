"""APScheduler setup and job registration."""

from __future__ import annotations

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from streakboard.config import settings
from streakboard.jobs.daily_batch import daily_leaderboard

scheduler = AsyncIOScheduler(timezone=settings.timezone)


def register_jobs() -> None:
    """Register all periodic jobs if not already present."""
    if scheduler.get_job("daily_leaderboard") is None:
        scheduler.add_job(
            daily_leaderboard,
            CronTrigger(
                hour=settings.daily_batch_hour,
                minute=settings.daily_batch_minute,
                timezone=settings.timezone,
            ),
            id="daily_leaderboard",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
