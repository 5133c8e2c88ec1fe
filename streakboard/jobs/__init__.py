"""Background job modules for periodic Streakboard tasks."""

from streakboard.jobs.daily_batch import daily_leaderboard

__all__ = [
    "daily_leaderboard",
]
