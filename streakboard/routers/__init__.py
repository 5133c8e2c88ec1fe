"""API router package."""

from streakboard.routers import branches, leaderboard, scores

__all__ = [
    "branches",
    "leaderboard",
    "scores",
]
