"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "BranchService": "streakboard.services.branch_service",
    "LeaderboardService": "streakboard.services.leaderboard_service",
    "LedgerService": "streakboard.services.ledger_service",
    "MilestoneService": "streakboard.services.milestone_service",
    "ScoringService": "streakboard.services.scoring_service",
    "SummaryService": "streakboard.services.summary_service",
    "SupabaseService": "streakboard.services.common",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
