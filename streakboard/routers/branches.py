"""Branch score endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from streakboard.dependencies import get_db_client, parse_day
from streakboard.schemas.leaderboard import BranchDailyScore
from streakboard.services.branch_service import BranchService
from supabase import Client

router = APIRouter()


@router.get("/{branch_code}/today", response_model=BranchDailyScore)
def get_branch_today(
    branch_code: str,
    client: Client = Depends(get_db_client),
) -> dict:
    """Return today's aggregated score for one branch."""
    service = BranchService(client)
    return service.branch_for_day(branch_code, parse_day(None))


@router.get("/{branch_code}/history", response_model=list[BranchDailyScore])
def get_branch_history(
    branch_code: str,
    days: int | None = Query(default=None, ge=1, le=90),
    client: Client = Depends(get_db_client),
) -> list[dict]:
    """Return a branch's recent daily scores, oldest first."""
    service = BranchService(client)
    return service.branch_history(branch_code, days=days, end_day=parse_day(None))
