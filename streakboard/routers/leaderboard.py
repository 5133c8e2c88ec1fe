"""Daily leaderboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from streakboard.dependencies import get_db_client, parse_day
from streakboard.schemas.leaderboard import LeaderboardResponse
from streakboard.services.leaderboard_service import LeaderboardService
from supabase import Client

router = APIRouter()


@router.get("/today", response_model=LeaderboardResponse)
def get_today_leaderboard(
    limit: int | None = Query(default=None, ge=0, le=500),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return today's stored leaderboard."""
    service = LeaderboardService(client)
    return service.get_leaderboard(parse_day(None), limit=limit)


@router.get("/{ymd}", response_model=LeaderboardResponse)
def get_leaderboard(
    ymd: str,
    limit: int | None = Query(default=None, ge=0, le=500),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return the stored leaderboard for a given day."""
    service = LeaderboardService(client)
    return service.get_leaderboard(parse_day(ymd), limit=limit)
