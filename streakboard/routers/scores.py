"""User score history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from streakboard.dependencies import get_db_client, parse_day
from streakboard.schemas.score import DailyScoreResponse
from streakboard.services.scoring_service import ScoringService, to_display
from supabase import Client

router = APIRouter()


@router.get("/{user_id}/scores", response_model=list[DailyScoreResponse])
def get_score_history(
    user_id: str,
    days: int | None = Query(default=None, ge=1, le=366),
    client: Client = Depends(get_db_client),
) -> list[dict]:
    """Return a user's daily scores, newest first."""
    service = ScoringService(client)
    rows = service.score_history(user_id, days=days, end_day=parse_day(None))
    return [
        {"user_id": str(row["user_id"]), "ymd": str(row["ymd"]), **to_display(row)}
        for row in rows
    ]
