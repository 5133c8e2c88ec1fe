"""Daily score schemas."""

from pydantic import BaseModel, Field


class BonusDetail(BaseModel):
    """A milestone reached on a scored day."""

    milestone: int
    score: int
    name: str | None = None


class DailyScoreResponse(BaseModel):
    """A user's score for one day."""

    user_id: str
    ymd: str
    total_score: int
    base_score: int
    streak_score: int
    bonus_score: int
    current_streak: int
    record_type: str
    bonus_details: list[BonusDetail] = Field(default_factory=list)
