"""Leaderboard and branch ranking schemas."""

from pydantic import BaseModel, Field


class LeaderboardUserEntry(BaseModel):
    """Single user row in a daily leaderboard snapshot."""

    rank: int
    user_id: str
    name: str
    branch_code: str | None = None
    total_score: int
    base_score: int
    streak_score: int
    bonus_score: int
    current_streak: int
    record_type: str | None = None
    sum_a: float = 0
    sum_b: float = 0
    sum_c: float = 0
    total: int


class LeaderboardBranchEntry(BaseModel):
    """Branch row in the legacy completion-rate display schema."""

    branch_code: str
    rank: int
    total_score: int
    avg_score: float
    done: int
    total: int
    rate: float
    participation_rate: int
    avg_7day_score: float


class LeaderboardResponse(BaseModel):
    """Stored daily leaderboard."""

    ymd: str
    top_users: list[LeaderboardUserEntry] = Field(default_factory=list)
    top_branches: list[LeaderboardBranchEntry] = Field(default_factory=list)


class BranchDailyScore(BaseModel):
    """One branch's aggregated score for one day."""

    branch_code: str
    ymd: str
    total_members: int
    active_members: int
    total_score: int
    avg_score: float
    branch_rank: int | None = None
