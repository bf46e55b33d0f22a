from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class WeeklyPointsResponse(BaseModel):
    event_id: int
    points: int

    class Config:
        from_attributes = True


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    name: str
    email: str
    company: Optional[str] = None
    entry_id: int
    event_id: int
    points: int

    class Config:
        from_attributes = True


class FetchWarning(BaseModel):
    user: str
    entry_id: int
    error: str


class LeaderboardMeta(BaseModel):
    total_users: int
    successful_fetches: int
    failed_fetches: int
    gameweek: Union[int, str] = Field(..., description="Requested gameweek or 'current'")
    timestamp: datetime


class LeaderboardResponse(BaseModel):
    leaderboard: List[LeaderboardEntry]
    meta: LeaderboardMeta
    warnings: List[FetchWarning] = []


class GameweekPointsEntry(BaseModel):
    event_id: int
    points: int

    class Config:
        from_attributes = True


class MonthlyEntry(BaseModel):
    rank: int
    user_id: int
    name: str
    email: str
    company: Optional[str] = None
    entry_id: int
    month_points: int
    season_total: int
    gw_wins: int
    per_gw: List[GameweekPointsEntry]
    error: Optional[str] = None

    class Config:
        from_attributes = True


class MonthlyMeta(BaseModel):
    total_users: int
    successful_fetches: int
    failed_fetches: int


class MonthlyResponse(BaseModel):
    month_event_ids: List[int]
    leaderboard: List[MonthlyEntry]
    winner: Optional[MonthlyEntry] = None
    meta: MonthlyMeta
    warnings: List[FetchWarning] = []
