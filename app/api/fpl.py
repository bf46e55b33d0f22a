"""
Single-entry FPL lookups.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_scoring_service, rate_limited
from app.schemas import leaderboard as leaderboard_schemas
from app.services.scoring import ScoringService

router = APIRouter(
    prefix="/fpl",
    tags=["fpl"],
    dependencies=[Depends(rate_limited("fpl"))]
)


@router.get("/weekly", response_model=leaderboard_schemas.WeeklyPointsResponse,
            responses={404: {"description": "FPL entry not found"}})
def get_weekly_points(
        entry_id: int = Query(..., gt=0, description="FPL entry id"),
        gw: Optional[int] = Query(None, gt=0, description="Gameweek, defaults to the current one"),
        scoring: ScoringService = Depends(get_scoring_service)
):
    """Points scored by one FPL entry in a gameweek (0 if it has no score yet)."""
    return scoring.weekly_points(entry_id, gw)
