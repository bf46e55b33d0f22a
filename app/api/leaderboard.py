"""
Leaderboard API endpoints.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_scoring_service, rate_limited
from app.models.user import UserStatus
from app.schemas import leaderboard as leaderboard_schemas
from app.services.scoring import Participant, ScoringService
from app.services.user_service import user_service_obj

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["leaderboard"],
    dependencies=[Depends(rate_limited("fpl"))]
)


def approved_participants(db: Session):
    users = user_service_obj.list_users(db, status=UserStatus.APPROVED)
    return [Participant.from_user(user) for user in users]


def fetch_warnings(rows):
    return [
        {"user": row.name, "entry_id": row.entry_id, "error": row.error}
        for row in rows if row.error
    ]


@router.get("/leaderboard", response_model=leaderboard_schemas.LeaderboardResponse)
def get_leaderboard(
        gw: Optional[int] = Query(None, ge=1, le=38, description="Gameweek, defaults to the current one"),
        db: Session = Depends(get_db),
        scoring: ScoringService = Depends(get_scoring_service)
):
    """
    Weekly leaderboard of all approved users.

    Ranking: points (descending), ties broken by name. Users whose FPL data
    could not be fetched are left out of the ranking and reported in
    `warnings`.
    """
    rows = scoring.weekly_leaderboard(approved_participants(db), gw)
    successful = [row for row in rows if not row.error]
    failed = [row for row in rows if row.error]

    if failed:
        logger.warning(f"Weekly leaderboard built with {len(failed)} failed fetches")

    return {
        "leaderboard": successful,
        "meta": {
            "total_users": len(rows),
            "successful_fetches": len(successful),
            "failed_fetches": len(failed),
            "gameweek": gw if gw is not None else "current",
            "timestamp": datetime.now(timezone.utc),
        },
        "warnings": fetch_warnings(failed),
    }


@router.get("/monthly", response_model=leaderboard_schemas.MonthlyResponse)
def get_monthly_leaderboard(
        year: int = Query(..., ge=2000, le=2100),
        month: int = Query(..., ge=1, le=12),
        db: Session = Depends(get_db),
        scoring: ScoringService = Depends(get_scoring_service)
):
    """
    Monthly leaderboard over the gameweeks whose deadline falls in the month.

    Ranking: month points, then season total, then gameweek wins (all
    descending). The top row is the month's winner.
    """
    result = scoring.monthly_leaderboard(approved_participants(db), year, month)
    failed = [row for row in result.rows if row.error]

    return {
        "month_event_ids": result.event_ids,
        "leaderboard": result.rows,
        "winner": result.winner,
        "meta": {
            "total_users": len(result.rows),
            "successful_fetches": len(result.rows) - len(failed),
            "failed_fetches": len(failed),
        },
        "warnings": fetch_warnings(failed),
    }
