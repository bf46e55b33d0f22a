"""
Health check endpoint.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_fpl_client, rate_limited
from app.core.config import settings
from app.services.fpl_client import FplClient

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["health"],
    dependencies=[Depends(rate_limited("default"))]
)


@router.get("/health")
def health(
        db: Session = Depends(get_db),
        client: FplClient = Depends(get_fpl_client)
):
    """Report database connectivity and FPL API reachability."""
    try:
        db.execute(text("SELECT 1"))
        database = {"status": "connected", "error": None}
    except Exception as e:
        logger.error(f"Health check database failure: {e}")
        database = {"status": "failed", "error": str(e)}

    return {
        "status": "healthy" if database["status"] == "connected" else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": database,
        "fpl_api": client.check_health(),
        "config": settings.summary(),
    }
