"""
Self-service registration endpoint.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_fpl_client, rate_limited
from app.core.exceptions import EntryNotFound, UpstreamError, RateLimitExceeded
from app.schemas import user as user_schemas
from app.services.fpl_client import FplClient
from app.services.user_service import user_service_obj

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/registrations",
    tags=["registrations"]
)


@router.post(
    "",
    response_model=user_schemas.RegistrationResponse,
    dependencies=[Depends(rate_limited("registration"))]
)
def register(
        payload: user_schemas.UserCreate,
        db: Session = Depends(get_db),
        client: FplClient = Depends(get_fpl_client)
):
    """
    Register an FPL team for the competition.

    The registration is created as PENDING and must be approved by an admin
    before it shows up on any leaderboard. Unknown FPL entries are rejected;
    if the FPL API is unavailable the registration is accepted unchecked.
    """
    try:
        if not client.validate_entry_exists(payload.entry_id):
            raise EntryNotFound(payload.entry_id)
    except (UpstreamError, RateLimitExceeded) as e:
        logger.warning(f"Could not validate entry {payload.entry_id}: {e}")

    user = user_service_obj.create_user(
        db,
        name=payload.name,
        email=payload.email,
        company=payload.company,
        entry_id=payload.entry_id
    )
    return {"ok": True, "id": user.id}
