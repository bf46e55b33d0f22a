"""
Admin user-management endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, rate_limited, require_admin
from app.models.user import UserStatus
from app.schemas import user as user_schemas
from app.services.user_service import user_service_obj

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(rate_limited("admin")), Depends(require_admin)],
    responses={401: {"description": "Admin authentication required"}}
)


@router.get("", response_model=List[user_schemas.UserResponse])
def list_users(
        status: Optional[UserStatus] = Query(None, description="Filter by status"),
        db: Session = Depends(get_db)
):
    """List registered users, newest first."""
    return user_service_obj.list_users(db, status=status)


@router.post("", response_model=user_schemas.UserResponse)
def create_user(
        payload: user_schemas.UserCreate,
        db: Session = Depends(get_db)
):
    """Add a user directly as APPROVED."""
    return user_service_obj.create_user(
        db,
        name=payload.name,
        email=payload.email,
        company=payload.company,
        entry_id=payload.entry_id,
        status=UserStatus.APPROVED
    )


@router.patch("/{user_id}", response_model=user_schemas.UserResponse,
              responses={404: {"description": "User not found"}})
def update_user_status(
        user_id: int,
        payload: user_schemas.UserStatusUpdate,
        db: Session = Depends(get_db)
):
    """Approve or block a user."""
    return user_service_obj.update_status(db, user_id, UserStatus(payload.status.value))


@router.delete("/{user_id}", responses={404: {"description": "User not found"}})
def delete_user(
        user_id: int,
        db: Session = Depends(get_db)
):
    user_service_obj.delete_user(db, user_id)
    return {"ok": True}
