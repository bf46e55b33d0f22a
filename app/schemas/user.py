from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from app.models.user import UserStatus


class UserCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100, description="Display name")
    email: EmailStr
    company: Optional[str] = Field(None, max_length=100)
    entry_id: int = Field(..., gt=0, description="FPL team (entry) id")


class ReviewStatus(str, Enum):
    APPROVED = "APPROVED"
    BLOCKED = "BLOCKED"


class UserStatusUpdate(BaseModel):
    status: ReviewStatus


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    company: Optional[str] = None
    entry_id: int
    status: UserStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RegistrationResponse(BaseModel):
    ok: bool = True
    id: int
