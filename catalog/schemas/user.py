"""Pydantic schemas for users and auth sessions."""
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field, ConfigDict

from catalog.db.models.user import UserRole


class UserCreate(BaseModel):
    """Schema for creating a user."""
    email: str = Field(..., min_length=3, description="Login email, unique")
    name: Optional[str] = None
    role: UserRole = UserRole.USER


class UserInDB(UserCreate):
    """Schema for user in database."""
    id: UUID
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthTokenResponse(BaseModel):
    """Schema for a newly issued token (the raw token is only returned here)."""
    session_id: UUID
    user_id: UUID
    token: str = Field(..., description="Raw bearer token - only provided on creation")
    expires_at: Optional[datetime] = None
