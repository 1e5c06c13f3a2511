"""
Pydantic schemas for user-related requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class UserUpdate(BaseModel):
    """Schema for updating user information."""
    name: str | None = Field(None, min_length=1, max_length=255)


class RoleSummary(BaseModel):
    id: str
    name: str

    model_config = {"from_attributes": True}


class UserResponse(BaseModel):
    """Schema for user responses."""
    id: int
    email: EmailStr
    name: str
    is_active: bool
    is_admin: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    roles: list[RoleSummary] = []

    model_config = {"from_attributes": True}


class UserPublic(BaseModel):
    """Public user information (limited fields)."""
    id: int
    name: str

    model_config = {"from_attributes": True}
