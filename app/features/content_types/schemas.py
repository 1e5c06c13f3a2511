"""
Pydantic schemas for content types.
"""
from datetime import datetime
from pydantic import BaseModel, Field

from app.features.private.policy import PrivacyPolicy, DEFAULT_PRIVACY_POLICY


class ContentTypeCreate(BaseModel):
    type: str = Field(..., min_length=1, max_length=32, pattern="^[a-z][a-z0-9_]*$", description="Machine name")
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = None
    privacy_policy: PrivacyPolicy = DEFAULT_PRIVACY_POLICY


class ContentTypeUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = None
    privacy_policy: PrivacyPolicy | None = None


class ContentTypeResponse(BaseModel):
    type: str
    name: str
    description: str | None = None
    privacy_policy: PrivacyPolicy
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
