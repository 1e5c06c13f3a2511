"""
Pydantic schemas for content items.
"""
from datetime import datetime
from pydantic import BaseModel, Field


class ContentItemCreate(BaseModel):
    type: str = Field(..., min_length=1, max_length=32)
    title: str = Field(..., min_length=1, max_length=255)
    body: str | None = None
    is_private: bool | None = Field(None, description="Omit to use the content type's default")


class ContentItemUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    body: str | None = None
    is_private: bool | None = None


class ContentItemResponse(BaseModel):
    id: int
    type: str
    title: str
    body: str | None = None
    owner_id: int
    is_private: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ContentItemSummary(BaseModel):
    id: int
    type: str
    title: str
    owner_id: int
    is_private: bool

    model_config = {"from_attributes": True}
