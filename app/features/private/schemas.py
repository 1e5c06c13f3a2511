"""
Pydantic schemas for the private content endpoints.
"""
from datetime import datetime
from typing import Dict, List
from pydantic import BaseModel, Field

from app.features.private.grants import GrantOperation


class GrantRecordResponse(BaseModel):
    realm: str
    gid: int
    grant_view: bool
    grant_update: bool
    grant_delete: bool
    priority: int = 0

    model_config = {"from_attributes": True}


class ItemRecordsResponse(BaseModel):
    """Records the evaluator computes for an item next to what is stored."""
    item_id: int
    is_private: bool
    computed: List[GrantRecordResponse]
    stored: List[GrantRecordResponse]


class ActorGrantsResponse(BaseModel):
    user_id: int
    operation: GrantOperation
    grants: Dict[str, List[int]]


class ModuleStatusResponse(BaseModel):
    enabled: bool
    updated_at: datetime | None = None


class RebuildResponse(BaseModel):
    enabled: bool
    items_rebuilt: int


class MarkItemsRequest(BaseModel):
    item_ids: List[int] = Field(..., min_length=1, description="Content item IDs")


class MarkItemsResponse(BaseModel):
    message: str
    updated: List[int] = []
    unchanged: List[int] = []
    skipped: List[int] = []
    missing: List[int] = []
