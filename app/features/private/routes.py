"""
Private content routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.content.models import ContentItem
from app.features.node_access import service as node_access
from app.features.permissions.dependencies import UserCapabilities, require_permission, require_any_permission
from app.features.private import service as private_service
from app.features.private.grants import (
    GrantOperation,
    PERM_ADMINISTER_NODES,
    PERM_MARK_PRIVATE,
    compute_actor_grants,
    compute_records_for_item,
)
from app.features.private.schemas import (
    ActorGrantsResponse,
    GrantRecordResponse,
    ItemRecordsResponse,
    MarkItemsRequest,
    MarkItemsResponse,
    ModuleStatusResponse,
    RebuildResponse,
)
from app.features.users.dependencies import get_current_user
from app.features.users.models import User


router = APIRouter(tags=["private"])

require_node_admin = require_permission(PERM_ADMINISTER_NODES)
require_mark_private = require_any_permission([PERM_MARK_PRIVATE, PERM_ADMINISTER_NODES])


@router.get("/status", response_model=ModuleStatusResponse)
async def get_status(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Whether private grants are currently emitted."""
    state = await private_service.get_module_state(db)
    await db.commit()
    await db.refresh(state)
    return ModuleStatusResponse(enabled=state.enabled, updated_at=state.updated_at)


@router.post("/enable", response_model=RebuildResponse)
async def enable(
    admin: Annotated[User, Depends(require_node_admin)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Enable private grants and rebuild node access."""
    count = await private_service.enable_private(db)
    return RebuildResponse(enabled=True, items_rebuilt=count)


@router.post("/disable", response_model=RebuildResponse)
async def disable(
    admin: Annotated[User, Depends(require_node_admin)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Disable private grants; every item falls back to the default grant."""
    count = await private_service.disable_private(db)
    return RebuildResponse(enabled=False, items_rebuilt=count)


@router.post("/rebuild", response_model=RebuildResponse)
async def rebuild(
    admin: Annotated[User, Depends(require_node_admin)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Rebuild node access without changing the enabled state."""
    enabled = await private_service.is_enabled(db)
    count = await node_access.rebuild(db)
    return RebuildResponse(enabled=enabled, items_rebuilt=count)


@router.get("/grants/me", response_model=ActorGrantsResponse)
async def get_my_grants(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    operation: GrantOperation = GrantOperation.VIEW
):
    """The private realm memberships the current user holds for an operation."""
    capabilities = await UserCapabilities.load(db, user)
    grants = compute_actor_grants(user.id, operation, capabilities)
    return ActorGrantsResponse(
        user_id=user.id,
        operation=operation,
        grants={realm: sorted(gids) for realm, gids in grants.items()},
    )


@router.get("/records/{item_id}", response_model=ItemRecordsResponse)
async def get_item_records(
    item_id: int,
    admin: Annotated[User, Depends(require_node_admin)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Computed private records for an item next to its stored node access rows."""
    item = await db.get(ContentItem, item_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content item not found"
        )

    teardown = not await private_service.is_enabled(db)
    computed = compute_records_for_item(item, teardown_in_progress=teardown)
    stored = await node_access.explain_item_grants(db, item_id)

    return ItemRecordsResponse(
        item_id=item.id,
        is_private=item.is_private,
        computed=[GrantRecordResponse.model_validate(record) for record in computed],
        stored=[GrantRecordResponse.model_validate(row) for row in stored],
    )


@router.post("/mark-private", response_model=MarkItemsResponse)
async def mark_private(
    request: MarkItemsRequest,
    user: Annotated[User, Depends(require_mark_private)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Bulk action: mark items private."""
    capabilities = await UserCapabilities.load(db, user)
    outcome = await private_service.mark_private(db, request.item_ids, user=user, capabilities=capabilities)
    return MarkItemsResponse(message=f"{len(outcome.updated)} item(s) marked private", **vars(outcome))


@router.post("/mark-public", response_model=MarkItemsResponse)
async def mark_public(
    request: MarkItemsRequest,
    user: Annotated[User, Depends(require_mark_private)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Bulk action: mark items public."""
    capabilities = await UserCapabilities.load(db, user)
    outcome = await private_service.mark_public(db, request.item_ids, user=user, capabilities=capabilities)
    return MarkItemsResponse(message=f"{len(outcome.updated)} item(s) marked public", **vars(outcome))
