"""
Content item routes.

Every save rewrites the item's node access rows. Reads go through the grants:
items a user may not view are reported as missing.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.dependencies import get_current_user
from app.features.permissions.dependencies import UserCapabilities
from app.features.content.models import ContentItem
from app.features.content.schemas import (
    ContentItemCreate,
    ContentItemUpdate,
    ContentItemResponse,
    ContentItemSummary,
)
from app.features.content_types.routes import get_content_type_or_404
from app.features.node_access import service as node_access
from app.features.private import service as private_service
from app.features.private.grants import GrantOperation
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["content"])


async def get_item_for(
    db: AsyncSession,
    item_id: int,
    user: User,
    operation: GrantOperation,
    capabilities: UserCapabilities,
) -> ContentItem:
    """
    Load an item and check the requested operation against its grants.

    Update and delete grants stand on their own: an item the user may edit
    but not view can still be edited.

    Raises:
        HTTPException: 404 if missing, or if the operation is denied and the
            item is not viewable; 403 if viewable but the operation is denied
    """
    item = await db.get(ContentItem, item_id)
    not_found = HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Content item not found"
    )
    if item is None:
        raise not_found

    if await node_access.check_access(db, item, user, operation, capabilities):
        return item

    if operation is GrantOperation.VIEW or not await node_access.check_access(
        db, item, user, GrantOperation.VIEW, capabilities
    ):
        raise not_found

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"Not allowed to {operation.value} this item"
    )


@router.post("/", response_model=ContentItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    data: ContentItemCreate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a content item owned by the current user."""
    capabilities = await UserCapabilities.load(db, user)
    if not capabilities.has_any(node_access.PERM_CREATE_CONTENT, node_access.PERM_ADMINISTER_NODES):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Permission denied: create content"
        )
    await get_content_type_or_404(db, data.type)

    item = ContentItem(type=data.type, title=data.title, body=data.body, owner_id=user.id)
    await private_service.apply_private_flag(db, item, data.is_private, capabilities, is_new=True)
    db.add(item)
    await db.flush()

    await node_access.write_item_grants(db, item)
    await db.commit()
    await db.refresh(item)

    log.info(f"User {user.id} created {item.type} {item.id} (private={item.is_private})")
    return item


@router.get("/", response_model=list[ContentItemSummary])
async def list_items(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    type: str | None = None,
    skip: int = 0,
    limit: int = 50
):
    """List the content items the current user may view."""
    capabilities = await UserCapabilities.load(db, user)

    stmt = select(ContentItem)
    if not node_access.bypasses_access(capabilities):
        grants = await node_access.get_user_grants(db, user, GrantOperation.VIEW, capabilities)
        stmt = stmt.where(node_access.viewable_items_clause(grants))
    if type:
        stmt = stmt.where(ContentItem.type == type)

    result = await db.execute(stmt.order_by(ContentItem.id).offset(skip).limit(limit))
    return result.scalars().all()


@router.get("/{item_id}", response_model=ContentItemResponse)
async def get_item(
    item_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get a content item."""
    capabilities = await UserCapabilities.load(db, user)
    item = await get_item_for(db, item_id, user, GrantOperation.VIEW, capabilities)
    await db.refresh(item)
    return item


@router.patch("/{item_id}", response_model=ContentItemResponse)
async def update_item(
    item_id: int,
    data: ContentItemUpdate,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update a content item."""
    capabilities = await UserCapabilities.load(db, user)
    item = await get_item_for(db, item_id, user, GrantOperation.UPDATE, capabilities)

    update_dict = data.model_dump(exclude_unset=True)
    if update_dict.get("title") is not None:
        item.title = update_dict["title"]
    if "body" in update_dict:
        item.body = update_dict["body"]
    await private_service.apply_private_flag(db, item, update_dict.get("is_private"), capabilities, is_new=False)

    await node_access.write_item_grants(db, item)
    await db.commit()
    await db.refresh(item)
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Delete a content item."""
    capabilities = await UserCapabilities.load(db, user)
    item = await get_item_for(db, item_id, user, GrantOperation.DELETE, capabilities)

    await node_access.delete_item_grants(db, item.id)
    await db.delete(item)
    await db.commit()
    log.info(f"User {user.id} deleted item {item_id}")
