"""
Content type routes.

Changing a type's privacy policy only affects later saves; existing items
keep their flag.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.models import User
from app.features.users.dependencies import get_current_user
from app.features.permissions.dependencies import require_any_permission
from app.features.content_types.models import ContentType
from app.features.content_types.schemas import ContentTypeCreate, ContentTypeUpdate, ContentTypeResponse
from app.features.private.grants import PERM_ADMINISTER_NODES
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["content-types"])

require_type_admin = require_any_permission(["administer content types", PERM_ADMINISTER_NODES])


async def get_content_type_or_404(db: AsyncSession, type_name: str) -> ContentType:
    result = await db.execute(select(ContentType).where(ContentType.type == type_name))
    content_type = result.scalar_one_or_none()

    if content_type is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content type not found"
        )
    return content_type


@router.post("/", response_model=ContentTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_content_type(
    data: ContentTypeCreate,
    admin: Annotated[User, Depends(require_type_admin)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Create a content type."""
    existing = await db.execute(select(ContentType).where(ContentType.type == data.type))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Content type with this machine name already exists"
        )

    content_type = ContentType(**data.model_dump())
    db.add(content_type)
    await db.commit()
    await db.refresh(content_type)

    log.info(f"Created content type {content_type.type!r} with privacy policy {content_type.privacy_policy.value}")
    return content_type


@router.get("/", response_model=list[ContentTypeResponse])
async def list_content_types(
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """List content types."""
    result = await db.execute(select(ContentType).order_by(ContentType.type))
    return result.scalars().all()


@router.get("/{type_name}", response_model=ContentTypeResponse)
async def get_content_type(
    type_name: str,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get a content type by machine name."""
    return await get_content_type_or_404(db, type_name)


@router.patch("/{type_name}", response_model=ContentTypeResponse)
async def update_content_type(
    type_name: str,
    data: ContentTypeUpdate,
    admin: Annotated[User, Depends(require_type_admin)],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update a content type, including its privacy policy."""
    content_type = await get_content_type_or_404(db, type_name)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(content_type, field, value)

    await db.commit()
    await db.refresh(content_type)
    return content_type
