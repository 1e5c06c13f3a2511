"""
Permission checking utilities and dependencies.

Implements:
- Permission lookups through a user's roles
- UserCapabilities, the capability oracle handed to grant evaluation
- FastAPI dependencies for route protection
"""
from typing import List, Set
from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.dependencies import get_current_user
from app.features.users.models import User
from app.features.permissions.models import Permission, role_permissions, user_roles
from app.utils import get_logger


log = get_logger(__name__)


# ============================================================================
# Permission Lookups
# ============================================================================

async def get_user_permissions(db: AsyncSession, user_id: int) -> List[Permission]:
    """
    Get all permissions a user holds through their roles.

    Returns:
        List of unique Permission objects
    """
    stmt = (
        select(Permission)
        .join(role_permissions, role_permissions.c.permission_id == Permission.id)
        .join(user_roles, user_roles.c.role_id == role_permissions.c.role_id)
        .where(user_roles.c.user_id == user_id)
        .distinct()
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_user_permission_names(db: AsyncSession, user_id: int) -> Set[str]:
    """Get the names of every permission a user holds."""
    permissions = await get_user_permissions(db, user_id)
    return {permission.name for permission in permissions}


class UserCapabilities:
    """
    Capability oracle for one user.

    Permission names are loaded once per request, after which has_capability
    is a plain set lookup and can be called from synchronous code.

    Usage:
        capabilities = await UserCapabilities.load(db, user)
        if capabilities.has_capability("access private content"):
            ...
    """

    def __init__(self, user_id: int, permission_names: Set[str], is_admin: bool = False):
        self.user_id = user_id
        self.permission_names = frozenset(permission_names)
        self.is_admin = is_admin

    @classmethod
    async def load(cls, db: AsyncSession, user: User) -> "UserCapabilities":
        names = await get_user_permission_names(db, user.id)
        return cls(user.id, names, is_admin=user.is_admin)

    def has_capability(self, name: str) -> bool:
        # System admins hold every permission
        if self.is_admin:
            return True
        return name in self.permission_names

    def has_any(self, *names: str) -> bool:
        return any(self.has_capability(name) for name in names)

    def __repr__(self) -> str:
        return f"<UserCapabilities(user_id={self.user_id}, admin={self.is_admin}, permissions={sorted(self.permission_names)})>"


async def has_permission(db: AsyncSession, user: User, name: str) -> bool:
    """
    Check if user holds a named permission.

    Args:
        db: Database session
        user: User object
        name: Permission name (e.g., "edit private content")

    Returns:
        True if user has permission, False otherwise
    """
    if user.is_admin:
        log.debug(f"User {user.id} is admin - granted permission {name!r}")
        return True

    names = await get_user_permission_names(db, user.id)
    if name in names:
        log.debug(f"User {user.id} granted permission {name!r}")
        return True

    log.debug(f"User {user.id} denied permission {name!r}")
    return False


# ============================================================================
# FastAPI Dependencies
# ============================================================================

def require_permission(name: str):
    """
    FastAPI dependency to require a specific permission.

    Usage:
        @router.post("/rebuild")
        async def rebuild(user: User = Depends(require_permission("administer nodes"))):
            ...

    Raises:
        HTTPException: 403 if user doesn't have permission
    """
    async def permission_dependency(
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
    ) -> User:
        if not await has_permission(db, current_user, name):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {name}"
            )
        return current_user

    return permission_dependency


def require_any_permission(names: List[str]):
    """
    FastAPI dependency to require ANY of the specified permissions.

    Usage:
        @router.post("/")
        async def create_type(
            user: User = Depends(require_any_permission(["administer content types", "administer nodes"]))
        ):
            ...
    """
    async def permission_dependency(
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
    ) -> User:
        capabilities = await UserCapabilities.load(db, current_user)
        if capabilities.has_any(*names):
            return current_user

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Permission denied: requires one of {names}"
        )

    return permission_dependency
