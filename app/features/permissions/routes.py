"""
Permission management API routes.

Provides endpoints for managing permissions, roles and their assignments.
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select, delete, and_, insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from app.core.database.engine import get_db
from app.features.users.dependencies import get_current_user
from app.features.users.models import User
from app.features.permissions.models import Permission, Role, role_permissions, user_roles
from app.features.permissions.schemas import (
    PermissionCreate,
    PermissionUpdate,
    PermissionResponse,
    RoleCreate,
    RoleUpdate,
    RoleResponse,
    RoleWithPermissions,
    AssignRoleToUser,
    AssignPermissionToRole,
    PermissionCheckRequest,
    PermissionCheckResponse,
    UserPermissionsResponse,
)
from app.features.permissions.dependencies import (
    has_permission,
    require_permission,
    get_user_permission_names,
)
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter()

ADMINISTER_PERMISSIONS = "administer permissions"


async def _get_or_404(db: AsyncSession, model, object_id: str, label: str):
    result = await db.execute(select(model).where(model.id == object_id))
    obj = result.scalars().first()
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


async def _load_role_with_permissions(db: AsyncSession, role_id: str) -> Role:
    stmt = select(Role).where(Role.id == role_id).options(selectinload(Role.permissions))
    result = await db.execute(stmt)
    role = result.scalars().first()
    if not role:
        raise HTTPException(status_code=404, detail="Role not found")
    return role


# ============================================================================
# Permission Routes
# ============================================================================

@router.post("/permissions", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
async def create_permission(
    permission: PermissionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(ADMINISTER_PERMISSIONS))
):
    """Create a new permission."""
    try:
        db_permission = Permission(**permission.model_dump())
        db.add(db_permission)
        await db.commit()
        await db.refresh(db_permission)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Permission with this name already exists"
        )

    log.info(f"User {current_user.id} created permission {db_permission.name!r}")
    return db_permission


@router.get("/permissions", response_model=List[PermissionResponse])
async def list_permissions(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List all permissions."""
    stmt = select(Permission).order_by(Permission.name).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return result.scalars().all()


@router.get("/permissions/{permission_id}", response_model=PermissionResponse)
async def get_permission(
    permission_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a specific permission by ID."""
    return await _get_or_404(db, Permission, permission_id, "Permission")


@router.put("/permissions/{permission_id}", response_model=PermissionResponse)
async def update_permission(
    permission_id: str,
    permission_update: PermissionUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(ADMINISTER_PERMISSIONS))
):
    """Update a permission's description."""
    db_permission = await _get_or_404(db, Permission, permission_id, "Permission")

    update_data = permission_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_permission, key, value)

    await db.commit()
    await db.refresh(db_permission)
    return db_permission


@router.delete("/permissions/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_permission(
    permission_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(ADMINISTER_PERMISSIONS))
):
    """Delete a permission."""
    db_permission = await _get_or_404(db, Permission, permission_id, "Permission")

    log.info(f"User {current_user.id} deleted permission {db_permission.name!r}")
    await db.delete(db_permission)
    await db.commit()
    return None


# ============================================================================
# Role Routes
# ============================================================================

@router.post("/roles", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    role: RoleCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(ADMINISTER_PERMISSIONS))
):
    """Create a new role."""
    try:
        db_role = Role(**role.model_dump())
        db.add(db_role)
        await db.commit()
        await db.refresh(db_role)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Role with this name already exists"
        )
    return db_role


@router.get("/roles", response_model=List[RoleResponse])
async def list_roles(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List roles."""
    stmt = select(Role).order_by(Role.name).offset(skip).limit(limit)
    result = await db.execute(stmt)
    return result.scalars().all()


@router.get("/roles/{role_id}", response_model=RoleWithPermissions)
async def get_role(
    role_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a specific role with its permissions."""
    return await _load_role_with_permissions(db, role_id)


@router.put("/roles/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    role_update: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(ADMINISTER_PERMISSIONS))
):
    """Update a role."""
    db_role = await _get_or_404(db, Role, role_id, "Role")

    update_data = role_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(db_role, key, value)

    await db.commit()
    await db.refresh(db_role)
    return db_role


@router.delete("/roles/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(ADMINISTER_PERMISSIONS))
):
    """Delete a role."""
    db_role = await _get_or_404(db, Role, role_id, "Role")

    log.info(f"User {current_user.id} deleted role {db_role.name!r}")
    await db.delete(db_role)
    await db.commit()
    return None


@router.post("/roles/{role_id}/permissions", status_code=status.HTTP_200_OK)
async def assign_permission_to_role(
    role_id: str,
    assignment: AssignPermissionToRole,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(ADMINISTER_PERMISSIONS))
):
    """Assign a permission to a role."""
    role = await _get_or_404(db, Role, role_id, "Role")
    permission = await _get_or_404(db, Permission, assignment.permission_id, "Permission")

    check_stmt = select(role_permissions).where(
        and_(
            role_permissions.c.role_id == role_id,
            role_permissions.c.permission_id == assignment.permission_id
        )
    )
    check_result = await db.execute(check_stmt)
    if check_result.first():
        return {"message": f"Permission '{permission.name}' already assigned to role '{role.name}'"}

    stmt = insert(role_permissions).values(role_id=role_id, permission_id=assignment.permission_id)
    await db.execute(stmt)
    await db.commit()

    log.info(f"User {current_user.id} assigned {permission.name!r} to role {role.name!r}")
    return {"message": f"Permission '{permission.name}' assigned to role '{role.name}'"}


@router.delete("/roles/{role_id}/permissions/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_permission_from_role(
    role_id: str,
    permission_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(ADMINISTER_PERMISSIONS))
):
    """Remove a permission from a role."""
    where = and_(
        role_permissions.c.role_id == role_id,
        role_permissions.c.permission_id == permission_id
    )
    check_result = await db.execute(select(role_permissions).where(where))
    if not check_result.first():
        raise HTTPException(status_code=404, detail="Permission assignment not found")

    await db.execute(delete(role_permissions).where(where))
    await db.commit()
    return None


# ============================================================================
# Assignment Routes
# ============================================================================

@router.post("/assignments/user-role", status_code=status.HTTP_200_OK)
async def assign_role_to_user(
    assignment: AssignRoleToUser,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(ADMINISTER_PERMISSIONS))
):
    """Assign a role to a user."""
    await _get_or_404(db, User, assignment.user_id, "User")
    await _get_or_404(db, Role, assignment.role_id, "Role")

    check_stmt = select(user_roles).where(
        and_(
            user_roles.c.user_id == assignment.user_id,
            user_roles.c.role_id == assignment.role_id
        )
    )
    check_result = await db.execute(check_stmt)
    if check_result.first():
        return {"message": "Role already assigned to user"}

    stmt = insert(user_roles).values(user_id=assignment.user_id, role_id=assignment.role_id)
    await db.execute(stmt)
    await db.commit()

    return {"message": "Role assigned to user successfully"}


@router.delete("/assignments/user-role/{user_id}/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_role_from_user(
    user_id: int,
    role_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_permission(ADMINISTER_PERMISSIONS))
):
    """Remove a role from a user."""
    where = and_(user_roles.c.user_id == user_id, user_roles.c.role_id == role_id)
    check_result = await db.execute(select(user_roles).where(where))
    if not check_result.first():
        raise HTTPException(status_code=404, detail="Role assignment not found")

    await db.execute(delete(user_roles).where(where))
    await db.commit()
    return None


# ============================================================================
# Permission Check Routes
# ============================================================================

@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission(
    check_request: PermissionCheckRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Check if the current user has a specific permission."""
    has_perm = await has_permission(db, current_user, check_request.name)

    return PermissionCheckResponse(
        has_permission=has_perm,
        reason=None if has_perm else "Permission denied"
    )


@router.get("/users/{user_id}/permissions", response_model=UserPermissionsResponse)
async def get_user_permissions(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get all permissions for a user."""
    # Can only view own permissions unless admin
    if user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to view other users' permissions"
        )

    user = await _get_or_404(db, User, user_id, "User")

    stmt = (
        select(Role)
        .join(user_roles, user_roles.c.role_id == Role.id)
        .where(user_roles.c.user_id == user_id)
        .options(selectinload(Role.permissions))
        .order_by(Role.name)
    )
    result = await db.execute(stmt)
    roles = result.scalars().all()
    names = await get_user_permission_names(db, user_id)

    return UserPermissionsResponse(
        user_id=user_id,
        is_admin=user.is_admin,
        roles=[RoleWithPermissions.model_validate(role) for role in roles],
        all_permissions=sorted(names),
    )
