"""
Pydantic schemas for permission management.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


# ============================================================================
# Permission Schemas
# ============================================================================

class PermissionBase(BaseModel):
    """Base permission schema."""
    name: str = Field(..., min_length=1, max_length=100, description="Unique permission name, e.g. 'access private content'")
    description: Optional[str] = Field(None, max_length=1000, description="Permission description")


class PermissionCreate(PermissionBase):
    """Schema for creating a new permission."""

    @field_validator('name')
    @classmethod
    def name_lowercase_words(cls, v: str) -> str:
        """Permission names are lowercase words separated by single spaces."""
        v = " ".join(v.split()).lower()
        if not v.replace(' ', '').replace('_', '').isalnum():
            raise ValueError('Permission name must contain only letters, digits, underscores and spaces')
        return v


class PermissionUpdate(BaseModel):
    """Schema for updating a permission."""
    description: Optional[str] = Field(None, max_length=1000)


class PermissionResponse(PermissionBase):
    """Schema for permission response."""
    id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Role Schemas
# ============================================================================

class RoleBase(BaseModel):
    """Base role schema."""
    name: str = Field(..., min_length=1, max_length=50, description="Unique role name")
    description: Optional[str] = Field(None, max_length=1000, description="Role description")


class RoleCreate(RoleBase):
    """Schema for creating a new role."""

    @field_validator('name')
    @classmethod
    def name_alphanumeric_underscore(cls, v: str) -> str:
        """Validate role name format."""
        if not v.replace('_', '').replace('-', '').isalnum():
            raise ValueError('Role name must contain only alphanumeric characters, underscores, and hyphens')
        return v


class RoleUpdate(BaseModel):
    """Schema for updating a role."""
    description: Optional[str] = Field(None, max_length=1000)


class RoleResponse(RoleBase):
    """Schema for role response."""
    id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleWithPermissions(RoleResponse):
    """Schema for role with permissions."""
    permissions: List[PermissionResponse] = []


# ============================================================================
# Assignment Schemas
# ============================================================================

class AssignRoleToUser(BaseModel):
    """Schema for assigning a role to a user."""
    user_id: int = Field(..., description="User ID")
    role_id: str = Field(..., description="Role ID")


class AssignPermissionToRole(BaseModel):
    """Schema for assigning a permission to a role."""
    permission_id: str = Field(..., description="Permission ID")


# ============================================================================
# Permission Check Schemas
# ============================================================================

class PermissionCheckRequest(BaseModel):
    """Schema for checking if the current user has a permission."""
    name: str = Field(..., description="Permission name")


class PermissionCheckResponse(BaseModel):
    """Schema for permission check response."""
    has_permission: bool
    reason: Optional[str] = None


class UserPermissionsResponse(BaseModel):
    """All permissions a user holds, with the roles they come from."""
    user_id: int
    is_admin: bool
    roles: List[RoleWithPermissions] = []
    all_permissions: List[str] = []
