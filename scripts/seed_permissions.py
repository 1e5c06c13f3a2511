"""
Seed script to populate default permissions, roles and content types.

Run this script after database initialization to create:
- The permissions checked by node access and the private feature
- Default roles with their permissions
- The "page" and "article" content types

Usage:
    python -m scripts.seed_permissions
"""
import asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db, init_db
from app.features.content_types.models import ContentType
from app.features.permissions.models import Permission, Role
from app.features.private.policy import PrivacyPolicy
from app.utils import get_logger


log = get_logger(__name__)


DEFAULT_PERMISSIONS = [
    # Private content
    ("access private content", "View content marked private by other users"),
    ("edit private content", "Edit and delete content marked private by other users"),
    ("mark content as private", "Set or clear the private flag when saving content"),

    # Node access
    ("administer nodes", "Bypass node access; see and change all content"),
    ("create content", "Create content items"),
    ("edit own content", "Edit content items you own"),
    ("edit any content", "Edit any content item"),
    ("delete own content", "Delete content items you own"),
    ("delete any content", "Delete any content item"),

    # Site configuration
    ("administer content types", "Create content types and set their privacy policy"),
    ("administer permissions", "Manage permissions, roles and role assignments"),
]


DEFAULT_ROLES = {
    "administrator": {
        "description": "Site administrator with all permissions",
        "permissions": "ALL"  # Special case - gets all permissions
    },
    "editor": {
        "description": "Edits everyone's content, including private content",
        "permissions": [
            "access private content", "edit private content", "mark content as private",
            "create content", "edit own content", "edit any content",
            "delete own content", "delete any content",
        ]
    },
    "author": {
        "description": "Writes and manages their own content",
        "permissions": [
            "mark content as private",
            "create content", "edit own content", "delete own content",
        ]
    },
    "private_viewer": {
        "description": "Reads private content without being able to change it",
        "permissions": ["access private content"]
    },
}


DEFAULT_CONTENT_TYPES = [
    ("page", "Basic page", PrivacyPolicy.ALLOWED),
    ("article", "Article", PrivacyPolicy.ALLOWED),
]


async def seed_permissions(db: AsyncSession) -> dict[str, Permission]:
    """
    Create default permissions.

    Returns:
        Dictionary of permission name -> Permission object
    """
    log.info("Creating default permissions...")
    permissions_map: dict[str, Permission] = {}

    for name, description in DEFAULT_PERMISSIONS:
        result = await db.execute(select(Permission).where(Permission.name == name))
        existing = result.scalars().first()

        if existing:
            log.debug(f"Permission '{name}' already exists, skipping")
            permissions_map[name] = existing
            continue

        permission = Permission(name=name, description=description)
        db.add(permission)
        permissions_map[name] = permission
        log.info(f"Created permission: {name}")

    await db.commit()
    log.info(f"{len(permissions_map)} permissions available")
    return permissions_map


async def seed_roles(db: AsyncSession, permissions_map: dict[str, Permission]):
    """
    Create default roles and assign permissions.
    """
    log.info("Creating default roles...")

    for role_name, role_config in DEFAULT_ROLES.items():
        result = await db.execute(select(Role).where(Role.name == role_name))
        if result.scalars().first():
            log.debug(f"Role '{role_name}' already exists, skipping")
            continue

        role = Role(name=role_name, description=role_config["description"])

        if role_config["permissions"] == "ALL":
            role.permissions = list(permissions_map.values())
        else:
            role_permissions = []
            for perm_name in role_config["permissions"]:
                if perm_name in permissions_map:
                    role_permissions.append(permissions_map[perm_name])
                else:
                    log.warning(f"Permission '{perm_name}' not found for role '{role_name}'")
            role.permissions = role_permissions

        log.info(f"Created role '{role_name}' with {len(role.permissions)} permissions")
        db.add(role)

    await db.commit()


async def seed_content_types(db: AsyncSession):
    for type_name, name, policy in DEFAULT_CONTENT_TYPES:
        if await db.get(ContentType, type_name):
            continue
        db.add(ContentType(type=type_name, name=name, privacy_policy=policy))
        log.info(f"Created content type '{type_name}' ({policy.value})")
    await db.commit()


async def main():
    """Seed permissions, roles and content types."""
    log.info("Initializing database tables...")
    await init_db()

    async for db in get_db():
        try:
            permissions_map = await seed_permissions(db)
            await seed_roles(db, permissions_map)
            await seed_content_types(db)
            log.info("Seeding completed successfully!")
        except Exception as e:
            log.error(f"Error seeding permissions: {e}", exc_info=True)
            await db.rollback()
            raise

        break  # Only use first session


if __name__ == "__main__":
    asyncio.run(main())
