"""
Node access: storing and checking per-item grants.

Features plug into the access layer by registering a GrantProvider:

- records(db, item) returns the GrantRecords an item should carry
- grants(db, user, capabilities, operation) returns the realm memberships
  the user holds for an operation

When no provider has records for an item, the item gets the default grant
("all", 0, view only), which every user holds.
"""
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional

from sqlalchemy import select, delete, and_, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.content.models import ContentItem
from app.features.node_access.models import NodeAccess
from app.features.permissions.dependencies import UserCapabilities
from app.features.private.grants import ActorGrants, GrantOperation, GrantRecord, PERM_ADMINISTER_NODES
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


REALM_ALL = "all"
DEFAULT_GRANT = GrantRecord(REALM_ALL, 0, grant_view=True, grant_update=False, grant_delete=False)

PERM_CREATE_CONTENT = "create content"
PERM_EDIT_OWN = "edit own content"
PERM_EDIT_ANY = "edit any content"
PERM_DELETE_OWN = "delete own content"
PERM_DELETE_ANY = "delete any content"

_OPERATION_PERMISSIONS = {
    GrantOperation.UPDATE: (PERM_EDIT_ANY, PERM_EDIT_OWN),
    GrantOperation.DELETE: (PERM_DELETE_ANY, PERM_DELETE_OWN),
}

_GRANT_COLUMNS = {
    GrantOperation.VIEW: NodeAccess.grant_view,
    GrantOperation.UPDATE: NodeAccess.grant_update,
    GrantOperation.DELETE: NodeAccess.grant_delete,
}


# ============================================================================
# Provider Registry
# ============================================================================

RecordsFn = Callable[[AsyncSession, ContentItem], Awaitable[List[GrantRecord]]]
GrantsFn = Callable[[AsyncSession, User, UserCapabilities, GrantOperation], Awaitable[ActorGrants]]


@dataclass(frozen=True)
class GrantProvider:
    name: str
    records: RecordsFn
    grants: GrantsFn


_providers: Dict[str, GrantProvider] = {}


def register_provider(provider: GrantProvider) -> None:
    """Register (or replace) a grant provider under its name."""
    _providers[provider.name] = provider
    log.debug(f"Registered node access provider {provider.name!r}")


def unregister_provider(name: str) -> None:
    _providers.pop(name, None)


def get_providers() -> List[GrantProvider]:
    return list(_providers.values())


# ============================================================================
# Writing Grants
# ============================================================================

async def collect_item_records(db: AsyncSession, item: ContentItem) -> List[GrantRecord]:
    """
    Ask every provider for the item's records.

    Only records with the highest priority survive. An empty result turns
    into the default grant.
    """
    records: List[GrantRecord] = []
    for provider in get_providers():
        records.extend(await provider.records(db, item))

    if not records:
        return [DEFAULT_GRANT]

    top = max(record.priority for record in records)
    return [record for record in records if record.priority == top]


async def write_item_grants(db: AsyncSession, item: ContentItem) -> List[GrantRecord]:
    """
    Replace the stored grants of one item.

    The caller owns the transaction; rows are flushed, not committed.
    """
    records = await collect_item_records(db, item)

    await db.execute(delete(NodeAccess).where(NodeAccess.item_id == item.id))
    for record in records:
        db.add(NodeAccess(
            item_id=item.id,
            realm=record.realm,
            gid=record.gid,
            grant_view=record.grant_view,
            grant_update=record.grant_update,
            grant_delete=record.grant_delete,
            priority=record.priority,
        ))
    await db.flush()

    log.debug(f"Wrote {len(records)} grant(s) for item {item.id}: {[r.realm for r in records]}")
    return records


async def delete_item_grants(db: AsyncSession, item_id: int) -> None:
    await db.execute(delete(NodeAccess).where(NodeAccess.item_id == item_id))


async def rebuild(db: AsyncSession, batch_size: int = 100) -> int:
    """
    Rewrite the grants of every content item.

    Returns:
        Number of items processed
    """
    log.info("Rebuilding node access table")
    await db.execute(delete(NodeAccess))

    count = 0
    last_id = 0
    while True:
        result = await db.execute(
            select(ContentItem)
            .where(ContentItem.id > last_id)
            .order_by(ContentItem.id)
            .limit(batch_size)
        )
        items = result.scalars().all()
        if not items:
            break
        for item in items:
            await write_item_grants(db, item)
            count += 1
        last_id = items[-1].id

    await db.commit()
    log.info(f"Node access rebuilt for {count} item(s)")
    return count


async def explain_item_grants(db: AsyncSession, item_id: int) -> List[NodeAccess]:
    """Stored grant rows of one item, for debugging access decisions."""
    result = await db.execute(
        select(NodeAccess)
        .where(NodeAccess.item_id == item_id)
        .order_by(NodeAccess.realm, NodeAccess.gid)
    )
    return list(result.scalars().all())


# ============================================================================
# Checking Grants
# ============================================================================

async def get_user_grants(
    db: AsyncSession,
    user: User,
    operation: GrantOperation,
    capabilities: Optional[UserCapabilities] = None,
) -> ActorGrants:
    """Merge the default grant with every provider's grants for the user."""
    operation = GrantOperation(operation)
    if capabilities is None:
        capabilities = await UserCapabilities.load(db, user)

    grants: ActorGrants = {REALM_ALL: {0}}
    for provider in get_providers():
        for realm, gids in (await provider.grants(db, user, capabilities, operation)).items():
            grants.setdefault(realm, set()).update(gids)
    return grants


def grants_condition(grants: ActorGrants):
    """SQL condition matching NodeAccess rows whose (realm, gid) the user holds."""
    return or_(*[
        and_(NodeAccess.realm == realm, NodeAccess.gid.in_(sorted(gids)))
        for realm, gids in sorted(grants.items())
        if gids
    ])


def viewable_items_clause(grants: ActorGrants):
    """
    EXISTS clause restricting a ContentItem query to viewable items.

    Usage:
        stmt = select(ContentItem).where(viewable_items_clause(grants))
    """
    return (
        select(NodeAccess.item_id)
        .where(
            NodeAccess.item_id == ContentItem.id,
            NodeAccess.grant_view.is_(True),
            grants_condition(grants),
        )
        .exists()
    )


def bypasses_access(capabilities: UserCapabilities) -> bool:
    return capabilities.has_capability(PERM_ADMINISTER_NODES)


async def check_access(
    db: AsyncSession,
    item: ContentItem,
    user: User,
    operation: GrantOperation,
    capabilities: Optional[UserCapabilities] = None,
) -> bool:
    """
    Decide whether user may perform operation on item.

    Order: bypass permission, then the host's own edit/delete permissions for
    update and delete, then the item's stored grants.
    """
    operation = GrantOperation(operation)
    if capabilities is None:
        capabilities = await UserCapabilities.load(db, user)

    if bypasses_access(capabilities):
        return True

    if operation in _OPERATION_PERMISSIONS:
        any_perm, own_perm = _OPERATION_PERMISSIONS[operation]
        if capabilities.has_capability(any_perm):
            return True
        if item.owner_id == user.id and capabilities.has_capability(own_perm):
            return True

    grants = await get_user_grants(db, user, operation, capabilities)
    stmt = select(func.count()).select_from(NodeAccess).where(
        NodeAccess.item_id == item.id,
        _GRANT_COLUMNS[operation].is_(True),
        grants_condition(grants),
    )
    allowed = (await db.execute(stmt)).scalar_one() > 0

    log.debug(f"User {user.id} {'granted' if allowed else 'denied'} {operation.value} on item {item.id}")
    return allowed
