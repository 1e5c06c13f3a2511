"""
Glue between the grant evaluator and the rest of the application.

- Registers the private grant provider with node access
- Persists the enabled/disabled state and rebuilds access on transitions
- Applies the content type's privacy policy when items are saved
- Bulk mark-private / mark-public actions
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.content.models import ContentItem
from app.features.content_types.models import ContentType
from app.features.node_access import service as node_access
from app.features.permissions.dependencies import UserCapabilities
from app.features.private.grants import (
    ActorGrants,
    GrantOperation,
    GrantRecord,
    PERM_ADMINISTER_NODES,
    PERM_MARK_PRIVATE,
    compute_actor_grants,
    compute_records_for_item,
)
from app.features.private.models import PrivateModuleState, STATE_ROW_ID
from app.features.private.policy import DEFAULT_PRIVACY_POLICY, PrivacyPolicy, resolve_private_flag
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)

PROVIDER_NAME = "private"


# ============================================================================
# Module State
# ============================================================================

async def get_module_state(db: AsyncSession) -> PrivateModuleState:
    """Load the state row, creating it (enabled) on first use."""
    state = await db.get(PrivateModuleState, STATE_ROW_ID)
    if state is None:
        state = PrivateModuleState(id=STATE_ROW_ID, enabled=True)
        db.add(state)
        await db.flush()
    return state


async def is_enabled(db: AsyncSession) -> bool:
    return (await get_module_state(db)).enabled


async def _set_enabled(db: AsyncSession, enabled: bool) -> int:
    state = await get_module_state(db)
    state.enabled = enabled
    # rebuild commits the state change together with the rewritten grants
    await db.flush()

    log.info(f"Private content {'enabled' if enabled else 'disabled'}, rebuilding node access")
    return await node_access.rebuild(db)


async def enable_private(db: AsyncSession) -> int:
    """Start emitting private grants and rebuild. Returns items rebuilt."""
    return await _set_enabled(db, True)


async def disable_private(db: AsyncSession) -> int:
    """
    Stop emitting private grants and rebuild.

    After this every item carries only the default grant, whatever its flag.
    """
    return await _set_enabled(db, False)


# ============================================================================
# Grant Provider
# ============================================================================

async def item_records(db: AsyncSession, item: ContentItem) -> List[GrantRecord]:
    teardown = not await is_enabled(db)
    return compute_records_for_item(item, teardown_in_progress=teardown)


async def actor_grants(
    db: AsyncSession,
    user: User,
    capabilities: UserCapabilities,
    operation: GrantOperation,
) -> ActorGrants:
    return compute_actor_grants(user.id, operation, capabilities)


provider = node_access.GrantProvider(name=PROVIDER_NAME, records=item_records, grants=actor_grants)


def register() -> None:
    """Hook the private realms into node access. Called at application start."""
    node_access.register_provider(provider)


# ============================================================================
# Saving Items
# ============================================================================

def can_mark_private(capabilities: UserCapabilities) -> bool:
    return capabilities.has_any(PERM_MARK_PRIVATE, PERM_ADMINISTER_NODES)


async def get_type_policy(db: AsyncSession, type_name: str) -> PrivacyPolicy:
    content_type = await db.get(ContentType, type_name)
    if content_type is None:
        return DEFAULT_PRIVACY_POLICY
    return content_type.privacy_policy


async def apply_private_flag(
    db: AsyncSession,
    item: ContentItem,
    requested: Optional[bool],
    capabilities: UserCapabilities,
    is_new: bool,
) -> bool:
    """
    Set item.is_private according to the type's policy and the author's rights.

    Returns:
        The stored flag
    """
    policy = await get_type_policy(db, item.type)
    item.is_private = resolve_private_flag(
        policy,
        requested=requested,
        current=None if is_new else item.is_private,
        can_mark_private=can_mark_private(capabilities),
    )
    return item.is_private


# ============================================================================
# Bulk Actions
# ============================================================================

@dataclass
class MarkResult:
    updated: List[int] = field(default_factory=list)
    unchanged: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    missing: List[int] = field(default_factory=list)


async def mark_items(
    db: AsyncSession,
    item_ids: Iterable[int],
    is_private: bool,
    user: Optional[User] = None,
    capabilities: Optional[UserCapabilities] = None,
) -> MarkResult:
    """
    Set the private flag on existing items and rewrite their grants.

    Items whose content type policy forbids the new value, or that user may
    not update, are skipped; unknown ids are reported in missing.
    """
    ids = list(dict.fromkeys(item_ids))
    result = await db.execute(select(ContentItem).where(ContentItem.id.in_(ids)))
    items = {item.id: item for item in result.scalars().all()}

    outcome = MarkResult()
    for item_id in ids:
        item = items.get(item_id)
        if item is None:
            outcome.missing.append(item_id)
            continue

        if user is not None and not await node_access.check_access(
            db, item, user, GrantOperation.UPDATE, capabilities
        ):
            outcome.skipped.append(item_id)
            continue

        policy = await get_type_policy(db, item.type)
        if is_private != resolve_private_flag(policy, is_private, item.is_private, can_mark_private=True):
            outcome.skipped.append(item_id)
            continue

        if item.is_private == is_private:
            outcome.unchanged.append(item_id)
            continue

        item.is_private = is_private
        await node_access.write_item_grants(db, item)
        outcome.updated.append(item_id)

    await db.commit()
    log.info(
        f"Marked {len(outcome.updated)} item(s) {'private' if is_private else 'public'} "
        f"({len(outcome.skipped)} skipped, {len(outcome.missing)} missing)"
    )
    return outcome


async def mark_private(db: AsyncSession, item_ids: Iterable[int], **kwargs) -> MarkResult:
    return await mark_items(db, item_ids, True, **kwargs)


async def mark_public(db: AsyncSession, item_ids: Iterable[int], **kwargs) -> MarkResult:
    return await mark_items(db, item_ids, False, **kwargs)
