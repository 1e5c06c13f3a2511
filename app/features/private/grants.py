"""
Grant evaluation for private content.

Two pure functions sit at the heart of the private feature:

- compute_records_for_item() turns a content item into the node-access rows it
  should carry. Public items carry none (the host's default grant applies);
  private items carry exactly three.
- compute_actor_grants() turns an actor plus an operation into the
  (realm -> group ids) memberships the actor holds.

The node-access host matches the two against each other. Nothing here touches
the database; permission lookups come in through a CapabilityChecker.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Protocol, Set


# ============================================================================
# Realms, permissions and group ids
# ============================================================================

REALM_VIEW = "private_view"
REALM_EDIT = "private_edit"
REALM_AUTHOR = "private_author"

PERM_ACCESS_PRIVATE = "access private content"
PERM_EDIT_PRIVATE = "edit private content"
PERM_MARK_PRIVATE = "mark content as private"
PERM_ADMINISTER_NODES = "administer nodes"

# Group id meaning "everyone who passed the realm's permission check".
# Only meaningful inside private_view and private_edit; gids are realm-scoped,
# so it never collides with an owner id in private_author.
ALL_GROUPS = 1


class GrantOperation(str, Enum):
    """Operations a node-access grant can allow."""
    VIEW = "view"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class GrantRecord:
    """One node-access row for a content item."""
    realm: str
    gid: int
    grant_view: bool
    grant_update: bool
    grant_delete: bool
    priority: int = 0

    def allows(self, operation: GrantOperation) -> bool:
        if operation is GrantOperation.VIEW:
            return self.grant_view
        if operation is GrantOperation.UPDATE:
            return self.grant_update
        return self.grant_delete


ActorGrants = Dict[str, Set[int]]


class PrivacyTarget(Protocol):
    """The two fields read from a content item."""
    is_private: bool
    owner_id: int


class CapabilityChecker(Protocol):
    """Answers whether the current actor holds a named permission."""

    def has_capability(self, name: str) -> bool:
        ...


# ============================================================================
# Evaluation
# ============================================================================

def compute_records_for_item(
    item: PrivacyTarget,
    teardown_in_progress: bool = False,
) -> List[GrantRecord]:
    """
    Compute the grant records a content item should carry.

    Args:
        item: Anything exposing is_private and owner_id
        teardown_in_progress: True while the private feature is disabled, so a
            full rebuild of the access table drops every private restriction

    Returns:
        [] for public items or during teardown, otherwise three records in a
        fixed order: private_view, private_edit, private_author
    """
    if teardown_in_progress or not item.is_private:
        return []

    return [
        GrantRecord(REALM_VIEW, ALL_GROUPS, grant_view=True, grant_update=False, grant_delete=False),
        GrantRecord(REALM_EDIT, ALL_GROUPS, grant_view=True, grant_update=True, grant_delete=True),
        GrantRecord(REALM_AUTHOR, item.owner_id, grant_view=True, grant_update=True, grant_delete=True),
    ]


def compute_actor_grants(
    actor_id: int,
    operation: GrantOperation,
    capabilities: CapabilityChecker,
) -> ActorGrants:
    """
    Compute the realm memberships an actor holds for an operation.

    Every actor is a member of their own authorship group, which is what lets
    authors reach their own private items without any permission.
    """
    operation = GrantOperation(operation)
    grants: ActorGrants = {REALM_AUTHOR: {actor_id}}

    if operation is GrantOperation.VIEW:
        if capabilities.has_capability(PERM_ACCESS_PRIVATE):
            grants[REALM_VIEW] = {ALL_GROUPS}
    elif capabilities.has_capability(PERM_EDIT_PRIVATE):
        grants[REALM_EDIT] = {ALL_GROUPS}

    return grants
