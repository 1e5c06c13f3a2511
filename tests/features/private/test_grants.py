"""Unit tests for private grant evaluation.

Tests cover:
- Records for public, private and torn-down items
- Realm memberships per operation and permission
- GrantRecord helpers
"""

import dataclasses
from types import SimpleNamespace

import pytest

from app.features.private.grants import (
    ALL_GROUPS,
    GrantOperation,
    GrantRecord,
    PERM_ACCESS_PRIVATE,
    PERM_EDIT_PRIVATE,
    REALM_AUTHOR,
    REALM_EDIT,
    REALM_VIEW,
    compute_actor_grants,
    compute_records_for_item,
)


class FakeCapabilities:
    def __init__(self, *names):
        self.names = set(names)

    def has_capability(self, name):
        return name in self.names


def item(is_private, owner_id=42):
    return SimpleNamespace(is_private=is_private, owner_id=owner_id)


# =============================================================================
# compute_records_for_item
# =============================================================================


def test_private_item_gets_three_records_in_order():
    records = compute_records_for_item(item(True, owner_id=42))

    assert records == [
        GrantRecord(REALM_VIEW, ALL_GROUPS, True, False, False),
        GrantRecord(REALM_EDIT, ALL_GROUPS, True, True, True),
        GrantRecord(REALM_AUTHOR, 42, True, True, True),
    ]
    assert all(record.priority == 0 for record in records)


def test_public_item_gets_no_records():
    assert compute_records_for_item(item(False, owner_id=42)) == []


@pytest.mark.parametrize("is_private", [True, False])
def test_teardown_suppresses_records(is_private):
    assert compute_records_for_item(item(is_private), teardown_in_progress=True) == []


@pytest.mark.parametrize("owner_id", [1, 2, 42, 10_000])
def test_each_realm_appears_once_and_author_gid_is_owner(owner_id):
    records = compute_records_for_item(item(True, owner_id=owner_id))

    assert sorted(r.realm for r in records) == sorted([REALM_VIEW, REALM_EDIT, REALM_AUTHOR])
    author = next(r for r in records if r.realm == REALM_AUTHOR)
    assert author.gid == owner_id


def test_all_groups_sentinel_value():
    assert ALL_GROUPS == 1


# =============================================================================
# compute_actor_grants
# =============================================================================


def test_view_without_permissions_only_author_realm():
    grants = compute_actor_grants(7, GrantOperation.VIEW, FakeCapabilities())

    assert grants == {REALM_AUTHOR: {7}}


def test_view_with_access_private_content():
    grants = compute_actor_grants(7, GrantOperation.VIEW, FakeCapabilities(PERM_ACCESS_PRIVATE))

    assert grants == {REALM_AUTHOR: {7}, REALM_VIEW: {ALL_GROUPS}}


def test_view_ignores_edit_private_content():
    grants = compute_actor_grants(7, GrantOperation.VIEW, FakeCapabilities(PERM_EDIT_PRIVATE))

    assert grants == {REALM_AUTHOR: {7}}


@pytest.mark.parametrize("operation", [GrantOperation.UPDATE, GrantOperation.DELETE])
def test_update_and_delete_with_edit_private_content(operation):
    grants = compute_actor_grants(7, operation, FakeCapabilities(PERM_EDIT_PRIVATE))

    assert grants == {REALM_AUTHOR: {7}, REALM_EDIT: {ALL_GROUPS}}


@pytest.mark.parametrize("operation", [GrantOperation.UPDATE, GrantOperation.DELETE])
def test_update_and_delete_ignore_access_private_content(operation):
    grants = compute_actor_grants(7, operation, FakeCapabilities(PERM_ACCESS_PRIVATE))

    assert grants == {REALM_AUTHOR: {7}}


def test_operation_accepts_plain_string():
    grants = compute_actor_grants(3, "view", FakeCapabilities(PERM_ACCESS_PRIVATE))

    assert grants[REALM_VIEW] == {ALL_GROUPS}


def test_unknown_operation_rejected():
    with pytest.raises(ValueError):
        compute_actor_grants(3, "publish", FakeCapabilities())


# =============================================================================
# GrantRecord
# =============================================================================


def test_record_allows_matches_flags():
    record = GrantRecord(REALM_VIEW, ALL_GROUPS, True, False, False)

    assert record.allows(GrantOperation.VIEW)
    assert not record.allows(GrantOperation.UPDATE)
    assert not record.allows(GrantOperation.DELETE)


def test_record_is_immutable():
    record = GrantRecord(REALM_AUTHOR, 5, True, True, True)

    with pytest.raises(dataclasses.FrozenInstanceError):
        record.gid = 6
