"""Tests for the node access table and access checks.

Tests cover:
- Default grant for public items, private realms for private items
- check_access for owners, viewers, editors, strangers and admins
- Listing filter built from a user's grants
- Provider priority and full rebuild
"""

from sqlalchemy import select

from app.features.content.models import ContentItem
from app.features.node_access import service as node_access
from app.features.node_access.service import DEFAULT_GRANT, REALM_ALL
from app.features.private.grants import (
    ALL_GROUPS,
    GrantOperation,
    GrantRecord,
    PERM_ACCESS_PRIVATE,
    PERM_ADMINISTER_NODES,
    PERM_EDIT_PRIVATE,
    REALM_AUTHOR,
    REALM_EDIT,
    REALM_VIEW,
)
from tests.factories import make_item, make_type, make_user


VIEW = GrantOperation.VIEW
UPDATE = GrantOperation.UPDATE
DELETE = GrantOperation.DELETE


async def test_public_item_stores_default_grant(db):
    await make_type(db)
    owner = await make_user(db, "owner")
    item = await make_item(db, owner)

    rows = await node_access.explain_item_grants(db, item.id)

    assert [(r.realm, r.gid, r.grant_view, r.grant_update, r.grant_delete) for r in rows] == [
        (REALM_ALL, 0, True, False, False)
    ]


async def test_private_item_stores_private_realms(db):
    await make_type(db)
    owner = await make_user(db, "owner")
    item = await make_item(db, owner, is_private=True)

    rows = await node_access.explain_item_grants(db, item.id)

    assert {(r.realm, r.gid) for r in rows} == {
        (REALM_AUTHOR, owner.id),
        (REALM_EDIT, ALL_GROUPS),
        (REALM_VIEW, ALL_GROUPS),
    }


async def test_rewriting_grants_replaces_rows(db):
    await make_type(db)
    owner = await make_user(db, "owner")
    item = await make_item(db, owner, is_private=True)

    item.is_private = False
    await node_access.write_item_grants(db, item)
    await db.commit()

    rows = await node_access.explain_item_grants(db, item.id)
    assert [(r.realm, r.gid) for r in rows] == [(REALM_ALL, 0)]


async def test_private_item_access_matrix(db):
    await make_type(db)
    owner = await make_user(db, "owner")
    stranger = await make_user(db, "stranger")
    viewer = await make_user(db, "viewer", PERM_ACCESS_PRIVATE)
    editor = await make_user(db, "editor", PERM_EDIT_PRIVATE)
    admin = await make_user(db, "admin", is_admin=True)
    node_admin = await make_user(db, "nodeadmin", PERM_ADMINISTER_NODES)
    item = await make_item(db, owner, is_private=True)

    async def allowed(user, operation):
        return await node_access.check_access(db, item, user, operation)

    # Owner reaches their own private item without any permission
    assert await allowed(owner, VIEW)
    assert await allowed(owner, UPDATE)
    assert await allowed(owner, DELETE)

    assert not await allowed(stranger, VIEW)
    assert not await allowed(stranger, UPDATE)

    assert await allowed(viewer, VIEW)
    assert not await allowed(viewer, UPDATE)
    assert not await allowed(viewer, DELETE)

    assert await allowed(editor, UPDATE)
    assert await allowed(editor, DELETE)
    assert not await allowed(editor, VIEW)

    assert await allowed(admin, VIEW)
    assert await allowed(node_admin, DELETE)


async def test_public_item_uses_host_permissions_for_changes(db):
    await make_type(db)
    owner = await make_user(db, "owner", node_access.PERM_EDIT_OWN)
    stranger = await make_user(db, "stranger")
    moderator = await make_user(db, "moderator", node_access.PERM_DELETE_ANY)
    item = await make_item(db, owner)

    assert await node_access.check_access(db, item, stranger, VIEW)
    assert not await node_access.check_access(db, item, stranger, UPDATE)
    assert await node_access.check_access(db, item, owner, UPDATE)
    assert not await node_access.check_access(db, item, owner, DELETE)
    assert await node_access.check_access(db, item, moderator, DELETE)


async def test_user_grants_include_default_and_private_realms(db):
    viewer = await make_user(db, "viewer", PERM_ACCESS_PRIVATE)

    grants = await node_access.get_user_grants(db, viewer, VIEW)

    assert grants == {REALM_ALL: {0}, REALM_AUTHOR: {viewer.id}, REALM_VIEW: {ALL_GROUPS}}


async def test_viewable_items_clause_filters_listing(db):
    await make_type(db)
    owner = await make_user(db, "owner")
    stranger = await make_user(db, "stranger")
    public = await make_item(db, owner, title="public")
    secret = await make_item(db, owner, is_private=True, title="secret")

    async def visible_ids(user):
        grants = await node_access.get_user_grants(db, user, VIEW)
        result = await db.execute(
            select(ContentItem.id).where(node_access.viewable_items_clause(grants)).order_by(ContentItem.id)
        )
        return list(result.scalars().all())

    assert await visible_ids(owner) == [public.id, secret.id]
    assert await visible_ids(stranger) == [public.id]


async def test_highest_priority_records_win(db):
    await make_type(db)
    owner = await make_user(db, "owner")
    item = await make_item(db, owner, is_private=True)
    override = GrantRecord("override", 9, True, False, False, priority=5)

    async def records(_db, _item):
        return [override]

    async def grants(_db, _user, _capabilities, _operation):
        return {}

    node_access.register_provider(node_access.GrantProvider("override", records, grants))
    try:
        assert await node_access.collect_item_records(db, item) == [override]
    finally:
        node_access.unregister_provider("override")

    assert len(await node_access.collect_item_records(db, item)) == 3


async def test_no_records_falls_back_to_default_grant(db):
    await make_type(db)
    owner = await make_user(db, "owner")
    item = await make_item(db, owner)

    assert await node_access.collect_item_records(db, item) == [DEFAULT_GRANT]


async def test_rebuild_rewrites_every_item(db):
    await make_type(db)
    owner = await make_user(db, "owner")
    items = [await make_item(db, owner, is_private=(n % 2 == 0)) for n in range(5)]

    count = await node_access.rebuild(db, batch_size=2)

    assert count == 5
    for item in items:
        rows = await node_access.explain_item_grants(db, item.id)
        assert len(rows) == (3 if item.is_private else 1)
