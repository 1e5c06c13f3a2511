"""API tests for the /private endpoints."""

from app.features.private.grants import (
    PERM_ACCESS_PRIVATE,
    PERM_ADMINISTER_NODES,
    PERM_EDIT_PRIVATE,
    PERM_MARK_PRIVATE,
)
from tests.factories import make_item, make_type, make_user


async def test_my_grants_for_view(client, db, auth):
    auth.user = await make_user(db, "plain")

    response = await client.get("/private/grants/me")

    assert response.status_code == 200
    assert response.json() == {
        "user_id": auth.user.id,
        "operation": "view",
        "grants": {"private_author": [auth.user.id]},
    }


async def test_my_grants_with_access_private_content(client, db, auth):
    auth.user = await make_user(db, "viewer", PERM_ACCESS_PRIVATE)

    response = await client.get("/private/grants/me", params={"operation": "view"})

    assert response.json()["grants"] == {"private_author": [auth.user.id], "private_view": [1]}


async def test_my_grants_for_update(client, db, auth):
    auth.user = await make_user(db, "editor", PERM_EDIT_PRIVATE)

    response = await client.get("/private/grants/me", params={"operation": "update"})

    assert response.json()["grants"] == {"private_author": [auth.user.id], "private_edit": [1]}


async def test_my_grants_rejects_unknown_operation(client, db, auth):
    auth.user = await make_user(db, "plain")

    response = await client.get("/private/grants/me", params={"operation": "publish"})

    assert response.status_code == 400


async def test_status_requires_authentication(client):
    response = await client.get("/private/status")

    assert response.status_code == 401


async def test_status_reports_enabled(client, db, auth):
    auth.user = await make_user(db, "plain")

    response = await client.get("/private/status")

    assert response.status_code == 200
    assert response.json()["enabled"] is True


async def test_disable_requires_administer_nodes(client, db, auth):
    auth.user = await make_user(db, "plain")

    response = await client.post("/private/disable")

    assert response.status_code == 403


async def test_disable_and_enable_round_trip(client, db, auth):
    await make_type(db)
    owner = await make_user(db, "owner")
    stranger = await make_user(db, "stranger")
    admin = await make_user(db, "admin", PERM_ADMINISTER_NODES)
    item = await make_item(db, owner, is_private=True)

    auth.user = admin
    response = await client.post("/private/disable")
    assert response.status_code == 200
    assert response.json() == {"enabled": False, "items_rebuilt": 1}

    auth.user = stranger
    assert (await client.get(f"/content/{item.id}")).status_code == 200

    auth.user = admin
    response = await client.post("/private/enable")
    assert response.json() == {"enabled": True, "items_rebuilt": 1}

    auth.user = stranger
    assert (await client.get(f"/content/{item.id}")).status_code == 404


async def test_records_show_computed_and_stored(client, db, auth):
    await make_type(db)
    owner = await make_user(db, "owner")
    item = await make_item(db, owner, is_private=True)
    auth.user = await make_user(db, "admin", is_admin=True)

    response = await client.get(f"/private/records/{item.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["is_private"] is True
    assert [r["realm"] for r in body["computed"]] == ["private_view", "private_edit", "private_author"]
    assert body["computed"][2]["gid"] == owner.id
    assert {r["realm"] for r in body["stored"]} == {"private_view", "private_edit", "private_author"}


async def test_records_for_missing_item(client, db, auth):
    auth.user = await make_user(db, "admin", is_admin=True)

    response = await client.get("/private/records/404")

    assert response.status_code == 404


async def test_mark_private_bulk_action(client, db, auth):
    await make_type(db)
    author = await make_user(db, "author", PERM_MARK_PRIVATE, "edit own content")
    mine = await make_item(db, author)
    auth.user = author

    response = await client.post("/private/mark-private", json={"item_ids": [mine.id, 12345]})

    assert response.status_code == 200
    body = response.json()
    assert body["updated"] == [mine.id]
    assert body["missing"] == [12345]
    assert body["message"] == "1 item(s) marked private"


async def test_mark_public_requires_permission(client, db, auth):
    auth.user = await make_user(db, "plain")

    response = await client.post("/private/mark-public", json={"item_ids": [1]})

    assert response.status_code == 403
