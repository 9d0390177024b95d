"""
Tests for group creation, listing and visibility.
"""
import pytest


@pytest.mark.asyncio
async def test_create_group_requires_authentication_before_validation(client, store):
    """Test an anonymous caller gets 401 even when the body is invalid."""
    groups_before = len(store.groups)
    response = await client.post("/groups", json={"name": "", "groupType": "nonsense"})

    assert response.status_code == 401
    assert len(store.groups) == groups_before


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/groups", "/posts", "/connections/request", "/block", "/unblock"])
async def test_broken_json_from_anonymous_caller_is_unauthorized(client, path):
    """Test a body that is not even JSON still yields 401 without a token."""
    response = await client.post(path, content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 401
    assert response.json()["error"] == "not_authenticated"
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"{not json", b"", b"[1, 2]"])
async def test_broken_json_from_signed_in_caller_is_bad_request(client, create_account, store, body):
    _, headers = await create_account()
    groups_before = len(store.groups)

    response = await client.post(
        "/groups", content=body, headers={**headers, "Content-Type": "application/json"}
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert len(store.groups) == groups_before


@pytest.mark.asyncio
@pytest.mark.parametrize("group_id", ["0", "-3", "9223372036854775808", "99999999999999999999"])
async def test_out_of_range_group_ids_are_rejected(client, create_account, group_id):
    _, headers = await create_account()

    response = await client.get(f"/groups/{group_id}", headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_create_group(client, create_account, store):
    account, headers = await create_account()

    response = await client.post(
        "/groups",
        json={"name": "  Book Club ", "groupType": "public", "description": "Monthly reads"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert isinstance(body["id"], int)
    assert body["name"] == "Book Club"
    assert body["groupType"] == "PUBLIC"
    assert body["adminId"] == account["id"]
    assert body["displayLabel"] == "Book Club public assembly room"
    assert (account["id"], body["id"]) in store.members


@pytest.mark.asyncio
async def test_private_group_label(client, create_account):
    _, headers = await create_account()

    response = await client.post("/groups", json={"name": "Inner", "groupType": "Private"}, headers=headers)

    assert response.json()["displayLabel"] == "Inner private assembly room"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [
    {"name": "Club", "groupType": "SECRET"},
    {"name": "Club", "groupType": "PERSONAL"},
    {"name": "   ", "groupType": "PUBLIC"},
    {"name": "x" * 101, "groupType": "PUBLIC"},
    {"groupType": "PUBLIC"},
    {"name": "Club"},
])
async def test_create_group_rejects_invalid_input(client, create_account, store, payload):
    _, headers = await create_account()
    groups_before = len(store.groups)

    response = await client.post("/groups", json=payload, headers=headers)

    assert response.status_code == 400
    assert len(store.groups) == groups_before


@pytest.mark.asyncio
async def test_list_groups_newest_first(client, create_account):
    """Test the listing holds created groups and the Social Circle."""
    _, headers = await create_account()
    created = await client.post("/groups", json={"name": "Runners", "groupType": "PUBLIC"}, headers=headers)

    response = await client.get("/groups", headers=headers)

    assert response.status_code == 200
    groups = response.json()
    assert isinstance(groups, list)
    assert groups[0]["id"] == created.json()["id"]
    assert groups[1]["groupType"] == "PERSONAL"
    assert groups[1]["displayLabel"] == "Social Circle"


@pytest.mark.asyncio
async def test_list_groups_excludes_other_accounts_groups(client, create_account):
    _, mine = await create_account()
    _, theirs = await create_account()
    await client.post("/groups", json={"name": "Theirs", "groupType": "PUBLIC"}, headers=theirs)

    groups = (await client.get("/groups", headers=mine)).json()

    assert [g["name"] for g in groups] == ["Social Circle"]


@pytest.mark.asyncio
async def test_list_groups_requires_authentication(client):
    response = await client.get("/groups")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_group_visibility(client, create_account, store):
    """Test who may open public, private and personal groups."""
    owner, owner_headers = await create_account()
    _, other_headers = await create_account()

    public = (await client.post("/groups", json={"name": "Open", "groupType": "PUBLIC"}, headers=owner_headers)).json()
    private = (await client.post("/groups", json={"name": "Closed", "groupType": "PRIVATE"}, headers=owner_headers)).json()
    personal_id = next(
        g.id for g in store.groups.values()
        if g.admin_id == owner["id"] and g.group_type.value == "PERSONAL"
    )

    assert (await client.get(f"/groups/{public['id']}", headers=other_headers)).status_code == 200
    assert (await client.get(f"/groups/{private['id']}", headers=other_headers)).status_code == 403
    assert (await client.get(f"/groups/{private['id']}", headers=owner_headers)).status_code == 200
    assert (await client.get(f"/groups/{personal_id}", headers=other_headers)).status_code == 404
    assert (await client.get(f"/groups/{personal_id}", headers=owner_headers)).status_code == 200
    assert (await client.get("/groups/999999", headers=owner_headers)).status_code == 404
