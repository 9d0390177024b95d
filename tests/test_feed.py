"""
Tests for post creation and the paginated feeds.
"""
import base64
import json

import pytest

from liberty_api.domain.models import RequestType
from tests.fakes import connect


async def publish(client, headers, content, **extra):
    response = await client.post("/posts", json={"content": content, **extra}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_empty_public_square(client):
    response = await client.get("/feed/public-square")

    assert response.status_code == 200
    assert response.json() == {"items": [], "nextCursor": None}


@pytest.mark.asyncio
async def test_create_post_and_read_it_back(client, create_account):
    """Test a new post appears in the public square with its author."""
    account, headers = await create_account(firstName="Ada", username="ada")

    post = await publish(client, headers, "  Hello, Liberty!  ")
    assert post["content"] == "Hello, Liberty!"
    assert post["userId"] == account["id"]
    assert post["groupId"] is None

    feed = (await client.get("/feed/public-square")).json()
    assert [item["id"] for item in feed["items"]] == [post["id"]]
    item = feed["items"][0]
    assert item["author"] == {"id": account["id"], "username": "ada", "firstName": "Ada", "lastName": None}
    assert "relation" not in item


@pytest.mark.asyncio
async def test_create_post_requires_authentication(client, store):
    response = await client.post("/posts", json={"content": "hi"})

    assert response.status_code == 401
    assert store.posts == {}


@pytest.mark.asyncio
async def test_post_length_boundary(client, create_account, store):
    """Test 1000 characters are accepted and 1001 are not."""
    _, headers = await create_account()

    accepted = await client.post("/posts", json={"content": "a" * 1000}, headers=headers)
    rejected = await client.post("/posts", json={"content": "a" * 1001}, headers=headers)

    assert accepted.status_code == 201
    assert rejected.status_code == 400
    assert len(store.posts) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", "\n\t"])
async def test_blank_posts_are_rejected(client, create_account, store, content):
    _, headers = await create_account()
    response = await client.post("/posts", json={"content": content}, headers=headers)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert store.posts == {}


@pytest.mark.asyncio
async def test_pagination_walks_every_post_once(client, create_account):
    """Test cursor pages cover all posts newest first without repeats."""
    _, headers = await create_account()
    created = [(await publish(client, headers, f"post {i}"))["id"] for i in range(5)]

    seen = []
    cursor = None
    pages = 0
    while True:
        params = {"take": 2}
        if cursor:
            params["cursor"] = cursor
        page = (await client.get("/feed/public-square", params=params)).json()
        seen.extend(item["id"] for item in page["items"])
        pages += 1
        cursor = page["nextCursor"]
        if cursor is None:
            break

    assert pages == 3
    assert seen == list(reversed(created))


@pytest.mark.asyncio
async def test_new_posts_do_not_shift_later_pages(client, create_account):
    """Test a post published between page reads is not duplicated or skipped."""
    _, headers = await create_account()
    created = [(await publish(client, headers, f"post {i}"))["id"] for i in range(4)]

    first = (await client.get("/feed/public-square", params={"take": 2})).json()
    await publish(client, headers, "late arrival")
    second = (await client.get(
        "/feed/public-square", params={"take": 2, "cursor": first["nextCursor"]}
    )).json()

    first_ids = [item["id"] for item in first["items"]]
    second_ids = [item["id"] for item in second["items"]]
    assert first_ids == [created[3], created[2]]
    assert second_ids == [created[1], created[0]]
    assert second["nextCursor"] is None


@pytest.mark.asyncio
async def test_default_page_size(client, create_account):
    _, headers = await create_account()
    for i in range(31):
        await publish(client, headers, f"post {i}")

    page = (await client.get("/feed/public-square")).json()

    assert len(page["items"]) == 30
    assert page["nextCursor"] is not None


@pytest.mark.asyncio
async def test_take_is_clamped(client, create_account):
    _, headers = await create_account()
    for i in range(3):
        await publish(client, headers, f"post {i}")

    smallest = (await client.get("/feed/public-square", params={"take": 0})).json()
    largest = (await client.get("/feed/public-square", params={"take": 5000})).json()

    assert len(smallest["items"]) == 1
    assert len(largest["items"]) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [
    {"cursor": "definitely-not-a-cursor"},
    {"cursor": "eyJmb28iOiAiYmFyIn0"},
    {"take": "many"},
])
async def test_bad_feed_parameters(client, params):
    response = await client.get("/feed/public-square", params=params)

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_invalid_optional_token_reads_anonymously(client, create_account):
    _, headers = await create_account()
    await publish(client, headers, "hello")

    response = await client.get("/feed/public-square", headers={"Authorization": "Bearer junk"})

    assert response.status_code == 200
    assert "relation" not in response.json()["items"][0]


@pytest.mark.asyncio
async def test_relation_tags_follow_the_connection_graph(client, create_account, store):
    """Test authenticated readers see how they relate to each author."""
    me, my_headers = await create_account()
    friend, friend_headers = await create_account()
    passerby, passerby_headers = await create_account()
    idol, idol_headers = await create_account()
    unknown, unknown_headers = await create_account()

    connect(store, me["id"], friend["id"], RequestType.ACQUAINTANCE)
    connect(store, passerby["id"], me["id"], RequestType.STRANGER)
    connect(store, me["id"], idol["id"], RequestType.FOLLOW)

    mine = await publish(client, my_headers, "mine")
    friends = await publish(client, friend_headers, "friend")
    passerbys = await publish(client, passerby_headers, "passerby")
    idols = await publish(client, idol_headers, "idol")
    unknowns = await publish(client, unknown_headers, "unknown")

    page = (await client.get("/feed/public-square", headers=my_headers)).json()
    relations = {item["id"]: item["relation"] for item in page["items"]}
    assert relations == {
        mine["id"]: "SELF",
        friends["id"]: "ACQUAINTANCE",
        passerbys["id"]: "STRANGER",
        idols["id"]: "FOLLOWING",
        unknowns["id"]: "NONE",
    }

    # Following is one-directional
    idol_view = (await client.get("/feed/public-square", headers=idol_headers)).json()
    idol_relations = {item["id"]: item["relation"] for item in idol_view["items"]}
    assert idol_relations[mine["id"]] == "NONE"


@pytest.mark.asyncio
async def test_relation_feed_only_includes_connected_authors(client, create_account, store):
    me, my_headers = await create_account()
    friend, friend_headers = await create_account()
    _, stranger_headers = await create_account()

    connect(store, friend["id"], me["id"], RequestType.ACQUAINTANCE)

    mine = await publish(client, my_headers, "mine")
    friends = await publish(client, friend_headers, "friend")
    await publish(client, stranger_headers, "not for me")

    response = await client.get("/feed", headers=my_headers)

    assert response.status_code == 200
    items = response.json()["items"]
    assert [(item["id"], item["relation"]) for item in items] == [
        (friends["id"], "ACQUAINTANCE"),
        (mine["id"], "SELF"),
    ]


@pytest.mark.asyncio
async def test_relation_feed_requires_authentication(client):
    response = await client.get("/feed")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_group_posts_require_membership(client, create_account):
    """Test posting into a group checks existence and membership."""
    _, owner_headers = await create_account()
    _, outsider_headers = await create_account()

    group = (await client.post(
        "/groups", json={"name": "Book Club", "groupType": "PUBLIC"}, headers=owner_headers
    )).json()

    inside = await client.post(
        "/posts", json={"content": "welcome", "groupId": group["id"]}, headers=owner_headers
    )
    outside = await client.post(
        "/posts", json={"content": "let me in", "groupId": group["id"]}, headers=outsider_headers
    )
    missing = await client.post(
        "/posts", json={"content": "anyone?", "groupId": 424242}, headers=owner_headers
    )

    assert inside.status_code == 201
    assert inside.json()["groupId"] == group["id"]
    assert outside.status_code == 403
    assert missing.status_code == 404

    public = (await client.get("/feed/public-square")).json()
    assert public["items"] == []


@pytest.mark.asyncio
@pytest.mark.parametrize("group_id", [0, -1, 2 ** 63, 10 ** 20])
async def test_out_of_range_group_ids_are_rejected(client, create_account, store, group_id):
    _, headers = await create_account()

    response = await client.post("/posts", json={"content": "hello", "groupId": group_id}, headers=headers)

    assert response.status_code == 400
    assert store.posts == {}


@pytest.mark.asyncio
async def test_cursor_with_overflowing_id_is_rejected(client):
    cursor = base64.urlsafe_b64encode(
        json.dumps({"createdAt": "2024-05-01T12:00:00+00:00", "id": 10 ** 20}).encode()
    ).decode().rstrip("=")

    response = await client.get("/feed/public-square", params={"cursor": cursor})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
