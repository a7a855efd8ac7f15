"""
Integration tests for admin pickup listing and cursor pagination.
"""

import pytest

from backend.app.db.pagination import InvalidCursorError, decode_cursor, encode_cursor


async def _collect(client, headers, params):
    """Walk every page, returning (ids, page_count)."""
    ids, pages, cursor = [], 0, None
    while True:
        query = dict(params)
        if cursor:
            query["cursor"] = cursor
        response = await client.get("/v1/pickups", params=query, headers=headers)
        assert response.status_code == 200, response.text
        body = response.json()
        ids.extend(p["id"] for p in body["pickups"])
        pages += 1
        cursor = body.get("nextCursor")
        if not cursor:
            return ids, pages


def test_cursor_roundtrip_and_rejection():
    assert decode_cursor(encode_cursor(42)) == 42
    for token in ("not-base64!", encode_cursor(-1), "eyJmb28iOjF9"):
        with pytest.raises(InvalidCursorError):
            decode_cursor(token)


@pytest.mark.asyncio
async def test_status_filter_returns_only_matching(client, create_pickup, publish_pickup, admin_headers):
    pending_one = await create_pickup()
    available_one = await publish_pickup()
    await create_pickup()
    available_two = await publish_pickup()

    params = {"status": "available"}
    first = await client.get("/v1/pickups", params=params, headers=admin_headers)
    second = await client.get("/v1/pickups", params=params, headers=admin_headers)
    assert first.status_code == 200
    ids = [p["id"] for p in first.json()["pickups"]]
    assert ids == [available_one["id"], available_two["id"]]
    assert ids == [p["id"] for p in second.json()["pickups"]]
    assert "nextCursor" not in first.json()

    response = await client.get(
        "/v1/pickups", params=[("status", "available"), ("status", "pending")], headers=admin_headers
    )
    listed = {p["id"] for p in response.json()["pickups"]}
    assert pending_one["id"] in listed
    assert len(listed) == 4


@pytest.mark.asyncio
async def test_pagination_walks_every_record_once(client, create_pickup, admin_headers):
    created = [(await create_pickup(location=f"{n} Main St"))["id"] for n in range(7)]

    ids, pages = await _collect(client, admin_headers, {"limit": 3})
    assert ids == created
    assert pages == 3

    ids, _ = await _collect(client, admin_headers, {"limit": 3, "reverse": "true"})
    assert ids == list(reversed(created))


@pytest.mark.asyncio
async def test_cursor_is_stable_under_inserts(client, create_pickup, admin_headers):
    created = [(await create_pickup())["id"] for _ in range(4)]

    response = await client.get("/v1/pickups", params={"limit": 2}, headers=admin_headers)
    body = response.json()
    assert [p["id"] for p in body["pickups"]] == created[:2]

    newcomer = (await create_pickup())["id"]

    response = await client.get(
        "/v1/pickups", params={"limit": 10, "cursor": body["nextCursor"]}, headers=admin_headers
    )
    assert [p["id"] for p in response.json()["pickups"]] == created[2:] + [newcomer]


@pytest.mark.asyncio
async def test_requested_time_range_is_inclusive(client, create_pickup, admin_headers):
    early = await create_pickup(requestedTime="2023-04-01T08:00:00Z")
    middle = await create_pickup(requestedTime="2023-04-01T10:00:00Z")
    late = await create_pickup(requestedTime="2023-04-01T12:00:00+00:00")

    response = await client.get(
        "/v1/pickups",
        params={
            "startRequestedTime": "2023-04-01T10:00:00Z",
            "endRequestedTime": "2023-04-01T12:00:00Z",
        },
        headers=admin_headers,
    )
    ids = [p["id"] for p in response.json()["pickups"]]
    assert ids == [middle["id"], late["id"]]
    assert early["id"] not in ids


@pytest.mark.asyncio
async def test_listing_errors(client, user_headers, driver_headers, admin_headers):
    response = await client.get("/v1/pickups", headers=user_headers)
    assert response.status_code == 403
    response = await client.get("/v1/pickups", headers=driver_headers)
    assert response.status_code == 403

    response = await client.get("/v1/pickups", params={"cursor": "garbage"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid input: cursor"

    response = await client.get("/v1/pickups", params={"limit": 101}, headers=admin_headers)
    assert response.status_code == 400
    assert "limit" in response.json()["message"]

    response = await client.get("/v1/pickups", params={"status": "lost"}, headers=admin_headers)
    assert response.status_code == 400
    assert "status" in response.json()["message"]
