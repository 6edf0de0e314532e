"""Note API tests — CRUD, pagination, ownership scoping.

Learn: Every test registers real users through the captcha flow and
uses their bearer tokens, so ownership checks run end to end.
"""

import uuid

import pytest

from conftest import bearer, register_token


async def _create(client, token, title, content=None):
    body = {"title": title}
    if content is not None:
        body["content"] = content
    r = await client.post("/api/notes", json=body, headers=bearer(token))
    assert r.status_code == 200, r.text
    return r.json()["data"]


# ═══════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_and_get_note(client, challenge_store):
    token = await register_token(client, challenge_store)
    note = await _create(client, token, "Groceries", "milk, eggs")

    assert note["title"] == "Groceries"
    assert note["content"] == "milk, eggs"
    assert {"id", "ownerId", "createdAt", "updatedAt"} <= note.keys()

    r = await client.get(f"/api/notes/{note['id']}", headers=bearer(token))
    assert r.status_code == 200
    assert r.json()["data"]["title"] == "Groceries"


@pytest.mark.asyncio
async def test_create_without_title_fails(client, challenge_store):
    token = await register_token(client, challenge_store)
    r = await client.post("/api/notes", json={"content": "x"}, headers=bearer(token))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "validation_error"

    r = await client.post("/api/notes", json={"title": "   "}, headers=bearer(token))
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_update_only_content_keeps_title(client, challenge_store):
    token = await register_token(client, challenge_store)
    note = await _create(client, token, "Plan", "v1")

    r = await client.put(
        f"/api/notes/{note['id']}", json={"content": "v2"}, headers=bearer(token)
    )
    assert r.status_code == 200
    updated = r.json()["data"]
    assert updated["title"] == "Plan"
    assert updated["content"] == "v2"


@pytest.mark.asyncio
async def test_update_only_title_keeps_content(client, challenge_store):
    token = await register_token(client, challenge_store)
    note = await _create(client, token, "Plan", "body")

    r = await client.put(
        f"/api/notes/{note['id']}", json={"title": "Renamed"}, headers=bearer(token)
    )
    assert r.json()["data"]["title"] == "Renamed"
    assert r.json()["data"]["content"] == "body"


@pytest.mark.asyncio
async def test_delete_note(client, challenge_store):
    token = await register_token(client, challenge_store)
    note = await _create(client, token, "Temp")

    r = await client.delete(f"/api/notes/{note['id']}", headers=bearer(token))
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["data"] is None

    r = await client.get(f"/api/notes/{note['id']}", headers=bearer(token))
    assert r.status_code == 404

    r = await client.delete(f"/api/notes/{note['id']}", headers=bearer(token))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_missing_note_returns_single_404(client, challenge_store):
    token = await register_token(client, challenge_store)
    r = await client.get(f"/api/notes/{uuid.uuid4()}", headers=bearer(token))
    assert r.status_code == 404
    assert r.json() == {
        "success": False,
        "message": "Note not found",
        "error": {"code": "not_found", "details": None},
    }


@pytest.mark.asyncio
async def test_malformed_note_id_is_not_found(client, challenge_store):
    token = await register_token(client, challenge_store)
    r = await client.get("/api/notes/not-a-uuid", headers=bearer(token))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_notes_require_token(client):
    r = await client.get("/api/notes")
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "token_missing"

    r = await client.post("/api/notes", json={"title": "x"}, headers=bearer("junk"))
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "token_invalid"


# ═══════════════════════════════════════════════════════════
# Ownership
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_other_users_note_is_not_found(client, challenge_store):
    alice = await register_token(client, challenge_store)
    bob = await register_token(client, challenge_store)
    note = await _create(client, alice, "Alice's secret")
    url = f"/api/notes/{note['id']}"

    missing = await client.get(f"/api/notes/{uuid.uuid4()}", headers=bearer(bob))

    r = await client.get(url, headers=bearer(bob))
    assert r.status_code == 404
    assert r.json() == missing.json()  # indistinguishable from a missing id

    r = await client.put(url, json={"title": "pwned"}, headers=bearer(bob))
    assert r.status_code == 404

    r = await client.delete(url, headers=bearer(bob))
    assert r.status_code == 404

    # Alice's note is untouched
    r = await client.get(url, headers=bearer(alice))
    assert r.status_code == 200
    assert r.json()["data"]["title"] == "Alice's secret"


@pytest.mark.asyncio
async def test_list_only_returns_own_notes(client, challenge_store):
    alice = await register_token(client, challenge_store)
    bob = await register_token(client, challenge_store)
    await _create(client, alice, "a1")
    await _create(client, bob, "b1")
    await _create(client, bob, "b2")

    r = await client.get("/api/notes", headers=bearer(alice))
    data = r.json()["data"]
    assert [n["title"] for n in data["notes"]] == ["a1"]
    assert data["pagination"]["totalNotes"] == 1


# ═══════════════════════════════════════════════════════════
# Pagination
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_pagination_newest_first(client, challenge_store):
    token = await register_token(client, challenge_store)
    for i in range(15):
        await _create(client, token, f"note-{i}")

    r = await client.get("/api/notes?limit=10", headers=bearer(token))
    page1 = r.json()["data"]
    assert page1["pagination"] == {
        "page": 1,
        "limit": 10,
        "totalNotes": 15,
        "totalPages": 2,
    }
    assert [n["title"] for n in page1["notes"]] == [f"note-{i}" for i in range(14, 4, -1)]

    r = await client.get("/api/notes?page=2&limit=10", headers=bearer(token))
    page2 = r.json()["data"]
    assert page2["pagination"]["page"] == 2
    assert [n["title"] for n in page2["notes"]] == [f"note-{i}" for i in range(4, -1, -1)]


@pytest.mark.asyncio
async def test_pagination_defaults_for_bad_params(client, challenge_store):
    token = await register_token(client, challenge_store)
    await _create(client, token, "only")

    r = await client.get("/api/notes?page=abc&limit=-3", headers=bearer(token))
    assert r.status_code == 200
    pagination = r.json()["data"]["pagination"]
    assert pagination["page"] == 1
    assert pagination["limit"] == 10
    assert pagination["totalPages"] == 1


@pytest.mark.asyncio
async def test_empty_list(client, challenge_store):
    token = await register_token(client, challenge_store)
    r = await client.get("/api/notes", headers=bearer(token))
    data = r.json()["data"]
    assert data["notes"] == []
    assert data["pagination"]["totalNotes"] == 0
    assert data["pagination"]["totalPages"] == 0


@pytest.mark.asyncio
async def test_limit_is_capped(client, challenge_store):
    token = await register_token(client, challenge_store)
    r = await client.get("/api/notes?limit=5000", headers=bearer(token))
    assert r.json()["data"]["pagination"]["limit"] == 100
