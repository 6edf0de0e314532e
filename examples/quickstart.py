#!/usr/bin/env python3
"""
Notekeep Quickstart — account + notes lifecycle in one script.

Fetches a captcha → you solve it → register → create notes → page
through them → update → delete → read the profile.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: notekeep serve  (http://localhost:5050)
"""

import os
import sys
import tempfile
import uuid

import httpx

BASE = os.environ.get("NOTEKEEP_API_URL", "http://localhost:5050").rstrip("/")


def solve_captcha(client: httpx.Client) -> str:
    """Save the captcha PNG to a temp file and ask for the answer."""
    resp = client.get("/api/auth/captcha")
    if resp.status_code != 200:
        print(f"Captcha failed: {resp.status_code} {resp.text}")
        sys.exit(1)
    fd, path = tempfile.mkstemp(suffix=".png", prefix="notekeep-captcha-")
    with os.fdopen(fd, "wb") as f:
        f.write(resp.content)
    return input(f"   Open {path} and type the answer: ").strip()


def main():
    run_id = uuid.uuid4().hex[:6]
    # The client keeps the session cookie the captcha is bound to
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        sys.exit(1)
    health = resp.json()["data"]
    print(f"  Status:   {health['status']}")
    print(f"  Database: {health['dbStatus']}")
    print(f"  Redis:    {health['redisStatus']}")

    # ── Register ──────────────────────────────────────────────────
    username = f"demo_{run_id}"
    print(f"\n1. Registering {username}...")
    resp = client.post(
        "/api/auth/register",
        json={
            "username": username,
            "password": "Demo1234",
            "fullName": "Demo User",
            "captcha": solve_captcha(client),
        },
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    client.headers["Authorization"] = f"Bearer {resp.json()['data']['token']}"
    print("   Registered, token received")

    # ── Create notes ──────────────────────────────────────────────
    print("\n2. Creating 12 notes...")
    for i in range(12):
        resp = client.post("/api/notes", json={"title": f"Note {i}", "content": "hello"})
        assert resp.status_code == 200, f"Failed: {resp.text}"
    newest = resp.json()["data"]

    # ── Page through them ─────────────────────────────────────────
    print("\n3. Listing, 5 per page...")
    page = 1
    while True:
        resp = client.get("/api/notes", params={"page": page, "limit": 5})
        data = resp.json()["data"]
        titles = ", ".join(n["title"] for n in data["notes"])
        print(f"   Page {page}/{data['pagination']['totalPages']}: {titles}")
        if page >= data["pagination"]["totalPages"]:
            break
        page += 1

    # ── Update + delete ───────────────────────────────────────────
    print(f"\n4. Updating {newest['title']}...")
    resp = client.put(f"/api/notes/{newest['id']}", json={"content": "updated"})
    note = resp.json()["data"]
    print(f"   {note['title']}: {note['content']}")

    print("\n5. Deleting it...")
    resp = client.delete(f"/api/notes/{newest['id']}")
    print(f"   {resp.json()['message']}")

    resp = client.get(f"/api/notes/{newest['id']}")
    print(f"   Fetch after delete: {resp.status_code} {resp.json()['message']}")

    # ── Profile ───────────────────────────────────────────────────
    print("\n6. Updating profile bio...")
    resp = client.put("/api/user/profile", json={"bio": "Written by the quickstart"})
    profile = resp.json()["data"]["profile"]
    print(f"   {profile['fullName']}: {profile['bio']}")

    print("\nDone.")


if __name__ == "__main__":
    main()
