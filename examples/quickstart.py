#!/usr/bin/env python3
"""
Task API Quickstart — Full task lifecycle in one script.

Logs in as the seeded admin → registers a user → creates a task for them →
user comments and completes it → admin deletes it.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running with demo data:
    TASKAPI_SEED_DEMO_DATA=true taskapi serve
"""

import sys
import uuid

import httpx

BASE = "http://localhost:8080/api"


def login(client: httpx.Client, username: str, password: str) -> dict:
    resp = client.post("/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, f"Login failed for {username}: {resp.text}"
    return resp.json()


def main():
    run_id = uuid.uuid4().hex[:6]
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        print("Start it with:  TASKAPI_SEED_DEMO_DATA=true taskapi serve")
        sys.exit(1)
    health = resp.json()
    print(f"  Server:   {health['server']}")
    print(f"  Database: {health['database']}")

    # ── Admin login ───────────────────────────────────────────────
    print("\n1. Logging in as admin...")
    admin = login(client, "admin", "admin123")
    admin_auth = {"Authorization": f"Bearer {admin['token']}"}
    print(f"   {admin['username']} ({admin['role']})")

    # ── Register a user ───────────────────────────────────────────
    print("\n2. Registering a new user...")
    username = f"demo-{run_id}"
    resp = client.post(
        "/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": "demo-pass"},
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    user = resp.json()
    user_auth = {"Authorization": f"Bearer {user['token']}"}
    print(f"   {user['username']} (id={user['id']}, role={user['role']})")

    # ── Admin creates a task for the user ─────────────────────────
    print("\n3. Creating task...")
    resp = client.post(
        "/tasks",
        json={
            "title": "Write the quarterly report",
            "description": "Numbers from finance are in the shared drive",
            "dueDate": "2030-01-15T17:00:00Z",
            "assignedToUserId": user["id"],
        },
        headers=admin_auth,
    )
    assert resp.status_code == 201, f"Failed: {resp.text}"
    task = resp.json()
    print(f"   Task #{task['id']}: {task['title']} → {task['assignedUser']['username']}")

    # ── User sees only their own tasks ────────────────────────────
    print("\n4. Listing tasks as the user...")
    resp = client.get("/tasks", headers=user_auth)
    titles = [t["title"] for t in resp.json()]
    print(f"   Visible: {titles}")

    # ── User comments and completes ───────────────────────────────
    print("\n5. Commenting and completing...")
    resp = client.post(
        f"/tasks/{task['id']}/comments", json={"content": "Started on this"}, headers=user_auth
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Comment by {resp.json()['username']}")

    update = {
        "title": task["title"],
        "description": task["description"],
        "dueDate": task["dueDate"],
        "isCompleted": True,
        "assignedToUserId": user["id"],
    }
    resp = client.put(f"/tasks/{task['id']}", json=update, headers=user_auth)
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Completed: {resp.json()['isCompleted']}")

    # ── Only admins delete ────────────────────────────────────────
    print("\n6. Deleting...")
    resp = client.delete(f"/tasks/{task['id']}", headers=user_auth)
    print(f"   As user:  {resp.status_code}")
    resp = client.delete(f"/tasks/{task['id']}", headers=admin_auth)
    print(f"   As admin: {resp.status_code}")

    print("\nDone.")


if __name__ == "__main__":
    main()
