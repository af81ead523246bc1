"""Task API tests — CRUD plus admin-vs-owner access control.

Learn: These tests drive the real auth pipeline: every request carries a
signed bearer token, and the access policy decides from the identity in it.
Users (see conftest): admin=1 (Admin), alice=2 (User), bob=3 (User).

Pattern: test_<verb>_<noun>_<scenario>
"""

import pytest
from sqlalchemy import select

from conftest import bearer, headers_for
from taskapi.auth.identity import Role
from taskapi.db.models import Task

DUE = "2030-06-01T09:30:00Z"


def task_body(**overrides) -> dict:
    body = {
        "title": "Write docs",
        "description": "Document every endpoint",
        "dueDate": DUE,
        "isCompleted": False,
        "assignedToUserId": None,
    }
    body.update(overrides)
    return body


@pytest.fixture
async def alice_task(client, admin, alice):
    r = await client.post(
        "/api/tasks",
        json=task_body(title="Alice's task", assignedToUserId=alice.id),
        headers=headers_for(admin),
    )
    assert r.status_code == 201
    return r.json()


@pytest.fixture
async def bob_task(client, admin, bob):
    r = await client.post(
        "/api/tasks",
        json=task_body(title="Bob's task", assignedToUserId=bob.id),
        headers=headers_for(admin),
    )
    assert r.status_code == 201
    return r.json()


# ═══════════════════════════════════════════════════════════
# Authentication
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/api/tasks"),
        ("GET", "/api/tasks/1"),
        ("GET", "/api/tasks/user/1"),
        ("POST", "/api/tasks"),
        ("PUT", "/api/tasks/1"),
        ("DELETE", "/api/tasks/1"),
        ("GET", "/api/tasks/1/comments"),
        ("POST", "/api/tasks/1/comments"),
    ],
)
async def test_task_routes_require_token(client, method, path):
    r = await client.request(method, path, json=task_body())
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_admin_creates_task_for_another_user(client, admin, alice):
    """Admin (id=1) assigns a task to user 2 → 201 with Location header."""
    r = await client.post(
        "/api/tasks",
        json=task_body(assignedToUserId=alice.id),
        headers=headers_for(admin),
    )
    assert r.status_code == 201
    task = r.json()
    assert task["assignedToUserId"] == 2
    assert task["assignedUser"] == {
        "id": 2,
        "username": "alice",
        "email": "alice@example.com",
        "role": "User",
    }
    assert r.headers["Location"].endswith(f"/api/tasks/{task['id']}")


@pytest.mark.asyncio
async def test_non_admin_cannot_assign_to_someone_else(client, admin, alice):
    """A non-admin user 1 assigning to user 2 → 403."""
    r = await client.post(
        "/api/tasks",
        json=task_body(assignedToUserId=2),
        headers=bearer(1, Role.USER),
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_user_creates_own_task(client, alice):
    r = await client.post(
        "/api/tasks",
        json=task_body(assignedToUserId=alice.id),
        headers=headers_for(alice),
    )
    assert r.status_code == 201
    assert r.json()["assignedToUserId"] == alice.id


@pytest.mark.asyncio
async def test_user_cannot_create_unassigned_task(client, alice):
    r = await client.post("/api/tasks", json=task_body(), headers=headers_for(alice))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_admin_creates_unassigned_task(client, admin):
    r = await client.post("/api/tasks", json=task_body(), headers=headers_for(admin))
    assert r.status_code == 201
    assert r.json()["assignedToUserId"] is None
    assert r.json()["assignedUser"] is None


@pytest.mark.asyncio
async def test_create_task_unknown_assignee(client, admin):
    r = await client.post(
        "/api/tasks",
        json=task_body(assignedToUserId=4242),
        headers=headers_for(admin),
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_create_task_validates_title(client, admin):
    r = await client.post(
        "/api/tasks", json=task_body(title=""), headers=headers_for(admin)
    )
    assert r.status_code == 422

    r = await client.post(
        "/api/tasks", json=task_body(title="x" * 201), headers=headers_for(admin)
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_create_task_requires_due_date(client, admin):
    body = task_body()
    del body["dueDate"]
    r = await client.post("/api/tasks", json=body, headers=headers_for(admin))
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_create_accepts_snake_case_fields(client, admin, alice):
    r = await client.post(
        "/api/tasks",
        json={"title": "Snake", "due_date": DUE, "assigned_to_user_id": alice.id},
        headers=headers_for(admin),
    )
    assert r.status_code == 201
    assert r.json()["assignedToUserId"] == alice.id


@pytest.mark.asyncio
async def test_create_then_get_round_trip(client, admin, alice):
    body = task_body(
        title="Round trip",
        description="Same on the way back",
        isCompleted=True,
        assignedToUserId=alice.id,
    )
    created = (
        await client.post("/api/tasks", json=body, headers=headers_for(admin))
    ).json()

    r = await client.get(f"/api/tasks/{created['id']}", headers=headers_for(alice))
    assert r.status_code == 200
    fetched = r.json()
    for field in ("title", "description", "dueDate", "isCompleted", "assignedToUserId"):
        assert fetched[field] == created[field]
    assert fetched["title"] == "Round trip"
    assert fetched["isCompleted"] is True
    assert fetched["comments"] == []


# ═══════════════════════════════════════════════════════════
# List
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_admin_lists_all_tasks(client, admin, alice_task, bob_task):
    r = await client.get("/api/tasks", headers=headers_for(admin))
    assert r.status_code == 200
    assert {t["id"] for t in r.json()} == {alice_task["id"], bob_task["id"]}


@pytest.mark.asyncio
async def test_user_lists_only_own_tasks(client, alice, alice_task, bob_task):
    r = await client.get("/api/tasks", headers=headers_for(alice))
    assert r.status_code == 200
    tasks = r.json()
    assert [t["id"] for t in tasks] == [alice_task["id"]]
    assert all(t["assignedToUserId"] == alice.id for t in tasks)


@pytest.mark.asyncio
async def test_list_tasks_by_user_as_self(client, alice, alice_task, bob_task):
    r = await client.get(f"/api/tasks/user/{alice.id}", headers=headers_for(alice))
    assert r.status_code == 200
    assert [t["id"] for t in r.json()] == [alice_task["id"]]


@pytest.mark.asyncio
async def test_list_tasks_by_other_user_forbidden(client, admin, alice):
    """Non-admin user 1 requesting /tasks/user/2 → 403."""
    r = await client.get("/api/tasks/user/2", headers=bearer(1, Role.USER))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_admin_lists_tasks_by_user(client, admin, bob, alice_task, bob_task):
    r = await client.get(f"/api/tasks/user/{bob.id}", headers=headers_for(admin))
    assert r.status_code == 200
    assert [t["id"] for t in r.json()] == [bob_task["id"]]


# ═══════════════════════════════════════════════════════════
# Get
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_owner_gets_task(client, alice, alice_task):
    r = await client.get(f"/api/tasks/{alice_task['id']}", headers=headers_for(alice))
    assert r.status_code == 200
    assert r.json()["title"] == "Alice's task"


@pytest.mark.asyncio
async def test_other_user_cannot_get_task(client, bob, alice_task):
    r = await client.get(f"/api/tasks/{alice_task['id']}", headers=headers_for(bob))
    assert r.status_code == 403


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [Role.USER, Role.ADMIN])
async def test_get_missing_task_is_404_for_everyone(client, role):
    """Absence is reported before ownership, whoever asks."""
    r = await client.get("/api/tasks/999", headers=bearer(5, role))
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════
# Update
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_owner_updates_task(client, alice, alice_task):
    r = await client.put(
        f"/api/tasks/{alice_task['id']}",
        json=task_body(
            title="Done now",
            description=None,
            dueDate="2031-01-01T00:00:00Z",
            isCompleted=True,
            assignedToUserId=alice.id,
        ),
        headers=headers_for(alice),
    )
    assert r.status_code == 200
    task = r.json()
    assert task["title"] == "Done now"
    assert task["description"] is None
    assert task["isCompleted"] is True
    assert task["dueDate"].startswith("2031-01-01T00:00:00")


@pytest.mark.asyncio
async def test_update_is_full_replace(client, admin, alice_task):
    """Omitted optional fields are reset, including the owner."""
    r = await client.put(
        f"/api/tasks/{alice_task['id']}",
        json={"title": "Reset", "dueDate": DUE},
        headers=headers_for(admin),
    )
    assert r.status_code == 200
    task = r.json()
    assert task["description"] is None
    assert task["isCompleted"] is False
    assert task["assignedToUserId"] is None


@pytest.mark.asyncio
async def test_admin_reassigns_task(client, admin, bob, alice_task):
    r = await client.put(
        f"/api/tasks/{alice_task['id']}",
        json=task_body(assignedToUserId=bob.id),
        headers=headers_for(admin),
    )
    assert r.status_code == 200
    assert r.json()["assignedUser"]["username"] == "bob"


@pytest.mark.asyncio
async def test_other_user_cannot_update_task(client, bob, alice_task):
    r = await client.put(
        f"/api/tasks/{alice_task['id']}",
        json=task_body(assignedToUserId=bob.id),
        headers=headers_for(bob),
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_update_missing_task(client, alice):
    r = await client.put("/api/tasks/999", json=task_body(), headers=headers_for(alice))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_update_unknown_assignee(client, admin, alice_task):
    r = await client.put(
        f"/api/tasks/{alice_task['id']}",
        json=task_body(assignedToUserId=4242),
        headers=headers_for(admin),
    )
    assert r.status_code == 404


# ═══════════════════════════════════════════════════════════
# Delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_admin_deletes_task(client, db_session, admin, alice_task):
    r = await client.delete(f"/api/tasks/{alice_task['id']}", headers=headers_for(admin))
    assert r.status_code == 204
    assert r.content == b""

    r = await client.get(f"/api/tasks/{alice_task['id']}", headers=headers_for(admin))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_owner_cannot_delete_task(client, db_session, alice, alice_task):
    r = await client.delete(f"/api/tasks/{alice_task['id']}", headers=headers_for(alice))
    assert r.status_code == 403

    still_there = await db_session.get(Task, alice_task["id"])
    assert still_there is not None


@pytest.mark.asyncio
async def test_non_admin_delete_does_not_touch_store(client, monkeypatch):
    """Role is checked before the task is looked up or removed."""
    from taskapi.services.task_service import TaskService

    async def boom(self, task_id):
        raise AssertionError("store must not be called")

    monkeypatch.setattr(TaskService, "delete_task", boom)
    monkeypatch.setattr(TaskService, "get_task", boom)

    r = await client.delete("/api/tasks/999", headers=bearer(7, Role.USER))
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_admin_deletes_missing_task(client, admin):
    r = await client.delete("/api/tasks/999", headers=headers_for(admin))
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_delete_leaves_other_tasks(client, db_session, admin, alice_task, bob_task):
    await client.delete(f"/api/tasks/{alice_task['id']}", headers=headers_for(admin))
    ids = (await db_session.execute(select(Task.id))).scalars().all()
    assert ids == [bob_task["id"]]


# ═══════════════════════════════════════════════════════════
# Id bounds
# ═══════════════════════════════════════════════════════════

HUGE_ID = 99999999999999999999


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", f"/api/tasks/{HUGE_ID}"),
        ("GET", f"/api/tasks/user/{HUGE_ID}"),
        ("PUT", f"/api/tasks/{HUGE_ID}"),
        ("DELETE", f"/api/tasks/{HUGE_ID}"),
        ("GET", f"/api/tasks/{HUGE_ID}/comments"),
        ("POST", f"/api/tasks/{HUGE_ID}/comments"),
        ("GET", "/api/tasks/0"),
    ],
)
async def test_out_of_range_path_id_is_a_validation_error(client, admin, method, path):
    body = {"content": "hi"} if path.endswith("/comments") else task_body()
    r = await client.request(method, path, json=body, headers=headers_for(admin))
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_out_of_range_assignee_is_a_validation_error(client, admin):
    r = await client.post(
        "/api/tasks",
        json=task_body(assignedToUserId=HUGE_ID),
        headers=headers_for(admin),
    )
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_largest_id_is_just_not_found(client, admin):
    r = await client.get(f"/api/tasks/{2**63 - 1}", headers=headers_for(admin))
    assert r.status_code == 404
