"""
Task API Tests
==============

CRUD, listing filters, archive/restore and permanent deletion.
"""

import uuid

import pytest
from httpx import AsyncClient

from tests.conftest import register_user


async def _create(client: AsyncClient, headers: dict, **fields) -> dict:
    payload = {"title": "Write report", **fields}
    response = await client.post("/api/tasks", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_task_defaults(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/tasks",
        json={"title": "  Buy milk  "},
        headers=auth_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Task created successfully"
    task = body["data"]
    assert task["title"] == "Buy milk"
    assert task["status"] == "To do"
    assert task["priority"] == "medium"
    assert task["tags"] == []
    assert task["isArchived"] is False
    assert task["dueDate"] is None
    assert task["monthlyGoalId"] is None


@pytest.mark.asyncio
async def test_create_task_rejects_blank_title(client: AsyncClient, auth_headers: dict):
    response = await client.post("/api/tasks", json={"title": "   "}, headers=auth_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_task_rejects_unknown_status(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/tasks",
        json={"title": "Task", "status": "Someday"},
        headers=auth_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_task(client: AsyncClient, auth_headers: dict):
    created = await _create(client, auth_headers, project="Work", tags=["a", "b"])

    response = await client.get(f"/api/tasks/{created['id']}", headers=auth_headers)

    assert response.status_code == 200
    task = response.json()["data"]
    assert task["id"] == created["id"]
    assert task["project"] == "Work"
    assert task["tags"] == ["a", "b"]


@pytest.mark.asyncio
async def test_get_missing_task_is_404(client: AsyncClient, auth_headers: dict):
    response = await client.get(f"/api/tasks/{uuid.uuid4()}", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "TASK_001"


@pytest.mark.asyncio
async def test_invalid_task_id_is_422(client: AsyncClient, auth_headers: dict):
    response = await client.get("/api/tasks/not-a-uuid", headers=auth_headers)

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_tasks_are_scoped_to_owner(client: AsyncClient):
    alice = await register_user(client, email="alice@example.com")
    bob = await register_user(client, email="bob@example.com")
    task = await _create(client, alice["headers"])

    get = await client.get(f"/api/tasks/{task['id']}", headers=bob["headers"])
    assert get.status_code == 404

    put = await client.put(
        f"/api/tasks/{task['id']}",
        json={"title": "Stolen"},
        headers=bob["headers"],
    )
    assert put.status_code == 404

    delete = await client.delete(f"/api/tasks/{task['id']}", headers=bob["headers"])
    assert delete.status_code == 404

    listing = await client.get("/api/tasks", headers=bob["headers"])
    assert listing.json()["data"] == []


@pytest.mark.asyncio
async def test_update_merges_fields(client: AsyncClient, auth_headers: dict):
    created = await _create(
        client,
        auth_headers,
        description="draft",
        priority="low",
        dueDate="2026-11-01T09:00:00Z",
    )

    response = await client.put(
        f"/api/tasks/{created['id']}",
        json={"status": "In progress", "priority": "high"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    task = response.json()["data"]
    assert task["status"] == "In progress"
    assert task["priority"] == "high"
    assert task["description"] == "draft"
    assert task["dueDate"].startswith("2026-11-01T09:00:00")


@pytest.mark.asyncio
async def test_update_can_clear_due_date(client: AsyncClient, auth_headers: dict):
    created = await _create(client, auth_headers, dueDate="2026-11-01T09:00:00Z")

    response = await client.put(
        f"/api/tasks/{created['id']}",
        json={"dueDate": None, "title": None},
        headers=auth_headers,
    )

    assert response.status_code == 200
    task = response.json()["data"]
    assert task["dueDate"] is None
    assert task["title"] == "Write report"


@pytest.mark.asyncio
async def test_list_orders_by_due_date_then_priority(client: AsyncClient, auth_headers: dict):
    await _create(client, auth_headers, title="undated")
    await _create(client, auth_headers, title="later", dueDate="2026-12-01T00:00:00Z")
    await _create(client, auth_headers, title="soon-low", priority="low", dueDate="2026-11-01T00:00:00Z")
    await _create(client, auth_headers, title="soon-high", priority="high", dueDate="2026-11-01T00:00:00Z")

    response = await client.get("/api/tasks", headers=auth_headers)

    assert response.status_code == 200
    titles = [t["title"] for t in response.json()["data"]]
    assert titles == ["soon-high", "soon-low", "later", "undated"]


@pytest.mark.asyncio
async def test_list_filters(client: AsyncClient, auth_headers: dict):
    await _create(client, auth_headers, title="Plan sprint", project="Work")
    await _create(client, auth_headers, title="Gym", project="Health", status="Done")
    await _create(client, auth_headers, title="plan holiday", project="Home")

    search = await client.get("/api/tasks", params={"q": "PLAN"}, headers=auth_headers)
    assert sorted(t["title"] for t in search.json()["data"]) == ["Plan sprint", "plan holiday"]

    by_status = await client.get("/api/tasks", params={"status": "Done"}, headers=auth_headers)
    assert [t["title"] for t in by_status.json()["data"]] == ["Gym"]

    by_project = await client.get("/api/tasks", params={"project": "Work"}, headers=auth_headers)
    assert [t["title"] for t in by_project.json()["data"]] == ["Plan sprint"]


@pytest.mark.asyncio
async def test_list_search_treats_wildcards_literally(client: AsyncClient, auth_headers: dict):
    await _create(client, auth_headers, title="100% done")
    await _create(client, auth_headers, title="1000 things")

    response = await client.get("/api/tasks", params={"q": "0%"}, headers=auth_headers)

    assert [t["title"] for t in response.json()["data"]] == ["100% done"]


@pytest.mark.asyncio
async def test_list_pagination(client: AsyncClient, auth_headers: dict):
    for i in range(5):
        await _create(client, auth_headers, title=f"Task {i}")

    response = await client.get("/api/tasks", params={"page": 2, "limit": 2}, headers=auth_headers)

    body = response.json()
    assert len(body["data"]) == 2
    assert body["pagination"]["total_items"] == 5
    assert body["pagination"]["total_pages"] == 3
    assert body["pagination"]["has_next"] is True
    assert body["pagination"]["has_previous"] is True


@pytest.mark.asyncio
async def test_archive_and_restore(client: AsyncClient, auth_headers: dict):
    task = await _create(client, auth_headers)

    archived = await client.delete(f"/api/tasks/{task['id']}", headers=auth_headers)
    assert archived.status_code == 200
    assert archived.json()["message"] == "Task archived"
    assert archived.json()["data"]["isArchived"] is True

    active = await client.get("/api/tasks", headers=auth_headers)
    assert active.json()["data"] == []

    archive_list = await client.get("/api/tasks", params={"archived": "true"}, headers=auth_headers)
    assert [t["id"] for t in archive_list.json()["data"]] == [task["id"]]

    again = await client.delete(f"/api/tasks/{task['id']}", headers=auth_headers)
    assert again.status_code == 400
    assert again.json()["error"]["code"] == "TASK_002"

    restored = await client.post(f"/api/tasks/{task['id']}/restore", headers=auth_headers)
    assert restored.status_code == 200
    assert restored.json()["data"]["isArchived"] is False

    active = await client.get("/api/tasks", headers=auth_headers)
    assert [t["id"] for t in active.json()["data"]] == [task["id"]]


@pytest.mark.asyncio
async def test_restore_active_task_is_400(client: AsyncClient, auth_headers: dict):
    task = await _create(client, auth_headers)

    response = await client.post(f"/api/tasks/{task['id']}/restore", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "TASK_003"


@pytest.mark.asyncio
async def test_hard_delete(client: AsyncClient, auth_headers: dict):
    task = await _create(client, auth_headers, title="Temporary")

    response = await client.delete(f"/api/tasks/{task['id']}/hard", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == task["id"]
    assert data["title"] == "Temporary"
    assert data["deletedAt"]

    gone = await client.get(f"/api/tasks/{task['id']}", headers=auth_headers)
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_hard_delete_via_query_flag(client: AsyncClient, auth_headers: dict):
    task = await _create(client, auth_headers)

    response = await client.delete(
        f"/api/tasks/{task['id']}",
        params={"hard": "true"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Task permanently deleted"

    archived = await client.get("/api/tasks", params={"archived": "true"}, headers=auth_headers)
    assert archived.json()["data"] == []
