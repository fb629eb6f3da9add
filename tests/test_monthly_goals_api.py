"""
Monthly Goals API Tests
=======================

Goal CRUD, immediate task generation, stats refresh and the progress
report.
"""

import uuid

import pytest
from httpx import AsyncClient

from tests.conftest import register_user

# Due every day, so creation always generates today's task
EVERY_DAY = {"weekdays": [0, 1, 2, 3, 4, 5, 6], "includeWeekends": True}


async def _create_goal(client: AsyncClient, headers: dict, **fields) -> dict:
    payload = {
        "title": "Meditate",
        "dailyTime": "07:00",
        "timezone": "UTC",
        "repeatConfig": EVERY_DAY,
        **fields,
    }
    response = await client.post("/api/monthly-goals", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_goal_generates_todays_task(client: AsyncClient, auth_headers: dict):
    goal = await _create_goal(client, auth_headers, description="10 minutes")

    assert goal["status"] == "active"
    assert goal["dailyTime"] == "07:00"
    assert goal["startDate"].endswith("-01")
    assert goal["startDate"][:7] == goal["endDate"][:7]
    assert goal["stats"]["totalDays"] == 1
    assert goal["stats"]["completedDays"] == 0

    tasks = await client.get("/api/tasks", headers=auth_headers)
    generated = tasks.json()["data"]
    assert len(generated) == 1
    task = generated[0]
    assert task["title"] == "Meditate"
    assert task["description"] == "10 minutes"
    assert task["monthlyGoalId"] == goal["id"]
    assert task["project"] == "Monthly Goals"
    assert task["tags"] == ["monthly-goal", "recurring"]
    assert "T07:00:00" in task["dueDate"]


@pytest.mark.asyncio
async def test_create_goal_defaults(client: AsyncClient, auth_headers: dict):
    response = await client.post(
        "/api/monthly-goals",
        json={"title": "Run", "dailyTime": "6:05"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    goal = response.json()["data"]
    assert goal["dailyTime"] == "06:05"
    assert goal["timezone"] == "UTC"
    assert goal["repeatConfig"] == {"weekdays": [1, 2, 3, 4, 5], "includeWeekends": False}


@pytest.mark.parametrize(
    "payload",
    [
        {"title": "Bad time", "dailyTime": "25:00"},
        {"title": "Bad zone", "dailyTime": "07:00", "timezone": "Mars/Olympus"},
        {"title": "Bad day", "dailyTime": "07:00", "repeatConfig": {"weekdays": [7]}},
        {"title": "", "dailyTime": "07:00"},
    ],
)
@pytest.mark.asyncio
async def test_create_goal_validation(client: AsyncClient, auth_headers: dict, payload: dict):
    response = await client.post("/api/monthly-goals", json=payload, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_goal_detail_includes_tasks_and_progress(client: AsyncClient, auth_headers: dict):
    goal = await _create_goal(client, auth_headers)

    response = await client.get(f"/api/monthly-goals/{goal['id']}", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["goal"]["id"] == goal["id"]
    assert len(data["tasks"]) == 1
    assert data["progress"] == {"completed": 0, "total": 1, "rate": 0}


@pytest.mark.asyncio
async def test_completing_task_then_refreshing_stats(client: AsyncClient, auth_headers: dict):
    goal = await _create_goal(client, auth_headers)
    detail = await client.get(f"/api/monthly-goals/{goal['id']}", headers=auth_headers)
    task_id = detail.json()["data"]["tasks"][0]["id"]

    await client.put(f"/api/tasks/{task_id}", json={"status": "Done"}, headers=auth_headers)

    response = await client.post(
        f"/api/monthly-goals/{goal['id']}/stats/refresh",
        headers=auth_headers,
    )

    assert response.status_code == 200
    stats = response.json()["data"]["stats"]
    assert stats["completedDays"] == 1
    assert stats["totalDays"] == 1
    assert stats["completionRate"] == 100
    assert stats["lastStatsUpdate"]

    again = await client.post(
        f"/api/monthly-goals/{goal['id']}/stats/refresh",
        headers=auth_headers,
    )
    assert again.json()["data"]["stats"]["completedDays"] == 1


@pytest.mark.asyncio
async def test_list_goals_filters(client: AsyncClient, auth_headers: dict):
    first = await _create_goal(client, auth_headers, title="First")
    second = await _create_goal(client, auth_headers, title="Second")
    await client.put(
        f"/api/monthly-goals/{first['id']}",
        json={"status": "paused"},
        headers=auth_headers,
    )

    everything = await client.get("/api/monthly-goals", headers=auth_headers)
    assert [g["id"] for g in everything.json()["data"]] == [second["id"], first["id"]]

    active = await client.get("/api/monthly-goals", params={"status": "active"}, headers=auth_headers)
    assert [g["title"] for g in active.json()["data"]] == ["Second"]

    year, month = (int(part) for part in first["startDate"].split("-")[:2])
    this_month = await client.get(
        "/api/monthly-goals",
        params={"month": month, "year": year},
        headers=auth_headers,
    )
    assert len(this_month.json()["data"]) == 2

    other_year = await client.get(
        "/api/monthly-goals",
        params={"month": month, "year": year - 1},
        headers=auth_headers,
    )
    assert other_year.json()["data"] == []


@pytest.mark.asyncio
async def test_update_goal_merges_fields(client: AsyncClient, auth_headers: dict):
    goal = await _create_goal(client, auth_headers, description="keep me")

    response = await client.put(
        f"/api/monthly-goals/{goal['id']}",
        json={"title": "Meditate longer", "repeatConfig": {"weekdays": [1, 3, 1]}},
        headers=auth_headers,
    )

    assert response.status_code == 200
    updated = response.json()["data"]
    assert updated["title"] == "Meditate longer"
    assert updated["description"] == "keep me"
    assert updated["repeatConfig"] == {"weekdays": [1, 3], "includeWeekends": False}
    assert updated["startDate"] == goal["startDate"]



@pytest.mark.asyncio
async def test_update_repeat_config_without_weekends_flag_turns_weekends_off(
    client: AsyncClient,
    auth_headers: dict,
):
    goal = await _create_goal(client, auth_headers)
    assert goal["repeatConfig"]["includeWeekends"] is True

    response = await client.put(
        f"/api/monthly-goals/{goal['id']}",
        json={"repeatConfig": {"weekdays": []}},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["data"]["repeatConfig"] == {"weekdays": [], "includeWeekends": False}

    fetched = await client.get(f"/api/monthly-goals/{goal['id']}", headers=auth_headers)
    assert fetched.json()["data"]["goal"]["repeatConfig"]["includeWeekends"] is False


@pytest.mark.asyncio
async def test_update_goal_rejects_blank_title(client: AsyncClient, auth_headers: dict):
    goal = await _create_goal(client, auth_headers)

    response = await client.put(
        f"/api/monthly-goals/{goal['id']}",
        json={"title": "   "},
        headers=auth_headers,
    )

    assert response.status_code == 422

    fetched = await client.get(f"/api/monthly-goals/{goal['id']}", headers=auth_headers)
    assert fetched.json()["data"]["goal"]["title"] == "Meditate"

@pytest.mark.asyncio
async def test_delete_goal_removes_generated_tasks(client: AsyncClient, auth_headers: dict):
    goal = await _create_goal(client, auth_headers)
    manual = await client.post("/api/tasks", json={"title": "Unrelated"}, headers=auth_headers)

    response = await client.delete(f"/api/monthly-goals/{goal['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True

    missing = await client.get(f"/api/monthly-goals/{goal['id']}", headers=auth_headers)
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "GOAL_001"

    tasks = await client.get("/api/tasks", headers=auth_headers)
    assert [t["id"] for t in tasks.json()["data"]] == [manual.json()["data"]["id"]]


@pytest.mark.asyncio
async def test_goals_are_scoped_to_owner(client: AsyncClient):
    alice = await register_user(client, email="alice@example.com")
    bob = await register_user(client, email="bob@example.com")
    goal = await _create_goal(client, alice["headers"])

    for method, url in [
        ("GET", f"/api/monthly-goals/{goal['id']}"),
        ("DELETE", f"/api/monthly-goals/{goal['id']}"),
        ("POST", f"/api/monthly-goals/{goal['id']}/stats/refresh"),
    ]:
        response = await client.request(method, url, headers=bob["headers"])
        assert response.status_code == 404

    response = await client.get(f"/api/monthly-goals/{uuid.uuid4()}", headers=alice["headers"])
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_progress_report(client: AsyncClient, auth_headers: dict):
    done_goal = await _create_goal(client, auth_headers, title="Done one")
    await _create_goal(client, auth_headers, title="Open one")

    detail = await client.get(f"/api/monthly-goals/{done_goal['id']}", headers=auth_headers)
    task_id = detail.json()["data"]["tasks"][0]["id"]
    await client.put(f"/api/tasks/{task_id}", json={"status": "Done"}, headers=auth_headers)

    year, month = (int(part) for part in done_goal["startDate"].split("-")[:2])
    response = await client.get(
        "/api/monthly-goals/progress/report",
        params={"month": month, "year": year},
        headers=auth_headers,
    )

    assert response.status_code == 200
    report = response.json()["data"]
    assert report["month"] == month
    assert report["year"] == year
    assert report["totalGoals"] == 2
    assert report["activeGoals"] == 2
    assert report["totalTasks"] == 1

    by_title = {g["title"]: g for g in report["goals"]}
    assert by_title["Done one"]["completedDays"] == 1
    assert by_title["Done one"]["completionRate"] == 100
    assert by_title["Open one"]["completedDays"] == 0
    assert by_title["Open one"]["totalDays"] == 1


@pytest.mark.asyncio
async def test_progress_report_empty_month(client: AsyncClient, auth_headers: dict):
    response = await client.get(
        "/api/monthly-goals/progress/report",
        params={"month": 1, "year": 2000},
        headers=auth_headers,
    )

    report = response.json()["data"]
    assert report["totalGoals"] == 0
    assert report["goals"] == []
