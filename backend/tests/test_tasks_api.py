from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from todoai.db.models.task import Task


def _parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _create(test_client: TestClient, headers: dict, **fields) -> dict:
    payload = {"title": "Write report", **fields}
    resp = test_client.post("/tasks", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture()
def owner(client, signup):
    test_client, session_factory = client
    return test_client, session_factory, signup()


def test_create_task_with_defaults(owner) -> None:
    test_client, _, headers = owner

    task = _create(test_client, headers, title="  Write report  ")

    assert task["title"] == "Write report"
    assert task["priority"] == "medium"
    assert task["category"] == []
    assert task["completed"] is False
    assert task["completed_at"] is None
    assert task["due_date"] is None
    assert task["created_date"]


def test_naive_due_date_is_local_wall_clock(owner) -> None:
    test_client, _, headers = owner

    task = _create(test_client, headers, due_date="2025-06-02T10:00:00", category=["work", "study"])

    # Asia/Seoul is UTC+9.
    assert _parse(task["due_date"]) == datetime(2025, 6, 2, 1, 0, tzinfo=timezone.utc)
    assert task["category"] == ["work", "study"]


def test_create_rejects_bad_payloads(owner) -> None:
    test_client, _, headers = owner

    assert test_client.post("/tasks", json={"title": "   "}, headers=headers).status_code == 422
    assert test_client.post("/tasks", json={"title": "x", "priority": "urgent"}, headers=headers).status_code == 422
    assert test_client.post("/tasks", json={"title": "x" * 201}, headers=headers).status_code == 422


def test_tasks_require_authentication(client) -> None:
    test_client, _ = client

    assert test_client.get("/tasks").status_code == 401
    assert test_client.post("/tasks", json={"title": "x"}).status_code == 401


def test_partial_update_leaves_other_fields(owner) -> None:
    test_client, _, headers = owner
    task = _create(test_client, headers, description="Q2 numbers", priority="high")

    resp = test_client.patch(f"/tasks/{task['id']}", json={"title": "Write Q2 report"}, headers=headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["title"] == "Write Q2 report"
    assert body["description"] == "Q2 numbers"
    assert body["priority"] == "high"


def test_update_can_clear_nullable_fields(owner) -> None:
    test_client, _, headers = owner
    task = _create(test_client, headers, description="notes", due_date="2025-06-02T10:00:00+09:00")

    body = test_client.patch(
        f"/tasks/{task['id']}", json={"description": None, "due_date": None, "priority": None}, headers=headers
    ).json()

    assert body["description"] is None
    assert body["due_date"] is None
    assert body["priority"] == "medium"


def test_completion_toggle_sets_and_clears_timestamp(owner) -> None:
    test_client, session_factory, headers = owner
    task = _create(test_client, headers)

    done = test_client.patch(f"/tasks/{task['id']}/completion", json={"completed": True}, headers=headers)
    assert done.status_code == 200
    assert done.json()["completed"] is True
    assert done.json()["completed_at"]

    with session_factory() as db:
        stored = db.get(Task, UUID(task["id"]))
        assert stored.completed is True
        assert stored.completed_at is not None

    undone = test_client.patch(f"/tasks/{task['id']}/completion", json={"completed": False}, headers=headers)
    assert undone.json()["completed"] is False
    assert undone.json()["completed_at"] is None


def test_completion_through_general_update(owner) -> None:
    test_client, _, headers = owner
    task = _create(test_client, headers)

    body = test_client.patch(f"/tasks/{task['id']}", json={"completed": True}, headers=headers).json()

    assert body["completed"] is True
    assert body["completed_at"]


def test_delete_is_permanent(owner) -> None:
    test_client, session_factory, headers = owner
    task = _create(test_client, headers)

    resp = test_client.delete(f"/tasks/{task['id']}", headers=headers)

    assert resp.status_code == 204
    assert test_client.get(f"/tasks/{task['id']}", headers=headers).status_code == 404
    with session_factory() as db:
        assert db.get(Task, UUID(task["id"])) is None


def test_other_owners_tasks_look_missing(owner, signup) -> None:
    test_client, session_factory, headers = owner
    task = _create(test_client, headers, title="Private")
    intruder = signup(email="mallory@example.com")

    assert test_client.get("/tasks", headers=intruder).json() == []
    for method, path, kwargs in [
        ("get", f"/tasks/{task['id']}", {}),
        ("patch", f"/tasks/{task['id']}", {"json": {"title": "Mine now"}}),
        ("patch", f"/tasks/{task['id']}/completion", {"json": {"completed": True}}),
        ("delete", f"/tasks/{task['id']}", {}),
    ]:
        resp = getattr(test_client, method)(path, headers=intruder, **kwargs)
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Task not found"}

    with session_factory() as db:
        stored = db.get(Task, UUID(task["id"]))
        assert stored.title == "Private"
        assert stored.completed is False


def test_list_filters(owner) -> None:
    test_client, _, headers = owner
    overdue = _create(test_client, headers, title="Pay rent", due_date="2020-01-01T00:00:00Z", priority="high")
    finished = _create(test_client, headers, title="Old report", due_date="2020-01-01T00:00:00Z")
    upcoming = _create(test_client, headers, title="Plan trip", due_date="2999-01-01T00:00:00Z", priority="low")
    test_client.patch(f"/tasks/{finished['id']}/completion", json={"completed": True}, headers=headers)

    def titles(**params) -> list:
        resp = test_client.get("/tasks", params=params, headers=headers)
        assert resp.status_code == 200
        return sorted(task["title"] for task in resp.json())

    assert titles() == ["Old report", "Pay rent", "Plan trip"]
    assert titles(status="active") == ["Pay rent", "Plan trip"]
    assert titles(status="completed") == ["Old report"]
    assert titles(status="overdue") == [overdue["title"]]
    assert titles(priority="low") == [upcoming["title"]]
    assert titles(q="REPORT") == ["Old report"]
    assert titles(q="pay", status="completed") == []
    assert test_client.get("/tasks", params={"status": "someday"}, headers=headers).status_code == 422


def test_list_sorting(owner) -> None:
    test_client, _, headers = owner
    _create(test_client, headers, title="banana", priority="low", due_date="2025-06-01T09:00:00Z")
    _create(test_client, headers, title="Cherry", priority="high")
    _create(test_client, headers, title="apple", priority="medium", due_date="2025-06-03T09:00:00Z")
    _create(test_client, headers, title="date", priority="high", due_date="2025-06-05T09:00:00Z")

    def order(sort: str) -> list:
        return [task["title"] for task in test_client.get("/tasks", params={"sort": sort}, headers=headers).json()]

    assert order("priority") == ["date", "Cherry", "apple", "banana"]
    assert order("due_date") == ["banana", "apple", "date", "Cherry"]
    assert order("title") == ["apple", "banana", "Cherry", "date"]
