from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from todoai.core.errors import ServiceRateLimited, ServiceUnavailable
from todoai.main import app
from todoai.services.completion import get_completion_service

SEOUL = ZoneInfo("Asia/Seoul")


class FakeCompletion:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = 0

    def generate_object(self, prompt, shape, *, temperature, system=None):
        self.calls += 1
        if self.error:
            raise self.error
        return self.reply


def _install(completion: FakeCompletion) -> None:
    app.dependency_overrides[get_completion_service] = lambda: completion


def test_generate_todo_with_keyword_rules(client, signup) -> None:
    test_client, _ = client
    headers = signup()
    tomorrow = (datetime.now(SEOUL).date() + timedelta(days=1)).isoformat()

    resp = test_client.post(
        "/ai/generate-todo",
        json={"naturalLanguageInput": "내일 오전 10시에 팀 회의 준비"},
        headers=headers,
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"] == {
        "title": "팀 회의 준비",
        "description": None,
        "due_date": tomorrow,
        "due_time": "10:00",
        "priority": "medium",
        "category": ["work"],
    }


def test_generate_todo_repairs_completion_reply(client, signup) -> None:
    test_client, _ = client
    headers = signup()
    completion = FakeCompletion(reply={"title": "", "due_date": "yesterday", "priority": "asap", "category": ["work"]})
    _install(completion)

    data = test_client.post("/ai/generate-todo", json={"naturalLanguageInput": "do the thing"}, headers=headers).json()["data"]

    assert completion.calls == 1
    assert data["title"] == "Task"
    assert data["due_date"] == datetime.now(SEOUL).date().isoformat()
    assert data["due_time"] == "09:00"
    assert data["priority"] == "medium"
    assert data["category"] == ["work"]


def test_generate_todo_invalid_input(client, signup) -> None:
    test_client, _ = client
    headers = signup()
    completion = FakeCompletion(reply={})
    _install(completion)

    short = test_client.post("/ai/generate-todo", json={"naturalLanguageInput": "a"}, headers=headers)
    missing = test_client.post("/ai/generate-todo", json={}, headers=headers)

    assert short.status_code == 400
    assert short.json() == {"success": False, "error": "Input must be at least 2 characters."}
    assert missing.status_code == 400
    assert missing.json()["error"] == "Natural-language input is required."
    assert completion.calls == 0


def test_service_failures_surface_with_their_status(client, signup) -> None:
    test_client, _ = client
    headers = signup()

    _install(FakeCompletion(error=ServiceRateLimited()))
    limited = test_client.post("/ai/generate-todo", json={"naturalLanguageInput": "call mom"}, headers=headers)
    _install(FakeCompletion(error=ServiceUnavailable()))
    offline = test_client.post(
        "/ai/analyze-todos", json={"todos": [{"title": "x"}], "period": "today"}, headers=headers
    )

    assert limited.status_code == 429
    assert limited.json()["error"] == "The AI service usage limit was reached. Please try again later."
    assert offline.status_code == 503
    assert offline.json()["success"] is False


def test_ai_routes_require_authentication(client) -> None:
    test_client, _ = client

    assert test_client.post("/ai/generate-todo", json={"naturalLanguageInput": "call mom"}).status_code == 401
    assert test_client.post("/ai/analyze-todos", json={"todos": [], "period": "today"}).status_code == 401


def test_analyze_todos_fallback(client, signup) -> None:
    test_client, _ = client
    headers = signup()
    todos = [
        {"title": "Ship release", "priority": "high", "category": ["work"], "completed": True},
        {"title": "Fix login bug", "priority": "high", "category": ["work"], "due_date": "2020-01-01T09:00:00Z"},
        {"title": "Yoga", "priority": "low", "category": ["health"]},
    ]

    resp = test_client.post("/ai/analyze-todos", json={"todos": todos, "period": "week"}, headers=headers)

    assert resp.status_code == 200
    data = resp.json()["data"]
    assert set(data) == {"summary", "urgentTasks", "insights", "recommendations"}
    assert data["summary"].startswith("This week you completed 1 of 3 tasks")
    assert data["urgentTasks"][0] == "Fix login bug"
    assert 3 <= len(data["insights"]) <= 5
    assert 3 <= len(data["recommendations"]) <= 5


def test_analyze_todos_passes_completion_reply_through(client, signup) -> None:
    test_client, _ = client
    headers = signup()
    reply = {
        "summary": "Nice pace.",
        "urgentTasks": [],
        "insights": ["i1", "i2", "i3"],
        "recommendations": ["r1", "r2", "r3"],
    }
    _install(FakeCompletion(reply=reply))

    resp = test_client.post("/ai/analyze-todos", json={"todos": [{"title": "x"}], "period": "today"}, headers=headers)

    assert resp.json() == {"success": True, "data": reply}


def test_analyze_todos_rejections(client, signup) -> None:
    test_client, _ = client
    headers = signup()
    completion = FakeCompletion(reply={})
    _install(completion)

    empty = test_client.post("/ai/analyze-todos", json={"todos": [], "period": "today"}, headers=headers)
    bad_period = test_client.post(
        "/ai/analyze-todos", json={"todos": [{"title": "x"}], "period": "tomorrow"}, headers=headers
    )
    no_list = test_client.post("/ai/analyze-todos", json={"period": "today"}, headers=headers)

    assert empty.status_code == 422
    assert empty.json() == {"success": False, "error": "There are no tasks to analyze."}
    assert bad_period.status_code == 400
    assert no_list.status_code == 400
    assert completion.calls == 0


def test_analyze_my_todos_uses_tasks_due_in_period(client, signup) -> None:
    test_client, _ = client
    headers = signup()
    today = datetime.now(SEOUL).date()
    noon_today = f"{today.isoformat()}T12:00:00"
    last_year = f"{(today - timedelta(days=365)).isoformat()}T12:00:00"
    test_client.post("/tasks", json={"title": "Today task", "due_date": noon_today}, headers=headers)
    test_client.post("/tasks", json={"title": "Old task", "due_date": last_year}, headers=headers)
    test_client.post("/tasks", json={"title": "Undated"}, headers=headers)

    resp = test_client.get("/ai/analyze-todos/me", params={"period": "today"}, headers=headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["summary"].startswith("Today you completed 0 of 1 tasks")


def test_analyze_my_todos_with_nothing_due(client, signup) -> None:
    test_client, _ = client
    headers = signup()

    empty = test_client.get("/ai/analyze-todos/me", params={"period": "week"}, headers=headers)
    bad_period = test_client.get("/ai/analyze-todos/me", params={"period": "month"}, headers=headers)

    assert empty.status_code == 422
    assert bad_period.status_code == 400
