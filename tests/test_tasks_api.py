# tests/test_tasks_api.py
# PURPOSE: verify CRUD, update reconciliation, toggle and owner isolation over HTTP.

from typing import Dict

import pytest

TASKS = "/api/v1/tasks"


def _create_task(client, headers, title: str, **fields) -> Dict:
    """Helper: create a task and return response JSON."""
    r = client.post(f"{TASKS}/", json={"title": title, **fields}, headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def _assert_consistent(task: Dict):
    assert task["completed"] == (task["status"] == "done")


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_create_and_get_by_id(client, alice):
    created = _create_task(client, alice, "First", description="hello", priority="high", dueDate="2030-01-02")
    tid = created["id"]

    r = client.get(f"{TASKS}/{tid}", headers=alice)
    assert r.status_code == 200
    got = r.json()
    assert got["id"] == got["_id"] == tid
    assert got["title"] == "First"
    assert got["description"] == "hello"
    assert got["priority"] == "high"
    assert got["dueDate"] == "2030-01-02"
    assert got["status"] == "pending"
    assert got["completed"] is False
    assert got["createdAt"]


def test_create_defaults_priority_to_medium(client, alice):
    created = _create_task(client, alice, "Buy milk")
    assert created["priority"] == "medium"
    assert created["status"] == "pending"
    assert created["completed"] is False
    assert created["description"] is None
    assert created["dueDate"] is None


def test_create_accepts_timestamp_due_date(client, alice):
    created = _create_task(client, alice, "Call mom", dueDate="2030-05-06T00:00:00.000Z")
    assert created["dueDate"] == "2030-05-06"


def test_create_ignores_client_status_and_owner(client, alice):
    created = _create_task(client, alice, "Sneaky", status="done", completed=True, ownerId="someone-else")
    assert created["status"] == "pending"
    assert created["completed"] is False
    me = client.get("/api/v1/auth/me", headers=alice).json()
    assert created["ownerId"] == me["id"]


@pytest.mark.parametrize("body", [{}, {"title": ""}, {"title": "   "}, {"title": "x", "priority": "urgent"}])
def test_create_validation(client, alice, body):
    r = client.post(f"{TASKS}/", json=body, headers=alice)
    assert r.status_code == 400
    assert r.json()["error"] == "ValidationError"


def test_list_newest_first_with_total_header(client, alice):
    for title in ("A", "B", "C"):
        _create_task(client, alice, title)
    r = client.get(f"{TASKS}/", headers=alice)
    assert r.status_code == 200
    items = r.json()
    assert r.headers["X-Total-Count"] == "3"
    stamps = [t["createdAt"] for t in items]
    assert stamps == sorted(stamps, reverse=True)
    assert {t["title"] for t in items} == {"A", "B", "C"}


def test_list_filters(client, alice):
    a = _create_task(client, alice, "Hello world", priority="high", dueDate="2030-01-10")
    b = _create_task(client, alice, "Buy milk", description="say hello to grocer", dueDate="2030-02-10")
    c = _create_task(client, alice, "Other", priority="low")
    client.patch(f"{TASKS}/{c['id']}", json={"status": "in progress"}, headers=alice)

    def ids(query):
        r = client.get(f"{TASKS}/?{query}", headers=alice)
        assert r.status_code == 200, r.text
        return {t["id"] for t in r.json()}

    assert ids("q=HELLO") == {a["id"], b["id"]}
    assert ids("priority=high") == {a["id"]}
    assert ids("status=in progress") == {c["id"]}
    assert ids("due_before=2030-01-31") == {a["id"]}
    assert ids("due_after=2030-01-31") == {b["id"]}

    assert client.get(f"{TASKS}/?status=in_progress", headers=alice).status_code == 400


def test_patch_partial_update_keeps_other_fields(client, alice):
    created = _create_task(client, alice, "Patch me", priority="low", description="keep")
    tid = created["id"]

    r = client.patch(f"{TASKS}/{tid}", json={"title": "Patched"}, headers=alice)
    assert r.status_code == 200
    data = r.json()
    assert data["title"] == "Patched"
    assert data["priority"] == "low"
    assert data["description"] == "keep"
    assert data["status"] == "pending"
    assert data["createdAt"] == created["createdAt"]


def test_put_is_partial_update(client, alice):
    created = _create_task(client, alice, "Put me", priority="high")
    r = client.put(f"{TASKS}/{created['id']}", json={"description": "via put"}, headers=alice)
    assert r.status_code == 200
    assert r.json()["title"] == "Put me"
    assert r.json()["priority"] == "high"
    assert r.json()["description"] == "via put"


def test_patch_null_clears_optional_fields(client, alice):
    created = _create_task(client, alice, "Clear", description="x", dueDate="2030-01-01")
    r = client.patch(f"{TASKS}/{created['id']}", json={"description": None, "dueDate": None}, headers=alice)
    assert r.status_code == 200
    assert r.json()["description"] is None
    assert r.json()["dueDate"] is None


@pytest.mark.parametrize("body", [{"title": None}, {"status": None}, {"title": " "}, {"status": "archived"}])
def test_patch_validation(client, alice, body):
    created = _create_task(client, alice, "Valid")
    r = client.patch(f"{TASKS}/{created['id']}", json=body, headers=alice)
    assert r.status_code == 400


@pytest.mark.parametrize(
    "start,body,expected",
    [
        ("pending", {"status": "done"}, ("done", True)),
        ("done", {"status": "in progress"}, ("in progress", False)),
        ("pending", {"status": "done", "completed": False}, ("done", True)),
        ("done", {"status": "pending", "completed": True}, ("pending", False)),
        ("pending", {"completed": True}, ("done", True)),
        ("in progress", {"completed": True}, ("done", True)),
        ("done", {"completed": False}, ("pending", False)),
        ("in progress", {"completed": False}, ("in progress", False)),
        ("in progress", {"title": "renamed"}, ("in progress", False)),
        ("done", {"title": "renamed"}, ("done", True)),
    ],
)
def test_update_reconciles_status_and_completed(client, alice, start, body, expected):
    created = _create_task(client, alice, "Reconcile")
    if start != "pending":
        client.patch(f"{TASKS}/{created['id']}", json={"status": start}, headers=alice)

    r = client.patch(f"{TASKS}/{created['id']}", json=body, headers=alice)
    assert r.status_code == 200
    data = r.json()
    assert (data["status"], data["completed"]) == expected

    # and the stored row agrees
    stored = client.get(f"{TASKS}/{created['id']}", headers=alice).json()
    assert (stored["status"], stored["completed"]) == expected


def test_toggle_scenario(client, alice):
    task = _create_task(client, alice, "Buy milk")
    assert task["priority"] == "medium"

    r1 = client.patch(f"{TASKS}/{task['id']}/toggle", headers=alice)
    assert r1.status_code == 200
    assert (r1.json()["status"], r1.json()["completed"]) == ("done", True)

    r2 = client.patch(f"{TASKS}/{task['id']}/toggle", headers=alice)
    assert (r2.json()["status"], r2.json()["completed"]) == ("pending", False)


def test_toggle_in_progress_task_completes_it(client, alice):
    task = _create_task(client, alice, "Half done")
    client.patch(f"{TASKS}/{task['id']}", json={"status": "in progress"}, headers=alice)
    r = client.patch(f"{TASKS}/{task['id']}/toggle", headers=alice)
    assert (r.json()["status"], r.json()["completed"]) == ("done", True)


def test_delete_task(client, alice):
    created = _create_task(client, alice, "To remove")
    tid = created["id"]

    r = client.delete(f"{TASKS}/{tid}", headers=alice)
    assert r.status_code == 200
    assert r.json() == {"message": "Task deleted successfully"}

    assert client.get(f"{TASKS}/{tid}", headers=alice).status_code == 404
    assert client.delete(f"{TASKS}/{tid}", headers=alice).status_code == 404


def test_unknown_id_is_not_found(client, alice):
    for method, path in [
        ("GET", f"{TASKS}/nope"),
        ("PATCH", f"{TASKS}/nope/toggle"),
        ("DELETE", f"{TASKS}/nope"),
    ]:
        r = client.request(method, path, headers=alice)
        assert r.status_code == 404
        assert r.json()["error"] == "Task not found"
    r = client.patch(f"{TASKS}/nope", json={"title": "x"}, headers=alice)
    assert r.status_code == 404


def test_other_owner_cannot_see_or_touch_task(client, alice, bob):
    task = _create_task(client, alice, "Alice's secret", description="private")
    tid = task["id"]

    # every single-task operation looks exactly like a missing task
    missing = client.get(f"{TASKS}/does-not-exist", headers=bob)
    for r in (
        client.get(f"{TASKS}/{tid}", headers=bob),
        client.patch(f"{TASKS}/{tid}", json={"title": "pwned", "status": "done"}, headers=bob),
        client.put(f"{TASKS}/{tid}", json={"title": "pwned"}, headers=bob),
        client.patch(f"{TASKS}/{tid}/toggle", headers=bob),
        client.delete(f"{TASKS}/{tid}", headers=bob),
    ):
        assert r.status_code == 404
        assert r.json()["error"] == missing.json()["error"]

    assert client.get(f"{TASKS}/", headers=bob).json() == []

    unchanged = client.get(f"{TASKS}/{tid}", headers=alice).json()
    assert unchanged["title"] == "Alice's secret"
    assert unchanged["status"] == "pending"
    assert unchanged["completed"] is False


def test_legacy_api_prefix(client, alice):
    created = client.post("/api/tasks/", json={"title": "Old client"}, headers=alice)
    assert created.status_code == 201
    tid = created.json()["_id"]
    r = client.patch(f"/api/tasks/{tid}/toggle", headers=alice)
    assert r.status_code == 200
    assert r.json()["completed"] is True


def test_upcoming_and_due_today(client, alice):
    today = "2030-03-15"
    due_today = _create_task(client, alice, "Today", dueDate=today)
    done_today = _create_task(client, alice, "Today but done", dueDate=today)
    client.patch(f"{TASKS}/{done_today['id']}/toggle", headers=alice)
    later = _create_task(client, alice, "Later", dueDate="2030-04-01")
    soon = _create_task(client, alice, "Soon", dueDate="2030-03-16")
    _create_task(client, alice, "Past", dueDate="2030-01-01")
    _create_task(client, alice, "Undated")

    r = client.get(f"{TASKS}/upcoming?today={today}", headers=alice)
    assert r.status_code == 200
    assert [t["id"] for t in r.json()] == [soon["id"], later["id"]]

    r2 = client.get(f"{TASKS}/due-today?today={today}", headers=alice)
    assert [t["id"] for t in r2.json()] == [due_today["id"]]


def test_every_response_keeps_invariant(client, alice):
    task = _create_task(client, alice, "Invariant")
    tid = task["id"]
    bodies = [{"status": "in progress"}, {"completed": True}, {"completed": False}, {"status": "done"}]
    for body in bodies:
        _assert_consistent(client.patch(f"{TASKS}/{tid}", json=body, headers=alice).json())
        _assert_consistent(client.patch(f"{TASKS}/{tid}/toggle", headers=alice).json())
    for t in client.get(f"{TASKS}/", headers=alice).json():
        _assert_consistent(t)


def test_storage_failure_is_generic_500(client, alice):
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker

    from tasklane.db import get_db
    from tasklane.main import app

    # in-memory database without tables: every query fails
    broken = sessionmaker(bind=create_engine("sqlite://"))

    def override_get_db():
        session = broken()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    r = client.get(f"{TASKS}/", headers=alice)
    assert r.status_code == 500
    assert r.json()["error"] == "Internal server error"
    assert "no such table" not in r.text


def test_tasks_path_without_trailing_slash(client, alice):
    created = client.post("/api/tasks", json={"title": "No slash"}, headers=alice, follow_redirects=False)
    assert created.status_code == 201
    listed = client.get("/api/tasks", headers=alice, follow_redirects=False)
    assert listed.status_code == 200
    assert [t["title"] for t in listed.json()] == ["No slash"]


def test_total_count_header_follows_filters(client, alice):
    _create_task(client, alice, "High one", priority="high")
    _create_task(client, alice, "High two", priority="high")
    _create_task(client, alice, "Low", priority="low")
    r = client.get(f"{TASKS}/?priority=high", headers=alice)
    assert r.headers["X-Total-Count"] == "2"
    assert len(r.json()) == 2


def test_search_treats_wildcards_literally(client, alice):
    pct = _create_task(client, alice, "Raise to 100%")
    under = _create_task(client, alice, "rename snake_case vars")
    _create_task(client, alice, "Plain task")

    def ids(q):
        r = client.get(f"{TASKS}/", params={"q": q}, headers=alice)
        assert r.status_code == 200
        return {t["id"] for t in r.json()}

    assert ids("%") == {pct["id"]}
    assert ids("_") == {under["id"]}
    assert ids("e_c") == {under["id"]}
