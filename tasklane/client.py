"""HTTP client for the Tasklane API.

Credentials are never stored on the client: every authenticated call takes
the bearer token as an argument and sends it on that request only, so one
``TaskClient`` can serve several users concurrently.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, NamedTuple, Optional

import httpx

log = logging.getLogger(__name__)

# Local times at which a reminder fires for a task due today
REMINDER_TIMES = (time(5, 30), time(7, 0), time(12, 0))


class ApiError(Exception):
    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}")


class Reminder(NamedTuple):
    task_id: str
    title: str
    when: datetime


def _bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TaskClient:
    def __init__(
        self,
        base_url: str = "",
        transport: Optional[httpx.BaseTransport] = None,
        *,
        http: Optional[httpx.Client] = None,
        prefix: str = "/api/v1",
    ):
        # `http` wins over base_url/transport when an existing client is handed in
        self._http = http or httpx.Client(base_url=base_url, transport=transport, timeout=10.0)
        self._prefix = prefix.rstrip("/")

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TaskClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _call(
        self,
        method: str,
        path: str,
        *,
        token: Optional[str] = None,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = _bearer(token) if token is not None else {}
        resp = self._http.request(method, self._prefix + path, headers=headers, json=json, params=params)
        if resp.status_code >= 400:
            try:
                message = resp.json().get("error", resp.reason_phrase)
            except ValueError:
                message = resp.text or resp.reason_phrase
            log.debug("api_error method=%s path=%s status=%s", method, path, resp.status_code)
            raise ApiError(resp.status_code, str(message))
        return resp.json()

    # --- auth ---

    def register(self, email: str, password: str, name: Optional[str] = None) -> Dict[str, Any]:
        return self._call("POST", "/auth/register", json={"name": name, "email": email, "password": password})

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._call("POST", "/auth/login", json={"email": email, "password": password})

    def logout(self, token: str) -> Dict[str, Any]:
        return self._call("POST", "/auth/logout", token=token)

    # --- tasks ---

    def list_tasks(self, token: str, **filters: Any) -> List[Dict[str, Any]]:
        params = {k: v for k, v in filters.items() if v is not None}
        return self._call("GET", "/tasks/", token=token, params=params or None)

    def get_task(self, token: str, task_id: str) -> Dict[str, Any]:
        return self._call("GET", f"/tasks/{task_id}", token=token)

    def create_task(self, token: str, title: str, **fields: Any) -> Dict[str, Any]:
        return self._call("POST", "/tasks/", token=token, json={"title": title, **fields})

    def update_task(self, token: str, task_id: str, **fields: Any) -> Dict[str, Any]:
        return self._call("PATCH", f"/tasks/{task_id}", token=token, json=fields)

    def delete_task(self, token: str, task_id: str) -> Dict[str, Any]:
        return self._call("DELETE", f"/tasks/{task_id}", token=token)

    def toggle_task(self, token: str, task_id: str) -> Dict[str, Any]:
        return self._call("PATCH", f"/tasks/{task_id}/toggle", token=token)

    def paginate(self, token: str, page: int = 1, limit: int = 5) -> Dict[str, Any]:
        return self._call("GET", "/tasks/paginated", token=token, params={"page": page, "limit": limit})

    def stats(self, token: str) -> Dict[str, int]:
        return self._call("GET", "/tasks/stats", token=token)


def _due_date(task: Dict[str, Any]) -> Optional[date]:
    raw = task.get("dueDate")
    if not raw:
        return None
    return date.fromisoformat(raw[:10])


def reminder_times(tasks: Iterable[Dict[str, Any]], now: datetime) -> List[Reminder]:
    """Reminders still ahead of `now` for open tasks due on `now`'s date."""
    today = now.date()
    out: List[Reminder] = []
    for task in tasks:
        if task.get("status") == "done" or _due_date(task) != today:
            continue
        for at in REMINDER_TIMES:
            when = datetime.combine(today, at, tzinfo=now.tzinfo)
            if when > now:
                out.append(Reminder(task.get("id") or task["_id"], task["title"], when))
    return out
