# PURPOSE: task lifecycle operations, always scoped to the calling owner.
#
# Routers call these functions; they raise NotFound / ValidationError / Unexpected
# from tasklane.errors, which the API layer turns into 404 / 400 / 500 responses.

import logging
import math
from contextlib import contextmanager
from datetime import date
from functools import partial
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import store_db
from .db_models import TaskDB
from .errors import NotFound, Unexpected, ValidationError
from .lifecycle import DEFAULT_STATUS, STATUSES, is_completed, reconcile
from .models import TaskCreate, TaskPage, TaskStats, TaskUpdate
from .models import Task as TaskOut

log = logging.getLogger("tasklane.service")

# Columns a partial update may set directly; status/completed are reconciled.
PLAIN_FIELDS = ("title", "description", "priority", "due_date")


@contextmanager
def _storage(db: Session, op: str):
    """Turn driver and SQL failures into Unexpected; the cause stays chained."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        raise Unexpected(f"{op}: {exc.__class__.__name__}") from exc


def create_task(db: Session, owner_id: str, data: TaskCreate) -> TaskDB:
    title = (data.title or "").strip()
    if not title:
        raise ValidationError("Title is required")
    values = {
        "title": title,
        "description": data.description,
        "priority": data.priority,
        "due_date": data.due_date,
        "status": DEFAULT_STATUS,
        "completed": is_completed(DEFAULT_STATUS),
    }
    with _storage(db, "create_task"):
        row = store_db.create_task(db, values, owner_id=owner_id)
    log.info("task_created task_id=%s owner_id=%s", row.id, owner_id)
    return row


def list_tasks(
    db: Session,
    owner_id: str,
    *,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    q: Optional[str] = None,
    due_before: Optional[date] = None,
    due_after: Optional[date] = None,
) -> List[TaskDB]:
    with _storage(db, "list_tasks"):
        return store_db.list_tasks(
            db,
            owner_id=owner_id,
            status=status,
            priority=priority,
            q=q,
            due_before=due_before,
            due_after=due_after,
        )


def count_tasks(
    db: Session,
    owner_id: str,
    *,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    q: Optional[str] = None,
    due_before: Optional[date] = None,
    due_after: Optional[date] = None,
) -> int:
    with _storage(db, "count_tasks"):
        return store_db.count_tasks(
            db,
            owner_id=owner_id,
            status=status,
            priority=priority,
            q=q,
            due_before=due_before,
            due_after=due_after,
        )


def get_task(db: Session, owner_id: str, task_id: str) -> TaskDB:
    with _storage(db, "get_task"):
        row = store_db.get_task(db, task_id, owner_id=owner_id)
    if row is None:
        log.debug("task_not_found task_id=%s owner_id=%s", task_id, owner_id)
        raise NotFound()
    return row


def update_task(db: Session, owner_id: str, task_id: str, patch: TaskUpdate) -> TaskDB:
    """Apply only the fields present in `patch`.

    status/completed are never written as given: they go through `reconcile`,
    evaluated by the database against the stored status in the same statement.
    """
    changes: Dict[str, Any] = patch.changes()
    values = {name: changes[name] for name in PLAIN_FIELDS if name in changes}
    if "title" in values and not values["title"]:
        raise ValidationError("Title is required")

    status_rule = None
    if "status" in changes or "completed" in changes:
        status_rule = partial(reconcile, changes.get("status"), changes.get("completed"))

    if not values and status_rule is None:
        # nothing to change; still enforce ownership
        return get_task(db, owner_id, task_id)

    with _storage(db, "update_task"):
        row = store_db.update_task(db, task_id, values, owner_id=owner_id, status_rule=status_rule)
    if row is None:
        log.debug("task_not_found task_id=%s owner_id=%s", task_id, owner_id)
        raise NotFound()
    log.info("task_updated task_id=%s fields=%s", task_id, ",".join(sorted(changes)))
    return row


def delete_task(db: Session, owner_id: str, task_id: str) -> None:
    with _storage(db, "delete_task"):
        deleted = store_db.delete_task(db, task_id, owner_id=owner_id)
    if not deleted:
        log.debug("task_not_found task_id=%s owner_id=%s", task_id, owner_id)
        raise NotFound()
    log.info("task_deleted task_id=%s owner_id=%s", task_id, owner_id)


def toggle_task(db: Session, owner_id: str, task_id: str) -> TaskDB:
    with _storage(db, "toggle_task"):
        row = store_db.toggle_task(db, task_id, owner_id=owner_id)
    if row is None:
        log.debug("task_not_found task_id=%s owner_id=%s", task_id, owner_id)
        raise NotFound()
    log.info("task_toggled task_id=%s status=%s", task_id, row.status)
    return row


def paginate(db: Session, owner_id: str, *, page: int, limit: int) -> TaskPage:
    """Newest-first window of the owner's tasks plus page metadata.

    A page past the end is not an error: it comes back empty with hasMore=false.
    """
    if page < 1:
        raise ValidationError("page must be >= 1")
    if limit < 1:
        raise ValidationError("limit must be >= 1")

    offset = (page - 1) * limit
    with _storage(db, "paginate"):
        total = store_db.count_tasks(db, owner_id=owner_id)
        # past the end: nothing to fetch, and the offset may not fit a SQL integer
        rows = store_db.list_tasks(db, owner_id=owner_id, limit=limit, offset=offset) if offset < total else []
    total_pages = math.ceil(total / limit)
    return TaskPage(
        tasks=[TaskOut.model_validate(r) for r in rows],
        current_page=page,
        total_pages=total_pages,
        total_tasks=total,
        has_more=page < total_pages,
    )


def stats(db: Session, owner_id: str) -> TaskStats:
    """Per-status counts; statuses with no tasks are reported as 0."""
    with _storage(db, "stats"):
        counts = store_db.count_by_status(db, owner_id=owner_id)
    buckets = {status: counts.get(status, 0) for status in STATUSES}
    return TaskStats(
        pending=buckets["pending"],
        in_progress=buckets["in progress"],
        done=buckets["done"],
        total=sum(counts.values()),
    )


def upcoming_tasks(db: Session, owner_id: str, *, today: date) -> List[TaskDB]:
    with _storage(db, "upcoming_tasks"):
        return store_db.list_due_after(db, owner_id=owner_id, day=today)


def due_today(db: Session, owner_id: str, *, today: date) -> List[TaskDB]:
    with _storage(db, "due_today"):
        return store_db.list_open_due_on(db, owner_id=owner_id, day=today)
