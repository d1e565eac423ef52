# PURPOSE: SQL access for users and tasks.
#
# Every single-task statement is keyed on (task id AND owner id); owner_id is
# a required keyword argument, so there is no way to reach a task by id alone.
# Writes are single UPDATE/DELETE ... RETURNING statements so concurrent
# requests serialize in the database instead of read-modify-writing here.

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import case, delete, func, or_, select, true, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .db_models import TaskDB, UserDB, now_utc
from .errors import Conflict
from .lifecycle import DEFAULT_STATUS, STATUSES, toggled

# previous status -> (status, completed)
StatusRule = Callable[[str], Tuple[str, bool]]


# --- Helpers ---------------------------------------------------------------


def _owned(stmt, owner_id: str):
    return stmt.where(TaskDB.owner_id == owner_id)


def _one_owned(stmt, task_id: str, owner_id: str):
    return stmt.where(TaskDB.id == task_id, TaskDB.owner_id == owner_id)


def _escape_like(term: str) -> str:
    # search text is literal; % and _ must not act as wildcards
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply_filters(
    stmt,
    *,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    q: Optional[str] = None,
    due_before: Optional[date] = None,
    due_after: Optional[date] = None,
):
    """Apply optional list filters to a TaskDB select."""
    if status:
        stmt = stmt.where(TaskDB.status == status)
    if priority:
        stmt = stmt.where(TaskDB.priority == priority)
    if q:
        like = f"%{_escape_like(q)}%"
        stmt = stmt.where(
            or_(TaskDB.title.ilike(like, escape="\\"), TaskDB.description.ilike(like, escape="\\"))
        )
    if due_before is not None:
        stmt = stmt.where(TaskDB.due_date <= due_before)
    if due_after is not None:
        stmt = stmt.where(TaskDB.due_date >= due_after)
    return stmt


def _newest_first(stmt):
    # id as tie-breaker keeps pages stable when timestamps collide
    return stmt.order_by(TaskDB.created_at.desc(), TaskDB.id.desc())


def _status_assignments(rule: StatusRule) -> Dict[str, Any]:
    """Turn a per-previous-status rule into SET values for status/completed.

    The rule is evaluated for every known status and tabulated into a SQL CASE
    over the current column, so the new values are computed by the database
    from the row it is updating.
    """
    outcomes = {prev: rule(prev) for prev in STATUSES}
    fallback = rule(DEFAULT_STATUS)
    distinct = set(outcomes.values()) | {fallback}
    if len(distinct) == 1:
        new_status, new_completed = distinct.pop()
        return {"status": new_status, "completed": new_completed}
    return {
        "status": case(
            {prev: out[0] for prev, out in outcomes.items()},
            value=TaskDB.status,
            else_=fallback[0],
        ),
        "completed": case(
            {prev: out[1] for prev, out in outcomes.items()},
            value=TaskDB.status,
            else_=fallback[1],
        ),
    }


# --- Reads -----------------------------------------------------------------


def list_tasks(
    db: Session,
    *,
    owner_id: str,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    q: Optional[str] = None,
    due_before: Optional[date] = None,
    due_after: Optional[date] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[TaskDB]:
    """Owner's tasks, newest first, with optional filters and window."""
    stmt = _owned(select(TaskDB), owner_id)
    stmt = _apply_filters(
        stmt,
        status=status,
        priority=priority,
        q=q,
        due_before=due_before,
        due_after=due_after,
    )
    stmt = _newest_first(stmt)
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.scalars(stmt).all())


def count_tasks(
    db: Session,
    *,
    owner_id: str,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    q: Optional[str] = None,
    due_before: Optional[date] = None,
    due_after: Optional[date] = None,
) -> int:
    """Return total count for the given filters (no pagination)."""
    stmt = _owned(select(func.count(TaskDB.id)), owner_id)
    stmt = _apply_filters(
        stmt,
        status=status,
        priority=priority,
        q=q,
        due_before=due_before,
        due_after=due_after,
    )
    return int(db.scalar(stmt) or 0)


def count_by_status(db: Session, *, owner_id: str) -> Dict[str, int]:
    """Return {status: count} for the owner's tasks (only statuses present)."""
    stmt = (
        _owned(select(TaskDB.status, func.count(TaskDB.id)), owner_id)
        .group_by(TaskDB.status)
    )
    return {status: int(count) for status, count in db.execute(stmt).all()}


def list_due_after(db: Session, *, owner_id: str, day: date) -> List[TaskDB]:
    """Tasks due strictly after `day`, earliest due first."""
    stmt = (
        _owned(select(TaskDB), owner_id)
        .where(TaskDB.due_date.is_not(None), TaskDB.due_date > day)
        .order_by(TaskDB.due_date.asc(), TaskDB.created_at.asc())
    )
    return list(db.scalars(stmt).all())


def list_open_due_on(db: Session, *, owner_id: str, day: date) -> List[TaskDB]:
    """Not-done tasks due on `day`."""
    stmt = (
        _owned(select(TaskDB), owner_id)
        .where(TaskDB.due_date == day, TaskDB.status != "done")
        .order_by(TaskDB.created_at.asc())
    )
    return list(db.scalars(stmt).all())


def get_task(db: Session, task_id: str, *, owner_id: str) -> Optional[TaskDB]:
    """Fetch a single task owned by owner_id; None if absent or not owned."""
    return db.scalars(_one_owned(select(TaskDB), task_id, owner_id)).one_or_none()


# --- Writes ----------------------------------------------------------------


def create_task(db: Session, values: Dict[str, Any], *, owner_id: str) -> TaskDB:
    """Insert a task for owner_id from already-reconciled column values."""
    now = now_utc()
    row = TaskDB(**values, owner_id=owner_id, created_at=now, updated_at=now)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def update_task(
    db: Session,
    task_id: str,
    values: Dict[str, Any],
    *,
    owner_id: str,
    status_rule: Optional[StatusRule] = None,
) -> Optional[TaskDB]:
    """Atomic partial update. Returns the updated row or None if not found/not owned.

    `values` are plain column assignments; `status_rule`, when given, decides
    status/completed from the status stored at update time.
    """
    assignments = dict(values)
    if status_rule is not None:
        assignments.update(_status_assignments(status_rule))
    assignments["updated_at"] = now_utc()
    stmt = (
        _one_owned(update(TaskDB), task_id, owner_id)
        .values(**assignments)
        .returning(TaskDB)
        .execution_options(synchronize_session=False, populate_existing=True)
    )
    row = db.scalars(stmt).one_or_none()
    db.commit()
    return row


def toggle_task(db: Session, task_id: str, *, owner_id: str) -> Optional[TaskDB]:
    """Flip `completed` and move status accordingly, in one statement."""
    was_done = TaskDB.completed.is_(true())
    on_true, on_false = toggled(True), toggled(False)
    stmt = (
        _one_owned(update(TaskDB), task_id, owner_id)
        .values(
            status=case((was_done, on_true[0]), else_=on_false[0]),
            completed=case((was_done, on_true[1]), else_=on_false[1]),
            updated_at=now_utc(),
        )
        .returning(TaskDB)
        .execution_options(synchronize_session=False, populate_existing=True)
    )
    row = db.scalars(stmt).one_or_none()
    db.commit()
    return row


def delete_task(db: Session, task_id: str, *, owner_id: str) -> bool:
    """Delete a task; returns True if deleted, False if not found/not owned."""
    stmt = (
        _one_owned(delete(TaskDB), task_id, owner_id)
        .returning(TaskDB.id)
        .execution_options(synchronize_session=False)
    )
    deleted = db.execute(stmt).scalar_one_or_none()
    db.commit()
    return deleted is not None


# --- Users -----------------------------------------------------------------


def get_user(db: Session, user_id: str) -> Optional[UserDB]:
    return db.get(UserDB, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[UserDB]:
    return db.scalars(select(UserDB).where(UserDB.email == email)).one_or_none()


def create_user(db: Session, *, name: Optional[str], email: str, password_hash: str) -> UserDB:
    """Insert a user; raises Conflict if the email is taken."""
    if get_user_by_email(db, email) is not None:
        raise Conflict()
    user = UserDB(name=name, email=email, password_hash=password_hash, created_at=now_utc())
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # lost a race with a concurrent registration
        db.rollback()
        raise Conflict() from exc
    db.refresh(user)
    return user
