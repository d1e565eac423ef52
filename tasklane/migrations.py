# PURPOSE: data migrations shared by Alembic revisions (and their tests).
#
# Status spellings drifted between releases ("in progress", "in_progress",
# "in-progress"), and old clients toggled `completed` without touching status.
# normalize_task_statuses() rewrites every row onto the canonical enum, treats
# a row as done when either field says so, and re-derives `completed`.
# Idempotent.

import logging

import sqlalchemy as sa
from sqlalchemy.engine import Connection

from .lifecycle import is_completed, normalize_status

log = logging.getLogger("tasklane.migrations")

# Lightweight table handle; migrations must not depend on the current ORM model
tasks_table = sa.table(
    "tasks",
    sa.column("id", sa.String),
    sa.column("status", sa.String),
    sa.column("completed", sa.Boolean),
)


def normalize_task_statuses(conn: Connection) -> int:
    """Rewrite legacy status values and fix `completed`; return rows changed."""
    rows = conn.execute(
        sa.select(tasks_table.c.id, tasks_table.c.status, tasks_table.c.completed)
    ).all()

    changed = 0
    for task_id, raw_status, completed in rows:
        status = normalize_status(raw_status)
        if completed and status != "done":
            # older clients only ever flipped the boolean
            status = "done"
        done = is_completed(status)
        if status == raw_status and bool(completed) == done:
            continue
        conn.execute(
            sa.update(tasks_table)
            .where(tasks_table.c.id == task_id)
            .values(status=status, completed=done)
        )
        changed += 1

    log.info("normalize_task_statuses rows=%s changed=%s", len(rows), changed)
    return changed
