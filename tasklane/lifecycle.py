"""Task status / completion rules.

``completed`` is a legacy field kept for clients that only know about a
boolean. It is always derived from ``status``: a task is completed iff its
status is ``done``. Every write path (create, update, toggle, migrations)
goes through the functions below so the two fields can never disagree.
"""

import re
from typing import Literal, Optional, Tuple

Status = Literal["pending", "in progress", "done"]
Priority = Literal["low", "medium", "high"]

STATUSES: Tuple[str, ...] = ("pending", "in progress", "done")
PRIORITIES: Tuple[str, ...] = ("low", "medium", "high")

DEFAULT_STATUS: Status = "pending"
DEFAULT_PRIORITY: Priority = "medium"

_LEGACY_IN_PROGRESS = re.compile(r"^in[\s_\-]*progress$")


def is_completed(status: str) -> bool:
    return status == "done"


def reconcile(
    status: Optional[str],
    completed: Optional[bool],
    previous: str,
) -> Tuple[str, bool]:
    """Return the ``(status, completed)`` pair a task must end up with.

    ``status`` / ``completed`` are the values supplied by the caller (None when
    absent), ``previous`` is the status currently stored.

    - status given: it wins, completed is re-derived from it.
    - only completed=True: the task becomes done.
    - only completed=False: a done task is reopened as pending, any other
      status is left alone.
    - neither: nothing changes.
    """
    if status is not None:
        return status, is_completed(status)
    if completed is True:
        return "done", True
    if completed is False:
        if previous == "done":
            return "pending", False
        return previous, False
    return previous, is_completed(previous)


def toggled(completed: bool) -> Tuple[str, bool]:
    """Return the ``(status, completed)`` pair after flipping ``completed``."""
    if completed:
        return "pending", False
    return "done", True


def normalize_status(raw: Optional[str]) -> str:
    """Map stored status spellings onto the canonical enum.

    Older rows carry ``in_progress`` / ``in-progress`` / ``inprogress``; empty
    or unknown values fall back to the default status.
    """
    if raw is None:
        return DEFAULT_STATUS
    value = raw.strip().lower()
    if value in STATUSES:
        return value
    if _LEGACY_IN_PROGRESS.match(value):
        return "in progress"
    if value in ("completed", "complete"):
        return "done"
    return DEFAULT_STATUS
