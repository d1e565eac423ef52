from datetime import date

from fastapi import HTTPException, Query

from ..config import settings
from ..db_models import now_utc
from ..lifecycle import PRIORITIES, STATUSES, Priority, Status


def _literal_error(field: str, allowed, value: str) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail=[
            {
                "type": "literal_error",
                "loc": ["query", field],
                "msg": f"{field} must be one of: {', '.join(allowed)}",
                "input": value,
            }
        ],
    )


def parse_status(status: str | None = Query(None)) -> Status | None:
    if status is None or status == "":
        return None
    if status in STATUSES:
        return status  # type: ignore[return-value]
    raise _literal_error("status", STATUSES, status)


def parse_priority(priority: str | None = Query(None)) -> Priority | None:
    if priority is None or priority == "":
        return None
    if priority in PRIORITIES:
        return priority  # type: ignore[return-value]
    raise _literal_error("priority", PRIORITIES, priority)


def parse_page(page: int = Query(1)) -> int:
    if page < 1:
        raise HTTPException(
            status_code=400,
            detail=[{"type": "greater_than_equal", "loc": ["query", "page"], "msg": "page must be >= 1", "input": page}],
        )
    return page


def parse_limit(limit: int | None = Query(None)) -> int:
    if limit is None:
        return settings.PAGINATE_DEFAULT_LIMIT
    if limit < 1:
        raise HTTPException(
            status_code=400,
            detail=[{"type": "greater_than_equal", "loc": ["query", "limit"], "msg": "limit must be >= 1", "input": limit}],
        )
    return min(limit, settings.PAGINATE_MAX_LIMIT)


def reference_date(today: date | None = Query(None)) -> date:
    """Date the due-date views are relative to; clients pass their local date."""
    if today is not None:
        return today
    return now_utc().date()
