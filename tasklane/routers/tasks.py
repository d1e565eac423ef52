# PURPOSE: /tasks endpoints; every route is scoped to the bearer token's owner.

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from .. import service
from ..api.deps import parse_limit, parse_page, parse_priority, parse_status, reference_date
from ..auth import get_current_owner_id
from ..db import get_db
from ..models import MessageResponse, Task, TaskCreate, TaskPage, TaskStats, TaskUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=List[Task], include_in_schema=False)
@router.get("/", response_model=List[Task])
def list_tasks(
    response: Response,
    owner_id: str = Depends(get_current_owner_id),
    status: Optional[str] = Depends(parse_status),
    priority: Optional[str] = Depends(parse_priority),
    q: Optional[str] = None,
    due_before: Optional[date] = None,
    due_after: Optional[date] = None,
    db: Session = Depends(get_db),
):
    items = service.list_tasks(
        db, owner_id,
        status=status, priority=priority, q=q,
        due_before=due_before, due_after=due_after,
    )
    response.headers["X-Total-Count"] = str(
        service.count_tasks(
            db, owner_id,
            status=status, priority=priority, q=q,
            due_before=due_before, due_after=due_after,
        )
    )
    return items


@router.post("", response_model=Task, status_code=status.HTTP_201_CREATED, include_in_schema=False)
@router.post("/", response_model=Task, status_code=status.HTTP_201_CREATED)
def create_task(
    item: TaskCreate,
    response: Response,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    task = service.create_task(db, owner_id, item)
    response.headers["Location"] = f"/api/v1/tasks/{task.id}"
    return task


# Fixed paths must be declared before /{task_id}


@router.get("/paginated", response_model=TaskPage)
def paginated(
    owner_id: str = Depends(get_current_owner_id),
    page: int = Depends(parse_page),
    limit: int = Depends(parse_limit),
    db: Session = Depends(get_db),
):
    return service.paginate(db, owner_id, page=page, limit=limit)


@router.get("/stats", response_model=TaskStats)
def stats(
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    return service.stats(db, owner_id)


@router.get("/upcoming", response_model=List[Task])
def upcoming(
    today: date = Depends(reference_date),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    return service.upcoming_tasks(db, owner_id, today=today)


@router.get("/due-today", response_model=List[Task])
def due_today(
    today: date = Depends(reference_date),
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    return service.due_today(db, owner_id, today=today)


@router.get("/{task_id}", response_model=Task)
def get_task(
    task_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    return service.get_task(db, owner_id, task_id)


@router.patch("/{task_id}", response_model=Task)
@router.put("/{task_id}", response_model=Task)
def update_task(
    task_id: str,
    item: TaskUpdate,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    # PUT is kept for older clients; both are partial updates
    return service.update_task(db, owner_id, task_id, item)


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    service.delete_task(db, owner_id, task_id)
    return MessageResponse(message="Task deleted successfully")


@router.patch("/{task_id}/toggle", response_model=Task)
def toggle_task(
    task_id: str,
    db: Session = Depends(get_db),
    owner_id: str = Depends(get_current_owner_id),
):
    return service.toggle_task(db, owner_id, task_id)
