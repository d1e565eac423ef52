# PURPOSE: define how User and Task rows look in the database.

import uuid
from datetime import UTC, date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base
from .lifecycle import DEFAULT_PRIORITY, DEFAULT_STATUS


def now_utc():
    """Return timezone-aware UTC datetime (stored in DB)."""
    return datetime.now(UTC)


def new_id() -> str:
    """Opaque identifier for users and tasks."""
    return uuid.uuid4().hex


class UserDB(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)

    tasks = relationship("TaskDB", back_populates="owner")


class TaskDB(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_PRIORITY)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_STATUS)  # pending | in progress | done
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)  # == (status == "done")
    owner_id: Mapped[str] = mapped_column(String(32), ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)

    owner = relationship("UserDB", back_populates="tasks")


# Owner-scoped listing is the hot path: filter by owner, newest first
Index("ix_tasks_owner_created", TaskDB.owner_id, TaskDB.created_at)
Index("ix_tasks_owner_status", TaskDB.owner_id, TaskDB.status)
Index("ix_tasks_due_date", TaskDB.due_date)
