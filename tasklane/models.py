# PURPOSE: Pydantic request/response schemas (JSON uses camelCase keys).

from datetime import date, datetime
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    computed_field,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .lifecycle import DEFAULT_PRIORITY, Priority, Status


def _coerce_due_date(value: Any) -> Any:
    """Accept full ISO timestamps for dueDate and keep only the date part."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    return value


DueDate = Annotated[date | None, BeforeValidator(_coerce_due_date)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# --- Task schemas ---


class TaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    priority: Priority = DEFAULT_PRIORITY
    due_date: DueDate = None
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {"title": "Buy milk"},
                {"title": "Plan trip", "priority": "high", "dueDate": "2025-12-31"},
            ]
        },
    )


class TaskUpdate(CamelModel):
    """Partial update: only keys present in the body are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    priority: Priority | None = None
    due_date: DueDate = None
    status: Status | None = None
    completed: bool | None = None
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {"status": "in progress"},
                {"completed": True},
                {"title": "New title", "dueDate": None},
            ]
        },
    )

    @model_validator(mode="after")
    def _reject_null_required(self):
        for name in ("title", "priority", "status", "completed"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} may not be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Provided fields keyed by column name."""
        return self.model_dump(exclude_unset=True)


class Task(CamelModel):
    id: str
    title: str
    description: str | None = None
    priority: Priority
    due_date: DueDate = None
    status: Status
    completed: bool
    owner_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)  # ORM -> schema

    @computed_field(alias="_id")
    @property
    def legacy_id(self) -> str:
        # Older clients read the identifier from `_id`
        return self.id


class TaskPage(CamelModel):
    tasks: list[Task]
    current_page: int
    total_pages: int
    total_tasks: int
    has_more: bool


class TaskStats(BaseModel):
    pending: int = 0
    in_progress: int = Field(default=0, alias="in progress")
    done: int = 0
    total: int = 0

    model_config = ConfigDict(populate_by_name=True)


# --- User / Auth schemas ---


class RegisterRequest(CamelModel):
    name: str | None = Field(default=None, max_length=120)
    email: EmailStr
    password: str = Field(min_length=1)
    # passwords are taken verbatim
    model_config = ConfigDict(str_strip_whitespace=False)


class LoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    model_config = ConfigDict(str_strip_whitespace=False)


class UserPublic(CamelModel):
    id: str
    name: str | None = None
    email: EmailStr
    model_config = ConfigDict(from_attributes=True)  # allow ORM -> schema


class AuthResponse(BaseModel):
    user: UserPublic
    token: str
    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"user": {"id": "9f1c...", "name": "Ada", "email": "ada@example.com"}, "token": "<jwt>"}
            ]
        }
    )


class MessageResponse(BaseModel):
    message: str
