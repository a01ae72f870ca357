import uuid
from datetime import datetime, timezone

from pydantic import Field, field_validator
from app.models.tasks import TaskPriority, TaskStatus
from app.schemas.common import CamelModel
from app.utils.clock import today_utc
from app.utils.sanitization import clean_text, clean_optional_text


def _as_utc(value: datetime | None) -> datetime | None:
    # Naive values are taken as UTC; aware ones are converted
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TaskBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    category_id: uuid.UUID | None = None

    @field_validator("title", mode="before")
    @classmethod
    def sanitize_title(cls, v):
        return clean_text(v)

    @field_validator("description", mode="before")
    @classmethod
    def sanitize_description(cls, v):
        return clean_optional_text(v)

    @field_validator("due_date")
    @classmethod
    def due_date_to_utc(cls, v):
        return _as_utc(v)


class TaskCreate(TaskBase):
    @field_validator("due_date")
    @classmethod
    def due_date_not_in_past(cls, v):
        v = _as_utc(v)
        if v is not None and v.date() < today_utc():
            raise ValueError("Due date cannot be in the past")
        return v


class TaskUpdate(TaskBase):
    status: TaskStatus = TaskStatus.PENDING


class TaskResponse(CamelModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    due_date: datetime | None = None
    completed_at: datetime | None = None
    category_id: uuid.UUID | None = None
    category_name: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class OverdueCount(CamelModel):
    count: int
