"""Pydantic schemas for tasks.

- TaskCreate: what you POST; no owner field, the caller always owns it
- TaskUpdate: partial PUT body, converted to TaskChanges
- TaskRead / TaskList / TaskStats: what the API returns

Unknown fields are rejected, so an owner_id smuggled into a body never
reaches the service.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from taskhub.schemas.common import Pagination
from taskhub.services.task_service import TaskChanges

TaskStatus = Literal["pending", "in_progress", "completed", "cancelled"]
TaskPriority = Literal["low", "medium", "high", "urgent"]


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    due_date: Optional[datetime] = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}


class TaskUpdate(BaseModel):
    """Partial update: only fields present in the body are applied.

    An explicit null clears description or due_date. title, status and
    priority cannot be null.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None

    model_config = {"extra": "forbid", "str_strip_whitespace": True}

    @field_validator("title", "status", "priority")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v

    def to_changes(self) -> TaskChanges:
        return TaskChanges(**self.model_dump(exclude_unset=True))


class TaskRead(BaseModel):
    id: int
    title: str
    description: Optional[str]
    status: str
    priority: str
    due_date: Optional[datetime]
    owner_id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TaskList(BaseModel):
    tasks: list[TaskRead]
    pagination: Pagination


class TaskStats(BaseModel):
    total: int
    pending: int
    in_progress: int
    completed: int
    cancelled: int
