from datetime import datetime

from pydantic import BaseModel, Field

from app.models.enums import TaskPriority, TaskStatus

class TaskCreateIn(BaseModel):
    project_id: str
    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    status: TaskStatus = TaskStatus.todo
    priority: TaskPriority = TaskPriority.medium
    assigned_to: str | None = None
    estimated_hours: float | None = Field(default=None, ge=0)
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)

class TaskUpdateIn(BaseModel):
    project_id: str | None = None
    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assigned_to: str | None = None
    estimated_hours: float | None = Field(default=None, ge=0)
    actual_hours: float | None = Field(default=None, ge=0)
    due_date: datetime | None = None
    tags: list[str] | None = None

class TaskOut(BaseModel):
    id: str
    project_id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    created_by: str
    assigned_to: str | None
    estimated_hours: float | None
    actual_hours: float | None
    tags: list[str]
    due_date: datetime | None
    completed_at: datetime | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

class TaskStatsOut(BaseModel):
    total: int
    by_status: dict[TaskStatus, int]
    by_priority: dict[TaskPriority, int]
    overdue: int
    completed_this_week: int
    average_completion_time: float | None = None
