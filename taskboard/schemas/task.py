"""Task schemas for recurring task management."""
from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional, List

PATTERN_REGEX = r"^(daily|weekly|biweekly|monthly|quarterly|yearly)$"


class RecurringTaskCreate(BaseModel):
    """Schema for creating a recurring task."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    priority: Optional[int] = Field(None, ge=1, le=10)
    due_date: Optional[date] = None
    project_id: Optional[int] = None
    collaborators: Optional[List[str]] = None
    file: Optional[str] = None
    recurrence_pattern: str = Field(..., pattern=PATTERN_REGEX)
    recurrence_interval: int = Field(default=1, ge=1)
    recurrence_end_date: Optional[date] = None  # inclusive
    recurrence_count: Optional[int] = Field(None, ge=1)
    recurrence_weekday: Optional[int] = Field(None, ge=0, le=6)  # 0 = Sunday, weekly/biweekly only


class RecurringTaskUpdate(BaseModel):
    """Schema for updating a recurring task; only provided fields change."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    priority: Optional[int] = Field(None, ge=1, le=10)
    due_date: Optional[date] = None
    project_id: Optional[int] = None
    collaborators: Optional[List[str]] = None
    file: Optional[str] = None
    recurrence_pattern: Optional[str] = Field(None, pattern=PATTERN_REGEX)
    recurrence_interval: Optional[int] = Field(None, ge=1)
    recurrence_end_date: Optional[date] = None
    recurrence_count: Optional[int] = Field(None, ge=1)


class TaskResponse(BaseModel):
    """Schema for task API responses."""
    id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    status: str
    priority: Optional[int] = None
    owner_id: str
    project_id: Optional[int] = None
    collaborators: Optional[List[str]] = None
    file: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    is_recurring: bool = False
    recurrence_pattern: Optional[str] = None
    recurrence_interval: Optional[int] = None
    recurrence_end_date: Optional[date] = None
    recurrence_count: Optional[int] = None
    parent_recurrence_id: Optional[int] = None
    recurrence_series_id: Optional[str] = None
    series_state: Optional[str] = None
    next_occurrence_date: Optional[date] = None
    last_completed_date: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RecurringTaskCreated(BaseModel):
    task: TaskResponse
    master_task: TaskResponse


class TaskCompletionResponse(BaseModel):
    """Result of completing a task."""
    message: Optional[str] = None
    next_task: Optional[TaskResponse] = None


class RecurrenceHistoryResponse(BaseModel):
    id: int
    original_task_id: int
    recurrence_series_id: str
    instance_number: int
    scheduled_date: date
    status: str
    completed_date: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskDeletionResponse(BaseModel):
    deleted_count: int
