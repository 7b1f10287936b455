"""Task model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, JSON, String
from datetime import date, datetime, timezone
from enum import Enum
from typing import List, Optional


class TaskStatus(str, Enum):
    """Task board status"""
    ONGOING = "ongoing"
    UNDER_REVIEW = "under review"
    COMPLETED = "completed"
    UNASSIGNED = "unassigned"
    RECURRING_TEMPLATE = "recurring_template"


class SeriesState(str, Enum):
    """Lifecycle state of a recurrence series, held by its master task"""
    ACTIVE_NO_INSTANCE = "active_no_instance"
    ACTIVE_WITH_INSTANCES = "active_with_instances"
    COMPLETED = "completed"


SERIES_STATE_STATUS = {
    SeriesState.ACTIVE_NO_INSTANCE: TaskStatus.ONGOING,
    SeriesState.ACTIVE_WITH_INSTANCES: TaskStatus.RECURRING_TEMPLATE,
    SeriesState.COMPLETED: TaskStatus.COMPLETED,
}

# Instances still open on the board; deleting a template removes these
OPEN_STATUSES = (TaskStatus.ONGOING.value, TaskStatus.UNASSIGNED.value, TaskStatus.UNDER_REVIEW.value)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def display_status_for(state: SeriesState) -> str:
    """Board status shown for a master task in the given series state."""
    return SERIES_STATE_STATUS[SeriesState(state)].value


class Task(SQLModel, table=True):
    """Task entity: a standalone task, a recurrence master or a recurrence instance."""
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=200, min_length=1)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[date] = Field(default=None, index=True)
    status: str = Field(default=TaskStatus.ONGOING.value, max_length=30, index=True)
    priority: Optional[int] = Field(default=None)  # 1-10
    owner_id: str = Field(sa_column=Column(String, index=True, nullable=False))
    project_id: Optional[int] = Field(default=None, index=True)
    collaborators: Optional[List[str]] = Field(default=None, sa_column=Column(JSON))
    file: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    # Recurrence
    is_recurring: bool = Field(default=False)
    recurrence_pattern: Optional[str] = Field(default=None, max_length=20)  # daily, weekly, biweekly, monthly, quarterly, yearly
    recurrence_interval: Optional[int] = Field(default=1)
    recurrence_end_date: Optional[date] = Field(default=None)  # inclusive
    recurrence_count: Optional[int] = Field(default=None)  # max occurrences
    parent_recurrence_id: Optional[int] = Field(default=None, index=True)  # master id, unset on the master
    recurrence_series_id: Optional[str] = Field(default=None, max_length=36, index=True)
    series_state: Optional[str] = Field(default=None, max_length=30)  # master only
    next_occurrence_date: Optional[date] = Field(default=None)
    last_completed_date: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    @property
    def is_master(self) -> bool:
        return bool(self.is_recurring) and self.parent_recurrence_id is None

    def apply_series_state(self, state: SeriesState) -> None:
        """Move the master to a new series state, keeping the board status in step."""
        self.series_state = SeriesState(state).value
        self.status = display_status_for(state)
