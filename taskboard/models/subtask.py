"""Subtask model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, ForeignKey, Integer
from datetime import datetime
from typing import Optional

from taskboard.models.task import utc_now

SUBTASK_INITIAL_STATUS = "not started"


class Subtask(SQLModel, table=True):
    """Child work item of a task."""
    __tablename__ = "sub_task"

    id: Optional[int] = Field(default=None, primary_key=True)
    parent_task_id: int = Field(
        sa_column=Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), index=True, nullable=False)
    )
    title: str = Field(max_length=200, min_length=1)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: str = Field(default=SUBTASK_INITIAL_STATUS, max_length=30)
    priority: Optional[int] = Field(default=None)
    inherits_recurrence: bool = Field(default=False)
    recurrence_series_id: Optional[str] = Field(default=None, max_length=36)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
