"""Recurrence history model for SQLModel."""
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, UniqueConstraint
from datetime import date, datetime
from typing import Optional

from taskboard.models.task import utc_now


class RecurrenceHistory(SQLModel, table=True):
    """One row per generated instance of a recurrence series."""
    __tablename__ = "task_recurrence_history"
    __table_args__ = (
        UniqueConstraint("recurrence_series_id", "instance_number", name="uq_history_series_instance"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    original_task_id: int = Field(index=True)  # master task id
    recurrence_series_id: str = Field(max_length=36, index=True)
    instance_number: int = Field(ge=1)
    scheduled_date: date
    status: str = Field(default="active", max_length=20)  # active, completed
    completed_date: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
