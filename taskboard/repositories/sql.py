"""SQLModel implementations of the repository interfaces."""
import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from taskboard.models.recurrence_history import RecurrenceHistory
from taskboard.models.subtask import Subtask
from taskboard.models.task import Task, TaskStatus, utc_now
from taskboard.repositories.base import HistoryRepository, SubtaskRepository, TaskRepository
from taskboard.services.errors import StoreError, StoreWriteError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(action: str, write: bool = True):
    """Translate SQLAlchemy failures into store errors."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.error(f"Database error while trying to {action}: {str(e)}")
        error_class = StoreWriteError if write else StoreError
        raise error_class(f"Failed to {action}", details={"reason": str(e)}) from e


class SQLTaskRepository(TaskRepository):
    def __init__(self, session: Session):
        self.session = session

    def get(self, task_id: int) -> Optional[Task]:
        with store_errors("load task", write=False):
            return self.session.get(Task, task_id)

    def add(self, task: Task) -> Task:
        with store_errors("create task"):
            self.session.add(task)
            self.session.flush()
            self.session.refresh(task)
        return task

    def save(self, task: Task) -> Task:
        task.updated_at = utc_now()
        with store_errors("update task"):
            self.session.add(task)
            self.session.flush()
        return task

    def list_series(self, series_id: str, exclude_status: Optional[str] = None) -> List[Task]:
        statement = select(Task).where(Task.recurrence_series_id == series_id)
        if exclude_status:
            statement = statement.where(Task.status != exclude_status)
        statement = statement.order_by(Task.due_date.asc(), Task.id.asc())
        with store_errors("list series tasks", write=False):
            return list(self.session.exec(statement).all())

    def list_active_templates(self) -> List[Task]:
        statement = (
            select(Task)
            .where(Task.status == TaskStatus.RECURRING_TEMPLATE.value)
            .where(Task.is_recurring == True)  # noqa: E712
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        with store_errors("list recurring templates", write=False):
            return list(self.session.exec(statement).all())

    def delete(self, task_ids: Iterable[int]) -> int:
        task_ids = list(task_ids)
        if not task_ids:
            return 0
        with store_errors("delete tasks"):
            tasks = self.session.exec(select(Task).where(Task.id.in_(task_ids))).all()
            for task in tasks:
                self.session.delete(task)
            self.session.flush()
        return len(tasks)


class SQLHistoryRepository(HistoryRepository):
    def __init__(self, session: Session):
        self.session = session

    def record_instance(
        self, master_id: int, series_id: str, instance_number: int, scheduled_date: date
    ) -> RecurrenceHistory:
        statement = (
            select(RecurrenceHistory)
            .where(RecurrenceHistory.recurrence_series_id == series_id)
            .where(RecurrenceHistory.instance_number == instance_number)
        )
        with store_errors("record recurrence history"):
            record = self.session.exec(statement).first()
            if record is None:
                record = RecurrenceHistory(
                    original_task_id=master_id,
                    recurrence_series_id=series_id,
                    instance_number=instance_number,
                    scheduled_date=scheduled_date,
                )
            else:
                # Re-driven after a partial failure
                record.scheduled_date = scheduled_date
                record.status = "active"
                record.completed_date = None
            self.session.add(record)
            self.session.flush()
        return record

    def mark_completed(
        self, master_id: int, scheduled_date: date, completed_at: datetime
    ) -> Optional[RecurrenceHistory]:
        statement = (
            select(RecurrenceHistory)
            .where(RecurrenceHistory.original_task_id == master_id)
            .where(RecurrenceHistory.scheduled_date == scheduled_date)
        )
        with store_errors("update recurrence history"):
            record = self.session.exec(statement).first()
            if record is None:
                return None
            record.status = "completed"
            record.completed_date = completed_at
            self.session.add(record)
            self.session.flush()
        return record

    def latest_instance_number(self, master_id: int) -> int:
        statement = select(func.max(RecurrenceHistory.instance_number)).where(
            RecurrenceHistory.original_task_id == master_id
        )
        with store_errors("read recurrence history", write=False):
            latest = self.session.exec(statement).one()
        return latest or 0

    def list_for_master(self, master_id: int) -> List[RecurrenceHistory]:
        statement = (
            select(RecurrenceHistory)
            .where(RecurrenceHistory.original_task_id == master_id)
            .order_by(RecurrenceHistory.instance_number.asc())
        )
        with store_errors("read recurrence history", write=False):
            return list(self.session.exec(statement).all())

    def delete_series(self, series_id: str) -> int:
        with store_errors("delete recurrence history"):
            records = self.session.exec(
                select(RecurrenceHistory).where(RecurrenceHistory.recurrence_series_id == series_id)
            ).all()
            for record in records:
                self.session.delete(record)
            self.session.flush()
        return len(records)


class SQLSubtaskRepository(SubtaskRepository):
    def __init__(self, session: Session):
        self.session = session

    def list_inheriting(self, task_id: int) -> List[Subtask]:
        statement = (
            select(Subtask)
            .where(Subtask.parent_task_id == task_id)
            .where(Subtask.inherits_recurrence == True)  # noqa: E712
            .order_by(Subtask.id.asc())
        )
        with store_errors("list subtasks", write=False):
            return list(self.session.exec(statement).all())

    def add_all(self, subtasks: List[Subtask]) -> List[Subtask]:
        with store_errors("copy subtasks"):
            self.session.add_all(subtasks)
            self.session.flush()
        return subtasks

    def delete_for_tasks(self, task_ids: Iterable[int]) -> int:
        task_ids = list(task_ids)
        if not task_ids:
            return 0
        with store_errors("delete subtasks"):
            subtasks = self.session.exec(select(Subtask).where(Subtask.parent_task_id.in_(task_ids))).all()
            for subtask in subtasks:
                self.session.delete(subtask)
            self.session.flush()
        return len(subtasks)
