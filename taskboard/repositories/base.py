"""
Repository interfaces.

Defines the persistence contract the recurrence engine depends on.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Iterable, List, Optional

from taskboard.models.recurrence_history import RecurrenceHistory
from taskboard.models.subtask import Subtask
from taskboard.models.task import Task


class TaskRepository(ABC):
    """Abstract interface for task persistence."""

    @abstractmethod
    def get(self, task_id: int) -> Optional[Task]:
        """Get a task by ID."""

    @abstractmethod
    def add(self, task: Task) -> Task:
        """Insert a task and return it with its ID assigned."""

    @abstractmethod
    def save(self, task: Task) -> Task:
        """Persist changes made to a loaded task."""

    @abstractmethod
    def list_series(self, series_id: str, exclude_status: Optional[str] = None) -> List[Task]:
        """Tasks of a series ordered by due date."""

    @abstractmethod
    def list_active_templates(self) -> List[Task]:
        """Recurring templates, newest first."""

    @abstractmethod
    def delete(self, task_ids: Iterable[int]) -> int:
        """Delete tasks by ID and return how many were removed."""


class HistoryRepository(ABC):
    """Abstract interface for recurrence history persistence."""

    @abstractmethod
    def record_instance(
        self, master_id: int, series_id: str, instance_number: int, scheduled_date: date
    ) -> RecurrenceHistory:
        """Insert or refresh the history row of (series_id, instance_number)."""

    @abstractmethod
    def mark_completed(
        self, master_id: int, scheduled_date: date, completed_at: datetime
    ) -> Optional[RecurrenceHistory]:
        """Mark the history row of an occurrence as completed."""

    @abstractmethod
    def latest_instance_number(self, master_id: int) -> int:
        """Highest instance number recorded for a master, 0 when none."""

    @abstractmethod
    def list_for_master(self, master_id: int) -> List[RecurrenceHistory]:
        """History ordered by instance number."""

    @abstractmethod
    def delete_series(self, series_id: str) -> int:
        """Delete the history of a series."""


class SubtaskRepository(ABC):
    """Abstract interface for subtask persistence."""

    @abstractmethod
    def list_inheriting(self, task_id: int) -> List[Subtask]:
        """Subtasks of a task flagged to follow its recurrence."""

    @abstractmethod
    def add_all(self, subtasks: List[Subtask]) -> List[Subtask]:
        """Insert subtasks."""

    @abstractmethod
    def delete_for_tasks(self, task_ids: Iterable[int]) -> int:
        """Delete the subtasks of the given tasks."""
