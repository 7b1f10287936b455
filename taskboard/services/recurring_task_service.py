"""
Recurring Task Service

Manages recurrence series: a master task holds the recurrence settings and,
each time the current occurrence is completed, a dated instance task is
spawned for the next occurrence until the series' end date or count is reached.
"""

import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from taskboard.models.recurrence_history import RecurrenceHistory
from taskboard.models.subtask import SUBTASK_INITIAL_STATUS, Subtask
from taskboard.models.task import OPEN_STATUSES, SeriesState, Task, TaskStatus, utc_now
from taskboard.repositories.unit_of_work import UnitOfWork
from taskboard.services.errors import (
    MasterNotFoundError,
    RecurrenceError,
    RecurrenceValidationError,
    StoreError,
    TaskNotFoundError,
)
from taskboard.services.recurrence_dates import (
    WEEKDAY_NAMES,
    WEEKDAY_PATTERNS,
    calculate_next_occurrence,
    next_occurrence_of_weekday_allowing_today,
    should_continue_recurrence,
    sunday_based_weekday,
    to_date,
)
from taskboard.services.recurrence_validator import RecurrenceValidator
from taskboard.utils import metrics
from taskboard.utils.logger import get_logger
from taskboard.utils.metrics import metrics_collector

logger = get_logger("recurrence-service")

# Copied from the master onto every instance
INSTANCE_FIELDS = ("title", "description", "priority", "owner_id", "project_id", "collaborators", "file")

UPDATABLE_FIELDS = (
    "title",
    "description",
    "priority",
    "due_date",
    "project_id",
    "collaborators",
    "file",
    "recurrence_pattern",
    "recurrence_interval",
    "recurrence_end_date",
    "recurrence_count",
)
DATE_FIELDS = ("due_date", "recurrence_end_date")


class RecurringTaskService:
    """Service to handle the lifecycle of recurrence series."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def _fail(self, error: RecurrenceError, action: str, **context) -> Dict[str, Any]:
        self.uow.rollback()
        logger.error(f"Failed to {action}", code=error.code, error=error.message, **context)
        return {"success": False, "error": error.message}

    def create_recurring_task(
        self, task_data: Dict[str, Any], weekday_preference: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Create the master task of a new recurrence series.

        The master is returned as the task to work on; the first instance is
        only generated once the master itself is completed.

        Args:
            task_data: Task fields including owner_id and recurrence_pattern
            weekday_preference: Weekday (0 = Sunday) for weekly/biweekly series

        Returns:
            {"success", "task", "master_task"} or {"success": False, "error"}
        """
        data = dict(task_data)
        try:
            errors = []
            if not data.get("owner_id"):
                errors.append("owner_id is required")
            if not data.get("title"):
                errors.append("title is required")
            validation = RecurrenceValidator.validate_recurrence_settings(data, weekday_preference)
            errors.extend(validation["errors"])
            errors.extend(RecurrenceValidator.validate_priority(data.get("priority"))["errors"])
            if errors:
                raise RecurrenceValidationError(errors)

            pattern = data["recurrence_pattern"]
            interval = data.get("recurrence_interval") or 1
            weekday = weekday_preference if pattern in WEEKDAY_PATTERNS else None

            due_date = to_date(data.get("due_date")) or date.today()
            if weekday is not None:
                due_date = next_occurrence_of_weekday_allowing_today(due_date, weekday)

            master = Task(
                **{field: data.get(field) for field in INSTANCE_FIELDS},
                due_date=due_date,
                is_recurring=True,
                recurrence_pattern=pattern,
                recurrence_interval=interval,
                recurrence_end_date=to_date(data.get("recurrence_end_date")),
                recurrence_count=data.get("recurrence_count"),
                recurrence_series_id=str(uuid.uuid4()),
                next_occurrence_date=due_date,
            )
            master.apply_series_state(SeriesState.ACTIVE_NO_INSTANCE)
            master = self.uow.tasks.add(master)

            following = calculate_next_occurrence(due_date, pattern, interval, weekday)
            self.uow.commit()
        except RecurrenceError as e:
            return self._fail(e, "create recurring task", owner_id=data.get("owner_id"))

        metrics_collector.increment(metrics.SERIES_CREATED)
        logger.info(
            "Created recurring task",
            task_id=master.id,
            series_id=master.recurrence_series_id,
            pattern=pattern,
            due_date=due_date,
            following_occurrence=following,
            weekday=WEEKDAY_NAMES[weekday] if weekday is not None else None,
        )
        return {"success": True, "task": master, "master_task": master}

    def complete_task(self, task_id: int) -> Dict[str, Any]:
        """
        Mark a task completed, then advance its recurrence series.

        The completion is committed on its own so that it stands even when
        the series cannot be advanced.
        """
        try:
            task = self.uow.tasks.get(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            if task.status == TaskStatus.COMPLETED.value:
                logger.debug("Task already completed, series not advanced", task_id=task_id)
                return {"success": True, "message": "Task already completed"}
            self._ensure_actionable(task)
            task.status = TaskStatus.COMPLETED.value
            self.uow.tasks.save(task)
            self.uow.commit()
        except RecurrenceError as e:
            return self._fail(e, "complete task", task_id=task_id)

        return self.handle_task_completion(task_id)

    @metrics_collector.timed("recurrence_completion_seconds")
    def handle_task_completion(self, task_id: int) -> Dict[str, Any]:
        """
        Process the completion of a task of a recurrence series.

        Args:
            task_id: The completed task, master or instance

        Returns:
            {"success", "next_task"?, "message"} or {"success": False, "error"}
        """
        try:
            result = self._advance_series(task_id)
            self.uow.commit()
        except RecurrenceError as e:
            metrics_collector.increment(metrics.COMPLETION_ERRORS)
            return self._fail(e, "handle task completion", task_id=task_id)
        return result

    @staticmethod
    def _ensure_actionable(task: Task) -> None:
        # Once instances exist the latest instance is the one to complete
        if task.is_master and task.series_state == SeriesState.ACTIVE_WITH_INSTANCES.value:
            raise RecurrenceValidationError(["Recurring template cannot be completed"])

    def _advance_series(self, task_id: int) -> Dict[str, Any]:
        task = self.uow.tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        if not task.is_recurring and task.parent_recurrence_id is None:
            logger.debug("Task is not recurring, no action needed", task_id=task_id)
            return {"success": True, "message": "Task is not recurring"}

        is_master_task = task.is_master
        if is_master_task:
            self._ensure_actionable(task)
            master = task
        else:
            master = self.uow.tasks.get(task.parent_recurrence_id)
            if master is None or not master.is_recurring:
                raise MasterNotFoundError(task_id, task.parent_recurrence_id)

        now = utc_now()
        if not is_master_task and task.due_date is not None:
            if self.uow.history.mark_completed(master.id, task.due_date, now) is None:
                logger.warning("No history record for completed instance", task_id=task.id, master_id=master.id)

        pattern = master.recurrence_pattern
        current_date = task.due_date or now.date()
        # Keep the series on the weekday the latest occurrence fell on
        weekday = sunday_based_weekday(current_date) if pattern in WEEKDAY_PATTERNS else None

        next_date = calculate_next_occurrence(current_date, pattern, master.recurrence_interval or 1, weekday)
        instance_number = self.uow.history.latest_instance_number(master.id) + 1

        if not should_continue_recurrence(
            next_date, master.recurrence_end_date, master.recurrence_count, instance_number
        ):
            master.apply_series_state(SeriesState.COMPLETED)
            master.next_occurrence_date = None
            master.last_completed_date = now
            self.uow.tasks.save(master)
            metrics_collector.increment(metrics.SERIES_COMPLETED)
            logger.info(
                "Recurrence series completed",
                master_id=master.id,
                series_id=master.recurrence_series_id,
                occurrences=instance_number,
            )
            return {"success": True, "message": "Recurrence series completed"}

        next_task = self.create_next_task_instance(master, next_date, instance_number)

        master.apply_series_state(SeriesState.ACTIVE_WITH_INSTANCES)
        master.next_occurrence_date = next_date
        master.last_completed_date = now
        self.uow.tasks.save(master)

        return {
            "success": True,
            "next_task": next_task,
            "message": "Next recurring task created successfully"
        }

    def create_next_task_instance(
        self, master_task: Task, next_date: date, instance_number: int
    ) -> Task:
        """
        Create the instance task of the next occurrence.

        Only the task insert is critical; the history record and the subtask
        copies are written in savepoints and their failures are logged.

        Raises:
            StoreWriteError: If the instance task could not be inserted
        """
        instance = Task(
            **{field: getattr(master_task, field) for field in INSTANCE_FIELDS},
            due_date=to_date(next_date),
            status=TaskStatus.ONGOING.value,
            parent_recurrence_id=master_task.id,
            recurrence_series_id=master_task.recurrence_series_id,
        )
        if master_task.collaborators is not None:
            instance.collaborators = list(master_task.collaborators)
        instance = self.uow.tasks.add(instance)

        try:
            with self.uow.savepoint():
                self.uow.history.record_instance(
                    master_task.id, master_task.recurrence_series_id, instance_number, instance.due_date
                )
        except (StoreError, SQLAlchemyError) as e:
            metrics_collector.increment(metrics.SECONDARY_WRITE_FAILURES)
            logger.error("Failed to record recurrence history", task_id=instance.id, error=str(e))

        self._copy_subtasks(master_task, instance)

        metrics_collector.increment(metrics.INSTANCES_CREATED)
        logger.info(
            "Created next recurring instance",
            task_id=instance.id,
            master_id=master_task.id,
            instance_number=instance_number,
            due_date=instance.due_date,
        )
        return instance

    def _copy_subtasks(self, master_task: Task, instance: Task) -> None:
        try:
            with self.uow.savepoint():
                sources = self.uow.subtasks.list_inheriting(master_task.id)
                copies = [
                    Subtask(
                        parent_task_id=instance.id,
                        title=subtask.title,
                        description=subtask.description,
                        status=SUBTASK_INITIAL_STATUS,
                        priority=subtask.priority,
                        inherits_recurrence=True,
                        recurrence_series_id=master_task.recurrence_series_id,
                    )
                    for subtask in sources
                ]
                if copies:
                    self.uow.subtasks.add_all(copies)
        except (StoreError, SQLAlchemyError) as e:
            metrics_collector.increment(metrics.SECONDARY_WRITE_FAILURES)
            logger.error("Failed to copy subtasks", task_id=instance.id, master_id=master_task.id, error=str(e))
            return

        if copies:
            logger.info("Copied subtasks", task_id=instance.id, count=len(copies))

    def update_recurring_task(self, task_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Update the settings of a recurring (master) task."""
        try:
            task = self.uow.tasks.get(task_id)
            if task is None or not task.is_recurring:
                raise TaskNotFoundError(task_id)

            changes = {key: value for key, value in updates.items() if key in UPDATABLE_FIELDS}
            merged = {field: getattr(task, field) for field in UPDATABLE_FIELDS}
            merged.update(changes)
            errors = RecurrenceValidator.validate_recurrence_settings(merged)["errors"]
            errors.extend(RecurrenceValidator.validate_priority(merged.get("priority"))["errors"])
            if "title" in changes and not changes["title"]:
                errors.append("title cannot be empty")
            if errors:
                raise RecurrenceValidationError(errors)

            for field, value in changes.items():
                if field in DATE_FIELDS:
                    value = to_date(value)
                setattr(task, field, value)
            if "due_date" in changes and task.series_state == SeriesState.ACTIVE_NO_INSTANCE.value:
                task.next_occurrence_date = task.due_date

            self.uow.tasks.save(task)
            self.uow.commit()
        except RecurrenceError as e:
            return self._fail(e, "update recurring task", task_id=task_id)

        logger.info("Updated recurring task", task_id=task_id, fields=sorted(changes))
        return {"success": True, "task": task}

    def delete_recurring_task(self, master_task_id: int, delete_all_instances: bool = False) -> Dict[str, Any]:
        """
        Delete a recurrence series.

        With delete_all_instances every task of the series goes, along with
        its history. Otherwise the master and the still open instances are
        removed and completed instances are kept.
        """
        try:
            master = self.uow.tasks.get(master_task_id)
            if master is None or not master.is_master:
                raise TaskNotFoundError(master_task_id)

            series_id = master.recurrence_series_id
            series = self.uow.tasks.list_series(series_id)
            if delete_all_instances:
                targets = series
                self.uow.history.delete_series(series_id)
            else:
                targets = [t for t in series if t.id == master.id or t.status in OPEN_STATUSES]

            task_ids = [t.id for t in targets]
            self.uow.subtasks.delete_for_tasks(task_ids)
            deleted_count = self.uow.tasks.delete(task_ids)
            self.uow.commit()
        except RecurrenceError as e:
            return self._fail(e, "delete recurring task", task_id=master_task_id)

        logger.info(
            "Deleted recurring task",
            task_id=master_task_id,
            series_id=series_id,
            deleted_count=deleted_count,
            all_instances=delete_all_instances,
        )
        return {"success": True, "deleted_count": deleted_count}

    def get_series_master(self, task_id: int) -> Optional[Task]:
        """The master of the series a task belongs to, or None."""
        task = self.uow.tasks.get(task_id)
        if task is None:
            return None
        if task.is_master:
            return task
        if task.parent_recurrence_id is None:
            return None
        return self.uow.tasks.get(task.parent_recurrence_id)

    def get_recurrence_history(self, master_task_id: int) -> List[RecurrenceHistory]:
        return self.uow.history.list_for_master(master_task_id)

    def get_recurrence_instances(self, series_id: str) -> List[Task]:
        return self.uow.tasks.list_series(series_id, exclude_status=TaskStatus.RECURRING_TEMPLATE.value)

    def get_active_recurring_tasks(self) -> List[Task]:
        return self.uow.tasks.list_active_templates()
