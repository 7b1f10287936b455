"""Recurring task router."""
import logging
from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import Any, Dict, List

from taskboard.middleware.auth import CurrentUser, get_current_user
from taskboard.models.task import Task
from taskboard.repositories.unit_of_work import UnitOfWork, get_unit_of_work
from taskboard.schemas.task import (
    RecurrenceHistoryResponse,
    RecurringTaskCreate,
    RecurringTaskCreated,
    RecurringTaskUpdate,
    TaskCompletionResponse,
    TaskDeletionResponse,
    TaskResponse,
)
from taskboard.services.recurring_task_service import RecurringTaskService
from taskboard.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Recurring Tasks"])  # No prefix since main.py adds /api prefix

NOT_FOUND_ERRORS = ("Task not found", "Master task not found")


def get_recurring_task_service(uow: UnitOfWork = Depends(get_unit_of_work)) -> RecurringTaskService:
    """Dependency for getting RecurringTaskService instance."""
    return RecurringTaskService(uow)


def _raise_for_result(result: Dict[str, Any]) -> None:
    if result["success"]:
        return
    error = result["error"]
    if error in NOT_FOUND_ERRORS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error)
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error)


def _can_view(task: Task, user: CurrentUser) -> bool:
    return task.owner_id == user.user_id or user.user_id in (task.collaborators or [])


def _load_task(service: RecurringTaskService, task_id: int, user: CurrentUser, owner_only: bool = False) -> Task:
    task = service.uow.tasks.get(task_id)
    if task is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    allowed = task.owner_id == user.user_id if owner_only else _can_view(task, user)
    if not allowed:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: no access to this task"
        )
    return task


@router.post("/recurring-tasks", response_model=RecurringTaskCreated, status_code=status.HTTP_201_CREATED)
async def create_recurring_task(
    task_data: RecurringTaskCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Create a recurring task; the owner is the authenticated user."""
    data = task_data.model_dump(exclude={"recurrence_weekday"})
    data["owner_id"] = current_user.user_id

    result = service.create_recurring_task(data, task_data.recurrence_weekday)
    _raise_for_result(result)
    return RecurringTaskCreated(
        task=TaskResponse.model_validate(result["task"]),
        master_task=TaskResponse.model_validate(result["master_task"]),
    )


@router.get("/recurring-tasks", response_model=List[TaskResponse])
async def list_active_recurring_tasks(
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """List the active recurring templates visible to the user."""
    templates = service.get_active_recurring_tasks()
    return [TaskResponse.model_validate(t) for t in templates if _can_view(t, current_user)]


@router.put("/recurring-tasks/{task_id}", response_model=TaskResponse)
async def update_recurring_task(
    task_id: int,
    task_data: RecurringTaskUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Update the settings of a recurring task."""
    _load_task(service, task_id, current_user, owner_only=True)

    result = service.update_recurring_task(task_id, task_data.model_dump(exclude_unset=True))
    _raise_for_result(result)
    return TaskResponse.model_validate(result["task"])


@router.delete("/recurring-tasks/{task_id}", response_model=TaskDeletionResponse)
async def delete_recurring_task(
    task_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
    delete_all_instances: bool = Query(False, description="Also delete completed instances and history"),
):
    """Delete a recurring task series."""
    _load_task(service, task_id, current_user, owner_only=True)

    result = service.delete_recurring_task(task_id, delete_all_instances)
    _raise_for_result(result)
    return TaskDeletionResponse(deleted_count=result["deleted_count"])


@router.get("/recurring-tasks/series/{series_id}/instances", response_model=List[TaskResponse])
async def list_series_instances(
    series_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """List the dated instances of a series, earliest first."""
    instances = service.get_recurrence_instances(series_id)
    if instances and not _can_view(instances[0], current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: no access to this series"
        )
    return [TaskResponse.model_validate(t) for t in instances]


@router.patch("/tasks/{task_id}/complete", response_model=TaskCompletionResponse)
async def complete_task(
    task_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Mark a task as completed, generating the next occurrence of its series."""
    _load_task(service, task_id, current_user)

    result = service.complete_task(task_id)
    _raise_for_result(result)

    next_task = result.get("next_task")
    if next_task is not None:
        logger.info(f"Task {task_id} completed, next occurrence {next_task.id} due {next_task.due_date}")
    return TaskCompletionResponse(
        message=result.get("message"),
        next_task=TaskResponse.model_validate(next_task) if next_task is not None else None,
    )


@router.get("/tasks/{task_id}/recurrence-history", response_model=List[RecurrenceHistoryResponse])
async def get_recurrence_history(
    task_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: RecurringTaskService = Depends(get_recurring_task_service),
):
    """Get the history of the series a task (master or instance) belongs to."""
    _load_task(service, task_id, current_user)

    master = service.get_series_master(task_id)
    if master is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task is not part of a recurrence series"
        )
    return [RecurrenceHistoryResponse.model_validate(h) for h in service.get_recurrence_history(master.id)]


@router.get("/recurrence/metrics")
async def recurrence_metrics(current_user: CurrentUser = Depends(get_current_user)):
    """Counters and timers of recurrence processing."""
    return metrics_collector.get_metrics()
