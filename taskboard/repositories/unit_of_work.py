"""Unit of work grouping the repositories of one request."""
from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Depends
from sqlmodel import Session

from taskboard.db.config import get_session
from taskboard.repositories.base import HistoryRepository, SubtaskRepository, TaskRepository
from taskboard.repositories.sql import SQLHistoryRepository, SQLSubtaskRepository, SQLTaskRepository, store_errors


class UnitOfWork:
    """
    Shares one session between the task, history and subtask repositories.

    Writes stay pending until commit(); savepoint() scopes a secondary write
    so that its failure does not undo the rest of the transaction.
    """

    def __init__(
        self,
        session: Session,
        tasks: Optional[TaskRepository] = None,
        history: Optional[HistoryRepository] = None,
        subtasks: Optional[SubtaskRepository] = None,
    ):
        self.session = session
        self.tasks = tasks or SQLTaskRepository(session)
        self.history = history or SQLHistoryRepository(session)
        self.subtasks = subtasks or SQLSubtaskRepository(session)

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        with self.session.begin_nested():
            yield

    def commit(self) -> None:
        with store_errors("commit changes"):
            self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


def get_unit_of_work(session: Session = Depends(get_session)) -> UnitOfWork:
    """Dependency for getting a UnitOfWork bound to the request session."""
    return UnitOfWork(session)
