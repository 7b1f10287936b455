from datetime import date

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from taskboard.db.config import configure_sqlite, get_session
from taskboard.main import app
from taskboard.middleware.auth import AUTH_ALGORITHM, AUTH_SECRET
from taskboard.repositories.unit_of_work import UnitOfWork
from taskboard.services.recurring_task_service import RecurringTaskService
from taskboard.utils.metrics import metrics_collector

OWNER_ID = "EMP001"


@pytest.fixture
def engine():
    """In-memory SQLite engine, recreated for every test"""
    test_engine = configure_sqlite(create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    ))
    SQLModel.metadata.create_all(test_engine)
    yield test_engine
    SQLModel.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as db:
        yield db


@pytest.fixture
def uow(session):
    return UnitOfWork(session)


@pytest.fixture
def service(uow):
    return RecurringTaskService(uow)


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics_collector.reset()
    yield


@pytest.fixture
def make_series(service):
    """Create a recurring master task through the service"""
    def _make(**overrides):
        data = {
            "title": "Weekly report",
            "description": "Send the weekly status report",
            "priority": 5,
            "owner_id": OWNER_ID,
            "collaborators": ["EMP002"],
            "due_date": date(2025, 10, 15),
            "recurrence_pattern": "weekly",
            "recurrence_interval": 1,
        }
        weekday = overrides.pop("weekday", None)
        data.update(overrides)
        result = service.create_recurring_task(data, weekday)
        assert result["success"], result
        return result["task"]
    return _make


@pytest.fixture
def client(engine):
    """FastAPI test client bound to the test engine"""
    def override_get_session():
        with Session(engine) as db:
            yield db

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_token(user_id: str = OWNER_ID) -> str:
    return jwt.encode({"sub": user_id, "email": f"{user_id.lower()}@example.com"}, AUTH_SECRET, algorithm=AUTH_ALGORITHM)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {make_token()}"}
