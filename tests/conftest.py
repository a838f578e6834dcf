"""Pytest fixtures and configuration for taskflow tests."""

import os

# Point the module-level engine at an in-memory DB before taskflow is imported
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.pop("OPENAI_API_KEY", None)

import uuid
from datetime import datetime, timedelta
from typing import List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from taskflow.database.database import Base
from taskflow.database import models  # noqa: F401
from taskflow.database.repository import TaskRepository
from taskflow.integrations.openai_client import ExtractionError
from taskflow.models.extraction import ExtractionContext, ExtractionResult
from taskflow.models.task import Task, TaskDraft, TaskStatus, TaskPriority
from taskflow.store.base import TaskNotFoundError, TaskStoreError
from taskflow.store.change_feed import ChangeFeed


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def reference_now():
    """Fixed local "now" used across date-sensitive tests (a Monday)."""
    return datetime(2024, 7, 1, 14, 30, 0)


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def change_feed():
    return ChangeFeed()


@pytest.fixture
def task_repository(db_session: Session, change_feed: ChangeFeed):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session, feed=change_feed)


@pytest.fixture
def sample_task_base(test_user_id, reference_now):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "title": "Test Task",
        "description": "Test description",
        "status": TaskStatus.TODO,
        "priority": TaskPriority.MEDIUM,
        "category": "General",
        "tags": [],
        "subtasks": [],
        "due_date": None,
        "reminder": None,
        "duration_minutes": None,
        "created_at": reference_now - timedelta(days=1),
        "ai_generated": False,
    }


@pytest.fixture
def make_task(sample_task_base):
    """Factory for tasks with unique ids and overridable fields."""
    def _make(**overrides) -> Task:
        return Task(**{**sample_task_base, "id": str(uuid.uuid4()), **overrides})
    return _make


@pytest.fixture
def sample_task(make_task):
    """Create a sample Task object for testing."""
    return make_task()


@pytest.fixture
def sample_draft():
    return TaskDraft(title="Write report", priority=TaskPriority.HIGH, category="Work", tags=["q3"])


def extraction_payload(**overrides) -> dict:
    """A valid raw collaborator payload."""
    payload = {
        "title": "Call Mom",
        "date_components": {"year": None, "month": 7, "day": 2, "time": "17:00"},
        "priority": "medium",
        "category": "Family",
        "description": "Weekly call",
        "subtasks": [],
        "tags": ["family"],
        "reminder": None,
        "duration_minutes": 15,
    }
    payload.update(overrides)
    return payload


class FakeExtractor:
    """Extraction collaborator stand-in recording its calls."""

    def __init__(self, payload: Optional[dict] = None, error: Optional[Exception] = None):
        self.payload = payload if payload is not None else extraction_payload()
        self.error = error
        self.calls: List[tuple] = []

    async def extract(self, text: str, context: ExtractionContext) -> ExtractionResult:
        self.calls.append((text, context))
        if self.error is not None:
            raise self.error
        return ExtractionResult.model_validate(self.payload)

    async def generate_daily_summary(self, completed_count: int, pending_count: int) -> str:
        return f"{completed_count} done, {pending_count} to go"


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def failing_extractor():
    return FakeExtractor(error=ExtractionError("boom"))


class InMemoryTaskStore:
    """Minimal TaskStore that can be told to fail writes."""

    def __init__(self, tasks: Optional[List[Task]] = None):
        self.tasks: List[Task] = list(tasks or [])
        self.fail_writes = False
        self.fail_list = False
        self.created_count = 0

    def list(self, user_id: str) -> List[Task]:
        if self.fail_list:
            raise TaskStoreError("list unavailable")
        return [t for t in self.tasks if t.user_id == user_id]

    def create(self, draft: TaskDraft, user_id: str) -> Task:
        if self.fail_writes:
            raise TaskStoreError("create rejected")
        self.created_count += 1
        task = Task(
            **draft.model_dump(),
            id=f"task-{self.created_count}",
            user_id=user_id,
            created_at=datetime(2024, 7, 1, 12, 0, self.created_count),
        )
        self.tasks.insert(0, task)
        return task

    def update(self, task_id: str, changes: dict) -> None:
        if self.fail_writes:
            raise TaskStoreError("update rejected")
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                self.tasks[i] = task.model_copy(update=changes)
                return
        raise TaskNotFoundError(task_id)

    def delete(self, task_id: str) -> None:
        if self.fail_writes:
            raise TaskStoreError("delete rejected")
        before = len(self.tasks)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        if len(self.tasks) == before:
            raise TaskNotFoundError(task_id)


@pytest.fixture
def memory_store():
    return InMemoryTaskStore()


@pytest.fixture
def test_client(db_session: Session, fake_extractor):
    """Create a FastAPI test client with overridden database and OpenAI dependencies."""
    from taskflow.api.app import app, get_openai_client
    from taskflow.database.database import get_db

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_openai_client] = lambda: fake_extractor

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
