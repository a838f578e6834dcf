"""SQLAlchemy database models for taskflow."""

from datetime import datetime
from typing import Type, TypeVar, Union
import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, JSON

from taskflow.database.database import Base
from taskflow.models.constants import DEFAULT_CATEGORY
from taskflow.models.task import TaskPriority, TaskStatus, enum_to_value

T = TypeVar('T')


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # User association (ownership is enforced here, not in the core)
    user_id = Column(String, nullable=False, index=True)

    # Basic fields
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.TODO.value)
    priority = Column(String, nullable=False, default=TaskPriority.MEDIUM.value)
    category = Column(String, nullable=False, default=DEFAULT_CATEGORY)

    # Labels (stored as JSON arrays)
    tags = Column(JSON, nullable=False, default=list)
    subtasks = Column(JSON, nullable=False, default=list)

    # Timing
    due_date = Column(DateTime, nullable=True, index=True)
    reminder = Column(DateTime, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now, index=True)

    # Provenance
    ai_generated = Column(Boolean, nullable=False, default=False)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from taskflow.models.task import Task

        return Task(
            id=self.id,
            user_id=self.user_id,
            title=self.title,
            description=self.description,
            status=value_to_enum(self.status, TaskStatus, TaskStatus.TODO),
            # Legacy rows may carry "auto"; it never leaves the store unresolved
            priority=value_to_enum(
                self.priority if self.priority != TaskPriority.AUTO.value else None,
                TaskPriority,
                TaskPriority.MEDIUM,
            ),
            category=self.category or DEFAULT_CATEGORY,
            tags=self.tags or [],
            subtasks=self.subtasks or [],
            due_date=self.due_date,
            reminder=self.reminder,
            duration_minutes=self.duration_minutes,
            created_at=self.created_at,
            ai_generated=bool(self.ai_generated),
        )

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        return cls(
            id=task.id,
            user_id=task.user_id,
            title=task.title,
            description=task.description,
            status=enum_to_value(task.status),
            priority=enum_to_value(task.priority),
            category=task.category,
            tags=list(task.tags),
            subtasks=list(task.subtasks),
            due_date=task.due_date,
            reminder=task.reminder,
            duration_minutes=task.duration_minutes,
            created_at=task.created_at,
            ai_generated=task.ai_generated,
        )

    def apply_changes(self, changes: dict) -> None:
        """Copy partial task fields onto the row (enums stored as values)."""
        for field, value in changes.items():
            if field in ("status", "priority") and value is not None:
                value = enum_to_value(value)
            if field in ("tags", "subtasks"):
                value = list(value or [])
            setattr(self, field, value)
