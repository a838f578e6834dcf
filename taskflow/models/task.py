"""Task data model for taskflow."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from taskflow.models.constants import DEFAULT_CATEGORY


def enum_to_value(enum_obj) -> str:
    """Convert enum to string value (handles both enum and string)."""
    if hasattr(enum_obj, "value"):
        return enum_obj.value
    return str(enum_obj)


def as_local_naive(moment: Optional[datetime]) -> Optional[datetime]:
    """Shift an offset-aware datetime into naive local wall-clock time."""
    if moment is not None and moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


class TaskStatus(str, Enum):
    """Task status enumeration."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TaskPriority(str, Enum):
    """Task priority enumeration.

    AUTO means "not resolved yet"; it never reaches the store.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    AUTO = "auto"


class TaskDraft(BaseModel):
    """A task prior to persistence (no id, no created_at)."""

    title: str = Field(..., min_length=1, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    status: TaskStatus = Field(TaskStatus.TODO, description="Task status")
    priority: TaskPriority = Field(TaskPriority.AUTO, description="Task priority (auto = unresolved)")
    category: str = Field(DEFAULT_CATEGORY, description="Free-form category label")
    tags: List[str] = Field(default_factory=list, description="Tags in insertion order")
    subtasks: List[str] = Field(default_factory=list, description="Ordered subtask labels")
    due_date: Optional[datetime] = Field(None, description="Local due timestamp")
    reminder: Optional[datetime] = Field(None, description="Local reminder timestamp")
    duration_minutes: Optional[int] = Field(None, ge=0, description="Estimated duration in minutes")
    ai_generated: bool = Field(False, description="Produced by the normalization pipeline")

    @field_validator("tags", "subtasks", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return [] if v is None else v

    @field_validator("due_date", "reminder")
    @classmethod
    def _timestamps_as_local(cls, v):
        return as_local_naive(v)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class Task(TaskDraft):
    """Canonical persisted Task model."""

    id: str = Field(..., description="Store-assigned task identifier")
    user_id: Optional[str] = Field(None, description="Owning user (enforced by the store)")
    created_at: datetime = Field(..., description="Task creation timestamp")

    @field_validator("created_at")
    @classmethod
    def _created_at_as_local(cls, v):
        return as_local_naive(v)


class TaskUpdate(BaseModel):
    """Partial task fields for an update. Unset fields are left untouched."""

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    subtasks: Optional[List[str]] = None
    due_date: Optional[datetime] = None
    reminder: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=0)

    @field_validator("due_date", "reminder")
    @classmethod
    def _timestamps_as_local(cls, v):
        return as_local_naive(v)

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
