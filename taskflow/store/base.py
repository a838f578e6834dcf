"""Task store boundary.

The store owns the authoritative task collection. The core only relies on the
CRUD methods below plus a change feed of insert/update/delete events.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from taskflow.models.task import Task, TaskDraft


class TaskStoreError(Exception):
    """A store read or write was rejected."""


class TaskNotFoundError(TaskStoreError):
    """The task does not exist (or belongs to another user)."""


class ChangeType(str, Enum):
    """Change feed event type."""
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class ChangeEvent(BaseModel):
    """A single change notification for one user's collection."""

    type: ChangeType = Field(..., description="Kind of change")
    task: Task = Field(..., description="Task state after the change (before it, for deletes)")

    @property
    def user_id(self) -> Optional[str]:
        return self.task.user_id


class TaskStore(Protocol):
    """CRUD interface the core expects from persistence."""

    def list(self, user_id: str) -> List[Task]:
        ...

    def create(self, draft: TaskDraft, user_id: str) -> Task:
        ...

    def update(self, task_id: str, changes: Dict[str, Any]) -> Any:
        ...

    def delete(self, task_id: str) -> Any:
        ...
