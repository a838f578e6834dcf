"""Task store boundary, change feed and optimistic collection."""

from taskflow.store.base import ChangeEvent, ChangeType, TaskStore, TaskStoreError, TaskNotFoundError
from taskflow.store.change_feed import ChangeFeed
from taskflow.store.collection import MutationOutcome, MutationResult, TaskCollection, next_status

__all__ = [
    "ChangeEvent",
    "ChangeType",
    "TaskStore",
    "TaskStoreError",
    "TaskNotFoundError",
    "ChangeFeed",
    "MutationOutcome",
    "MutationResult",
    "TaskCollection",
    "next_status",
]
