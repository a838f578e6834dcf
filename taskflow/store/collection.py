"""Optimistic in-memory task collection for one user.

Every mutation is applied locally first (pending) and then sent to the store.
A successful write confirms it; a failed write reverts the collection by
re-fetching the store's authoritative list. Change-feed events are merged
idempotently: duplicate inserts are no-ops and updates/deletes for unknown
ids are ignored.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from taskflow.models.task import Task, TaskDraft, TaskStatus, TaskUpdate, enum_to_value
from taskflow.models.task_factory import (
    create_task_from_draft,
    finalize_draft,
    resolve_category,
    resolve_priority,
)
from taskflow.store.base import ChangeEvent, ChangeType, TaskStore, TaskStoreError

logger = logging.getLogger(__name__)

_STATUS_CYCLE = {
    TaskStatus.TODO.value: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS.value: TaskStatus.DONE,
    TaskStatus.DONE.value: TaskStatus.TODO,
}


def next_status(status: Union[str, TaskStatus]) -> TaskStatus:
    """todo -> in-progress -> done -> todo."""
    return _STATUS_CYCLE[enum_to_value(status)]


def normalize_changes(changes: Union[TaskUpdate, Dict[str, Any]]) -> Dict[str, Any]:
    """Validate partial fields and resolve "auto" placeholders."""
    if isinstance(changes, dict):
        changes = TaskUpdate.model_validate(changes)
    updates = changes.model_dump(exclude_unset=True)
    # title and status cannot be cleared
    for field in ("title", "status"):
        if field in updates and updates[field] is None:
            updates.pop(field)
    if "priority" in updates:
        updates["priority"] = resolve_priority(updates["priority"])
    if "category" in updates:
        updates["category"] = resolve_category(updates["category"])
    for field in ("tags", "subtasks"):
        if field in updates and updates[field] is None:
            updates[field] = []
    return updates


class MutationOutcome(str, Enum):
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


@dataclass(frozen=True)
class MutationResult:
    """Outcome of an optimistic mutation."""

    outcome: MutationOutcome
    task: Optional[Task] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == MutationOutcome.CONFIRMED


class TaskCollection:
    """Local view of one user's tasks backed by a TaskStore."""

    def __init__(self, store: TaskStore, user_id: str):
        self.store = store
        self.user_id = user_id
        self.tasks: List[Task] = []

    def _index_of(self, task_id: str) -> Optional[int]:
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                return i
        return None

    def get(self, task_id: str) -> Optional[Task]:
        index = self._index_of(task_id)
        return self.tasks[index] if index is not None else None

    def by_status(self, status: Union[str, TaskStatus]) -> List[Task]:
        wanted = enum_to_value(status)
        return [t for t in self.tasks if enum_to_value(t.status) == wanted]

    def refresh(self) -> List[Task]:
        """Replace the local collection with the store's list."""
        self.tasks = list(self.store.list(self.user_id))
        return self.tasks

    def _revert(self, snapshot: List[Task], error: Exception, action: str) -> MutationResult:
        logger.error(f"Failed to {action} for user {self.user_id}: {type(error).__name__}: {str(error)}")
        try:
            self.refresh()
        except TaskStoreError as e:
            logger.error(f"Re-sync after failed {action} also failed ({type(e).__name__}). Restoring snapshot.")
            self.tasks = snapshot
        return MutationResult(outcome=MutationOutcome.REVERTED, error=str(error))

    def add(self, draft: TaskDraft) -> MutationResult:
        """Optimistically create a task.

        A provisional task with a temporary id is shown immediately and
        replaced by the store's record once the write is confirmed.
        """
        snapshot = list(self.tasks)
        finalized = finalize_draft(draft)
        temp_id = f"tmp-{uuid.uuid4()}"
        self.tasks.insert(0, create_task_from_draft(finalized, self.user_id, task_id=temp_id))

        try:
            created = self.store.create(finalized, self.user_id)
        except TaskStoreError as e:
            return self._revert(snapshot, e, "create task")

        temp_index = self._index_of(temp_id)
        if self._index_of(created.id) is not None:
            # The change feed echo arrived first
            if temp_index is not None:
                self.tasks.pop(temp_index)
        elif temp_index is not None:
            self.tasks[temp_index] = created
        else:
            self.tasks.insert(0, created)
        logger.debug(f"Created task {created.id}: {created.title[:50]}")
        return MutationResult(outcome=MutationOutcome.CONFIRMED, task=created)

    def update(self, task_id: str, changes: Union[TaskUpdate, Dict[str, Any]]) -> MutationResult:
        """Optimistically apply partial changes to a task."""
        updates = normalize_changes(changes)
        snapshot = list(self.tasks)
        index = self._index_of(task_id)
        if index is not None:
            self.tasks[index] = self.tasks[index].model_copy(update=updates)

        try:
            self.store.update(task_id, updates)
        except TaskStoreError as e:
            return self._revert(snapshot, e, f"update task {task_id}")

        return MutationResult(outcome=MutationOutcome.CONFIRMED, task=self.get(task_id))

    def delete(self, task_id: str) -> MutationResult:
        """Optimistically remove a task."""
        snapshot = list(self.tasks)
        removed = self.get(task_id)
        self.tasks = [t for t in self.tasks if t.id != task_id]

        try:
            self.store.delete(task_id)
        except TaskStoreError as e:
            return self._revert(snapshot, e, f"delete task {task_id}")

        return MutationResult(outcome=MutationOutcome.CONFIRMED, task=removed)

    def toggle_status(self, task_id: str) -> Optional[MutationResult]:
        """Advance a task along the status cycle. None if the task is unknown."""
        task = self.get(task_id)
        if task is None:
            return None
        return self.update(task_id, {"status": next_status(task.status).value})

    def apply_change(self, event: ChangeEvent) -> bool:
        """Merge a change-feed event. Returns True if the collection changed."""
        if event.task.user_id is not None and event.task.user_id != self.user_id:
            logger.debug(f"Ignoring change event for another user ({event.task.user_id})")
            return False

        index = self._index_of(event.task.id)
        if event.type == ChangeType.INSERT:
            if index is not None:
                return False
            self.tasks.insert(0, event.task)
            return True
        if event.type == ChangeType.UPDATE:
            if index is None:
                logger.debug(f"Ignoring update for unknown task {event.task.id}")
                return False
            self.tasks[index] = event.task
            return True
        if event.type == ChangeType.DELETE:
            if index is None:
                logger.debug(f"Ignoring delete for unknown task {event.task.id}")
                return False
            self.tasks.pop(index)
            return True
        return False

    async def consume(self, queue: asyncio.Queue) -> int:
        """Merge events from ``queue`` until a ``None`` sentinel arrives.

        Returns:
            Number of events that changed the collection
        """
        applied = 0
        while True:
            event = await queue.get()
            try:
                if event is None:
                    return applied
                if self.apply_change(event):
                    applied += 1
            finally:
                queue.task_done()
