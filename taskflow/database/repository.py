"""Repository layer for database operations."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError

from taskflow.models.task import Task, TaskDraft
from taskflow.models.task_factory import create_task_from_draft
from taskflow.database.models import TaskDB
from taskflow.store.base import ChangeEvent, ChangeType, TaskNotFoundError, TaskStoreError
from taskflow.store.change_feed import ChangeFeed

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for Task database operations (implements TaskStore).

    When ``user_id`` is given, get/update/delete only see that user's rows.
    Successful writes are published to ``feed`` when one is attached.
    """

    def __init__(self, db: Session, feed: Optional[ChangeFeed] = None, user_id: Optional[str] = None):
        self.db = db
        self.feed = feed
        self.user_id = user_id

    def _publish(self, change_type: ChangeType, task: Task) -> None:
        if self.feed is not None:
            self.feed.publish(ChangeEvent(type=change_type, task=task))

    def _query_task(self, task_id: str):
        try:
            query = self.db.query(TaskDB).filter(TaskDB.id == task_id)
            if self.user_id is not None:
                query = query.filter(TaskDB.user_id == self.user_id)
            return query.first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load task {task_id}: {type(e).__name__}: {str(e)}")
            raise TaskStoreError(f"Failed to load task {task_id}") from e

    def list(self, user_id: str) -> List[Task]:
        """Get all tasks for a user sorted by creation date (newest first)."""
        try:
            tasks_db = self.db.query(TaskDB).filter(
                TaskDB.user_id == user_id,
            ).order_by(desc(TaskDB.created_at)).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to list tasks for user {user_id}: {type(e).__name__}: {str(e)}")
            raise TaskStoreError(f"Failed to list tasks for user {user_id}") from e
        return [task_db.to_pydantic() for task_db in tasks_db]

    def get(self, task_id: str) -> Optional[Task]:
        """Get task by ID."""
        task_db = self._query_task(task_id)
        return task_db.to_pydantic() if task_db else None

    def create(self, draft: TaskDraft, user_id: str, created_at: Optional[datetime] = None) -> Task:
        """Create a new task from a draft; the store assigns id and created_at."""
        task = create_task_from_draft(draft, user_id, created_at=created_at)
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise TaskStoreError(f"Failed to create task {task.id}") from e

        created = task_db.to_pydantic()
        logger.debug(f"Created task {created.id}: {created.title[:50]}")
        self._publish(ChangeType.INSERT, created)
        return created

    def update(self, task_id: str, changes: Dict[str, Any]) -> Task:
        """Apply partial changes to an existing task."""
        task_db = self._query_task(task_id)
        if not task_db:
            raise TaskNotFoundError(f"Task {task_id} not found")

        try:
            task_db.apply_changes(changes)
            self.db.commit()
            self.db.refresh(task_db)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update task {task_id}: {type(e).__name__}: {str(e)}")
            raise TaskStoreError(f"Failed to update task {task_id}") from e

        updated = task_db.to_pydantic()
        logger.debug(f"Updated task {task_id}: {updated.title[:50]}")
        self._publish(ChangeType.UPDATE, updated)
        return updated

    def delete(self, task_id: str) -> Task:
        """Permanently delete a task by ID."""
        task_db = self._query_task(task_id)
        if not task_db:
            raise TaskNotFoundError(f"Task {task_id} not found")

        deleted = task_db.to_pydantic()
        try:
            self.db.delete(task_db)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise TaskStoreError(f"Failed to delete task {task_id}") from e

        logger.debug(f"Deleted task {task_id}")
        self._publish(ChangeType.DELETE, deleted)
        return deleted
