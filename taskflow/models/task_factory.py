"""Task draft and task creation factory for taskflow.

This module centralizes draft finalization and task stamping so that every
path into the store applies the same defaults.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from taskflow.models.constants import AUTO_VALUE, DEFAULT_CATEGORY, UNTITLED_TASK_TITLE
from taskflow.models.task import Task, TaskDraft, TaskPriority


def parse_tags(raw: Optional[str]) -> List[str]:
    """Split comma-separated tag input into a clean list.

    Whitespace is trimmed, empty entries are dropped and the first occurrence
    of a repeated tag wins.
    """
    if not raw:
        return []
    tags: List[str] = []
    for part in raw.split(","):
        tag = part.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def fallback_draft(text: str) -> TaskDraft:
    """Degraded draft used when extraction fails: the raw text becomes the title.

    Blank text gets a placeholder title so the draft is always valid.
    """
    return TaskDraft(
        title=text if text and text.strip() else UNTITLED_TASK_TITLE,
        description="",
        priority=TaskPriority.AUTO,
        category=DEFAULT_CATEGORY,
        tags=[],
        subtasks=[],
        due_date=None,
        reminder=None,
        duration_minutes=None,
        ai_generated=True,
    )


def resolve_priority(priority: Optional[str]) -> str:
    """Resolve the "auto" placeholder to a concrete level."""
    if not priority or priority == TaskPriority.AUTO:
        return TaskPriority.MEDIUM.value
    return TaskPriority(priority).value


def resolve_category(category: Optional[str]) -> str:
    """Resolve "auto" or blank categories to the default label."""
    if not category or not category.strip() or category.strip().lower() == AUTO_VALUE:
        return DEFAULT_CATEGORY
    return category


def finalize_draft(draft: TaskDraft) -> TaskDraft:
    """Return a copy of ``draft`` that is safe to persist.

    - priority "auto" becomes "medium"
    - category "auto" or blank becomes "General"
    - tags and subtasks are always lists
    """
    return draft.model_copy(
        update={
            "priority": resolve_priority(draft.priority),
            "category": resolve_category(draft.category),
            "tags": list(draft.tags or []),
            "subtasks": list(draft.subtasks or []),
        }
    )


def create_task_from_draft(
    draft: TaskDraft,
    user_id: Optional[str],
    task_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Task:
    """Stamp a finalized draft with an identifier and creation time.

    Args:
        draft: Draft to persist (finalized here if it is not already)
        user_id: Owning user
        task_id: Identifier to use (a new UUID v4 when None)
        created_at: Creation timestamp (local now when None)

    Returns:
        Task ready to hand to a store
    """
    finalized = finalize_draft(draft)
    return Task(
        **finalized.model_dump(),
        id=task_id or str(uuid.uuid4()),
        user_id=user_id,
        created_at=created_at or datetime.now(),
    )
