"""Data models for taskflow."""

from taskflow.models.task import Task, TaskDraft, TaskUpdate, TaskStatus, TaskPriority
from taskflow.models.filters import TaskFilters, DateRange, SortOption, GroupOption
from taskflow.models.extraction import DateComponents, ExtractionContext, ExtractionResult

__all__ = [
    "Task",
    "TaskDraft",
    "TaskUpdate",
    "TaskStatus",
    "TaskPriority",
    "TaskFilters",
    "DateRange",
    "SortOption",
    "GroupOption",
    "DateComponents",
    "ExtractionContext",
    "ExtractionResult",
]
