"""Normalization and query engine for taskflow."""

from taskflow.engine.temporal import resolve_due_date
from taskflow.engine.normalizer import normalize, NormalizationSession
from taskflow.engine.query import evaluate, QueryResult, TaskGroup
from taskflow.engine.dashboard import dashboard_summary, tasks_for_day, sort_day_tasks

__all__ = [
    "resolve_due_date",
    "normalize",
    "NormalizationSession",
    "evaluate",
    "QueryResult",
    "TaskGroup",
    "dashboard_summary",
    "tasks_for_day",
    "sort_day_tasks",
]
