"""Dashboard and calendar-day views over a task collection."""

from datetime import date, datetime
from typing import List, Sequence

from pydantic import BaseModel, Field

from taskflow.engine.query import priority_rank
from taskflow.engine.temporal import start_of_day
from taskflow.models.constants import UPCOMING_SECTION_LIMIT
from taskflow.models.task import Task, TaskStatus, as_local_naive


class DashboardStats(BaseModel):
    total: int = 0
    done: int = 0
    pending: int = 0
    overdue: int = 0


class DashboardSummary(BaseModel):
    """Headline counts plus the today / overdue / upcoming sections."""

    stats: DashboardStats
    today: List[Task] = Field(default_factory=list)
    overdue: List[Task] = Field(default_factory=list)
    upcoming: List[Task] = Field(default_factory=list)


def _end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)


def dashboard_summary(tasks: Sequence[Task], now: datetime) -> DashboardSummary:
    """Summarize open work relative to ``now``.

    Only tasks that are not done and have a due date appear in sections.
    Overdue here means strictly before ``now`` (not before today), so a task
    due earlier today is both in "today" and "overdue".
    """
    now = as_local_naive(now)
    day_start = start_of_day(now)
    day_end = _end_of_day(now)

    open_dated = [t for t in tasks if t.status != TaskStatus.DONE and t.due_date is not None]
    today = [t for t in open_dated if day_start <= t.due_date <= day_end]
    overdue = [t for t in open_dated if t.due_date < now]
    upcoming = [t for t in open_dated if t.due_date > day_end][:UPCOMING_SECTION_LIMIT]

    done = sum(1 for t in tasks if t.status == TaskStatus.DONE)
    stats = DashboardStats(
        total=len(tasks),
        done=done,
        pending=len(tasks) - done,
        overdue=len(overdue),
    )
    return DashboardSummary(stats=stats, today=today, overdue=overdue, upcoming=upcoming)


def tasks_for_day(tasks: Sequence[Task], day: date) -> List[Task]:
    """Tasks whose due date falls on ``day`` (time ignored)."""
    return [t for t in tasks if t.due_date is not None and t.due_date.date() == day]


def sort_day_tasks(tasks: Sequence[Task]) -> List[Task]:
    """Open tasks first, then by priority rank descending (stable)."""
    return sorted(tasks, key=lambda t: (t.status == TaskStatus.DONE, -priority_rank(t)))
