"""Task query engine for taskflow.

Evaluates a TaskFilters spec against an in-memory task collection:
filter -> sort -> group. Evaluation is a pure function of its inputs, so it
is safe to call on every filter change.

Filtering is AND across dimensions and OR within a multi-valued dimension.
Sorting is stable; tasks without a due date always sort last under the
due-date orders. Grouping never reorders tasks inside a bucket, and buckets
appear in the order they are first encountered.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from taskflow.engine.temporal import start_of_day
from taskflow.models.constants import (
    BUCKET_LATER,
    BUCKET_NO_DATE,
    BUCKET_OVERDUE,
    BUCKET_TODAY,
    DEFAULT_CATEGORY,
    PRIORITY_RANK,
    WEEK_WINDOW_DAYS,
)
from taskflow.models.filters import DateRange, GroupOption, SortOption, TaskFilters
from taskflow.models.task import Task, TaskStatus, as_local_naive, enum_to_value


class TaskGroup(BaseModel):
    """A named bucket of tasks."""

    key: str
    tasks: List[Task] = Field(default_factory=list)


class QueryResult(BaseModel):
    """Materialized view of a query.

    ``tasks`` is always the flat filtered + sorted sequence. ``groups`` is None
    when no grouping was requested.
    """

    tasks: List[Task] = Field(default_factory=list)
    groups: Optional[List[TaskGroup]] = None


# --- Filtering ---

def matches_search(task: Task, search: str) -> bool:
    """Case-insensitive substring match on title, description and tags.

    The search text is matched literally, whitespace included.
    """
    needle = search.lower()
    if not needle:
        return True
    if needle in task.title.lower():
        return True
    if task.description and needle in task.description.lower():
        return True
    return any(needle in tag.lower() for tag in task.tags)


def matches_date_range(task: Task, date_range: DateRange, now: datetime) -> bool:
    """Check the due-date window. Any window other than "all" requires a due date."""
    if date_range == DateRange.ALL:
        return True
    if task.due_date is None:
        return False

    today_start = start_of_day(now)
    if date_range == DateRange.OVERDUE:
        return task.due_date < today_start and task.status != TaskStatus.DONE
    if date_range == DateRange.TODAY:
        return task.due_date.date() == now.date()
    if date_range == DateRange.WEEK:
        return today_start <= task.due_date <= today_start + timedelta(days=WEEK_WINDOW_DAYS)
    return True


def matches_filters(task: Task, filters: TaskFilters, now: datetime) -> bool:
    """True if ``task`` passes every active predicate."""
    if not matches_search(task, filters.search):
        return False
    if filters.status and task.status not in filters.status:
        return False
    if filters.priority and task.priority not in filters.priority:
        return False
    if filters.category and task.category not in filters.category:
        return False
    if filters.tags and not set(filters.tags).intersection(task.tags):
        return False
    return matches_date_range(task, filters.date_range, now)


def filter_tasks(tasks: Sequence[Task], filters: TaskFilters, now: datetime) -> List[Task]:
    return [task for task in tasks if matches_filters(task, filters, now)]


# --- Sorting ---

def priority_rank(task: Task) -> int:
    """Numeric priority rank (high=3 ... auto=0)."""
    return PRIORITY_RANK.get(enum_to_value(task.priority), 0)


def _title_key(task: Task) -> tuple:
    return (task.title.casefold(), task.title)


def _sort_with_nulls_last(tasks: Sequence[Task], descending: bool) -> List[Task]:
    dated = [task for task in tasks if task.due_date is not None]
    undated = [task for task in tasks if task.due_date is None]
    return sorted(dated, key=lambda task: task.due_date, reverse=descending) + undated


def sort_tasks(tasks: Sequence[Task], sort_by: SortOption) -> List[Task]:
    """Stable sort by the chosen comparator.

    ``sorted(reverse=True)`` keeps equal elements in input order, so every
    option is stable in both directions.
    """
    if sort_by == SortOption.LATEST:
        return sorted(tasks, key=lambda task: task.created_at, reverse=True)
    if sort_by == SortOption.OLDEST:
        return sorted(tasks, key=lambda task: task.created_at)
    if sort_by == SortOption.PRIORITY_DESC:
        return sorted(tasks, key=priority_rank, reverse=True)
    if sort_by == SortOption.PRIORITY_ASC:
        return sorted(tasks, key=priority_rank)
    if sort_by == SortOption.DUE_SOON:
        return _sort_with_nulls_last(tasks, descending=False)
    if sort_by == SortOption.DUE_LATE:
        return _sort_with_nulls_last(tasks, descending=True)
    if sort_by == SortOption.ALPHABETICAL:
        return sorted(tasks, key=_title_key)
    return list(tasks)


# --- Grouping ---

def due_date_bucket(task: Task, now: datetime) -> str:
    """Classify by calendar date against today. Status is not considered."""
    if task.due_date is None:
        return BUCKET_NO_DATE
    due_day = task.due_date.date()
    today = now.date()
    if due_day < today:
        return BUCKET_OVERDUE
    if due_day == today:
        return BUCKET_TODAY
    return BUCKET_LATER


def _group_key_function(group_by: GroupOption, now: datetime) -> Optional[Callable[[Task], str]]:
    if group_by == GroupOption.STATUS:
        return lambda task: enum_to_value(task.status)
    if group_by == GroupOption.PRIORITY:
        return lambda task: enum_to_value(task.priority)
    if group_by == GroupOption.CATEGORY:
        return lambda task: task.category or DEFAULT_CATEGORY
    if group_by == GroupOption.DUE_DATE:
        return lambda task: due_date_bucket(task, now)
    return None


def group_tasks(tasks: Sequence[Task], group_by: GroupOption, now: datetime) -> Optional[List[TaskGroup]]:
    """Partition an ordered sequence into buckets in first-occurrence order."""
    key_of = _group_key_function(group_by, now)
    if key_of is None:
        return None

    buckets: Dict[str, TaskGroup] = {}
    for task in tasks:
        key = key_of(task)
        if key not in buckets:
            buckets[key] = TaskGroup(key=key)
        buckets[key].tasks.append(task)
    return list(buckets.values())


def evaluate(
    tasks: Sequence[Task],
    filters: Optional[TaskFilters] = None,
    now: Optional[datetime] = None,
) -> QueryResult:
    """Filter, sort and group ``tasks``.

    Args:
        tasks: Task collection (already scoped to one user)
        filters: Filter spec (defaults: no constraints, latest first, no grouping)
        now: Local reference instant for date windows and buckets
            (an offset-aware value is shifted into local time)

    Returns:
        QueryResult with the flat ordered tasks and optional groups
    """
    filters = filters or TaskFilters()
    now = as_local_naive(now or datetime.now())

    ordered = sort_tasks(filter_tasks(tasks, filters, now), filters.sort_by)
    return QueryResult(tasks=ordered, groups=group_tasks(ordered, filters.group_by, now))


# --- Facets ---

def available_categories(tasks: Sequence[Task]) -> List[str]:
    """Distinct non-empty categories in first-seen order."""
    seen: List[str] = []
    for task in tasks:
        if task.category and task.category not in seen:
            seen.append(task.category)
    return seen


def available_tags(tasks: Sequence[Task]) -> List[str]:
    """Distinct non-empty tags in first-seen order."""
    seen: List[str] = []
    for task in tasks:
        for tag in task.tags:
            if tag and tag not in seen:
                seen.append(tag)
    return seen
