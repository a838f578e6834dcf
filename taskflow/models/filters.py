"""Filter specification model for the task query engine.

The filter spec is transient query state and is never persisted. Values coming
from untyped callers (query strings, JSON) are coerced permissively: unknown
enum members are dropped from sets and unknown scalar options fall back to the
least restrictive choice.
"""

import logging
from enum import Enum
from typing import List, Type, TypeVar

from pydantic import BaseModel, Field, field_validator

from taskflow.models.task import TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


class DateRange(str, Enum):
    """Due-date window filter."""
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    OVERDUE = "overdue"


class SortOption(str, Enum):
    """Result ordering."""
    LATEST = "latest"
    OLDEST = "oldest"
    PRIORITY_DESC = "priority_desc"
    PRIORITY_ASC = "priority_asc"
    DUE_SOON = "due_soon"
    DUE_LATE = "due_late"
    ALPHABETICAL = "alphabetical"


class GroupOption(str, Enum):
    """Result grouping dimension."""
    NONE = "none"
    STATUS = "status"
    PRIORITY = "priority"
    CATEGORY = "category"
    DUE_DATE = "due_date"


def _coerce_member(value, enum_class: Type[E], default: E) -> E:
    if isinstance(value, enum_class):
        return value
    try:
        return enum_class(str(value).lower())
    except ValueError:
        logger.debug(f"Unknown {enum_class.__name__} value {value!r}. Using {default.value}.")
        return default


def _coerce_members(values, enum_class: Type[E]) -> List[E]:
    """Keep known members (deduplicated, order preserved), drop the rest."""
    if values is None:
        return []
    if isinstance(values, (str, Enum)):
        values = [values]
    out: List[E] = []
    for value in values:
        try:
            member = value if isinstance(value, enum_class) else enum_class(str(value).lower())
        except ValueError:
            logger.debug(f"Dropping unknown {enum_class.__name__} filter value {value!r}")
            continue
        if member not in out:
            out.append(member)
    return out


def _as_label_list(values) -> List[str]:
    if values is None:
        return []
    if isinstance(values, str):
        values = [values]
    out: List[str] = []
    for value in values:
        if value not in out:
            out.append(value)
    return out


class TaskFilters(BaseModel):
    """Filter / sort / group specification.

    Empty sets mean "no constraint" on that dimension.
    """

    status: List[TaskStatus] = Field(default_factory=list)
    priority: List[TaskPriority] = Field(default_factory=list)
    category: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    search: str = ""
    date_range: DateRange = Field(DateRange.ALL, alias="dateRange")
    sort_by: SortOption = Field(SortOption.LATEST, alias="sortBy")
    group_by: GroupOption = Field(GroupOption.NONE, alias="groupBy")

    model_config = {"populate_by_name": True}

    @field_validator("status", mode="before")
    @classmethod
    def _validate_status(cls, v):
        return _coerce_members(v, TaskStatus)

    @field_validator("priority", mode="before")
    @classmethod
    def _validate_priority(cls, v):
        return _coerce_members(v, TaskPriority)

    @field_validator("category", "tags", mode="before")
    @classmethod
    def _validate_labels(cls, v):
        return _as_label_list(v)

    @field_validator("search", mode="before")
    @classmethod
    def _validate_search(cls, v):
        return "" if v is None else v

    @field_validator("date_range", mode="before")
    @classmethod
    def _validate_date_range(cls, v):
        return _coerce_member(v, DateRange, DateRange.ALL)

    @field_validator("sort_by", mode="before")
    @classmethod
    def _validate_sort_by(cls, v):
        return _coerce_member(v, SortOption, SortOption.LATEST)

    @field_validator("group_by", mode="before")
    @classmethod
    def _validate_group_by(cls, v):
        return _coerce_member(v, GroupOption, GroupOption.NONE)
