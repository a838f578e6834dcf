"""Tests for permissive filter spec coercion."""

from taskflow.models.filters import DateRange, GroupOption, SortOption, TaskFilters
from taskflow.models.task import TaskPriority, TaskStatus


class TestTaskFiltersDefaults:
    def test_defaults_are_unconstrained(self):
        filters = TaskFilters()
        assert filters.status == []
        assert filters.priority == []
        assert filters.category == []
        assert filters.tags == []
        assert filters.search == ""
        assert filters.date_range == DateRange.ALL
        assert filters.sort_by == SortOption.LATEST
        assert filters.group_by == GroupOption.NONE


class TestTaskFiltersCoercion:
    """Unknown values from untyped callers never raise."""

    def test_unknown_members_are_dropped_from_sets(self):
        filters = TaskFilters(status=["todo", "blocked"], priority=["HIGH", "urgent"])
        assert filters.status == [TaskStatus.TODO]
        assert filters.priority == [TaskPriority.HIGH]

    def test_duplicates_are_collapsed(self):
        filters = TaskFilters(status=["done", "done"], tags=["a", "a", "b"])
        assert filters.status == [TaskStatus.DONE]
        assert filters.tags == ["a", "b"]

    def test_single_string_becomes_set(self):
        filters = TaskFilters(status="in-progress", category="Work")
        assert filters.status == [TaskStatus.IN_PROGRESS]
        assert filters.category == ["Work"]

    def test_unknown_scalars_fall_back(self):
        filters = TaskFilters(date_range="someday", sort_by="random", group_by="colour")
        assert filters.date_range == DateRange.ALL
        assert filters.sort_by == SortOption.LATEST
        assert filters.group_by == GroupOption.NONE

    def test_null_values_mean_no_constraint(self):
        filters = TaskFilters(status=None, tags=None, search=None)
        assert filters.status == []
        assert filters.tags == []
        assert filters.search == ""

    def test_camel_case_aliases(self):
        filters = TaskFilters.model_validate(
            {"dateRange": "today", "sortBy": "due_soon", "groupBy": "due_date"}
        )
        assert filters.date_range == DateRange.TODAY
        assert filters.sort_by == SortOption.DUE_SOON
        assert filters.group_by == GroupOption.DUE_DATE
