"""Structured output contract of the extraction collaborator."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from taskflow.models.task import TaskPriority, as_local_naive


class DateComponents(BaseModel):
    """Raw, possibly partial, date components pulled out of free text."""

    year: Optional[int] = None
    month: Optional[int] = Field(None, description="1-12")
    day: Optional[int] = None
    time: Optional[str] = Field(None, description="HH:mm in 24h format")

    def has_date(self) -> bool:
        """True when at least a day or a month was extracted."""
        return bool(self.day or self.month)


class ExtractionContext(BaseModel):
    """Reference context sent alongside the text."""

    current_date: str = Field(..., alias="currentDate")
    current_time: str = Field(..., alias="currentTime")
    timezone: str
    current_year: int = Field(..., alias="currentYear")
    current_month: int = Field(..., alias="currentMonth")
    current_day: int = Field(..., alias="currentDay")

    model_config = {"populate_by_name": True}


class ExtractionResult(BaseModel):
    """Validated collaborator payload. Any validation error is a total failure."""

    title: str = Field(..., min_length=1)
    date_components: Optional[DateComponents] = None
    priority: TaskPriority
    category: str
    description: str
    subtasks: List[str]
    tags: List[str]
    reminder: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=0)

    @field_validator("reminder")
    @classmethod
    def _reminder_as_local(cls, v):
        # Offset-aware reminders are shifted into local wall-clock time.
        return as_local_naive(v)
