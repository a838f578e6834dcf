"""Temporal resolution for extracted date components.

Turns partial date/time components plus a reference "now" into a single
unambiguous local timestamp. Timestamps are naive datetimes in the caller's
local wall-clock time; an offset-aware reference "now" is first shifted into
local time.

Rules:
1. Missing year/month/day default to the reference date's values.
2. Missing (or unparseable) time defaults to 09:00.
3. When no year was given and the candidate day (taken at 23:59:59) ends
   before the start of the reference day, the year rolls forward by one.
   An explicit year is never adjusted.
4. Out-of-range components carry over into the next unit (month 13 is January
   of the following year, June 31 is July 1) so resolution never fails.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Optional, Tuple

from taskflow.models.constants import DEFAULT_DUE_HOUR, DEFAULT_DUE_MINUTE
from taskflow.models.extraction import DateComponents
from taskflow.models.task import as_local_naive

logger = logging.getLogger(__name__)

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")


def parse_time_of_day(value: Optional[str]) -> Tuple[int, int]:
    """Parse an "HH:mm" string, falling back to the default due time."""
    if not value:
        return (DEFAULT_DUE_HOUR, DEFAULT_DUE_MINUTE)
    match = _TIME_PATTERN.match(value)
    if not match:
        logger.debug(f"Unparseable time {value!r}. Using default {DEFAULT_DUE_HOUR:02d}:{DEFAULT_DUE_MINUTE:02d}.")
        return (DEFAULT_DUE_HOUR, DEFAULT_DUE_MINUTE)
    return (int(match.group(1)), int(match.group(2)))


def build_local_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Build a naive local datetime, carrying overflow into larger units."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    return datetime(year, month, 1) + timedelta(
        days=day - 1, hours=hour, minutes=minute, seconds=second
    )


def start_of_day(moment: datetime) -> datetime:
    """Midnight at the start of ``moment``'s calendar day."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def resolve_due_date(components: DateComponents, reference_now: datetime) -> datetime:
    """Resolve partial date components into a local timestamp.

    Callers must skip resolution when ``components.has_date()`` is False;
    this function always returns a best-effort timestamp.

    Args:
        components: Extracted year/month/day/time (any may be missing)
        reference_now: The instant relative to which defaults are filled

    Returns:
        Naive local datetime with minute precision
    """
    reference_now = as_local_naive(reference_now)
    year = components.year or reference_now.year
    month = components.month or reference_now.month
    day = components.day or reference_now.day
    hour, minute = parse_time_of_day(components.time)

    if not components.year:
        end_of_candidate = build_local_datetime(year, month, day, 23, 59, 59)
        if end_of_candidate < start_of_day(reference_now):
            logger.debug(f"Date {year}-{month:02d}-{day:02d} is in the past. Rolling to {year + 1}.")
            year += 1

    return build_local_datetime(year, month, day, hour, minute)
