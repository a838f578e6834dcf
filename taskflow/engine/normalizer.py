"""Natural-language task normalization.

Free text goes to the extraction collaborator; its raw output is piped through
the temporal resolver to produce a complete task draft.

1. The public contract never raises: any extraction failure yields the
   fallback draft (raw text as title), which is never retried. Blank text
   skips extraction and gets a placeholder title.
2. A due date is only produced when a day or month was extracted.
3. A reminder is only set when the collaborator supplies one explicitly; it is
   never derived from the due date.
"""

import logging
import os
from datetime import datetime
from itertools import count
from typing import Optional

from dotenv import load_dotenv

from taskflow.engine.temporal import resolve_due_date
from taskflow.integrations.openai_client import TaskExtractor
from taskflow.models.extraction import ExtractionContext, ExtractionResult
from taskflow.models.task import TaskDraft, as_local_naive
from taskflow.models.task_factory import fallback_draft

load_dotenv()

logger = logging.getLogger(__name__)


def local_timezone_name() -> str:
    """Timezone name reported to the collaborator."""
    configured = os.getenv("TASKFLOW_TIMEZONE")
    if configured:
        return configured
    return datetime.now().astimezone().tzname() or "UTC"


def build_extraction_context(reference_now: datetime, timezone: Optional[str] = None) -> ExtractionContext:
    """Describe ``reference_now`` the way the collaborator expects it."""
    return ExtractionContext(
        current_date=f"{reference_now:%A}, {reference_now:%B} {reference_now.day}, {reference_now.year}",
        current_time=f"{reference_now:%H:%M}",
        timezone=timezone or local_timezone_name(),
        current_year=reference_now.year,
        current_month=reference_now.month,
        current_day=reference_now.day,
    )


def draft_from_extraction(result: ExtractionResult, reference_now: datetime) -> TaskDraft:
    """Turn a validated extraction into a draft, resolving the due date."""
    due_date = None
    if result.date_components is not None and result.date_components.has_date():
        due_date = resolve_due_date(result.date_components, reference_now)

    return TaskDraft(
        title=result.title,
        description=result.description,
        priority=result.priority,
        category=result.category,
        tags=result.tags,
        subtasks=result.subtasks,
        due_date=due_date,
        reminder=result.reminder,
        duration_minutes=result.duration_minutes,
        ai_generated=True,
    )


async def normalize(
    text: str,
    reference_now: datetime,
    extractor: TaskExtractor,
    timezone: Optional[str] = None,
) -> TaskDraft:
    """Normalize free text into a task draft.

    Args:
        text: Free-form task description
        reference_now: Local "now" used for context and date defaults
        extractor: Extraction collaborator
        timezone: Timezone name reported to the collaborator

    Returns:
        TaskDraft. Priority may still be "auto"; finalize before persisting.
    """
    if not text or not text.strip():
        logger.warning("Blank task text. Using fallback draft without extraction.")
        return fallback_draft(text)

    reference_now = as_local_naive(reference_now)
    context = build_extraction_context(reference_now, timezone)
    try:
        result = await extractor.extract(text, context)
        if not isinstance(result, ExtractionResult):
            result = ExtractionResult.model_validate(result)
        draft = draft_from_extraction(result, reference_now)
    except Exception as e:
        # Extraction failures degrade silently to the raw text
        logger.warning(f"Task extraction failed ({type(e).__name__}). Using fallback draft.")
        return fallback_draft(text)

    logger.debug(f"Normalized task: {draft.title[:50]} (due {draft.due_date})")
    return draft


class NormalizationSession:
    """Last-request-wins wrapper around normalize().

    Each call is tagged with a sequence number; a result whose number is no
    longer the latest is reported as stale so the caller can discard it.
    """

    def __init__(self, extractor: TaskExtractor, timezone: Optional[str] = None):
        self.extractor = extractor
        self.timezone = timezone
        self._sequence = count(1)
        self._latest = 0

    async def normalize(self, text: str, reference_now: datetime) -> Optional[TaskDraft]:
        """Normalize ``text``; returns None if a newer request started meanwhile."""
        request_id = next(self._sequence)
        self._latest = request_id
        draft = await normalize(text, reference_now, self.extractor, self.timezone)
        if request_id != self._latest:
            logger.debug(f"Discarding stale normalization result #{request_id}")
            return None
        return draft
