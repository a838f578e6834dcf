"""OpenAI API integration for taskflow.

This module provides the extraction collaborator used by the task normalizer:
free text plus a reference context goes in, a validated ExtractionResult comes
out. It also generates the short daily motivational summary.
"""

import os
import json
import logging
from typing import Any, Dict, Optional, Protocol

from openai import AsyncOpenAI, APIError
from pydantic import ValidationError
from dotenv import load_dotenv

from taskflow.models.constants import DAILY_SUMMARY_EMPTY, DAILY_SUMMARY_FALLBACK
from taskflow.models.extraction import ExtractionContext, ExtractionResult

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

EXTRACTION_PROMPT_TEMPLATE = """You are TaskFlow AI, an expert task parser.

CONTEXT
Current Reference Date: {current_date}
Current Reference Time: {current_time}
Timezone: {timezone}

DATE PARSING RULES
1. Relative dates are calculated from the Current Reference Date.
   - "Tomorrow" = Reference Day + 1
   - "Next Friday" = the next occurrence of Friday starting from the Reference Date
   - "2 days after today" = Reference Date + 2 days
2. Missing components:
   - "June 5" (no year) -> year: null
   - "Friday" (no time) -> time: null
   - "at 5pm" -> time: "17:00"
3. No date at all ("Buy milk") -> date_components: null

OUTPUT FORMAT
Respond with a JSON object with these keys:
- "title": string
- "date_components": null or {{"year": int|null, "month": int|null (1-12), "day": int|null, "time": "HH:mm"|null}}
- "priority": one of "low", "medium", "high", "auto"
- "category": string
- "description": string
- "subtasks": array of strings
- "tags": array of strings
- "reminder": ISO 8601 string only if an explicit reminder was requested, otherwise null
- "duration_minutes": integer or null

Respond only with the JSON object, no other text."""

DAILY_SUMMARY_PROMPT_TEMPLATE = (
    "I have completed {completed} tasks today and have {pending} left. "
    "Give me a very short (max 20 words) motivational punchline."
)


class ExtractionError(Exception):
    """The extraction collaborator could not produce a valid result."""


class TaskExtractor(Protocol):
    """Anything that can turn free text into an ExtractionResult."""

    async def extract(self, text: str, context: ExtractionContext) -> ExtractionResult:
        ...


def _strip_code_fences(content: str) -> str:
    """Remove markdown code fences some models wrap around JSON."""
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


def parse_extraction_payload(content: Optional[str]) -> ExtractionResult:
    """Parse and validate a raw model reply.

    Raises:
        ExtractionError: On empty replies, invalid JSON or schema violations
    """
    if not content or not content.strip():
        raise ExtractionError("Empty response from model")
    try:
        payload: Dict[str, Any] = json.loads(_strip_code_fences(content.strip()))
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Invalid JSON from model: {e.msg}") from e
    if not isinstance(payload, dict):
        raise ExtractionError("Model response is not a JSON object")
    try:
        return ExtractionResult.model_validate(payload)
    except ValidationError as e:
        raise ExtractionError(f"Model response failed validation ({e.error_count()} errors)") from e


class OpenAIClient:
    """Client for OpenAI API integration."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key. If None, reads from OPENAI_API_KEY environment variable.
            model: Model name. If None, uses OPENAI_MODEL.

        Note:
            Without an API key the client still initializes, but extract() raises
            ExtractionError so the normalizer degrades to its fallback draft.
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.model = model or OPENAI_MODEL
        self.client = None

        if self.api_key:
            self.client = AsyncOpenAI(api_key=self.api_key)
        else:
            logger.warning("OPENAI_API_KEY not found in environment. Task extraction will not be available.")

    async def extract(self, text: str, context: ExtractionContext) -> ExtractionResult:
        """Extract structured task fields from free text.

        Args:
            text: Task-describing free text
            context: Reference date/time/timezone for relative expressions

        Returns:
            Validated ExtractionResult

        Raises:
            ExtractionError: If the client is unavailable, the call fails or
                the reply is malformed
        """
        if not self.client:
            raise ExtractionError("OpenAI client not initialized")

        prompt = EXTRACTION_PROMPT_TEMPLATE.format(
            current_date=context.current_date,
            current_time=context.current_time,
            timezone=context.timezone,
        )

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": prompt},
                    {"role": "user", "content": text},
                ],
                response_format={"type": "json_object"},
                temperature=0.2,
            )
        except APIError as e:
            error_code = getattr(e, 'code', None)
            status_code = getattr(e, 'status_code', None)

            if error_code == 'insufficient_quota':
                logger.warning("OpenAI API quota insufficient. Please check billing/payment method in OpenAI dashboard.")
            elif status_code == 429:
                logger.warning("OpenAI API rate limit exceeded during extraction.")
            else:
                logger.error(f"OpenAI API error during extraction: {status_code or 'unknown'} ({error_code or 'unknown'})")
            raise ExtractionError(f"OpenAI API error: {status_code or 'unknown'}") from e

        content = response.choices[0].message.content if response.choices else None
        result = parse_extraction_payload(content)
        logger.debug(f"OpenAI extracted task: {result.title[:50]}")
        return result

    async def generate_daily_summary(self, completed_count: int, pending_count: int) -> str:
        """Generate a short motivational line for the day's progress.

        Returns:
            Model text, "Keep pushing!" on an empty reply, or
            "Great work today!" if the call cannot be made or fails
        """
        if not self.client:
            return DAILY_SUMMARY_FALLBACK

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "user", "content": DAILY_SUMMARY_PROMPT_TEMPLATE.format(
                        completed=completed_count, pending=pending_count,
                    )},
                ],
                temperature=0.7,
                max_tokens=60,
            )
            text = (response.choices[0].message.content or "").strip()
            return text or DAILY_SUMMARY_EMPTY
        except Exception as e:
            # Don't log full error message as it might contain sensitive info
            logger.error(f"Error generating daily summary: {type(e).__name__}")
            return DAILY_SUMMARY_FALLBACK
