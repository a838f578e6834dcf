"""Tests for the OpenAI extraction collaborator (no network)."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIError

from conftest import extraction_payload
from taskflow.engine.normalizer import build_extraction_context
from taskflow.integrations.openai_client import (
    ExtractionError,
    OpenAIClient,
    parse_extraction_payload,
)


def _completion(content):
    """Build a chat completion shaped like the SDK response."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def mocked_client():
    """OpenAIClient with the SDK client replaced by a mock."""
    client = OpenAIClient(api_key="test-key")
    client.client = MagicMock()
    client.client.chat.completions.create = AsyncMock()
    return client


class TestParseExtractionPayload:
    def test_valid_payload(self):
        result = parse_extraction_payload(json.dumps(extraction_payload()))
        assert result.title == "Call Mom"
        assert result.date_components.month == 7
        assert result.priority == "medium"

    def test_code_fences_are_stripped(self):
        content = "```json\n" + json.dumps(extraction_payload()) + "\n```"
        assert parse_extraction_payload(content).title == "Call Mom"

    @pytest.mark.parametrize("content", [None, "", "   "])
    def test_empty_reply(self, content):
        with pytest.raises(ExtractionError):
            parse_extraction_payload(content)

    def test_invalid_json(self):
        with pytest.raises(ExtractionError):
            parse_extraction_payload("{not json")

    def test_non_object_json(self):
        with pytest.raises(ExtractionError):
            parse_extraction_payload("[1, 2, 3]")

    def test_schema_violation(self):
        with pytest.raises(ExtractionError):
            parse_extraction_payload(json.dumps(extraction_payload(title="")))

    def test_aware_reminder_becomes_naive(self):
        result = parse_extraction_payload(json.dumps(extraction_payload(reminder="2024-07-02T16:30:00+00:00")))
        assert result.reminder.tzinfo is None


class TestExtract:
    @pytest.mark.asyncio
    async def test_extract_success(self, mocked_client, reference_now):
        mocked_client.client.chat.completions.create.return_value = _completion(json.dumps(extraction_payload()))
        context = build_extraction_context(reference_now, "UTC")

        result = await mocked_client.extract("Call Mom tomorrow at 5pm", context)

        assert result.title == "Call Mom"
        kwargs = mocked_client.client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][1]["content"] == "Call Mom tomorrow at 5pm"
        assert "Monday, July 1, 2024" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_extract_without_api_key(self, reference_now):
        client = OpenAIClient()
        assert client.client is None
        with pytest.raises(ExtractionError):
            await client.extract("Call Mom", build_extraction_context(reference_now, "UTC"))

    @pytest.mark.asyncio
    async def test_api_error_becomes_extraction_error(self, mocked_client, reference_now):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        mocked_client.client.chat.completions.create.side_effect = APIError("boom", request, body=None)

        with pytest.raises(ExtractionError):
            await mocked_client.extract("Call Mom", build_extraction_context(reference_now, "UTC"))

    @pytest.mark.asyncio
    async def test_empty_choices(self, mocked_client, reference_now):
        response = MagicMock()
        response.choices = []
        mocked_client.client.chat.completions.create.return_value = response

        with pytest.raises(ExtractionError):
            await mocked_client.extract("Call Mom", build_extraction_context(reference_now, "UTC"))


class TestDailySummary:
    @pytest.mark.asyncio
    async def test_returns_model_text(self, mocked_client):
        mocked_client.client.chat.completions.create.return_value = _completion("  Two down, one to go!  ")
        assert await mocked_client.generate_daily_summary(2, 1) == "Two down, one to go!"

    @pytest.mark.asyncio
    async def test_empty_reply(self, mocked_client):
        mocked_client.client.chat.completions.create.return_value = _completion("")
        assert await mocked_client.generate_daily_summary(2, 1) == "Keep pushing!"

    @pytest.mark.asyncio
    async def test_failure(self, mocked_client):
        mocked_client.client.chat.completions.create.side_effect = RuntimeError("down")
        assert await mocked_client.generate_daily_summary(2, 1) == "Great work today!"

    @pytest.mark.asyncio
    async def test_without_api_key(self):
        assert await OpenAIClient().generate_daily_summary(0, 0) == "Great work today!"
