"""Tests for nuroo/agent/client.py and nuroo/agent/prompts.py

The assistant wraps the OpenAI chat API:
- ask() enforces the hourly question budget and screens the message
- generate_task_text() refuses empty replies
- Provider failures surface as AIServiceError with a user-facing message
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from nuroo.agent.client import EMPTY_REPLY, AssistantClient
from nuroo.agent.prompts import (
    build_system_prompt,
    build_task_prompt,
    pick_language,
    progress_stage,
    time_label,
    translate_area,
    translate_category,
)
from nuroo.config_models import OpenAIConfig, RateLimitCategoryConfig
from nuroo.errors import AIServiceError, RateLimitExceeded, ValidationError
from nuroo.progress.areas import Difficulty
from nuroo.security.ratelimit import RateLimiter


def _reply(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_reply("  Try bubble play.  "))
    return client


@pytest.fixture
def assistant(openai_client):
    return AssistantClient(OpenAIConfig(model="test-model"), client=openai_client)


# ─────────────────────────────────────────────────────────────────────────────
# Prompt Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestPrompts:
    """Tests for prompt templates and label tables."""

    def test_pick_language(self):
        assert pick_language("ru") == "ru"
        assert pick_language("RU-ru") == "ru"
        assert pick_language("de") == "en"
        assert pick_language(None) == "en"

    def test_system_prompt_includes_child(self):
        prompt = build_system_prompt("en", name="Alice", age="5", diagnosis="ASD", development_areas=["speech"])

        assert prompt.startswith("You are Nuroo")
        assert "Child: Alice, Age: 5" in prompt
        assert "Diagnosis: ASD" in prompt
        assert "Focus areas: speech" in prompt

    def test_system_prompt_without_child(self):
        prompt = build_system_prompt("ru")
        assert "Nuroo" in prompt
        assert "Ребёнок" not in prompt

    def test_task_prompt_fills_placeholders(self):
        prompt = build_task_prompt("motor", 72, Difficulty.ADVANCED, "Ben", "7", None, "en")

        assert "advanced motor development activity" in prompt
        assert "advanced stage" in prompt
        assert "- Diagnosis: Not specified" in prompt
        assert "72/100" in prompt
        assert "{" not in prompt

    def test_progress_stage(self):
        assert progress_stage(10, "en") == "early stages"
        assert progress_stage(50, "en") == "developing stage"
        assert progress_stage(90, "en") == "advanced stage"

    def test_translations(self):
        assert translate_area("social", "ru") == "социальных навыков"
        assert translate_category("motor", "en") == "Motor Development"
        assert translate_category("music", "en") == "Music Development"
        assert time_label("ru") == "10-15 мин"


# ─────────────────────────────────────────────────────────────────────────────
# Ask Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestAsk:
    """Tests for parent questions."""

    @pytest.mark.asyncio
    async def test_returns_stripped_reply(self, assistant, openai_client, sample_child):
        reply = await assistant.ask("How can I help with speech?", sample_child)

        assert reply == "Try bubble play."
        kwargs = openai_client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["messages"][1] == {"role": "user", "content": "How can I help with speech?"}
        assert "Child: Alice, Age: 5" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_empty_reply_falls_back(self, assistant, openai_client):
        openai_client.chat.completions.create = AsyncMock(return_value=_reply(""))

        assert await assistant.ask("hello") == EMPTY_REPLY

    @pytest.mark.asyncio
    async def test_rejects_script_payload(self, assistant, openai_client):
        with pytest.raises(ValidationError):
            await assistant.ask("<script>alert(1)</script>")
        openai_client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_message_that_cleans_to_nothing(self, assistant):
        with pytest.raises(ValidationError):
            await assistant.ask("  ;;;  ")

    @pytest.mark.asyncio
    async def test_hourly_budget_enforced(self, openai_client, local_store):
        limiter = RateLimiter(
            local_store, {"openai_ask": RateLimitCategoryConfig(max_requests=2, window_seconds=3600)}
        )
        assistant = AssistantClient(client=openai_client, rate_limiter=limiter)

        await assistant.ask("one", user_id="alice")
        await assistant.ask("two", user_id="alice")
        with pytest.raises(RateLimitExceeded) as exc_info:
            await assistant.ask("three", user_id="alice")

        assert exc_info.value.retry_after is not None
        assert openai_client.chat.completions.create.await_count == 2

    @pytest.mark.asyncio
    async def test_provider_failure_wrapped(self, assistant, openai_client):
        openai_client.chat.completions.create = AsyncMock(side_effect=RuntimeError("Connection reset"))

        with pytest.raises(AIServiceError) as exc_info:
            await assistant.ask("hello")

        assert exc_info.value.recoverable is True
        assert "Network connection issue" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(AIServiceError) as exc_info:
            await AssistantClient().ask("hello")

        assert exc_info.value.recoverable is False


class TestGenerateTaskText:
    @pytest.mark.asyncio
    async def test_returns_reply(self, assistant, sample_child):
        assert await assistant.generate_task_text("prompt", sample_child) == "Try bubble play."

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self, assistant, openai_client):
        openai_client.chat.completions.create = AsyncMock(return_value=_reply(None))

        with pytest.raises(AIServiceError):
            await assistant.generate_task_text("prompt")

    @pytest.mark.asyncio
    async def test_system_prompt_has_no_focus_line(self, assistant, openai_client, sample_child):
        await assistant.generate_task_text("prompt", sample_child, "en")

        system = openai_client.chat.completions.create.await_args.kwargs["messages"][0]["content"]
        assert "Focus areas" not in system
