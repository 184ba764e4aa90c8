"""
Tool: Assistant Client
Purpose: Chat completions for "Ask Nuroo" and for task generation

Features:
- Lazily created openai.AsyncOpenAI client (API key and project from env)
- System prompt built from language, guidelines and the child's profile
- Per-user "openai_ask" rate limit on chat questions
- Parent messages sanitised; script/markup payloads rejected before any call
- Provider failures converted to user-readable AIServiceError

Usage:
    python -m nuroo.agent.client --user alice --message "Ideas for a rainy day?"
    python -m nuroo.agent.client --message "Как развивать речь?" --language ru

Dependencies:
    - openai (AsyncOpenAI)
    - httpx (request timeouts)
    - python-dotenv

Configuration:
    See args/nuroo.yaml -> openai
    OPENAI_API_KEY, OPENAI_PROJECT_ID in .env
"""

import argparse
import asyncio
import logging
import os
from typing import Any, Optional

import httpx
from dotenv import load_dotenv

from nuroo.agent.prompts import build_system_prompt, pick_language
from nuroo.config_models import OpenAIConfig, load_config, resolve_path
from nuroo.errors import AIServiceError, RateLimitExceeded, ValidationError, to_ai_service_error
from nuroo.security.ratelimit import RateLimiter, format_time_until_reset
from nuroo.security.sanitizer import (
    contains_malicious_content,
    sanitize_medical_info,
    sanitize_name,
    sanitize_prompt,
    sanitize_text,
)
from nuroo.storage.local import LocalStore
from nuroo.tasks.models import ChildProfile

logger = logging.getLogger(__name__)

EMPTY_REPLY = "Sorry, I couldn't generate a response."


def _clean_child(child: Optional[ChildProfile]) -> dict[str, Any]:
    if child is None:
        return {}
    return {
        "name": sanitize_name(child.name) if child.name else None,
        "age": sanitize_text(child.age, max_length=10) if child.age else None,
        "diagnosis": sanitize_medical_info(child.diagnosis) if child.diagnosis else None,
        "development_areas": [sanitize_text(a, max_length=100) for a in child.development_areas],
    }


class AssistantClient:
    def __init__(
        self,
        config: Optional[OpenAIConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        client: Any = None,
    ):
        self.config = config or OpenAIConfig()
        self.rate_limiter = rate_limiter
        self._client = client

    def _get_client(self):
        """Get or create OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            api_key = os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise AIServiceError(
                    "OPENAI_API_KEY is missing. Please set it in your .env",
                    recoverable=False,
                    action="contact_support",
                )
            self._client = AsyncOpenAI(
                api_key=api_key,
                project=os.environ.get("OPENAI_PROJECT_ID") or None,
                timeout=httpx.Timeout(self.config.timeout_seconds, connect=10.0),
                max_retries=1,
            )
        return self._client

    async def _complete(self, system_prompt: str, user_prompt: str, context: dict[str, Any]) -> str:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
                timeout=self.config.timeout_seconds,
            )
        except Exception as e:
            raise to_ai_service_error(e, {"model": self.config.model, **context}) from e

        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip()

    async def ask(
        self,
        message: str,
        child: Optional[ChildProfile] = None,
        language: str = "en",
        user_id: Optional[str] = None,
    ) -> str:
        """Answer a parent's question.

        Raises:
            RateLimitExceeded: the user's hourly question budget is spent
            ValidationError: empty message or script/markup payload
            AIServiceError: the provider call failed
        """
        if user_id and self.rate_limiter is not None:
            result = self.rate_limiter.check_rate_limit(user_id, "openai_ask")
            if not result.allowed:
                raise RateLimitExceeded(
                    f"Rate limit exceeded. Please try again in {format_time_until_reset(result.reset_time)}",
                    reset_time=result.reset_time,
                    retry_after=result.retry_after,
                )

        if contains_malicious_content(message):
            raise ValidationError("Message contains potentially harmful content")

        cleaned = sanitize_prompt(message)
        if not cleaned:
            raise ValidationError("Message cannot be empty")

        language = pick_language(sanitize_text(language, max_length=10))
        system_prompt = build_system_prompt(language, **_clean_child(child))

        reply = await self._complete(
            system_prompt,
            cleaned,
            {"component": "ask", "user_id": user_id, "message_length": len(cleaned)},
        )
        return reply or EMPTY_REPLY

    async def generate_task_text(
        self,
        prompt: str,
        child: Optional[ChildProfile] = None,
        language: str = "en",
    ) -> str:
        """Send a task-generation prompt; returns the raw reply text.

        Raises:
            AIServiceError: provider failure or an empty reply
        """
        child_fields = _clean_child(child)
        child_fields.pop("development_areas", None)
        system_prompt = build_system_prompt(pick_language(language), **child_fields)

        reply = await self._complete(system_prompt, prompt, {"component": "task_generation"})
        if not reply:
            raise AIServiceError("AI service returned an empty task description")
        return reply


async def _run(args) -> str:
    config = load_config()
    limiter = RateLimiter(LocalStore(resolve_path(config.storage.local_db)), config.rate_limits)
    client = AssistantClient(config.openai, rate_limiter=limiter)
    return await client.ask(args.message, language=args.language, user_id=args.user)


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(description="Assistant Client")
    parser.add_argument("--message", required=True, help="Question for Nuroo")
    parser.add_argument("--language", default="en", help="Reply language (en, ru)")
    parser.add_argument("--user", help="User ID (enables rate limiting)")
    args = parser.parse_args()

    try:
        print(asyncio.run(_run(args)))
    except (RateLimitExceeded, ValidationError, AIServiceError) as e:
        print(f"ERROR {e}")


if __name__ == "__main__":
    main()
