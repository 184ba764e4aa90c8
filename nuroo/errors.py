"""
Error taxonomy for the task pipeline.

    NurooError
    ├── ValidationError      bad input, rejected before any network call
    ├── RateLimitExceeded    user-facing "try again later", non-fatal
    ├── UpstreamError        AI service or document store failed
    │   ├── AIServiceError
    │   └── StoreError
    ├── TaskNotFoundError
    └── TaskUpdateError      optimistic toggle was reverted

Every exception carries a message that is safe to show to a parent.
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


class NurooError(Exception):
    """Base class for all pipeline errors."""


class ValidationError(NurooError):
    """Input was rejected (age, name, diagnosis, areas, prompt)."""


class RateLimitExceeded(NurooError):
    def __init__(self, message: str, reset_time: float, retry_after: int | None = None):
        super().__init__(message)
        self.reset_time = reset_time
        self.retry_after = retry_after


class UpstreamError(NurooError):
    """An external collaborator (AI service, document store) failed."""


class AIServiceError(UpstreamError):
    def __init__(self, message: str, recoverable: bool = True, action: str = "retry"):
        super().__init__(message)
        self.recoverable = recoverable
        self.action = action


class StoreError(UpstreamError):
    pass


class TaskNotFoundError(NurooError):
    pass


class TaskUpdateError(NurooError):
    pass


def describe_ai_error(error: BaseException) -> dict[str, Any]:
    """Map an AI provider failure to a user-readable message.

    Looks at the provider's error payload first (``body["error"]["message"]``
    on openai exceptions), then the exception text.
    """
    detail = ""
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict):
            detail = str(inner.get("message") or "")
    text = f"{detail} {error}".lower()
    status = getattr(error, "status_code", None)

    if "api key" in text or "unauthorized" in text or status == 401:
        return {
            "recoverable": False,
            "message": "AI service authentication failed. Please contact support.",
            "action": "contact_support",
            "severity": "critical",
        }

    if "rate limit" in text or "quota" in text or status == 429:
        return {
            "recoverable": True,
            "message": "AI service is busy. Please try again in a moment.",
            "action": "retry_later",
            "severity": "medium",
        }

    if "model" in text or "not found" in text or status == 404:
        return {
            "recoverable": False,
            "message": "AI service configuration error. Please contact support.",
            "action": "contact_support",
            "severity": "high",
        }

    if "timeout" in text or "timed out" in text or "network" in text or "connection" in text:
        return {
            "recoverable": True,
            "message": "Network connection issue. Please check your internet connection.",
            "action": "retry",
            "severity": "medium",
        }

    return {
        "recoverable": True,
        "message": "AI service temporarily unavailable. Please try again.",
        "action": "retry",
        "severity": "medium",
    }


def to_ai_service_error(error: BaseException, context: dict[str, Any] | None = None) -> AIServiceError:
    """Log a provider failure with context and wrap it as AIServiceError."""
    info = describe_ai_error(error)
    log = logger.critical if info["severity"] == "critical" else logger.error
    log(f"AI request failed ({info['action']}): {error}", extra={"context": context or {}})
    return AIServiceError(info["message"], recoverable=info["recoverable"], action=info["action"])


__all__ = [
    "AIServiceError",
    "NurooError",
    "RateLimitExceeded",
    "StoreError",
    "TaskNotFoundError",
    "TaskUpdateError",
    "UpstreamError",
    "ValidationError",
    "describe_ai_error",
    "to_ai_service_error",
]
