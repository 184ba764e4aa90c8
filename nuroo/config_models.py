from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from nuroo import CONFIG_PATH, PROJECT_ROOT

logger = logging.getLogger(__name__)


# =============================================================================
# Rate limits (args/nuroo.yaml -> rate_limits)
# =============================================================================

class RateLimitCategoryConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    max_requests: int = Field(ge=1)
    window_seconds: int = Field(ge=1)


def _default_rate_limits() -> dict[str, RateLimitCategoryConfig]:
    return {
        "openai_ask": RateLimitCategoryConfig(max_requests=10, window_seconds=60 * 60),
        "openai_tasks": RateLimitCategoryConfig(max_requests=5, window_seconds=24 * 60 * 60),
        "firebase_auth": RateLimitCategoryConfig(max_requests=20, window_seconds=60),
        "firebase_write": RateLimitCategoryConfig(max_requests=100, window_seconds=60),
    }


# =============================================================================
# Task pipeline
# =============================================================================

class TasksConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    batch_size: int = Field(default=4, ge=1, le=6)
    completion_bump: int = Field(default=2, ge=0, le=100)
    bonus_bump: int = Field(default=5, ge=0, le=100)
    fetch_timeout_seconds: float = Field(default=5.0, gt=0)
    recent_fallback_count: int = Field(default=4, ge=1)


class OpenAIConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    model: str = Field(default="gpt-4.1-mini")
    max_tokens: int = Field(default=500, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    timeout_seconds: float = Field(default=30.0, gt=0)


class NotificationsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = Field(default=True)
    daily_hour: int = Field(default=9, ge=0, le=23)
    daily_minute: int = Field(default=0, ge=0, le=59)


class DailyLimitsConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    max_daily_messages: int = Field(default=3, ge=0)
    morning_task_hour: int = Field(default=9, ge=0, le=23)
    chat_opens_hour: int = Field(default=6, ge=0, le=23)
    chat_closes_hour: int = Field(default=22, ge=1, le=24)


class BackgroundConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    enabled: bool = Field(default=True)
    interval_seconds: int = Field(default=60 * 60, ge=60)


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    local_db: str = Field(default="data/local.db")
    store_db: str = Field(default="data/store.db")
    notifications_db: str = Field(default="data/notifications.db")
    offline_stale_hours: int = Field(default=24, ge=1)


class ApiConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=1, le=65535)
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )


class NurooConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    rate_limits: dict[str, RateLimitCategoryConfig] = Field(default_factory=_default_rate_limits)
    tasks: TasksConfig = Field(default_factory=TasksConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    daily_limits: DailyLimitsConfig = Field(default_factory=DailyLimitsConfig)
    background: BackgroundConfig = Field(default_factory=BackgroundConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    default_language: str = Field(default="en")


def load_config(path: Optional[Path] = None) -> NurooConfig:
    """Load args/nuroo.yaml, falling back to defaults on a missing or invalid file.

    Rate-limit categories given in YAML are merged over the built-in ones so
    a file that only tunes ``openai_tasks`` keeps the other categories.
    """
    yaml_path = path or CONFIG_PATH

    try:
        if yaml_path.exists():
            with open(yaml_path) as f:
                raw = yaml.safe_load(f) or {}
        else:
            raw = {}

        limits = {name: cfg.model_dump() for name, cfg in _default_rate_limits().items()}
        limits.update(raw.get("rate_limits") or {})
        raw["rate_limits"] = limits

        return NurooConfig.model_validate(raw)
    except Exception as e:
        logger.warning(f"Config validation failed for {yaml_path}: {e}, using defaults")
        return NurooConfig()


def resolve_path(relative: str) -> Path:
    """Resolve a storage path from config against the project root."""
    path = Path(relative)
    if path.is_absolute():
        return path
    return PROJECT_ROOT / path


__all__ = [
    "ApiConfig",
    "BackgroundConfig",
    "DailyLimitsConfig",
    "NotificationsConfig",
    "NurooConfig",
    "OpenAIConfig",
    "RateLimitCategoryConfig",
    "StorageConfig",
    "TasksConfig",
    "load_config",
    "resolve_path",
]
