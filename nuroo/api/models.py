"""
Pydantic models for API request/response types.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Tasks
# =============================================================================


class TaskOut(BaseModel):
    id: str
    title: str
    description: str
    category: str
    time: str
    emoji: str
    completed: bool
    user_id: str
    daily_id: str
    created_at: str
    completed_at: Optional[str] = None
    development_area: str
    difficulty: str
    estimated_duration: int


class TaskListResponse(BaseModel):
    user_id: str
    tasks: list[TaskOut]
    completed: int
    total: int


class ToggleResponse(BaseModel):
    task: TaskOut
    bonus_tasks: list[TaskOut] = Field(default_factory=list)


class GenerateRequest(BaseModel):
    language: Optional[str] = Field(default=None, max_length=10)


class GenerateResponse(BaseModel):
    status: str
    message: Optional[str] = None
    tasks: list[TaskOut] = Field(default_factory=list)


# =============================================================================
# Profile and progress
# =============================================================================


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    age: Optional[str] = None
    diagnosis: Optional[str] = None
    development_areas: Optional[list[str]] = None
    preferred_language: Optional[str] = Field(default=None, max_length=10)
    onboarding_completed: Optional[bool] = None


class ProgressResponse(BaseModel):
    user_id: str
    progress: dict[str, float]
    difficulty: dict[str, str]


class ProgressUpdate(BaseModel):
    value: float


# =============================================================================
# Chat and limits
# =============================================================================


class AskRequest(BaseModel):
    message: str = Field(min_length=1, max_length=4000)
    language: str = Field(default="en", max_length=10)


class AskResponse(BaseModel):
    reply: str
    remaining_messages: int


class RateLimitStatus(BaseModel):
    category: str
    allowed: bool
    remaining: int
    reset_time: float
    retry_after: Optional[int] = None
    resets_in: str


class ErrorResponse(BaseModel):
    error: str
    code: str
    details: Optional[dict[str, Any]] = None
