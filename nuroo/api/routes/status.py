"""
Status Route - health, rate limits and notifications
"""

from fastapi import APIRouter, Depends, HTTPException

from nuroo import __version__
from nuroo.api.deps import get_services
from nuroo.api.models import RateLimitStatus
from nuroo.security.ratelimit import format_time_until_reset
from nuroo.services import Services

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


@router.get("/users/{user_id}/ratelimit/{category}", response_model=RateLimitStatus)
async def get_rate_limit(category: str, user_id: str, services: Services = Depends(get_services)):
    """Peek at a rate limit counter without consuming a request."""
    if category not in services.rate_limiter.limits:
        raise HTTPException(status_code=404, detail=f"Unknown rate limit category: {category}")

    result = services.rate_limiter.get_status(user_id, category)
    return RateLimitStatus(
        category=category,
        allowed=result.allowed,
        remaining=result.remaining,
        reset_time=result.reset_time,
        retry_after=result.retry_after,
        resets_in=format_time_until_reset(result.reset_time),
    )


@router.get("/users/{user_id}/notifications")
async def list_notifications(user_id: str, limit: int = 20, services: Services = Depends(get_services)):
    return {"notifications": services.notifier.list_notifications(user_id=user_id, limit=limit)}


@router.post("/notifications/{notification_id}/open")
async def open_notification(notification_id: str, services: Services = Depends(get_services)):
    """Mark a notification opened; the task list refreshes on its next fetch."""
    if not services.notifier.handle_notification_response(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"opened": True}
