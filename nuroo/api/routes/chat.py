"""
Chat Route - "Ask Nuroo" with daily message budget and opening hours
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from nuroo.api.deps import get_services
from nuroo.api.models import AskRequest, AskResponse
from nuroo.services import Services
from nuroo.tasks.models import ChildProfile

router = APIRouter()


@router.get("/{user_id}/chat/availability")
async def chat_availability(user_id: str, services: Services = Depends(get_services)):
    limits = services.daily_limits
    return {
        **limits.is_chat_available(user_id).to_dict(),
        "remaining_messages": limits.can_send_message(user_id).remaining,
        "morning_tasks_in": limits.get_time_until_next_morning_tasks(user_id),
    }


@router.post("/{user_id}/ask", response_model=AskResponse)
async def ask(user_id: str, body: AskRequest, services: Services = Depends(get_services)):
    availability = services.daily_limits.is_chat_available(user_id)
    if not availability.available:
        return JSONResponse(
            status_code=429,
            content={
                "error": availability.reason,
                "code": "CHAT_UNAVAILABLE",
                "details": {"next_available_time": availability.next_available_time},
            },
        )

    profile = await services.store.get_profile(user_id)
    child = ChildProfile.from_dict(profile) if profile else None

    reply = await services.assistant.ask(body.message, child, body.language, user_id=user_id)
    services.daily_limits.record_message_usage(user_id)

    return AskResponse(
        reply=reply,
        remaining_messages=services.daily_limits.can_send_message(user_id).remaining,
    )
