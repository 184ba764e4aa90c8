"""
Profile Route - onboarding data and per-area progress
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from nuroo.api.deps import get_services
from nuroo.api.models import ProfileUpdate, ProgressResponse, ProgressUpdate
from nuroo.progress.areas import DevelopmentArea, calculate_difficulty, resolve_area
from nuroo.security.sanitizer import sanitize_child_profile
from nuroo.services import Services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{user_id}/profile")
async def get_profile(user_id: str, services: Services = Depends(get_services)):
    profile = await services.store.get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.put("/{user_id}/profile")
async def update_profile(user_id: str, body: ProfileUpdate, services: Services = Depends(get_services)):
    """Save onboarding fields. Names, ages and diagnoses are sanitised first."""
    cleaned = sanitize_child_profile(
        name=body.name,
        age=body.age,
        diagnosis=body.diagnosis,
        development_areas=body.development_areas,
    )
    for area in cleaned.get("development_areas", []):
        resolve_area(area)

    if body.preferred_language is not None:
        cleaned["preferred_language"] = body.preferred_language
    if body.onboarding_completed is not None:
        cleaned["onboarding_completed"] = body.onboarding_completed

    await services.store.merge_profile(user_id, cleaned)
    if services.config.notifications.enabled:
        services.notifier.schedule_daily_notification(user_id)

    logger.info(f"Profile updated for {user_id}: {sorted(cleaned)}")
    return await services.store.get_profile(user_id)


def _progress_response(user_id: str, progress) -> ProgressResponse:
    return ProgressResponse(
        user_id=user_id,
        progress=progress.to_dict(),
        difficulty={
            area.value: calculate_difficulty(progress.get(area)).value for area in DevelopmentArea
        },
    )


@router.get("/{user_id}/progress", response_model=ProgressResponse)
async def get_progress(user_id: str, services: Services = Depends(get_services)):
    progress = await services.progress_store.get_or_initialize(user_id)
    services.offline.save_progress(user_id, progress.to_dict())
    return _progress_response(user_id, progress)


@router.put("/{user_id}/progress/{area}", response_model=ProgressResponse)
async def update_progress(
    user_id: str, area: str, body: ProgressUpdate, services: Services = Depends(get_services)
):
    await services.progress_store.get_or_initialize(user_id)
    await services.progress_store.update_progress(user_id, area, body.value)
    return _progress_response(user_id, await services.progress_store.get_or_initialize(user_id))
