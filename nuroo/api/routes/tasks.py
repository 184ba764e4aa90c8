"""
Tasks Route - today's tasks, generation and completion toggles
"""

from fastapi import APIRouter, Depends, Query

from nuroo.api.deps import get_services
from nuroo.api.models import GenerateRequest, GenerateResponse, TaskListResponse, ToggleResponse
from nuroo.services import Services

router = APIRouter()


@router.get("/users/{user_id}/tasks", response_model=TaskListResponse)
async def list_tasks(
    user_id: str,
    force_refresh: bool = Query(False, description="Bypass the per-day cache"),
    services: Services = Depends(get_services),
):
    tasks = await services.task_manager.fetch_tasks(user_id, force_refresh=force_refresh)
    return TaskListResponse(
        user_id=user_id,
        tasks=[t.to_dict() for t in tasks],
        completed=sum(1 for t in tasks if t.completed),
        total=len(tasks),
    )


@router.post("/users/{user_id}/tasks/generate", response_model=GenerateResponse)
async def generate_tasks(
    user_id: str,
    body: GenerateRequest | None = None,
    services: Services = Depends(get_services),
):
    """Generate today's batch if one is due. Always answers 200 with a status."""
    outcome = await services.daily_task_service.check_and_generate_daily_tasks(
        user_id, language=body.language if body else None
    )
    return GenerateResponse(**outcome.to_dict())


@router.post("/tasks/{task_id}/toggle", response_model=ToggleResponse)
async def toggle_task(task_id: str, services: Services = Depends(get_services)):
    result = await services.task_manager.toggle_task_completion(task_id)
    return ToggleResponse(**result.to_dict())
