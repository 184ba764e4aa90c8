"""API Routes Package

Aggregates all route handlers into a single router mounted under /api.
"""

from fastapi import APIRouter

from .chat import router as chat_router
from .profile import router as profile_router
from .status import router as status_router
from .tasks import router as tasks_router


api_router = APIRouter(prefix="/api")

api_router.include_router(status_router, tags=["status"])
api_router.include_router(profile_router, prefix="/users", tags=["profile"])
api_router.include_router(tasks_router, tags=["tasks"])
api_router.include_router(chat_router, prefix="/users", tags=["chat"])

__all__ = ["api_router"]
