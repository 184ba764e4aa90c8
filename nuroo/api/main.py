"""
Nuroo API - FastAPI Application

REST surface over the task pipeline: today's tasks, generation, completion
toggles, progress, the "Ask Nuroo" chat and notifications.

Usage:
    uvicorn nuroo.api.main:app --host 127.0.0.1 --port 8080 --reload

    Or run directly:
    python -m nuroo.api.main
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nuroo import __version__
from nuroo.api.models import ErrorResponse
from nuroo.api.routes import api_router
from nuroo.config_models import load_config
from nuroo.errors import (
    AIServiceError,
    RateLimitExceeded,
    StoreError,
    TaskNotFoundError,
    TaskUpdateError,
    ValidationError,
)
from nuroo.logging_config import setup_logging
from nuroo.security.ratelimit import format_time_until_reset
from nuroo.services import Services, build_services

logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, code: str, details: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code, details=details).model_dump(),
    )


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return _error(exc.status_code, str(exc.detail), f"HTTP_{exc.status_code}")

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, str(exc), "VALIDATION_ERROR")

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        response = _error(
            status.HTTP_429_TOO_MANY_REQUESTS,
            str(exc),
            "RATE_LIMITED",
            {"reset_time": exc.reset_time, "resets_in": format_time_until_reset(exc.reset_time)},
        )
        if exc.retry_after is not None:
            response.headers["Retry-After"] = str(exc.retry_after)
        return response

    @app.exception_handler(TaskNotFoundError)
    async def not_found_handler(request: Request, exc: TaskNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, str(exc), "TASK_NOT_FOUND")

    @app.exception_handler(TaskUpdateError)
    async def task_update_handler(request: Request, exc: TaskUpdateError):
        return _error(status.HTTP_409_CONFLICT, str(exc), "TASK_UPDATE_FAILED")

    @app.exception_handler(AIServiceError)
    async def ai_service_handler(request: Request, exc: AIServiceError):
        return _error(
            status.HTTP_502_BAD_GATEWAY,
            str(exc),
            "AI_SERVICE_ERROR",
            {"recoverable": exc.recoverable, "action": exc.action},
        )

    @app.exception_handler(StoreError)
    async def store_handler(request: Request, exc: StoreError):
        logger.error(f"Store failure on {request.url.path}: {exc}")
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "Storage unavailable", "STORE_ERROR")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", "INTERNAL_ERROR")


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Build the application.

    When ``services`` is given (tests), it is used as is; otherwise the
    lifespan builds them from args/nuroo.yaml on startup.
    """
    config = services.config if services is not None else load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Nuroo API...")
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services(config)
            logger.info("Services initialised")

        yield

        logger.info("Shutting down Nuroo API...")
        app.state.services.task_manager.close()
        app.state.services.background_runner.stop()

    app = FastAPI(
        title="Nuroo API",
        description="Daily developmental tasks, progress and chat",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)
    app.include_router(api_router)
    return app


def _default_app() -> FastAPI:
    load_dotenv()
    setup_logging()
    return create_app()


app = _default_app()


if __name__ == "__main__":
    import uvicorn

    api_config = load_config().api
    uvicorn.run("nuroo.api.main:app", host=api_config.host, port=api_config.port, reload=True, log_level="info")
