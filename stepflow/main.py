from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from stepflow.api.v1 import machines
from stepflow.core.config import Settings, settings as default_settings
from stepflow.core.exceptions import (
    DomainException,
    DuplicateMachine,
    EmptyMachine,
    IllegalTransition,
    MachineNotFound,
    ReentrantTransition,
)
from stepflow.core.logging_config import configure_logging
from stepflow.services.completion.tracker import CompletionTracker
from stepflow.services.transport.commands import CommandDispatcher
from stepflow.state_machines.registry import MachineRegistry

logger = structlog.get_logger()

DOMAIN_STATUS_CODES = {
    MachineNotFound: status.HTTP_404_NOT_FOUND,
    DuplicateMachine: status.HTTP_409_CONFLICT,
    IllegalTransition: status.HTTP_409_CONFLICT,
    EmptyMachine: status.HTTP_409_CONFLICT,
    ReentrantTransition: status.HTTP_409_CONFLICT,
}


def _make_serializable(obj):
    """Recursively convert objects to JSON-serializable format"""
    if isinstance(obj, dict):
        return {key: _make_serializable(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [_make_serializable(item) for item in obj]
    elif isinstance(obj, Exception):
        return str(obj)
    return obj


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[MachineRegistry] = None,
) -> FastAPI:
    """
    Build the API around a machine registry.

    Args:
        settings: Defaults to the module-level settings
        registry: Defaults to a new registry configured from settings
    """
    settings = settings or default_settings
    if registry is None:
        registry = MachineRegistry(
            unknown_machine_policy=settings.unknown_machine_policy,
            reentrancy=settings.reentrancy,
        )

    app = FastAPI(title=settings.api_title, version=settings.api_version)
    app.state.registry = registry
    app.state.dispatcher = CommandDispatcher(registry)
    app.state.tracker = CompletionTracker(registry)

    app.include_router(machines.router, prefix=settings.api_v1_prefix)

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException):
        """Convert domain exceptions to HTTP responses"""
        status_code = DOMAIN_STATUS_CODES.get(
            type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR
        )
        logger.warning(
            "domain_error",
            error_code=exc.error_code,
            error=exc.message,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=status_code,
            content={
                "error": exc.error_code,
                "message": exc.message,
                "details": _make_serializable(exc.details),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.error(
            "http_exception",
            status_code=exc.status_code,
            detail=exc.detail,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "HTTP_ERROR",
                "message": exc.detail,
                "status_code": exc.status_code,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        serializable_errors = _make_serializable(exc.errors())
        logger.error("validation_error", errors=serializable_errors, path=request.url.path)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": serializable_errors,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception", error=str(exc), path=request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "INTERNAL_SERVER_ERROR",
                "message": "An unexpected error occurred",
            },
        )

    @app.get("/health")
    async def health() -> JSONResponse:
        """Health check endpoint"""
        return JSONResponse(
            {"status": "ok", "version": settings.api_version, "machines": len(registry)}
        )

    return app


def build_app() -> FastAPI:
    """Entry point for uvicorn --factory: configures logging, then builds the app."""
    configure_logging()
    logger.info("starting_application", version=default_settings.api_version)
    return create_app()
