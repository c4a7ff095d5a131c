"""
FastAPI application entry point for the Todo & Menu API.

This module provides the main FastAPI application with:
- Resource routers (users, todos, addresses, categories, menus, menu options)
- Health and readiness endpoints
- Request logging with correlation ids
- Prometheus metrics
- CORS
- Error translation into the common error envelope
- Database connection pool management
"""

import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import asyncpg
import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.logging import configure_logging
from todo_api.src.config import get_settings, Settings
from todo_api.src.dependencies import close_db_pool, get_db_pool, init_db_pool
from todo_api.src.errors import APIError, ErrorCode, translate_store_error
from todo_api.src.middleware.request_logging import RequestLoggingMiddleware
from todo_api.src.routers import addresses, categories, menus, todos, users

logger = structlog.get_logger(__name__)

WELCOME_TEXT = "Welcome to The TODO API!"


# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - Database connection pool initialization
    - Graceful shutdown and resource cleanup
    """
    settings: Settings = get_settings()

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    try:
        pool = await init_db_pool()

        async with pool.acquire() as conn:
            version = await conn.fetchval("SELECT version()")
            logger.info("database_connected", postgres_version=version)

        logger.info("application_started", app_name=settings.app_name)

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    finally:
        logger.info("application_shutting_down")
        await close_db_pool()
        logger.info("application_shutdown_complete")


# ============================================================================
# Error Envelopes
# ============================================================================

def _error_response(
    request: Request,
    status_code: int,
    body: Dict[str, Any],
    exc: Optional[BaseException] = None
) -> JSONResponse:
    """Render an error envelope, attaching the stack trace outside production."""
    if exc is not None and not get_settings().is_production:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=status_code, content=body)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle application errors raised by handlers and services."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "api_error",
        path=request.url.path,
        status_code=exc.status_code,
        code=exc.code.value,
        message=exc.message
    )
    return _error_response(request, exc.status_code, exc.to_dict(), exc)


async def store_error_handler(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
    """Handle database errors that escaped the repositories."""
    api_error = translate_store_error(exc)
    return _error_response(request, api_error.status_code, api_error.to_dict(), exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors (bad path parameters, malformed JSON)."""
    details = {
        ".".join(str(part) for part in error.get("loc", ())): {
            "rule": error.get("type", "invalid"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    }
    logger.warning("validation_error", path=request.url.path, fields=sorted(details))
    return _error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        {
            "error": True,
            "code": ErrorCode.INVALID_REQUEST_BODY.value,
            "message": "Invalid request",
            "details": details,
        }
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle routing errors and other HTTP exceptions."""
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )

    if exc.status_code == status.HTTP_404_NOT_FOUND:
        code, message = ErrorCode.NOT_FOUND, f"Not Found - {request.url.path}"
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        code, message = ErrorCode.METHOD_NOT_ALLOWED, "Method Not Allowed"
    elif exc.status_code == status.HTTP_401_UNAUTHORIZED:
        code, message = ErrorCode.UNAUTHORIZED, str(exc.detail)
    elif exc.status_code == status.HTTP_403_FORBIDDEN:
        code, message = ErrorCode.FORBIDDEN, str(exc.detail)
    else:
        code, message = ErrorCode.INTERNAL_ERROR, str(exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": True, "code": code.value, "message": message},
        headers=getattr(exc, "headers", None)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        error=str(exc),
        exc_info=True
    )
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {
            "error": True,
            "code": ErrorCode.INTERNAL_ERROR.value,
            "message": "An unexpected error occurred.",
        },
        exc
    )


# ============================================================================
# FastAPI Application
# ============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)

    Returns:
        Configured application
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        service_name=settings.app_name,
        environment=settings.environment
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "REST API for todos, addresses and a menu catalogue "
            "(categories, menus, menu options) with JWT authentication."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=settings.debug,
    )

    # ------------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------------

    if settings.cors_enabled:
        logger.info("configuring_cors", origins=settings.cors_origins)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
        )

    app.add_middleware(RequestLoggingMiddleware)

    # ------------------------------------------------------------------------
    # Exception handlers
    # ------------------------------------------------------------------------

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(asyncpg.PostgresError, store_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # ------------------------------------------------------------------------
    # Operational endpoints
    # ------------------------------------------------------------------------

    @app.get("/", tags=["Health"], response_class=PlainTextResponse)
    async def welcome() -> str:
        return WELCOME_TEXT

    @app.get("/health", tags=["Health"])
    async def health_check() -> Dict[str, Any]:
        """
        Health check endpoint.

        Returns basic health status without checking dependencies.
        Use for container health checks.
        """
        return {
            "status": "healthy",
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check() -> JSONResponse:
        """
        Readiness check endpoint.

        Verifies database connectivity.
        """
        checks = {"database": "unknown"}

        try:
            async with get_db_pool().acquire() as conn:
                await conn.fetchval("SELECT 1")
            checks["database"] = "healthy"
        except (RuntimeError, OSError, asyncpg.PostgresError) as e:
            logger.error("database_health_check_failed", error=str(e))
            checks["database"] = "unhealthy"

        all_healthy = all(state == "healthy" for state in checks.values())

        return JSONResponse(
            status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "ready" if all_healthy else "not_ready",
                "service": settings.app_name,
                "version": settings.app_version,
                "checks": checks
            }
        )

    if settings.metrics_enabled:
        @app.get("/metrics", tags=["Monitoring"], response_class=PlainTextResponse)
        async def metrics() -> Response:
            """Prometheus metrics endpoint."""
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # ------------------------------------------------------------------------
    # Resource routers
    # ------------------------------------------------------------------------

    app.include_router(users.router, prefix=settings.api_prefix)
    app.include_router(todos.router, prefix=settings.api_prefix)
    app.include_router(addresses.router, prefix=settings.api_prefix)
    app.include_router(categories.router, prefix=settings.api_prefix)
    app.include_router(menus.router, prefix=settings.api_prefix)
    app.include_router(menus.option_router, prefix=settings.api_prefix)

    return app


app = create_app()


# ============================================================================
# Application Entry Point
# ============================================================================

def run() -> None:
    """Run the application with Uvicorn."""
    settings = get_settings()

    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "todo_api.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


if __name__ == "__main__":
    run()
