"""
Channelhub Service Main Application

FastAPI service exposing the channelhub core and hosting the periodic
rating sweep.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import HTTPException as FastAPIHTTPException
from fastapi.responses import JSONResponse

from channelhub.concurrency.locking import ConcurrencyError
from channelhub.config import settings
from channelhub.domain.exceptions import DomainException
from channelhub.platform import Platform
from channelhub.seeds import seed_demo_data
from services.channelhub_service.api import (
    announcements,
    auth,
    channels,
    messages,
    subscriptions,
    users,
)
from services.channelhub_service.dependencies import platform_dependency
from services.channelhub_service.scheduler import RatingsScheduler

logger = structlog.get_logger(__name__)


def _resolve_platform(app: FastAPI) -> Platform:
    return app.dependency_overrides.get(platform_dependency, platform_dependency)()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Seeds demo data when configured and runs the rating scheduler for the
    lifetime of the app.
    """
    logger.info("Starting Channelhub Service", version=app.version)

    platform = _resolve_platform(app)
    if platform.settings.seed_demo_data and platform.identity.count() == 0:
        await seed_demo_data(platform)

    scheduler = RatingsScheduler(
        platform.subscriptions,
        interval_seconds=platform.settings.recompute_interval_seconds,
        run_on_start=platform.settings.recompute_on_startup,
    )
    app.state.scheduler = scheduler
    await scheduler.start()

    try:
        yield
    finally:
        await scheduler.stop()
        logger.info("Channelhub Service shutdown complete")


app = FastAPI(
    title="Channelhub Service",
    description="Channels, subscriptions, reputation and messaging for professors and students",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(DomainException)
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """
    Handle domain exceptions with structured error responses.

    Args:
        request: FastAPI request
        exc: Domain exception

    Returns:
        JSONResponse: Structured error response
    """
    logger.warning(
        "Domain exception",
        path=request.url.path,
        method=request.method,
        error_code=exc.error_code.value,
        message=exc.message,
        status_code=exc.status_code,
        context=exc.context,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(ConcurrencyError)
async def concurrency_exception_handler(request: Request, exc: ConcurrencyError) -> JSONResponse:
    logger.warning("Concurrency conflict", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"error": "CONCURRENCY_CONFLICT", "message": str(exc), "type": type(exc).__name__},
    )


@app.exception_handler(FastAPIHTTPException)
async def http_exception_handler(request: Request, exc: FastAPIHTTPException) -> JSONResponse:
    """
    Handle FastAPI HTTP exceptions.

    Args:
        request: FastAPI request
        exc: HTTP exception

    Returns:
        JSONResponse: Error response
    """
    logger.warning(
        "HTTP exception",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        detail=exc.detail,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTP_ERROR",
            "message": exc.detail if isinstance(exc.detail, str) else str(exc.detail),
            "status_code": exc.status_code,
        },
        headers=getattr(exc, "headers", None),
    )


# Include routers
app.include_router(auth.router, prefix=f"{settings.api_v1_prefix}/auth", tags=["Authentication"])
app.include_router(users.router, prefix=f"{settings.api_v1_prefix}/users", tags=["Users"])
app.include_router(
    channels.router, prefix=f"{settings.api_v1_prefix}/channels", tags=["Channels"]
)
app.include_router(
    subscriptions.router,
    prefix=f"{settings.api_v1_prefix}/subscriptions",
    tags=["Subscriptions"],
)
app.include_router(
    messages.router, prefix=f"{settings.api_v1_prefix}/messages", tags=["Messages"]
)
app.include_router(
    announcements.router,
    prefix=f"{settings.api_v1_prefix}/announcements",
    tags=["Announcements"],
)


@app.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint."""
    platform = _resolve_platform(request.app)
    scheduler: RatingsScheduler | None = getattr(request.app.state, "scheduler", None)
    return {
        "status": "healthy",
        "service": "channelhub_service",
        "users": platform.identity.count(),
        "channels": len(platform.channels.channel_ids()),
        "held_locks": len(platform.locks.get_all_locks()),
        "sweep_in_flight": platform.subscriptions.sweep_in_flight,
        "scheduler_running": scheduler.running if scheduler else False,
        "invariants": platform.monitor.get_statistics(),
    }


def run() -> None:
    """Serve the app with uvicorn using the configured host, port and log level."""
    uvicorn.run(
        "services.channelhub_service.main:app",
        host=settings.service_host,
        port=settings.service_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
