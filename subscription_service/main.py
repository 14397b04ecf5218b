"""
Subscription Service API Server

Entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from subscription_service import __version__
from subscription_service.api import router as api_router
from subscription_service.core.config import get_settings
from subscription_service.core.database import engine, get_engine, init_db, ping_db
from subscription_service.core.errors import register_exception_handlers
from subscription_service.core.logging import configure_logging
from subscription_service.core.middleware import RequestLoggingMiddleware

settings = get_settings()
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("subscription_service.starting", env=settings.app_env)
    await init_db()
    log.info("subscription_service.database_ready", host=settings.db_host, db=settings.db_name)
    yield
    log.info("subscription_service.shutting_down")
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Subscription Service",
        description="Tracks user subscriptions and their total spend.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(api_router)

    @app.get("/health", tags=["System"], response_class=PlainTextResponse)
    async def health_check():
        """Liveness check endpoint."""
        return "OK"

    @app.get("/ready", tags=["System"])
    async def readiness_check(bind: AsyncEngine = Depends(get_engine)):
        """Readiness check endpoint: verifies database connectivity."""
        try:
            await ping_db(bind)
        except (SQLAlchemyError, OSError) as exc:
            log.warning("readiness.database_unavailable", error=str(exc))
            return JSONResponse(status_code=503, content={"status": "unavailable"})
        return {"status": "ready"}

    return app


app = create_app()


def run() -> None:
    """CLI entry point: serve the API with uvicorn."""
    uvicorn.run(
        "subscription_service.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
