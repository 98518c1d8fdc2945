"""
FastAPI application for Shiptrack.

To run: uvicorn shiptrack.main:app --reload
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from shiptrack.core.config import Settings, get_settings, settings
from shiptrack.core.database import close_db, check_db_connection
from shiptrack.api.v1 import api_router
from shiptrack.error_handlers import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
    sqlalchemy_exception_handler,
    generic_exception_handler,
)
from shiptrack.logging_config import setup_logging, get_logger
from shiptrack.middleware import (
    RequestLoggingMiddleware,
    http_exception_handler,
    limiter,
    rate_limit_exceeded_handler,
)
from shiptrack.schemas.dashboard import HealthCheck

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Logging comes up before the first request; the engine is disposed on exit."""
    setup_logging(settings.log_level, settings.log_dir)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {'Development' if settings.debug else 'Production'}")

    # Schema is managed by Alembic; nothing to create here
    yield

    logger.info("Shutting down, disposing database engine")
    await close_db()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Shiptrack - Product catalog, profitability, CSV reconciliation & shipments",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan
    )

    # Set on startup by whoever wires a text-generation backend
    app.state.insight_provider = None

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(api_router)

    @app.get("/")
    async def root(app_settings: Settings = Depends(get_settings)):
        return {
            "app": app_settings.app_name,
            "version": app_settings.app_version,
            "status": "running",
            "docs": "/docs" if app_settings.debug else "disabled",
            "api_v1": "/api/v1"
        }

    @app.get("/health", response_model=HealthCheck)
    async def health_check():
        db_ok = await check_db_connection()
        return HealthCheck(
            status="healthy" if db_ok else "degraded",
            version=settings.app_version,
            database="connected" if db_ok else "unavailable",
            timestamp=datetime.now(timezone.utc)
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "shiptrack.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
