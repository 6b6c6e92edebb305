"""FastAPI application factory and main entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

import studyhub.models  # noqa: F401  (registers every table on Base.metadata)
from studyhub import __version__
from studyhub.api.v1.router import api_router
from studyhub.common.request_id import RequestIDMiddleware
from studyhub.core.config import settings
from studyhub.core.errors import (
    general_exception_handler,
    http_exception_handler,
    studyhub_error_handler,
    validation_exception_handler,
)
from studyhub.core.logging import setup_logging
from studyhub.core.redis_client import init_redis, reset_redis_client
from studyhub.db.base import Base
from studyhub.db.engine import engine
from studyhub.learning_engine.errors import StudyHubError


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging()
    init_redis()
    # Create tables (in production, provision the schema ahead of deploy)
    if settings.ENV == "dev":
        Base.metadata.create_all(bind=engine)
    yield
    reset_redis_client()
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=__version__,
        description="Study Hub API - flashcard scheduling and timed practice exams",
        openapi_url="/openapi.json" if settings.ENV != "prod" else None,
        docs_url="/docs" if settings.ENV != "prod" else None,
        redoc_url="/redoc" if settings.ENV != "prod" else None,
        lifespan=lifespan,
    )

    # Add middleware (order matters - first added is outermost)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StudyHubError, studyhub_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/", tags=["Root"])
    def root():
        """Root endpoint - API information."""
        return {
            "message": settings.PROJECT_NAME,
            "version": __version__,
            "docs_url": "/docs" if settings.ENV != "prod" else None,
        }

    return app


app = create_app()
