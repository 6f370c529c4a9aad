"""Study Group FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .agents.study_group.personas import PERSONAS
from .api import study_group
from .core.config import settings
from .core.logging import configure_logging
from .db.base import close_all, init_databases
from .observability.langsmith import initialize_langsmith

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context for startup and shutdown events."""
    configure_logging(settings)
    logger.info(f"{settings.APP_NAME} starting ({settings.APP_ENV}, storage={settings.STORAGE_BACKEND})")
    initialize_langsmith(settings)

    if settings.STORAGE_BACKEND == "sql":
        try:
            await init_databases()
        except Exception as exc:  # pragma: no cover - fail-open for local startup
            logger.warning(f"Database initialization skipped: {exc}")

    yield

    logger.info(f"{settings.APP_NAME} shutting down")
    await close_all()


def _register_meta_routes(app: FastAPI) -> None:
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "app": settings.APP_NAME}

    @app.get("/")
    async def root():
        return {
            "app": settings.APP_NAME,
            "version": VERSION,
            "personas": {tag: persona.name for tag, persona in PERSONAS.items()},
            "docs": "/docs" if settings.DEBUG else None,
            "health": "/health",
        }


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error": str(exc) if settings.DEBUG else "An error occurred",
            },
        )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        description="Four tutoring personas that take turns helping one student study",
        version=VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=settings.cors_allow_headers_list,
    )

    app.include_router(study_group.router, prefix=settings.API_V1_PREFIX)
    _register_meta_routes(app)
    _register_error_handlers(app)

    return app


# Create the app instance
app = create_app()
