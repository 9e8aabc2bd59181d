"""FastAPI application factory.

Main entry point for the eduportal web API.
"""

import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eduportal.config.app_config import load_app_config
from eduportal.db.database import NotFoundError, init_db
from eduportal.logging_setup import configure_logging
from eduportal.web.routes import (
    academic_router,
    auth_router,
    chat_router,
    classbuild_router,
    dashboard_router,
    health_router,
    learning_paths_router,
    materials_router,
    practice_router,
    questions_router,
    students_router,
    study_router,
    tests_router,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Lifespan context manager for startup/shutdown events."""
    config = load_app_config()
    configure_logging(config.log_level)
    db_path = Path(config.db_path)
    init_db(db_path)
    logger.info("api_startup", db_path=str(db_path.absolute()))
    yield


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def integrity_error_handler(request: Request, exc: sqlite3.IntegrityError) -> JSONResponse:
    logger.warning("api.integrity_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": "Registro duplicado ou referência inválida."},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="EduPortal API",
        description="Admin and student portal for courses, question banks and tests",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(sqlite3.IntegrityError, integrity_error_handler)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(academic_router)
    app.include_router(students_router)
    app.include_router(questions_router)
    app.include_router(tests_router)
    app.include_router(materials_router)
    app.include_router(learning_paths_router)
    app.include_router(study_router)
    app.include_router(practice_router)
    app.include_router(dashboard_router)
    app.include_router(chat_router)
    app.include_router(classbuild_router)

    return app


# Default app instance for uvicorn
app = create_app()
