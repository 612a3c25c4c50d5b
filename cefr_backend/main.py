"""
Main application entry point for the CEFR placement backend.

Usage:
    - Direct: python -m cefr_backend.main
    - ASGI server: uvicorn cefr_backend.main:app
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cefr_backend.config import settings
from cefr_backend.common.logger import app_logger
from cefr_backend.database.init_db import close_database, get_session_factory, initialize_database
from cefr_backend.assessments.placement.controller import set_placement_service
from cefr_backend.assessments.placement.profiles import MemoryCurriculumUpdater, MemoryProfileUpdater
from cefr_backend.assessments.placement.router import router as placement_router
from cefr_backend.assessments.placement.service import PlacementTestService
from cefr_backend.assessments.placement.sql_repositories import SqlAttemptRepository, SqlTestRepository

logger = app_logger.getChild("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Initialize the database and wire the placement service on startup;
    release connections on shutdown.
    """
    logger.info("Application startup sequence initiated.")
    await initialize_database(settings.DATABASE_URL, echo=settings.SQL_ECHO)

    session_factory = get_session_factory()
    set_placement_service(PlacementTestService(
        tests=SqlTestRepository(session_factory),
        attempts=SqlAttemptRepository(session_factory),
        profile_updater=MemoryProfileUpdater(),
        curriculum_updater=MemoryCurriculumUpdater()
    ))
    logger.info("Application startup complete")

    yield

    set_placement_service(None)
    await close_database()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Scoring and CEFR level placement for English tests",
        version="0.1.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(placement_router, prefix=settings.API_PREFIX, tags=["cefr-tests"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": f"Welcome to the {settings.PROJECT_NAME}"}

    logger.info(f"Application created with {len(app.routes)} routes")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))
    reload_enabled = os.environ.get("RELOAD", "false").lower() == "true"

    logger.info(f"Starting server on {host}:{port} (reload: {reload_enabled})")

    uvicorn.run(
        "cefr_backend.main:app",
        host=host,
        port=port,
        reload=reload_enabled,
        log_level=settings.LOG_LEVEL.lower()
    )
