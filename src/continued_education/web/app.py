# ABOUTME: FastAPI application factory with database lifespan.
# ABOUTME: Main entry point for the subscription web service.

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from continued_education.config import get_settings
from continued_education.db.session import close_db, init_db
from continued_education.web.routes import admin, api, subscribe

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan context for database setup/teardown."""
    settings = get_settings()
    logger.info("app_startup", contact_backend=settings.contact_backend)
    uses_database = settings.contact_backend == "database"
    if uses_database:
        await init_db()
    yield
    logger.info("app_shutdown")
    if uses_database:
        await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.site_name,
        description="Email subscriptions and new-post notifications",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(subscribe.router)
    app.include_router(admin.router)
    app.include_router(api.router)

    return app


# Application instance for uvicorn
app = create_app()
