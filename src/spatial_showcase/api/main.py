"""FastAPI application entry point for the Spatial Showcase API."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spatial_showcase.api.dependencies import build_services
from spatial_showcase.api.error_handlers import register_error_handlers
from spatial_showcase.api.routes import (
    analytics,
    auth,
    health,
    media,
    portfolios,
    projects,
    share,
    templates,
)
from spatial_showcase.config import get_settings
from spatial_showcase.data.db import close_db, init_db
from spatial_showcase.logging_config import configure_logging
from spatial_showcase.services.templates import seed_default_templates

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the connection pool on startup; drain analytics and close it on shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level)

    database = init_db(settings.database_url)
    await database.create_all()
    await seed_default_templates(database)
    services = build_services(settings, database)
    app.state.services = services
    logger.info("Spatial Showcase API started")
    try:
        yield
    finally:
        await services.recorder.drain()
        await close_db()
        logger.info("Spatial Showcase API stopped")


app = FastAPI(
    title="Spatial Showcase API",
    description="Portfolios, projects and media with revocable share links and view analytics",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(get_settings().cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_error_handlers(app)

app.include_router(health.router)
app.include_router(auth.router, prefix="/api")
app.include_router(portfolios.router, prefix="/api")
app.include_router(projects.router, prefix="/api")
app.include_router(media.router, prefix="/api")
app.include_router(share.router, prefix="/api")
app.include_router(analytics.router, prefix="/api")
app.include_router(templates.router, prefix="/api")


def main() -> None:
    """Start the development server."""
    import uvicorn

    uvicorn.run(
        "spatial_showcase.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )


if __name__ == "__main__":
    main()
