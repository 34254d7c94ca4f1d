"""Application factory and process entry point for the agency API."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from agency_api.api.v1.entities import build_entity_routers
from agency_api.api.v1.error_handlers import register_exception_handlers
from agency_api.config.settings import Settings, get_settings
from agency_api.core.logging import RequestIDMiddleware, setup_logging, stop_queue_logging
from agency_api.core.logging.formatters import PROJECT_VERSION
from agency_api.db.gateway import PersistenceGateway
from agency_api.db.session import build_engine, create_tables

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, engine: AsyncEngine | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: defaults to the cached environment settings.
        engine: an existing AsyncEngine to run statements on. When given, the
            app neither creates nor disposes it; otherwise one is built from
            settings and disposed at shutdown.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    owns_engine = engine is None
    if engine is None:
        engine = build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if settings.DB_CREATE_TABLES:
            await create_tables(engine)
            logger.info("app.startup.tables_ready")
        logger.info(
            "app.startup",
            extra={"env": settings.ENV, "pool_size": settings.DB_CONNECTION_LIMIT},
        )

        yield

        if owns_engine:
            await engine.dispose()
        logger.info("app.shutdown")
        stop_queue_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=PROJECT_VERSION,
        docs_url=settings.API_DOCS_URL,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.gateway = PersistenceGateway(engine)

    app.add_middleware(RequestIDMiddleware)
    register_exception_handlers(app)

    for router in build_entity_routers():
        app.include_router(router)

    return app


def run() -> None:
    """Serve the API with uvicorn on APP_HOST:APP_PORT."""
    settings = get_settings()
    setup_logging(settings)
    logger.info("Server listening on http://%s:%s", settings.APP_HOST, settings.APP_PORT)

    uvicorn.run(
        "agency_api.main:create_app",
        factory=True,
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        log_config=None,  # keep the dictConfig installed by setup_logging
    )


if __name__ == "__main__":
    run()
