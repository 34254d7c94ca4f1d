"""
Core pytest configuration for the test suite.

Only the shared plumbing lives here: logging, settings, a per-test SQLite
database, the persistence gateway and an HTTP client bound to the app.

Domain fixtures (payloads, repositories, seeded rows) are in
tests/test_fixtures/entity_fixtures.py and are imported at the bottom so
every test module can use them without importing.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning
# -------------------------------
# Silence noisy third-party loggers before anything imports them.
NOISY_LOGGERS = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
    "httpx",
    "httpcore",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from agency_api.config.settings import Settings
from agency_api.core.logging.builder import setup_logging
from agency_api.db.gateway import PersistenceGateway
from agency_api.db.session import build_engine, create_tables
from agency_api.main import create_app


# -------------------------------
# Logging
# -------------------------------

@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """Install the application's logging config once for the whole session."""
    setup_logging(Settings(ENV="testing", LOG_TO_STDOUT=True, LOG_FORMAT="json"))
    yield


# -------------------------------
# Settings / database
# -------------------------------

@pytest.fixture
def settings(tmp_path) -> Settings:
    """
    Settings pointing at a throwaway SQLite file.

    A file (not :memory:) so the engine gets a real bounded pool and several
    connections see the same data.
    """
    return Settings(
        ENV="testing",
        DB_URL=f"sqlite+aiosqlite:///{tmp_path / 'agency_test.db'}",
        DB_CONNECTION_LIMIT=3,
        DB_POOL_TIMEOUT=5.0,
        LOG_TO_STDOUT=True,
        LOG_FORMAT="json",
        LOG_LEVEL="INFO",
    )


@pytest.fixture
async def engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine(settings)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def gateway(engine: AsyncEngine) -> PersistenceGateway:
    return PersistenceGateway(engine)


# -------------------------------
# HTTP
# -------------------------------

@pytest.fixture
def app(settings: Settings, engine: AsyncEngine) -> FastAPI:
    return create_app(settings, engine=engine)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# Entity fixtures
from .test_fixtures.entity_fixtures import (  # noqa: E402
    agent_schema,
    order_schema,
    agent_repository,
    order_repository,
    customer_repository,
    sample_agent_data,
    sample_order_data,
    create_agent,
)
