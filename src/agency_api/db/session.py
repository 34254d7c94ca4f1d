from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from agency_api.config.settings import Settings
from agency_api.database.base import Base
import agency_api.models  # noqa: F401 - registers every table on Base.metadata


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the AsyncEngine and its bounded connection pool.

    The pool never grows past DB_CONNECTION_LIMIT (no overflow); a request that
    finds every connection checked out waits up to DB_POOL_TIMEOUT seconds.
    """
    url = make_url(settings.DATABASE_URL)

    options: dict = {
        "echo": settings.SQLALCHEMY_ECHO,
        "pool_pre_ping": True,           # Enables connection health checks
    }
    # In-memory SQLite runs on a single static connection and takes no pool sizing.
    if not (url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")):
        options.update(
            pool_size=settings.DB_CONNECTION_LIMIT,
            max_overflow=0,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )

    return create_async_engine(url, **options)


async def create_tables(engine: AsyncEngine) -> None:
    """Issue CREATE TABLE for every entity table that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
