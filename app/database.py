# python
"""Database engine and session utilities.

One async engine backs the persistence gateway. PostgreSQL (asyncpg) is used
in deployments and SQLite (aiosqlite) in tests; ``TESTING=true`` switches to
``TEST_DATABASE_URL``.
"""
import os
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def resolve_database_url() -> str:
    if os.getenv("TESTING") == "true":
        url = os.getenv("TEST_DATABASE_URL") or settings.test_database_url
    else:
        url = settings.database_url

    url = (url or "").strip()
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not configured. Set it in the environment or .env file "
            "(e.g., DATABASE_URL=postgresql+asyncpg://<user>:<pass>@<host>/<db>)."
        )
    return url


def engine_options(url: str) -> dict[str, Any]:
    """Pool settings per backend; SQLite keeps SQLAlchemy's defaults."""
    options: dict[str, Any] = {"echo": settings.debug}
    if make_url(url).get_backend_name() == "postgresql":
        options.update(pool_pre_ping=True, pool_size=5, max_overflow=10)
    return options


DB_URL = resolve_database_url()

engine = create_async_engine(DB_URL, **engine_options(DB_URL))

AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, Any]:
    async with AsyncSessionLocal() as session:
        yield session
