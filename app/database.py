"""Async engine, session factory and the request-scoped ``get_db`` dependency."""

import os
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from models import Base


def _resolve_database_url() -> str:
    # Test runs point at their own database, never the configured one
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


DB_URL = _resolve_database_url()

engine = create_async_engine(DB_URL, echo=settings.debug)

# Turns are returned to callers after commit, so attributes must stay loaded
AsyncSessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, Any]:
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables():
    """Create users, chat sessions and chat turns. Development only; deployments use Alembic."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

