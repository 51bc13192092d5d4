"""Async engine and session factory for the users database."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (AsyncSession, async_sessionmaker,
                                    create_async_engine)

from .config import DATABASE_URL

engine = create_async_engine(DATABASE_URL, echo=False)

# Endpoints serialize users after commit, so keep loaded attributes
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with AsyncSessionLocal() as session:
        yield session
