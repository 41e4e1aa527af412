"""
Async SQLAlchemy engine and session factory.

One engine per process, ``asyncpg`` underneath.  Dispatch and maintenance
take row locks (``SELECT ... FOR UPDATE``) and hold a pooled connection
for the whole transaction.

Sessions keep their objects loaded after commit; the services hand the
committed rows straight back to the API layer for serialisation.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from fleetflow.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for the fleet tables."""


async def dispose_engine() -> None:
    """Close pooled connections (application shutdown)."""
    await engine.dispose()
