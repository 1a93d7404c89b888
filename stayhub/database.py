"""
Async engine, session factory and declarative base.
PostgreSQL runs through asyncpg; SQLite through aiosqlite for local runs and tests.
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import text, DateTime, Uuid, func
from stayhub.config import settings
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict

logger = logging.getLogger(__name__)

# Connection pool used for PostgreSQL; SQLite keeps the driver default
POOL_OPTIONS: Dict[str, Any] = {
    "pool_size": 10,
    "max_overflow": 20,
    "pool_pre_ping": True,
    "pool_recycle": 3600,
    "pool_timeout": 30,
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _engine_options(database_url: str) -> Dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {"echo": settings.debug, "connect_args": {"check_same_thread": False}}

    return {
        "echo": settings.debug,
        **POOL_OPTIONS,
        "connect_args": {"server_settings": {"application_name": "stayhub_listing_api"}},
    }


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """
    Declarative base shared by Account, Listing and Review.
    Every table gets a UUID primary key plus created_at and updated_at in UTC.
    """

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)

    # created_at drives newest-first ordering of listings and reviews
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id}>"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request, rolled back if the handler raises."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def check_database_connection() -> bool:
    """Run SELECT 1; False means the database is unreachable."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database is unreachable: {e}")
        return False
    logger.info("Database reachable")
    return True


def _register_models() -> None:
    # Importing the models package registers every table on Base.metadata
    import stayhub.models  # noqa: F401


async def create_tables():
    _register_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created")


async def drop_tables():
    """Drop every table. Refused when running in production."""
    if settings.is_production:
        raise RuntimeError("Cannot drop tables in production environment")

    _register_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Tables dropped")


async def close_db_connection():
    await engine.dispose()
    logger.info("Database engine disposed")
