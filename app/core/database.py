from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import AsyncAdaptedQueuePool

from app.core.config import settings


def _engine_options(url: str) -> dict:
    """Pool settings for the configured backend.

    SQLite (local runs and tests) keeps SQLAlchemy's default pool; the
    sized queue pool is only meaningful against PostgreSQL.
    """
    if make_url(url).get_backend_name() == "sqlite":
        return {}
    return {
        "poolclass": AsyncAdaptedQueuePool,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
    }


# Async engine for rubric, script and sync log storage
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

# Sessions outlive commits so services can return loaded rubrics
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db():
    """Dependency for FastAPI routes to get async session."""
    async with AsyncSessionLocal() as session:
        yield session


def get_session_factory() -> async_sessionmaker:
    """Dependency returning the session factory itself.

    Work that outlives the request (post-response sync analysis) opens
    its own session from this factory instead of borrowing the
    request-scoped one.
    """
    return AsyncSessionLocal
