"""
Database engine and session management.

Provides the async engine, the session factory and FastAPI dependencies.
"""
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from memberhub.config import settings


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db():
    """
    FastAPI dependency that provides an async DB session
    and ensures it's closed after the request.
    """
    async with AsyncSessionLocal() as session:
        yield session


def get_session_factory() -> async_sessionmaker:
    """
    FastAPI dependency returning the session factory.

    The webhook pipeline opens several short-lived sessions per delivery
    (audit log, settings, handler), so it needs the factory rather than
    a single request-scoped session.
    """
    return AsyncSessionLocal
