"""
Async SQLAlchemy engine, session factory and declarative base.

Services take an AsyncSession and only flush; request handlers and the
completion sweep own the commit.
"""
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from psysupport.config import settings


engine = create_async_engine(
    settings.DATABASE_URL,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """Per-request session; anything left uncommitted when the handler fails is rolled back."""
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
