from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from mangareader.config import DB_SCHEMA, Settings

Base = declarative_base()


def table_name(name: str) -> str:
    """Qualify a table name for use in ForeignKey targets."""
    return f"{DB_SCHEMA}.{name}" if DB_SCHEMA else name


def table_args(*args) -> tuple:
    return (*args, {"schema": DB_SCHEMA})


def async_database_url(url: str) -> str:
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def build_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        async_database_url(settings.database_url),
        echo=settings.db_echo,
        future=True,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# Dependency for FastAPI routes
async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.sessionmaker() as session:
        yield session
