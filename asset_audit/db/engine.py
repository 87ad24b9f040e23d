"""Async SQLAlchemy engine and session factory for the document store."""

from __future__ import annotations

from pathlib import Path
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from asset_audit.config import get_settings

_settings = get_settings()

_SQLITE_PREFIX = "sqlite+aiosqlite:///"

if _settings.database_url.startswith(_SQLITE_PREFIX) and ":memory:" not in _settings.database_url:
    Path(_settings.database_url[len(_SQLITE_PREFIX):]).parent.mkdir(parents=True, exist_ok=True)

engine = create_async_engine(_settings.database_url, echo=False)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(eng: AsyncEngine | None = None) -> None:
    """Create the assessment and profile tables (and their indexes)."""
    from asset_audit.models.base import Base

    async with (eng or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
