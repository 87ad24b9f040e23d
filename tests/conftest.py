"""Shared fixtures: a file-backed SQLite store, a blob directory and JPEG payloads."""

from __future__ import annotations

import io

import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from asset_audit.config import (
    AllocatorConfig,
    BlobStoreConfig,
    ReconciliationConfig,
    ResourcesConfig,
    Settings,
    UploadConfig,
)
from asset_audit.container import build_container
from asset_audit.models import Base

TEST_BUCKET = "test-bucket"
TEST_BASE_URL = "http://testserver"


def make_jpeg(color: str = "red", size: tuple[int, int] = (8, 8)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, "JPEG")
    return buf.getvalue()


def make_png(color: str = "blue") -> bytes:
    buf = io.BytesIO()
    Image.new("RGBA", (8, 8), color).save(buf, "PNG")
    return buf.getvalue()


@pytest.fixture
def jpeg_bytes():
    return make_jpeg()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        blob_store=BlobStoreConfig(
            base_dir=str(tmp_path / "blobs"), bucket=TEST_BUCKET, public_base_url=TEST_BASE_URL,
        ),
        upload=UploadConfig(max_attempts=3, backoff_base=0.0, jpeg_quality=90),
        allocator=AllocatorConfig(collision_retries=3),
        resources=ResourcesConfig(capture_dir=str(tmp_path / "captures"), http_timeout=5.0),
        reconciliation=ReconciliationConfig(min_age_seconds=300),
    )


@pytest.fixture
def capture_dir(settings, jpeg_bytes):
    """Capture directory seeded with a.jpg."""
    from pathlib import Path

    d = Path(settings.resources.capture_dir)
    d.mkdir(parents=True)
    (d / "a.jpg").write_bytes(jpeg_bytes)
    return d


@pytest_asyncio.fixture
async def session_factory(settings):
    engine = create_async_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def container(session_factory, settings, capture_dir):
    return build_container(session_factory=session_factory, settings=settings)


@pytest.fixture
def png_bytes():
    return make_png()
