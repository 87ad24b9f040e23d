from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from asset_audit.config import Settings, get_settings
from asset_audit.services.attachments import AttachmentUploader
from asset_audit.services.blob_store import LocalBlobStore
from asset_audit.services.deletion import RecordDeleter
from asset_audit.services.reconciliation import OrphanSweeper
from asset_audit.services.record_store import RecordStore
from asset_audit.services.resources import ResourceReader
from asset_audit.services.storage_usage import StorageUsageEstimator


@dataclass
class Container:
    blob_store: LocalBlobStore
    reader: ResourceReader
    uploader: AttachmentUploader
    records: RecordStore
    deleter: RecordDeleter
    usage: StorageUsageEstimator
    sweeper: OrphanSweeper


def build_container(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    settings: Settings | None = None,
    blob_store: LocalBlobStore | None = None,
    reader: ResourceReader | None = None,
) -> Container:
    settings = settings or get_settings()
    if session_factory is None:
        from asset_audit.db.engine import async_session_factory
        session_factory = async_session_factory

    blob_store = blob_store or LocalBlobStore(
        settings.blob_store.base_dir, settings.blob_store.bucket, settings.blob_store.public_base_url,
    )
    reader = reader or ResourceReader(settings.resources.capture_dir, settings.resources.http_timeout)
    uploader = AttachmentUploader(
        blob_store,
        reader,
        max_attempts=settings.upload.max_attempts,
        backoff_base=settings.upload.backoff_base,
        jpeg_quality=settings.upload.jpeg_quality,
    )
    records = RecordStore(
        session_factory, uploader, collision_retries=settings.allocator.collision_retries,
    )
    sweeper = OrphanSweeper(records, blob_store, settings.reconciliation.min_age_seconds)
    return Container(
        blob_store=blob_store,
        reader=reader,
        uploader=uploader,
        records=records,
        deleter=RecordDeleter(records, uploader, sweeper),
        usage=StorageUsageEstimator(records, blob_store),
        sweeper=sweeper,
    )
