"""Orphan sweep: reclaim attachments that no record points at.

A crash between the attachment upload and the record write, or a cleanup
failure after a delete, leaves a blob under owners/{owner_id}/ with no
matching record. The sweep walks the prefix and removes such blobs.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import PurePosixPath
from typing import Callable

from asset_audit.errors import BlobNotFoundError
from asset_audit.schemas import SweepReport
from asset_audit.services.blob_store import OWNERS_PREFIX, LocalBlobStore, owner_prefix
from asset_audit.services.record_store import RecordStore

logger = logging.getLogger(__name__)


def _owner_and_record(key: str) -> tuple[str, str] | None:
    parts = PurePosixPath(key).parts
    if len(parts) != 3 or parts[0] != OWNERS_PREFIX or not parts[2].endswith(".jpg"):
        return None
    return parts[1], parts[2][: -len(".jpg")]


class OrphanSweeper:
    def __init__(
        self,
        store: RecordStore,
        blob_store: LocalBlobStore,
        min_age_seconds: int = 300,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.store = store
        self.blob_store = blob_store
        self.min_age = timedelta(seconds=min_age_seconds)
        self._clock = clock

    async def sweep(
        self,
        owner_id: str | None = None,
        dry_run: bool = False,
        min_age_seconds: int | None = None,
    ) -> SweepReport:
        keys = await self.blob_store.list(owner_prefix(owner_id))
        records = await (self.store.list_by_owner(owner_id) if owner_id is not None else self.store.list_all())
        live = {(r.owner_id, r.id) for r in records}

        report = SweepReport(scanned=len(keys), dry_run=dry_run)
        min_age = self.min_age if min_age_seconds is None else timedelta(seconds=min_age_seconds)
        cutoff = self._clock() - min_age
        for key in keys:
            if _owner_and_record(key) in live:
                continue
            try:
                meta = await self.blob_store.stat(key)
            except BlobNotFoundError:
                continue
            if meta.updated > cutoff:
                # Possibly an in-flight create
                report.skipped_recent += 1
                continue
            report.orphans.append(key)
            if dry_run:
                continue
            try:
                await self.blob_store.delete(key)
                report.deleted.append(key)
            except BlobNotFoundError:
                report.deleted.append(key)

        logger.info(
            "Orphan sweep of %s: %d scanned, %d orphaned, %d deleted%s",
            owner_prefix(owner_id), report.scanned, len(report.orphans), len(report.deleted),
            " (dry run)" if dry_run else "",
        )
        return report
