"""Record deletion with best-effort attachment cleanup.

The metadata delete is the source of truth for "the record is gone". The
attachment is removed afterwards; if that fails the outcome says so and a
CleanupWarning is logged, but the delete itself still succeeds.
"""

from __future__ import annotations

import asyncio
import logging
import warnings

from asset_audit.errors import CleanupWarning, NotFoundError
from asset_audit.schemas import (
    AssessmentRead,
    BulkDeletionReport,
    DeletionFailure,
    DeletionOutcome,
)
from asset_audit.services.attachments import AttachmentUploader
from asset_audit.services.blob_store import attachment_path
from asset_audit.services.reconciliation import OrphanSweeper
from asset_audit.services.record_store import RecordStore

logger = logging.getLogger(__name__)


class RecordDeleter:
    def __init__(
        self,
        store: RecordStore,
        attachments: AttachmentUploader,
        sweeper: OrphanSweeper | None = None,
    ):
        self.store = store
        self.attachments = attachments
        self.sweeper = sweeper

    def resolve_attachment_path(self, record: AssessmentRead) -> str:
        """Key of the record's attachment: from its durable ref, else by convention."""
        path = self.attachments.blob_store.path_from_url(record.attachment_ref)
        if path is None:
            path = attachment_path(record.owner_id, record.id)
        return path

    async def delete(self, record_id: str) -> DeletionOutcome:
        """Delete one record. Raises NotFoundError or a store error if the
        metadata delete fails; never fails because of the attachment."""
        record = await self.store.get(record_id)
        return await self._delete_record(record)

    async def _delete_record(self, record: AssessmentRead) -> DeletionOutcome:
        if not await self.store.delete_metadata(record.id):
            raise NotFoundError(f"Assessment not found: {record.id}")

        path = self.resolve_attachment_path(record)
        try:
            await self.attachments.delete_path(path)
        except Exception as e:
            msg = f"Failed to delete attachment {path} for {record.id}: {e}"
            logger.warning(msg)
            warnings.warn(msg, CleanupWarning, stacklevel=2)
            return DeletionOutcome(
                record_id=record.id, metadata_deleted=True,
                attachment_deleted=False, attachment_path=path,
            )
        logger.info("Deleted assessment %s and attachment %s", record.id, path)
        return DeletionOutcome(
            record_id=record.id, metadata_deleted=True,
            attachment_deleted=True, attachment_path=path,
        )

    async def _delete_many(self, records: list[AssessmentRead]) -> BulkDeletionReport:
        results = await asyncio.gather(
            *(self._delete_record(r) for r in records), return_exceptions=True,
        )
        report = BulkDeletionReport(requested=len(records))
        for record, result in zip(records, results):
            if isinstance(result, BaseException):
                logger.error("Failed to delete assessment %s: %s", record.id, result)
                report.failures.append(DeletionFailure(record_id=record.id, error=str(result)))
            else:
                report.outcomes.append(result)
        if report.failures:
            logger.warning(
                "Bulk delete removed %d of %d records", report.metadata_deleted, report.requested,
            )
        return report

    async def _sweep_leftovers(self, report: BulkDeletionReport, owner_id: str | None) -> BulkDeletionReport:
        if self.sweeper is None:
            return report
        try:
            sweep = await self.sweeper.sweep(owner_id)
        except Exception as e:
            msg = f"Sweep after bulk delete failed: {e}"
            logger.warning(msg)
            warnings.warn(msg, CleanupWarning, stacklevel=2)
            return report
        report.swept = sweep.deleted
        return report

    async def delete_all_for_owner(self, owner_id: str) -> BulkDeletionReport:
        """Delete every record owned by owner_id, concurrently, without rollback.

        Blobs still under the owner's prefix afterwards are swept as well.
        """
        report = await self._delete_many(await self.store.list_by_owner(owner_id))
        return await self._sweep_leftovers(report, owner_id)

    async def delete_all(self) -> BulkDeletionReport:
        """Delete every record in the system. Callers must have checked the admin role."""
        report = await self._delete_many(await self.store.list_all())
        return await self._sweep_leftovers(report, None)
