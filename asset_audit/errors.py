"""Error taxonomy for the record lifecycle.

Store-facing errors carry a stable ``code`` so API and CLI callers can
branch on the operational condition instead of parsing messages.
"""

from __future__ import annotations


class AssetAuditError(Exception):
    code = "error"


class EmptyPayloadError(AssetAuditError):
    code = "empty_payload"


class UploadError(AssetAuditError):
    code = "upload_failed"


class NotFoundError(AssetAuditError, LookupError):
    code = "not_found"


class RecordStoreError(AssetAuditError):
    code = "store_error"


class StorePermissionError(RecordStoreError, PermissionError):
    """The document store refused access for the configured credentials."""

    code = "access_not_configured"


class IndexRequiredError(RecordStoreError):
    """A query needs a table or index that has not been provisioned yet."""

    code = "index_required"


class DuplicateRecordError(RecordStoreError):
    code = "duplicate_record"


class BlobNotFoundError(AssetAuditError, FileNotFoundError):
    code = "blob_not_found"


# Warning categories: logged, never raised to callers.

class AllocationFallback(UserWarning):
    pass


class CleanupWarning(UserWarning):
    pass
