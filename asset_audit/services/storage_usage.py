"""Storage usage estimation for the document store and the blob store.

Document sizes follow the billing convention of the hosted document store
this data model mirrors: 1 byte for the document name, then for each field
the UTF-8 length of its name, the size of its value and 1 byte of field
overhead. The figures are an approximation, not a billing statement.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Mapping

from asset_audit.errors import BlobNotFoundError
from asset_audit.models.base import now_ms
from asset_audit.schemas import (
    FormattedStorageMetrics,
    StorageMetrics,
    SystemStorageReport,
    UserStorageBreakdown,
)
from asset_audit.services.blob_store import LocalBlobStore, owner_prefix
from asset_audit.services.record_store import RecordStore

logger = logging.getLogger(__name__)

_UNITS = ["Bytes", "KB", "MB", "GB", "TB"]


def _utf8_len(s: str) -> int:
    return len(s.encode("utf-8"))


def _value_size(value: Any) -> int:
    if isinstance(value, str):
        return _utf8_len(value)
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 8
    if value is None:
        return 1
    if isinstance(value, (datetime, date)):
        return 8
    if isinstance(value, (list, tuple)):
        return 1 + sum(calculate_document_size({"temp": item}) for item in value)
    if isinstance(value, Mapping):
        return calculate_document_size(value)
    return _utf8_len(str(value))


def calculate_document_size(data: Mapping[str, Any]) -> int:
    """Approximate stored size of one document, in bytes."""
    size = 1
    for key, value in data.items():
        size += _utf8_len(str(key)) + _value_size(value) + 1
    return size


def format_bytes(num_bytes: float, decimals: int = 2) -> str:
    """Render a byte count on a 1024-based ladder, e.g. 1536 -> '1.50 KB'."""
    if num_bytes < 0:
        raise ValueError("Byte count cannot be negative")
    if num_bytes == 0:
        return "0 Bytes"
    decimals = max(decimals, 0)
    value, i = float(num_bytes), 0
    while value >= 1024 and i < len(_UNITS) - 1:
        value /= 1024
        i += 1
    return f"{value:.{decimals}f} {_UNITS[i]}"


def format_metrics(metrics: StorageMetrics) -> FormattedStorageMetrics:
    return FormattedStorageMetrics(
        **metrics.model_dump(),
        formatted_document_store_size=format_bytes(metrics.document_store_size),
        formatted_blob_store_size=format_bytes(metrics.blob_store_size),
        formatted_total_size=format_bytes(metrics.total_size),
    )


class StorageUsageEstimator:
    def __init__(self, store: RecordStore, blob_store: LocalBlobStore):
        self.store = store
        self.blob_store = blob_store

    async def _blob_usage(self, owner_id: str | None) -> tuple[int, int]:
        """(total bytes, object count) under the owner's prefix, or all owners."""
        keys = await self.blob_store.list(owner_prefix(owner_id))
        if not keys:
            return 0, 0

        async def _size(key: str) -> int | None:
            try:
                return (await self.blob_store.stat(key)).size
            except (BlobNotFoundError, OSError) as e:
                logger.warning("Could not get metadata for %s: %s", key, e)
                return None

        sizes = await asyncio.gather(*(_size(k) for k in keys))
        found = [s for s in sizes if s is not None]
        return sum(found), len(found)

    async def estimate(self, owner_id: str | None = None) -> StorageMetrics:
        """Usage for one owner, or for the whole system when owner_id is None."""
        if owner_id is None:
            profiles = await self.store.list_all_users()
            records = await self.store.list_all()
        else:
            profile = await self.store.get_user_profile(owner_id)
            profiles = [profile] if profile else []
            records = await self.store.list_by_owner(owner_id)

        doc_size = sum(calculate_document_size(p.model_dump()) for p in profiles)
        doc_size += sum(calculate_document_size(r.model_dump()) for r in records)
        blob_size, blob_count = await self._blob_usage(owner_id)

        return StorageMetrics(
            total_documents=len(profiles) + len(records),
            document_store_size=doc_size,
            blob_store_size=blob_size,
            total_size=doc_size + blob_size,
            assessment_count=len(records),
            attachment_count=blob_count,
            last_calculated=now_ms(),
        )

    async def estimate_formatted(self, owner_id: str | None = None) -> FormattedStorageMetrics:
        return format_metrics(await self.estimate(owner_id))

    async def system_report(self) -> SystemStorageReport:
        """System totals with a per-user breakdown."""
        users = await self.store.list_all_users()
        breakdown: list[UserStorageBreakdown] = []
        for user in users:
            try:
                metrics = await self.estimate(user.id)
            except Exception as e:
                logger.warning("Could not calculate metrics for user %s: %s", user.id, e)
                metrics = StorageMetrics(last_calculated=now_ms())
            breakdown.append(UserStorageBreakdown(user_id=user.id, email=user.email, metrics=metrics))

        totals = await self.estimate()
        return SystemStorageReport(
            total_users=len(users),
            total_documents=totals.total_documents,
            total_document_store_size=totals.document_store_size,
            total_blob_store_size=totals.blob_store_size,
            total_system_size=totals.total_size,
            formatted_total_system_size=format_bytes(totals.total_size),
            user_breakdown=breakdown,
        )
