"""Attachment upload pipeline and attachment removal.

An attachment is written to owners/{owner_id}/{record_id}.jpg and handed
back as a durable URL. Uploads retry with exponential backoff; deletes
treat a missing object as already deleted.
"""

from __future__ import annotations

import asyncio
import io
import logging
from typing import Awaitable, Callable

from PIL import Image, UnidentifiedImageError

from asset_audit.errors import BlobNotFoundError, EmptyPayloadError, UploadError
from asset_audit.services.blob_store import LocalBlobStore, attachment_path
from asset_audit.services.resources import ResourceReader

logger = logging.getLogger(__name__)

_JPEG_MAGIC = b"\xff\xd8\xff"


def _to_jpeg_sync(data: bytes, quality: int) -> bytes:
    """Re-encode a non-JPEG image as JPEG. Raises if Pillow cannot decode it."""
    img = Image.open(io.BytesIO(data))
    if img.mode not in ("RGB", "L"):
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, "JPEG", quality=quality)
    return buf.getvalue()


async def normalize_to_jpeg(data: bytes, quality: int = 90) -> bytes:
    """Make the payload match the fixed .jpg storage key where possible."""
    if data.startswith(_JPEG_MAGIC):
        return data
    try:
        return await asyncio.to_thread(_to_jpeg_sync, data, quality)
    except (UnidentifiedImageError, OSError, ValueError):
        logger.warning("Payload is not a decodable image; uploading %d bytes unchanged", len(data))
        return data


class AttachmentUploader:
    def __init__(
        self,
        blob_store: LocalBlobStore,
        reader: ResourceReader,
        max_attempts: int = 3,
        backoff_base: float = 2.0,
        jpeg_quality: int = 90,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.blob_store = blob_store
        self.reader = reader
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.jpeg_quality = jpeg_quality
        self._sleep = sleep

    async def upload_once(self, local_ref: str, owner_id: str, record_id: str) -> str:
        """Single attempt: read, validate, write, resolve the durable URL."""
        data = await self.reader.read(local_ref)
        if not data:
            raise EmptyPayloadError(f"Image file is empty: {local_ref}")
        data = await normalize_to_jpeg(data, self.jpeg_quality)

        path = attachment_path(owner_id, record_id)
        meta = await self.blob_store.put(path, data)
        logger.info("Uploaded attachment %s (%d bytes)", path, meta.size)
        return self.blob_store.url_for(path)

    async def upload(self, local_ref: str, owner_id: str, record_id: str) -> str:
        """Upload with retries. Raises UploadError once attempts are exhausted."""
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self.upload_once(local_ref, owner_id, record_id)
            except EmptyPayloadError:
                raise
            except Exception as e:
                last_error = e
                logger.warning(
                    "Upload attempt %d/%d for %s failed: %s",
                    attempt, self.max_attempts, record_id, e,
                )
                if attempt < self.max_attempts:
                    await self._sleep(self.backoff_base ** attempt)

        raise UploadError(
            f"Failed to upload image after {self.max_attempts} attempts: {last_error}"
        ) from last_error

    # ── Removal ───────────────────────────────────────────

    async def delete_path(self, path: str) -> bool:
        """Delete by key. Returns False if the object was already gone."""
        try:
            await self.blob_store.delete(path)
        except BlobNotFoundError:
            logger.info("Attachment %s already absent", path)
            return False
        return True

