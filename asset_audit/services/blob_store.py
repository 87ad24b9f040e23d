"""Blob storage for attachments: write, stat, delete, list, durable URLs.

Objects live under a hierarchical key space rooted at the configured
base_dir, e.g. owners/{owner_id}/{record_id}.jpg. When FERNET_KEY is set,
objects are Fernet-encrypted at rest with a .enc suffix on disk; the
logical key never carries the suffix.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from urllib.parse import quote, unquote, urlparse

from asset_audit.errors import BlobNotFoundError
from asset_audit.services.encryption import decrypt_bytes, encrypt_bytes, encryption_enabled

_ENC_SUFFIX = ".enc"
_OBJECT_PATH_RE = re.compile(r"/o/(.+)$")

OWNERS_PREFIX = "owners"


def attachment_path(owner_id: str, record_id: str) -> str:
    """Storage key for a record's attachment. Part of the persisted layout."""
    return f"{OWNERS_PREFIX}/{owner_id}/{record_id}.jpg"


def owner_prefix(owner_id: str | None = None) -> str:
    if owner_id is None:
        return OWNERS_PREFIX
    return f"{OWNERS_PREFIX}/{owner_id}"


@dataclass(frozen=True)
class BlobMetadata:
    path: str
    size: int
    updated: datetime


class LocalBlobStore:
    """Filesystem-backed key/object store producing fetchable URLs."""

    def __init__(self, base_dir: str | Path, bucket: str, public_base_url: str):
        self.base_dir = Path(base_dir)
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    # ── Keys and URLs ─────────────────────────────────────

    def _resolve(self, path: str) -> Path:
        parts = PurePosixPath(path).parts
        if not parts or PurePosixPath(path).is_absolute() or ".." in parts:
            raise ValueError(f"Invalid object path: {path!r}")
        return self.base_dir.joinpath(*parts)

    def url_for(self, path: str) -> str:
        return f"{self.public_base_url}/v0/b/{self.bucket}/o/{quote(path, safe='')}?alt=media"

    @staticmethod
    def path_from_url(url: str | None) -> str | None:
        """Recover the object key from a durable URL, or None if it is not one."""
        if not url:
            return None
        try:
            parsed = urlparse(url)
        except ValueError:
            return None
        if parsed.scheme not in ("http", "https"):
            return None
        match = _OBJECT_PATH_RE.search(parsed.path)
        if not match:
            return None
        return unquote(match.group(1))

    # ── Sync primitives (run in a worker thread) ──────────

    def _put_sync(self, path: str, data: bytes) -> BlobMetadata:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        if encryption_enabled():
            enc = Path(str(target) + _ENC_SUFFIX)
            enc.write_bytes(encrypt_bytes(data))
            target.unlink(missing_ok=True)
            written = enc
        else:
            target.write_bytes(data)
            Path(str(target) + _ENC_SUFFIX).unlink(missing_ok=True)
            written = target
        return self._meta(path, written)

    def _locate(self, path: str) -> Path:
        """Find the on-disk file for a key, preferring the encrypted copy."""
        target = self._resolve(path)
        enc = Path(str(target) + _ENC_SUFFIX)
        if enc.is_file():
            return enc
        if target.is_file():
            return target
        raise BlobNotFoundError(f"Object does not exist: {path}")

    @staticmethod
    def _meta(path: str, p: Path) -> BlobMetadata:
        st = p.stat()
        return BlobMetadata(
            path=path,
            size=st.st_size,
            updated=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )

    def _read_sync(self, path: str) -> bytes:
        p = self._locate(path)
        if p.suffix == _ENC_SUFFIX:
            return decrypt_bytes(p.read_bytes())
        return p.read_bytes()

    def _stat_sync(self, path: str) -> BlobMetadata:
        return self._meta(path, self._locate(path))

    def _delete_sync(self, path: str) -> None:
        self._locate(path).unlink()

    def _list_sync(self, prefix: str) -> list[str]:
        root = self._resolve(prefix)
        if not root.is_dir():
            return []
        keys = set()
        for p in root.rglob("*"):
            if not p.is_file():
                continue
            rel = p.relative_to(self.base_dir).as_posix()
            if rel.endswith(_ENC_SUFFIX):
                rel = rel[: -len(_ENC_SUFFIX)]
            keys.add(rel)
        return sorted(keys)

    # ── Async API ─────────────────────────────────────────

    async def put(self, path: str, data: bytes) -> BlobMetadata:
        return await asyncio.to_thread(self._put_sync, path, data)

    async def read(self, path: str) -> bytes:
        return await asyncio.to_thread(self._read_sync, path)

    async def stat(self, path: str) -> BlobMetadata:
        """Object metadata. Raises BlobNotFoundError for a missing key."""
        return await asyncio.to_thread(self._stat_sync, path)

    async def delete(self, path: str) -> None:
        """Delete by key. Raises BlobNotFoundError for a missing key."""
        await asyncio.to_thread(self._delete_sync, path)

    async def list(self, prefix: str) -> list[str]:
        """All keys under prefix, recursively. A missing prefix lists nothing."""
        return await asyncio.to_thread(self._list_sync, prefix)
