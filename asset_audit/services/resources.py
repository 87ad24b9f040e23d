"""Local resource access: turn a capture URI into bytes, or check it exists.

Supported URI kinds:
    local_file     file:///abs/path.jpg or a bare filesystem path
    local_capture  local://name.jpg, resolved against the capture directory
    blob           blob:<url>, an in-memory handle exposed over HTTP
    inline_data    data:image/jpeg;base64,...
    remote_http    http(s)://...
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from pathlib import Path
from urllib.parse import unquote, unquote_to_bytes, urlparse

import httpx


logger = logging.getLogger(__name__)

LOCAL_FILE = "local_file"
LOCAL_CAPTURE = "local_capture"
BLOB = "blob"
INLINE_DATA = "inline_data"
REMOTE_HTTP = "remote_http"
UNKNOWN = "unknown"


class ResourceError(Exception):
    """The resource could not be read."""


def classify(uri: str) -> str:
    if uri.startswith("file://"):
        return LOCAL_FILE
    if uri.startswith("local://"):
        return LOCAL_CAPTURE
    if uri.startswith("blob:"):
        return BLOB
    if uri.startswith("data:"):
        return INLINE_DATA
    if uri.startswith(("http://", "https://")):
        return REMOTE_HTTP
    if "://" not in uri:
        return LOCAL_FILE
    return UNKNOWN


def decode_data_uri(uri: str) -> bytes:
    """Decode a data: URI payload (base64 or percent-encoded)."""
    header, sep, payload = uri[len("data:"):].partition(",")
    if not sep:
        raise ResourceError("Malformed data URI: missing ','")
    if header.endswith(";base64"):
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ResourceError(f"Malformed base64 data URI: {e}") from e
    return unquote_to_bytes(payload)


class ResourceReader:
    def __init__(
        self,
        capture_dir: str | Path,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.capture_dir = Path(capture_dir)
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, follow_redirects=True, transport=self._transport)

    def _local_path(self, uri: str) -> Path:
        kind = classify(uri)
        if kind == LOCAL_CAPTURE:
            return self.capture_dir / unquote(uri[len("local://"):])
        if uri.startswith("file://"):
            return Path(unquote(urlparse(uri).path))
        return Path(uri)

    @staticmethod
    def _http_url(uri: str) -> str:
        return uri[len("blob:"):] if uri.startswith("blob:") else uri

    async def read(self, uri: str) -> bytes:
        """Read the resource into memory. Raises ResourceError on failure."""
        kind = classify(uri)
        if kind in (LOCAL_FILE, LOCAL_CAPTURE):
            path = self._local_path(uri)
            try:
                return await asyncio.to_thread(path.read_bytes)
            except OSError as e:
                raise ResourceError(f"Failed to read {path}: {e}") from e
        if kind == INLINE_DATA:
            return decode_data_uri(uri)

        async with self._client() as client:
            try:
                resp = await client.get(self._http_url(uri))
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                raise ResourceError(f"Failed to fetch image: {e}") from e
        if not resp.is_success:
            raise ResourceError(f"Failed to fetch image: {resp.status_code} {resp.reason_phrase}")
        return resp.content

    async def is_reachable(self, uri: str) -> bool:
        """Scheme-appropriate existence check. Never raises."""
        if not uri or not uri.strip():
            return False
        kind = classify(uri)
        try:
            if kind in (LOCAL_FILE, LOCAL_CAPTURE):
                return await asyncio.to_thread(self._local_path(uri).is_file)
            if kind == INLINE_DATA:
                return uri.startswith("data:image/") and ";base64," in uri
            return await self._reachable_by_fetch(self._http_url(uri))
        except (OSError, ValueError):
            logger.debug("Reachability check failed for %s", uri, exc_info=True)
            return False

    async def _reachable_by_fetch(self, url: str) -> bool:
        async with self._client() as client:
            try:
                resp = await client.head(url)
                if resp.status_code not in (405, 501):
                    return resp.is_success
            except (httpx.HTTPError, httpx.InvalidURL):
                pass
            # Some servers do not implement HEAD
            try:
                resp = await client.get(url)
                return resp.is_success
            except (httpx.HTTPError, httpx.InvalidURL):
                return False
