"""Serves stored attachments at the path their durable URLs point to."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from asset_audit.container import Container
from asset_audit.dependencies import get_container
from asset_audit.errors import BlobNotFoundError

router = APIRouter(tags=["blobs"])


@router.api_route("/v0/b/{bucket}/o/{path:path}", methods=["GET", "HEAD"])
async def serve_blob(
    bucket: str,
    path: str,
    container: Container = Depends(get_container),
):
    if bucket != container.blob_store.bucket:
        raise HTTPException(404, "Bucket not found")
    try:
        data = await container.blob_store.read(path)
    except (BlobNotFoundError, ValueError):
        raise HTTPException(404, "Object not found")
    return Response(content=data, media_type="image/jpeg")
