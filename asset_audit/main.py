"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from asset_audit.api.router import api_router
from asset_audit.db.engine import engine, init_db
from asset_audit.errors import (
    AssetAuditError,
    DuplicateRecordError,
    EmptyPayloadError,
    IndexRequiredError,
    NotFoundError,
    StorePermissionError,
    UploadError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[AssetAuditError], int]] = [
    (NotFoundError, 404),
    (StorePermissionError, 503),
    (IndexRequiredError, 503),
    (DuplicateRecordError, 409),
    (EmptyPayloadError, 422),
    (UploadError, 502),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    await engine.dispose()


app = FastAPI(
    title="asset-audit",
    description="Field condition assessments with dated identifiers, attachment upload and storage accounting.",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(api_router)


@app.exception_handler(AssetAuditError)
async def asset_audit_error_handler(request: Request, exc: AssetAuditError):
    status = next((s for cls, s in _STATUS_BY_ERROR if isinstance(exc, cls)), 500)
    if status >= 500:
        logger.error("%s %s failed (%s): %s", request.method, request.url.path, exc.code, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc), "code": exc.code})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "code": "invalid_value"})
