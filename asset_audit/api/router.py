"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from asset_audit.api.admin import router as admin_router
from asset_audit.api.assessments import router as assessments_router
from asset_audit.api.attachments import router as attachments_router
from asset_audit.api.blobs import router as blobs_router
from asset_audit.api.storage import router as storage_router

api_router = APIRouter()
api_router.include_router(assessments_router)
api_router.include_router(storage_router)
api_router.include_router(attachments_router)
api_router.include_router(admin_router)
api_router.include_router(blobs_router)
