from __future__ import annotations

from fastapi import APIRouter, Depends

from asset_audit.container import Container
from asset_audit.dependencies import AuthContext, get_container, require_auth, require_role
from asset_audit.schemas import FormattedStorageMetrics, SystemStorageReport

router = APIRouter(prefix="/api/storage", tags=["storage"])


@router.get("/me", response_model=FormattedStorageMetrics)
async def my_storage(
    auth: AuthContext = Depends(require_auth),
    container: Container = Depends(get_container),
):
    return await container.usage.estimate_formatted(auth.user_id)


@router.get("/system", response_model=SystemStorageReport)
async def system_storage(
    auth: AuthContext = Depends(require_role("admin")),
    container: Container = Depends(get_container),
):
    return await container.usage.system_report()
