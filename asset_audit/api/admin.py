"""Admin-only endpoints: system-wide clear, user directory, orphan sweep."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from asset_audit.container import Container
from asset_audit.dependencies import AuthContext, get_container, require_role
from asset_audit.schemas import BulkDeletionReport, SweepReport, UserProfileRead, UserProfileUpsert

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.delete("/assessments", response_model=BulkDeletionReport)
async def clear_all_assessments(
    auth: AuthContext = Depends(require_role("admin")),
    container: Container = Depends(get_container),
):
    return await container.deleter.delete_all()


@router.get("/users", response_model=list[UserProfileRead])
async def list_users(
    auth: AuthContext = Depends(require_role("admin")),
    container: Container = Depends(get_container),
):
    return await container.records.list_all_users()


@router.put("/users", response_model=UserProfileRead)
async def upsert_user(
    body: UserProfileUpsert,
    auth: AuthContext = Depends(require_role("admin")),
    container: Container = Depends(get_container),
):
    return await container.records.upsert_user_profile(body)


@router.post("/sweep", response_model=SweepReport)
async def sweep_orphans(
    owner_id: str | None = None,
    dry_run: bool = False,
    auth: AuthContext = Depends(require_role("admin")),
    container: Container = Depends(get_container),
):
    return await container.sweeper.sweep(owner_id, dry_run=dry_run)
