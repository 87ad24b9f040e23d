from __future__ import annotations

from fastapi import APIRouter, Depends

from asset_audit.container import Container
from asset_audit.dependencies import AuthContext, ensure_can_access, get_container, require_auth, require_role
from asset_audit.schemas import (
    AssessmentCreate,
    AssessmentPatch,
    AssessmentRead,
    BulkDeletionReport,
    DeletionOutcome,
)

router = APIRouter(prefix="/api/assessments", tags=["assessments"])


@router.post("", response_model=AssessmentRead, status_code=201)
async def create_assessment(
    body: AssessmentCreate,
    auth: AuthContext = Depends(require_auth),
    container: Container = Depends(get_container),
):
    return await container.records.create(body, auth.user_id)


@router.get("", response_model=list[AssessmentRead])
async def list_my_assessments(
    auth: AuthContext = Depends(require_auth),
    container: Container = Depends(get_container),
):
    return await container.records.list_by_owner(auth.user_id)


@router.delete("", response_model=BulkDeletionReport)
async def clear_my_assessments(
    auth: AuthContext = Depends(require_auth),
    container: Container = Depends(get_container),
):
    return await container.deleter.delete_all_for_owner(auth.user_id)


@router.get("/all", response_model=list[AssessmentRead])
async def list_all_assessments(
    auth: AuthContext = Depends(require_role("admin")),
    container: Container = Depends(get_container),
):
    return await container.records.list_all()


@router.get("/{assessment_id}", response_model=AssessmentRead)
async def get_assessment(
    assessment_id: str,
    auth: AuthContext = Depends(require_auth),
    container: Container = Depends(get_container),
):
    record = await container.records.get(assessment_id)
    ensure_can_access(auth, record.owner_id)
    return record


@router.patch("/{assessment_id}", response_model=AssessmentRead)
async def update_assessment(
    assessment_id: str,
    body: AssessmentPatch,
    auth: AuthContext = Depends(require_auth),
    container: Container = Depends(get_container),
):
    record = await container.records.get(assessment_id)
    ensure_can_access(auth, record.owner_id)
    return await container.records.update(assessment_id, body)


@router.delete("/{assessment_id}", response_model=DeletionOutcome)
async def delete_assessment(
    assessment_id: str,
    auth: AuthContext = Depends(require_auth),
    container: Container = Depends(get_container),
):
    record = await container.records.get(assessment_id)
    ensure_can_access(auth, record.owner_id)
    return await container.deleter.delete(assessment_id)
