"""Pydantic request/response schemas."""

from asset_audit.schemas.assessment import (
    ELEMENTS, SCORE_LABELS, AssessmentCreate, AssessmentPatch, AssessmentRead,
    score_label, validate_catalog,
)
from asset_audit.schemas.user_profile import UserProfileRead, UserProfileUpsert
from asset_audit.schemas.storage import (
    StorageMetrics, FormattedStorageMetrics, UserStorageBreakdown, SystemStorageReport,
)
from asset_audit.schemas.lifecycle import (
    Allocation, DeletionOutcome, DeletionFailure, BulkDeletionReport, SweepReport,
    ReachabilityRequest, ReachabilityResult,
)

__all__ = [
    "ELEMENTS", "SCORE_LABELS", "score_label", "validate_catalog",
    "AssessmentCreate", "AssessmentPatch", "AssessmentRead",
    "UserProfileRead", "UserProfileUpsert",
    "StorageMetrics", "FormattedStorageMetrics", "UserStorageBreakdown", "SystemStorageReport",
    "Allocation", "DeletionOutcome", "DeletionFailure", "BulkDeletionReport", "SweepReport",
    "ReachabilityRequest", "ReachabilityResult",
]
