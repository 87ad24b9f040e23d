from __future__ import annotations
from pydantic import BaseModel, computed_field


class Allocation(BaseModel):
    id: str
    sequence: int | None = None
    fallback: bool = False


class DeletionOutcome(BaseModel):
    record_id: str
    metadata_deleted: bool
    attachment_deleted: bool | None = None  # None: cleanup not attempted
    attachment_path: str | None = None


class DeletionFailure(BaseModel):
    record_id: str
    error: str


class BulkDeletionReport(BaseModel):
    requested: int
    outcomes: list[DeletionOutcome] = []
    failures: list[DeletionFailure] = []
    swept: list[str] = []  # leftover blobs removed after the deletes

    @computed_field
    @property
    def metadata_deleted(self) -> int:
        return sum(1 for o in self.outcomes if o.metadata_deleted)

    @computed_field
    @property
    def attachments_orphaned(self) -> int:
        return sum(1 for o in self.outcomes if o.attachment_deleted is False)

    @computed_field
    @property
    def partial(self) -> bool:
        return 0 < self.metadata_deleted < self.requested


class SweepReport(BaseModel):
    scanned: int = 0
    orphans: list[str] = []
    deleted: list[str] = []
    skipped_recent: int = 0
    dry_run: bool = False


class ReachabilityRequest(BaseModel):
    uri: str


class ReachabilityResult(BaseModel):
    uri: str
    kind: str
    reachable: bool
