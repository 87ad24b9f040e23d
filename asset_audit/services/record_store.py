"""Record store gateway: create, read, list, update assessment records.

Every call opens a fresh session from the factory. Store failures are
translated into the error taxonomy so callers can tell "access not
configured" apart from "index missing" apart from everything else.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from asset_audit.db import crud
from asset_audit.errors import (
    DuplicateRecordError,
    IndexRequiredError,
    NotFoundError,
    RecordStoreError,
    StorePermissionError,
)
from asset_audit.models.base import now_ms
from asset_audit.schemas import (
    AssessmentCreate,
    AssessmentPatch,
    AssessmentRead,
    UserProfileRead,
    UserProfileUpsert,
    validate_catalog,
)
from asset_audit.services.attachments import AttachmentUploader
from asset_audit.services.identifiers import IdentifierAllocator

logger = logging.getLogger(__name__)

_MISSING_SCHEMA_MARKERS = (
    "no such table", "no such index", "no such column",
    "undefinedtable", "does not exist", "requires an index",
)
_DUPLICATE_KEY_MARKERS = (
    "unique constraint", "primary key", "duplicate key", "uniqueviolation",
)
_PERMISSION_MARKERS = (
    "readonly", "read-only", "permission denied", "access denied",
    "unable to open database", "authentication failed", "insufficientprivilege",
)


def translate_store_error(exc: SQLAlchemyError) -> RecordStoreError:
    """Map a driver-level failure onto an actionable store error."""
    detail = str(getattr(exc, "orig", None) or exc)
    lowered = detail.lower()
    if isinstance(exc, IntegrityError):
        if any(m in lowered for m in _DUPLICATE_KEY_MARKERS):
            return DuplicateRecordError(f"A record with this identifier already exists: {detail}")
        return RecordStoreError(f"Record violates a store constraint: {detail}")
    if any(m in lowered for m in _MISSING_SCHEMA_MARKERS):
        return IndexRequiredError(
            "A required table or index has not been provisioned yet. "
            f"Run `asset-audit init-db` and retry. ({detail})"
        )
    if any(m in lowered for m in _PERMISSION_MARKERS):
        return StorePermissionError(
            "Document store access is not configured for this service. "
            f"Check the database URL and file permissions. ({detail})"
        )
    return RecordStoreError(f"Document store request failed: {detail}")


class RecordStore:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        uploader: AttachmentUploader,
        allocator: IdentifierAllocator | None = None,
        collision_retries: int = 3,
        clock_ms: Callable[[], int] = now_ms,
    ):
        self._session_factory = session_factory
        self.uploader = uploader
        self.allocator = allocator or IdentifierAllocator(self, collision_retries)
        self.collision_retries = collision_retries
        self._clock_ms = clock_ms

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as db:
                yield db
        except SQLAlchemyError as e:
            translated = translate_store_error(e)
            logger.error("Document store error (%s): %s", translated.code, e)
            raise translated from e

    # ── Index used by the allocator ───────────────────────

    async def list_ids(self) -> list[str]:
        async with self._session() as db:
            return await crud.list_assessment_ids(db)

    async def exists(self, record_id: str) -> bool:
        async with self._session() as db:
            return await crud.get_assessment(db, record_id) is not None

    # ── Records ───────────────────────────────────────────

    async def create(self, draft: AssessmentCreate, owner_id: str) -> AssessmentRead:
        """Allocate an id, upload the attachment under it, then write the record.

        If the upload fails nothing is written and the id is abandoned.
        """
        for attempt in range(self.collision_retries + 1):
            allocation = await self.allocator.allocate()
            remote_ref = await self.uploader.upload(draft.attachment_ref, owner_id, allocation.id)
            fields = draft.model_dump()
            fields.update(
                id=allocation.id,
                owner_id=owner_id,
                created_at=self._clock_ms(),
                attachment_ref=remote_ref,
            )
            try:
                async with self._session() as db:
                    row = await crud.insert_assessment(db, **fields)
                    record = AssessmentRead.model_validate(row)
            except DuplicateRecordError:
                if allocation.fallback or attempt == self.collision_retries:
                    raise
                logger.warning("Identifier %s was written concurrently, reallocating", allocation.id)
                continue
            logger.info("Created assessment %s for %s", record.id, owner_id)
            return record

    async def get(self, record_id: str) -> AssessmentRead:
        async with self._session() as db:
            row = await crud.get_assessment(db, record_id)
            if row is None:
                raise NotFoundError(f"Assessment not found: {record_id}")
            return AssessmentRead.model_validate(row)

    async def list_by_owner(self, owner_id: str) -> list[AssessmentRead]:
        async with self._session() as db:
            rows = await crud.list_assessments_by_owner(db, owner_id)
            return [AssessmentRead.model_validate(r) for r in rows]

    async def list_all(self) -> list[AssessmentRead]:
        """Every record, newest first. Callers must have checked the admin role."""
        async with self._session() as db:
            rows = await crud.list_all_assessments(db)
            return [AssessmentRead.model_validate(r) for r in rows]

    async def update(self, record_id: str, patch: AssessmentPatch) -> AssessmentRead:
        changes = patch.model_dump(exclude_unset=True)
        async with self._session() as db:
            row = await crud.get_assessment(db, record_id)
            if row is None:
                raise NotFoundError(f"Assessment not found: {record_id}")
            if "category" in changes or "element" in changes:
                validate_catalog(changes.get("category", row.category), changes.get("element", row.element))
            if changes:
                row = await crud.update_assessment(db, row, **changes)
            return AssessmentRead.model_validate(row)

    async def delete_metadata(self, record_id: str) -> bool:
        async with self._session() as db:
            return await crud.delete_assessment(db, record_id)

    # ── User profiles ─────────────────────────────────────

    async def get_user_profile(self, user_id: str) -> UserProfileRead | None:
        async with self._session() as db:
            profile = await crud.get_user_profile(db, user_id)
            return UserProfileRead.model_validate(profile) if profile else None

    async def list_all_users(self) -> list[UserProfileRead]:
        async with self._session() as db:
            return [UserProfileRead.model_validate(p) for p in await crud.list_user_profiles(db)]

    async def upsert_user_profile(self, body: UserProfileUpsert) -> UserProfileRead:
        async with self._session() as db:
            fields = body.model_dump(exclude={"id"})
            profile = await crud.upsert_user_profile(db, body.id, **fields)
            return UserProfileRead.model_validate(profile)
