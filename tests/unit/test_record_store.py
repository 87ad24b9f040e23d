import re

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from asset_audit.db import crud
from asset_audit.errors import (
    DuplicateRecordError,
    IndexRequiredError,
    NotFoundError,
    RecordStoreError,
    StorePermissionError,
    UploadError,
)
from asset_audit.schemas import Allocation, AssessmentCreate, AssessmentPatch, UserProfileUpsert
from asset_audit.services.blob_store import LocalBlobStore
from asset_audit.services.record_store import translate_store_error


def _draft(**overrides):
    fields = dict(category="Civil", element="Roof", condition=3, priority=4, attachment_ref="local://a.jpg")
    fields.update(overrides)
    return AssessmentCreate(**fields)


async def test_create_end_to_end(container):
    record = await container.records.create(_draft(), "u1")
    assert re.fullmatch(r"\d{8}-00001", record.id)
    assert record.owner_id == "u1"
    assert record.created_at > 0
    path = LocalBlobStore.path_from_url(record.attachment_ref)
    assert path == f"owners/u1/{record.id}.jpg"
    assert await container.blob_store.read(path)

    fetched = await container.records.get(record.id)
    assert fetched == record


async def test_same_day_sequences_increase(container):
    first = await container.records.create(_draft(), "u1")
    second = await container.records.create(_draft(), "u2")
    assert first.id[:8] == second.id[:8]
    assert int(second.id[-5:]) == int(first.id[-5:]) + 1


async def test_upload_failure_writes_no_record(container):
    with pytest.raises(UploadError):
        await container.records.create(_draft(attachment_ref="local://missing.jpg"), "u1")
    assert await container.records.list_all() == []


async def test_duplicate_insert_reallocates(container, session_factory):
    async with session_factory() as db:
        await crud.insert_assessment(
            db, id="07032024-00001", owner_id="other", created_at=1, category="Civil",
            element="Roof", condition=1, priority=1, attachment_ref="x",
        )

    class StaleAllocator:
        def __init__(self):
            self.ids = iter(["07032024-00001", "07032024-00002"])

        async def allocate(self):
            return Allocation(id=next(self.ids), sequence=1)

    container.records.allocator = StaleAllocator()
    record = await container.records.create(_draft(), "u1")
    assert record.id == "07032024-00002"


async def test_duplicate_fallback_id_is_not_retried(container, session_factory):
    async with session_factory() as db:
        await crud.insert_assessment(
            db, id="07032024-1700000000000", owner_id="other", created_at=1, category="Civil",
            element="Roof", condition=1, priority=1, attachment_ref="x",
        )

    class FallbackAllocator:
        async def allocate(self):
            return Allocation(id="07032024-1700000000000", fallback=True)

    container.records.allocator = FallbackAllocator()
    with pytest.raises(DuplicateRecordError):
        await container.records.create(_draft(), "u1")


async def test_get_unknown_raises_not_found(container):
    with pytest.raises(NotFoundError):
        await container.records.get("01012024-00001")


async def test_list_by_owner_is_newest_first_and_scoped(container):
    ticks = iter([1000, 2000, 3000])
    container.records._clock_ms = lambda: next(ticks)
    a = await container.records.create(_draft(), "u1")
    await container.records.create(_draft(), "u2")
    c = await container.records.create(_draft(), "u1")

    mine = await container.records.list_by_owner("u1")
    assert [r.id for r in mine] == [c.id, a.id]
    assert await container.records.list_by_owner("nobody") == []
    assert len(await container.records.list_all()) == 3


async def test_update_applies_partial_patch(container):
    record = await container.records.create(_draft(), "u1")
    updated = await container.records.update(record.id, AssessmentPatch(condition=5, notes="cracked"))
    assert updated.condition == 5
    assert updated.notes == "cracked"
    assert updated.priority == record.priority
    assert updated.owner_id == "u1"


async def test_update_rejects_element_outside_category(container):
    record = await container.records.create(_draft(), "u1")
    with pytest.raises(ValueError):
        await container.records.update(record.id, AssessmentPatch(category="Electrical"))


async def test_update_unknown_raises_not_found(container):
    with pytest.raises(NotFoundError):
        await container.records.update("01012024-00001", AssessmentPatch(condition=2))


async def test_user_profiles(container):
    await container.records.upsert_user_profile(UserProfileUpsert(id="u1", email="u1@example.com"))
    await container.records.upsert_user_profile(UserProfileUpsert(id="u1", email="u1@example.com", role="admin"))
    profile = await container.records.get_user_profile("u1")
    assert profile.role == "admin"
    assert await container.records.get_user_profile("nobody") is None
    assert [p.id for p in await container.records.list_all_users()] == ["u1"]


def _operational(message: str) -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception(message))


def test_translate_missing_table_to_index_required():
    err = translate_store_error(_operational("no such table: assessments"))
    assert isinstance(err, IndexRequiredError)
    assert err.code == "index_required"
    assert "init-db" in str(err)


def test_translate_permission_failures():
    err = translate_store_error(_operational("attempt to write a readonly database"))
    assert isinstance(err, StorePermissionError)
    assert isinstance(err, PermissionError)
    assert err.code == "access_not_configured"


def test_translate_integrity_error_to_duplicate():
    err = translate_store_error(IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: assessments.id")))
    assert isinstance(err, DuplicateRecordError)


def test_translate_other_failures_to_generic_store_error():
    err = translate_store_error(_operational("disk I/O error"))
    assert type(err) is RecordStoreError
    assert err.code == "store_error"


async def test_missing_schema_surfaces_as_index_required(settings, session_factory, capture_dir):
    from asset_audit.container import build_container
    from asset_audit.models import Base

    async with session_factory() as db:
        await db.run_sync(lambda s: Base.metadata.drop_all(s.connection()))
        await db.commit()
    container = build_container(session_factory=session_factory, settings=settings)
    with pytest.raises(IndexRequiredError):
        await container.records.list_by_owner("u1")


async def test_create_after_a_stored_fallback_id_keeps_the_sequence_format(container, session_factory):
    from datetime import datetime

    from asset_audit.services.identifiers import date_prefix

    prefix = date_prefix(datetime.now())
    async with session_factory() as db:
        await crud.insert_assessment(
            db, id=f"{prefix}-1792385734590", owner_id="u1", created_at=1, category="Civil",
            element="Roof", condition=1, priority=1, attachment_ref="x",
        )
    record = await container.records.create(_draft(), "u1")
    assert record.id == f"{prefix}-00001"


async def test_update_rejects_explicit_null_for_required_columns(container):
    from pydantic import ValidationError

    record = await container.records.create(_draft(), "u1")
    for field in ("condition", "priority", "attachment_ref"):
        with pytest.raises(ValidationError):
            AssessmentPatch.model_validate({field: None})
    assert (await container.records.get(record.id)).condition == 3


def test_translate_not_null_violation_is_not_a_duplicate():
    err = translate_store_error(
        IntegrityError("UPDATE", {}, Exception("NOT NULL constraint failed: assessments.condition"))
    )
    assert type(err) is RecordStoreError
    assert err.code == "store_error"
