"""CRUD operations for assessments and user profiles."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from asset_audit.models import Assessment, UserProfile


# ── Assessment ────────────────────────────────────────────

async def insert_assessment(db: AsyncSession, **fields) -> Assessment:
    """Insert with an explicit primary key. Raises IntegrityError on a duplicate id."""
    row = Assessment(**fields)
    db.add(row)
    await db.commit()
    await db.refresh(row)
    return row


async def get_assessment(db: AsyncSession, assessment_id: str) -> Assessment | None:
    return await db.get(Assessment, assessment_id)


async def list_assessment_ids(db: AsyncSession) -> list[str]:
    result = await db.execute(select(Assessment.id))
    return list(result.scalars().all())


async def list_assessments_by_owner(db: AsyncSession, owner_id: str) -> list[Assessment]:
    result = await db.execute(
        select(Assessment)
        .where(Assessment.owner_id == owner_id)
        .order_by(Assessment.created_at.desc())
    )
    return list(result.scalars().all())


async def list_all_assessments(db: AsyncSession) -> list[Assessment]:
    result = await db.execute(select(Assessment).order_by(Assessment.created_at.desc()))
    return list(result.scalars().all())


async def update_assessment(db: AsyncSession, row: Assessment, **kwargs) -> Assessment:
    for k, v in kwargs.items():
        setattr(row, k, v)
    await db.commit()
    await db.refresh(row)
    return row


async def delete_assessment(db: AsyncSession, assessment_id: str) -> bool:
    """Delete by key. Returns False when no row matched."""
    result = await db.execute(delete(Assessment).where(Assessment.id == assessment_id))
    await db.commit()
    return result.rowcount > 0


# ── UserProfile ───────────────────────────────────────────

async def get_user_profile(db: AsyncSession, user_id: str) -> UserProfile | None:
    return await db.get(UserProfile, user_id)


async def list_user_profiles(db: AsyncSession) -> list[UserProfile]:
    result = await db.execute(select(UserProfile).order_by(UserProfile.created_at.desc()))
    return list(result.scalars().all())


async def upsert_user_profile(db: AsyncSession, user_id: str, **kwargs) -> UserProfile:
    profile = await db.get(UserProfile, user_id)
    if profile is None:
        profile = UserProfile(id=user_id, **kwargs)
        db.add(profile)
    else:
        for k, v in kwargs.items():
            if v is not None:
                setattr(profile, k, v)
    await db.commit()
    await db.refresh(profile)
    return profile
