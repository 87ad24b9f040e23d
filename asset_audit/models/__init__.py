"""SQLAlchemy ORM models."""

from asset_audit.models.base import Base
from asset_audit.models.assessment import Assessment
from asset_audit.models.user_profile import UserProfile

__all__ = ["Base", "Assessment", "UserProfile"]
