"""FastAPI dependency providers for services, caller identity and role enforcement.

Authentication itself happens upstream; the caller id arrives in the
X-User-Id header and the role comes from the stored user profile.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, Header, HTTPException

from asset_audit.container import Container, build_container


@dataclass
class AuthContext:
    user_id: str
    role: str  # 'staff' | 'admin'
    email: str
    display_name: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


@lru_cache
def get_container() -> Container:
    return build_container()


async def require_auth(
    x_user_id: str = Header(default=""),
    container: Container = Depends(get_container),
) -> AuthContext:
    """Resolve the caller's profile. Returns AuthContext."""
    if not x_user_id:
        raise HTTPException(401, "Authentication required")
    profile = await container.records.get_user_profile(x_user_id)
    if profile is None:
        raise HTTPException(401, "Unknown user")
    if not profile.is_active:
        raise HTTPException(403, "Account is disabled")
    return AuthContext(
        user_id=profile.id,
        role=profile.role,
        email=profile.email,
        display_name=profile.display_name,
    )


def require_role(*allowed_roles: str):
    """Factory: returns a dependency that enforces role membership."""
    async def _check(auth: AuthContext = Depends(require_auth)) -> AuthContext:
        if auth.role not in allowed_roles:
            raise HTTPException(403, "Insufficient permissions")
        return auth
    return _check


def ensure_can_access(auth: AuthContext, owner_id: str) -> None:
    """Owners see their own records; admins see everything."""
    if not auth.is_admin and auth.user_id != owner_id:
        raise HTTPException(404, "Assessment not found")
