from __future__ import annotations

from fastapi import APIRouter, Depends

from asset_audit.container import Container
from asset_audit.dependencies import AuthContext, get_container, require_auth
from asset_audit.schemas import ReachabilityRequest, ReachabilityResult
from asset_audit.services.resources import classify

router = APIRouter(prefix="/api/attachments", tags=["attachments"])


@router.post("/check", response_model=ReachabilityResult)
async def check_attachment(
    body: ReachabilityRequest,
    auth: AuthContext = Depends(require_auth),
    container: Container = Depends(get_container),
):
    """Report whether a local or remote attachment reference can be read."""
    reachable = await container.reader.is_reachable(body.uri)
    return ReachabilityResult(uri=body.uri, kind=classify(body.uri), reachable=reachable)
