"""
Admin API Endpoints: Suspension, Access Overrides, Access Preview
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from scopegrid.database.session import get_db
from scopegrid.models.rbac import User
from scopegrid.schemas.admin import ManageAccessRequest, UserIdRequest
from scopegrid.schemas.common import APIResponse
from scopegrid.security.dependencies import require_admin
from scopegrid.services.admin_service import AccessAdminService

router = APIRouter(prefix="/admin", tags=["Administration"])


@router.post("/manage/suspend", response_model=APIResponse)
async def suspend_user(
    body: UserIdRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Suspend a user; every protected read is refused until reinstated."""
    user = AccessAdminService(db).set_suspended(body.user_id, True, changed_by=current_user.email)
    return APIResponse(message="User suspended", data={"userId": user.id, "suspended": True})


@router.post("/manage/revoke", response_model=APIResponse)
async def revoke_suspension(
    body: UserIdRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Lift a user's suspension."""
    user = AccessAdminService(db).set_suspended(body.user_id, False, changed_by=current_user.email)
    return APIResponse(message="User reinstated", data={"userId": user.id, "suspended": False})


@router.post("/manage/access", response_model=APIResponse)
async def manage_access(
    body: ManageAccessRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Grant, revoke or clear per-user overrides in one transaction."""
    applied = AccessAdminService(db).manage_access(
        body.user_id, body.permissions, body.resources, changed_by=current_user.email,
    )
    return APIResponse(
        message="User access updated; takes effect at the user's next sign-in",
        data=applied,
    )


@router.get("/users/{user_id}/access", response_model=APIResponse)
async def preview_access(
    user_id: int,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Effective grants the user would receive at sign-in now."""
    return APIResponse(data=AccessAdminService(db).preview_access(user_id))
