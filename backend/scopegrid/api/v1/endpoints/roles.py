"""
Roles & Access Catalog Management API
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from scopegrid.database.session import get_db
from scopegrid.models.rbac import User
from scopegrid.schemas.admin import RoleCreate, RoleGrantsUpdate
from scopegrid.schemas.common import APIResponse
from scopegrid.security.dependencies import require_admin
from scopegrid.services.admin_service import AccessAdminService

router = APIRouter(prefix="/admin", tags=["Roles & Permissions"])


# ============================================================================
# Roles
# ============================================================================

@router.get("/roles", response_model=APIResponse)
async def list_roles(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    """List all roles with their grants."""
    roles = AccessAdminService(db).list_roles()
    return APIResponse(data=[r.model_dump() for r in roles])


@router.post("/roles", response_model=APIResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    body: RoleCreate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create a new role."""
    role = AccessAdminService(db).create_role(body, changed_by=current_user.email)
    return APIResponse(data=role.model_dump(), message="Role created")


@router.put("/roles/{role_id}/grants", response_model=APIResponse)
async def set_role_grants(
    role_id: int,
    body: RoleGrantsUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Replace a role's permissions and resources."""
    role = AccessAdminService(db).set_role_grants(role_id, body, changed_by=current_user.email)
    return APIResponse(data=role.model_dump(), message="Role grants updated")


@router.delete("/roles/{role_id}", response_model=APIResponse)
async def delete_role(
    role_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Delete a role no user is assigned to."""
    AccessAdminService(db).delete_role(role_id, changed_by=current_user.email)
    return APIResponse(message="Role deleted")


# ============================================================================
# Catalog
# ============================================================================

@router.get("/permissions", response_model=APIResponse)
async def list_permissions(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    """List all permissions."""
    return APIResponse(data=AccessAdminService(db).list_permissions())


@router.get("/resources", response_model=APIResponse)
async def list_resources(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    """List all resource column bundles."""
    return APIResponse(data=AccessAdminService(db).list_resources())
