"""
Views API Endpoints: saved view CRUD and permission-scoped grid reads
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from scopegrid.core.serialization import wide_int_json
from scopegrid.database.session import get_db
from scopegrid.schemas.views import AdHocQuery, ViewCreate, ViewUpdate
from scopegrid.security.dependencies import ResourceAccess, get_resource_access
from scopegrid.services.grid_service import GridReadService
from scopegrid.services.view_service import ViewService

router = APIRouter(prefix="/views", tags=["Views"])


def _read_view(view, access: ResourceAccess, db: Session, page, page_size):
    views = ViewService(db).list_for_user(access.user_id, access.resource)
    return GridReadService(db).read(
        access,
        columns=view.columns,
        filters=view.filters,
        sort=view.sort,
        group_by=view.group_by,
        page=page,
        page_size=page_size,
        views=views,
    )


# ============================================================================
# Reads
# ============================================================================

@router.get("/{resource}")
async def read_default_view(
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    access: ResourceAccess = Depends(get_resource_access),
    db: Session = Depends(get_db),
):
    """Read through the caller's "grid" view, provisioning it on first use."""
    view = ViewService(db).get_or_create_default(access.user_id, access.resource, access.permitted_columns)
    return wide_int_json(_read_view(view, access, db, page, page_size))


@router.get("/{resource}/{view_id}")
async def read_view(
    view_id: int,
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    access: ResourceAccess = Depends(get_resource_access),
    db: Session = Depends(get_db),
):
    """Read through one of the caller's saved views."""
    view = ViewService(db).get_owned(view_id, access.user_id, access.resource)
    return wide_int_json(_read_view(view, access, db, page, page_size))


@router.post("/{resource}/query")
async def run_query(
    body: AdHocQuery,
    access: ResourceAccess = Depends(get_resource_access),
    db: Session = Depends(get_db),
):
    """Run an unsaved column/filter/sort/group request."""
    envelope = GridReadService(db).read(
        access,
        columns=body.columns,
        filters=body.filters,
        sort=body.sort,
        group_by=body.group_by,
        page=body.page,
        page_size=body.page_size,
        views=ViewService(db).list_for_user(access.user_id, access.resource),
    )
    return wide_int_json(envelope)


# ============================================================================
# Mutations
# ============================================================================

@router.post("/{resource}", status_code=status.HTTP_201_CREATED)
async def create_view(
    body: ViewCreate,
    access: ResourceAccess = Depends(get_resource_access),
    db: Session = Depends(get_db),
):
    """Save a new view; every column must be readable by the caller."""
    view = ViewService(db).create(
        access.user_id, access.resource, body, access.permitted_columns, changed_by=access.email,
    )
    return wide_int_json({"success": True, "view": view.to_dict()}, status_code=status.HTTP_201_CREATED)


@router.put("/{resource}/{view_id}")
async def update_view(
    view_id: int,
    body: ViewUpdate,
    access: ResourceAccess = Depends(get_resource_access),
    db: Session = Depends(get_db),
):
    """Update one of the caller's views."""
    view = ViewService(db).update(
        view_id, access.user_id, access.resource, body, access.permitted_columns, changed_by=access.email,
    )
    return wide_int_json({"success": True, "view": view.to_dict()})


@router.delete("/{resource}/{view_id}")
async def delete_view(
    view_id: int,
    access: ResourceAccess = Depends(get_resource_access),
    db: Session = Depends(get_db),
):
    """Delete one of the caller's views."""
    ViewService(db).delete(view_id, access.user_id, access.resource, changed_by=access.email)
    return wide_int_json({"success": True, "message": "View deleted"})
