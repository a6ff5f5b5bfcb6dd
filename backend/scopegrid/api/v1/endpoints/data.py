"""
Data API Endpoints: plain paginated read of every permitted column
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from scopegrid.core.serialization import wide_int_json
from scopegrid.database.session import get_db
from scopegrid.security.dependencies import ResourceAccess, get_resource_access
from scopegrid.services.grid_service import GridReadService

router = APIRouter(prefix="/data", tags=["Data"])


@router.get("/{resource}")
async def read_data(
    page: Optional[str] = Query(None),
    page_size: Optional[str] = Query(None, alias="pageSize"),
    access: ResourceAccess = Depends(get_resource_access),
    db: Session = Depends(get_db),
):
    """Flat read of the resource, limited to the caller's permitted columns."""
    envelope = GridReadService(db).read(access, page=page, page_size=page_size)
    return wide_int_json(envelope)
