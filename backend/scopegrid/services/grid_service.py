"""
Grid Read Service: sanitize -> execute -> read envelope

Assembles the response every data-reading route returns:

    {success, totalRecords, page, pageSize, data, availableColumns,
     appliedFilters, appliedSorting, appliedGrouping, views?}
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from scopegrid.core.config import get_settings
from scopegrid.security.dependencies import ResourceAccess
from scopegrid.services.query_executor import Pagination, QueryExecutor
from scopegrid.services.query_sanitizer import sanitize_query

settings = get_settings()


def resolve_pagination(page: Any, page_size: Any) -> Pagination:
    pagination = Pagination.parse(page, page_size, default_page_size=settings.DEFAULT_PAGE_SIZE)
    if pagination.page_size > settings.MAX_PAGE_SIZE:
        return Pagination(page=pagination.page, page_size=settings.MAX_PAGE_SIZE)
    return pagination


class GridReadService:
    def __init__(self, db: Session):
        self.db = db
        self.executor = QueryExecutor(db)

    def read(
        self,
        access: ResourceAccess,
        columns: Any = None,
        filters: Any = None,
        sort: Any = None,
        group_by: Any = None,
        page: Any = None,
        page_size: Any = None,
        views: Optional[List[Dict[str, Any]]] = None,
    ) -> Dict[str, Any]:
        query = sanitize_query(columns, filters, sort, group_by, access.permitted_columns)
        if not query.columns:
            query.columns = list(access.permitted_columns)

        result = self.executor.execute(access.handler, query, resolve_pagination(page, page_size))

        envelope: Dict[str, Any] = {
            "success": True,
            "totalRecords": result.total_records,
            "page": result.page,
            "pageSize": result.page_size,
            "data": result.data,
            "availableColumns": dict(access.column_types),
            "appliedFilters": query.applied_filters,
            "appliedSorting": query.applied_sorting,
            "appliedGrouping": query.applied_grouping,
        }
        if views is not None:
            envelope["views"] = views
        return envelope
