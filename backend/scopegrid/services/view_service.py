"""
View Service: saved view CRUD, ownership checks, default "grid" provisioning
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from loguru import logger

from scopegrid.audit.service import AuditService
from scopegrid.core.exceptions import Forbidden, NotFound, ValidationError
from scopegrid.models.views import DEFAULT_VIEW_NAME, View
from scopegrid.schemas.views import ViewCreate, ViewUpdate
from scopegrid.services.filter_tree import filter_to_wire, sort_to_wire
from scopegrid.services.query_executor import compile_filter
from scopegrid.services.query_sanitizer import (
    sanitize_filters, sanitize_group_by, sanitize_sort, unauthorized_columns,
)
from scopegrid.services.resource_registry import registry


class ViewService:
    """Handles persistence of per-user table views."""

    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    # ========================================================================
    # Reads
    # ========================================================================

    def get(self, view_id: int) -> View:
        view = self.db.query(View).filter(View.id == view_id).first()
        if not view:
            raise NotFound("View not found")
        return view

    def get_owned(self, view_id: int, owner_id: int, table_id: str) -> View:
        view = self.get(view_id)
        if view.user_id != owner_id or view.table_id != table_id:
            raise Forbidden("Access denied to this view")
        return view

    def list_for_user(self, user_id: int, table_id: str) -> List[Dict[str, Any]]:
        views = (
            self.db.query(View.id, View.view_name)
            .filter(View.user_id == user_id, View.table_id == table_id)
            .order_by(View.id)
            .all()
        )
        return [{"id": view_id, "viewName": name} for view_id, name in views]

    def get_or_create_default(self, user_id: int, table_id: str, permitted_columns: List[str]) -> View:
        """Return the user's "grid" view for the table, creating it on first use."""
        view = self._find_by_name(user_id, table_id, DEFAULT_VIEW_NAME)
        if view:
            return view

        view = View(
            user_id=user_id,
            table_id=table_id,
            view_name=DEFAULT_VIEW_NAME,
            columns=list(permitted_columns),
            filters={},
            sort=[],
            group_by=[],
        )
        try:
            self.db.add(view)
            self.db.commit()
        except IntegrityError:
            # A concurrent request created it first
            self.db.rollback()
            view = self._find_by_name(user_id, table_id, DEFAULT_VIEW_NAME)
            if view is None:
                raise
            return view

        logger.info(f"Provisioned default view for user {user_id} on '{table_id}'")
        return view

    # ========================================================================
    # Mutations
    # ========================================================================

    def create(
        self,
        user_id: int,
        table_id: str,
        data: ViewCreate,
        permitted_columns: List[str],
        changed_by: Optional[str] = None,
    ) -> View:
        self._check_columns(data.columns, permitted_columns)
        view_name = data.view_name.strip()
        if self._find_by_name(user_id, table_id, view_name):
            raise ValidationError(f"View '{view_name}' already exists")

        view = View(
            user_id=user_id,
            table_id=table_id,
            view_name=view_name,
            columns=list(data.columns),
            filters=self._clean_filters(data.filters, table_id, permitted_columns),
            sort=sort_to_wire(sanitize_sort(data.sort, permitted_columns)),
            group_by=sanitize_group_by(data.group_by, permitted_columns),
        )
        self._save(view)
        self.audit.log_insert(
            table_name="user_views",
            changed_by=changed_by or f"user:{user_id}",
            record_pk=view.id,
            new_data=view.to_dict(),
        )
        self.db.commit()
        logger.info(f"View {view.id} '{view_name}' created by user {user_id} on '{table_id}'")
        return view

    def update(
        self,
        view_id: int,
        owner_id: int,
        table_id: str,
        data: ViewUpdate,
        permitted_columns: List[str],
        changed_by: Optional[str] = None,
    ) -> View:
        view = self.get_owned(view_id, owner_id, table_id)
        old_data = view.to_dict()

        # Validate everything before touching the persistent view
        view_name = data.view_name.strip() if data.view_name is not None else None
        if view_name is not None:
            existing = self._find_by_name(owner_id, table_id, view_name)
            if existing and existing.id != view.id:
                raise ValidationError(f"View '{view_name}' already exists")
        if data.columns is not None:
            self._check_columns(data.columns, permitted_columns)
        filters = None
        if data.filters is not None:
            filters = self._clean_filters(data.filters, table_id, permitted_columns)

        if view_name is not None:
            view.view_name = view_name
        if data.columns is not None:
            view.columns = list(data.columns)
        if filters is not None:
            view.filters = filters
        if data.sort is not None:
            view.sort = sort_to_wire(sanitize_sort(data.sort, permitted_columns))
        if data.group_by is not None:
            view.group_by = sanitize_group_by(data.group_by, permitted_columns)

        self._save(view)
        self.audit.log_update(
            table_name="user_views",
            changed_by=changed_by or f"user:{owner_id}",
            record_pk=view.id,
            old_data=old_data,
            new_data=view.to_dict(),
        )
        self.db.commit()
        logger.info(f"View {view.id} updated by user {owner_id}")
        return view

    def delete(self, view_id: int, owner_id: int, table_id: str, changed_by: Optional[str] = None) -> None:
        view = self.get_owned(view_id, owner_id, table_id)
        old_data = view.to_dict()
        self.db.delete(view)
        self.db.flush()
        self.audit.log_delete(
            table_name="user_views",
            changed_by=changed_by or f"user:{owner_id}",
            record_pk=view_id,
            old_data=old_data,
        )
        self.db.commit()
        logger.info(f"View {view_id} deleted by user {owner_id}")

    # ========================================================================
    # Helpers
    # ========================================================================

    def _find_by_name(self, user_id: int, table_id: str, view_name: str) -> Optional[View]:
        return (
            self.db.query(View)
            .filter(View.user_id == user_id, View.table_id == table_id, View.view_name == view_name)
            .first()
        )

    @staticmethod
    def _check_columns(columns: List[str], permitted_columns: List[str]) -> None:
        invalid = unauthorized_columns(columns, permitted_columns)
        if invalid:
            raise ValidationError("Invalid columns in view", detail={"columns": invalid})

    @staticmethod
    def _clean_filters(raw: Any, table_id: str, permitted_columns: List[str]) -> Dict[str, Any]:
        """Sanitize, then compile once so a stored filter can always be executed."""
        tree = sanitize_filters(raw, permitted_columns)
        compile_filter(tree, registry.get(table_id))
        return filter_to_wire(tree)

    def _save(self, view: View) -> None:
        try:
            self.db.add(view)
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise ValidationError(f"View '{view.view_name}' already exists")
