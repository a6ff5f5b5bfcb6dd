"""
Audit Trail - records administrative and saved-view mutations

Entries are written in a savepoint of the caller's transaction: they commit
together with the change they describe, and a failed audit insert never
aborts that change.
"""
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from loguru import logger

from scopegrid.models.audit import AuditLog


def _dump(data: Optional[Dict]) -> Optional[str]:
    return json.dumps(data, default=str) if data else None


def diff_keys(old_data: Optional[Dict], new_data: Optional[Dict]) -> List[str]:
    """Keys whose value differs between two snapshots, in first-seen order."""
    old_data, new_data = old_data or {}, new_data or {}
    keys = list(old_data) + [key for key in new_data if key not in old_data]
    return [key for key in keys if old_data.get(key) != new_data.get(key)]


class AuditService:
    def __init__(self, db: Session, source: str = "API"):
        self.db = db
        self.source = source

    def log(
        self,
        table_name: str,
        action_type: str,
        changed_by: str,
        record_primary_key: Optional[Any] = None,
        old_data: Optional[Dict] = None,
        new_data: Optional[Dict] = None,
        changed_columns: Optional[List[str]] = None,
        ip_address: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Optional[AuditLog]:
        entry = AuditLog(
            table_name=table_name,
            action_type=action_type,
            record_primary_key=None if record_primary_key is None else str(record_primary_key),
            old_data=_dump(old_data),
            new_data=_dump(new_data),
            changed_columns=json.dumps(changed_columns) if changed_columns else None,
            changed_by=changed_by,
            changed_at=datetime.now(timezone.utc),
            source=self.source,
            ip_address=ip_address,
            notes=notes,
        )
        try:
            with self.db.begin_nested():
                self.db.add(entry)
        except SQLAlchemyError as e:
            logger.error(f"Audit log failed for {action_type} on {table_name}: {e}")
            return None
        return entry

    def log_insert(self, table_name: str, changed_by: str, record_pk: Any, new_data: Dict, **kwargs):
        return self.log(table_name, "INSERT", changed_by, record_pk, new_data=new_data, **kwargs)

    def log_update(self, table_name: str, changed_by: str, record_pk: Any, old_data: Dict, new_data: Dict, **kwargs):
        kwargs.setdefault("changed_columns", diff_keys(old_data, new_data))
        return self.log(table_name, "UPDATE", changed_by, record_pk, old_data=old_data, new_data=new_data, **kwargs)

    def log_delete(self, table_name: str, changed_by: str, record_pk: Any, old_data: Dict, **kwargs):
        return self.log(table_name, "DELETE", changed_by, record_pk, old_data=old_data, **kwargs)


def get_client_ip(request) -> str:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
