"""
Saved View Model: per-user column/filter/sort/group configuration of one table
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, JSON
from scopegrid.database.session import Base

DEFAULT_VIEW_NAME = "grid"


class View(Base):
    __tablename__ = "user_views"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("rbac_users.id"), nullable=False, index=True)
    table_id = Column(String(100), nullable=False)  # canonical resource slug, e.g. "sites"
    view_name = Column(String(200), nullable=False)
    columns = Column(JSON, nullable=False, default=list)
    filters = Column(JSON, nullable=False, default=dict)
    sort = Column(JSON, nullable=False, default=list)      # [{"column": "asc" | "desc"}]
    group_by = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "table_id", "view_name", name="uq_user_table_view"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "tableId": self.table_id,
            "viewName": self.view_name,
            "columns": list(self.columns or []),
            "filters": self.filters or {},
            "sort": list(self.sort or []),
            "groupBy": list(self.group_by or []),
        }
