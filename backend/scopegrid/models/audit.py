"""
Audit Log Model
"""
from datetime import datetime
from sqlalchemy import Column, BigInteger, Integer, String, DateTime, Text
from scopegrid.database.session import Base


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    table_name = Column(String(200), nullable=False, index=True)
    action_type = Column(String(50), nullable=False)  # INSERT, UPDATE, DELETE, SUSPEND, REINSTATE, GRANT
    record_primary_key = Column(String(500))
    old_data = Column(Text)       # JSON
    new_data = Column(Text)       # JSON
    changed_columns = Column(Text)  # JSON list, UPDATE only
    changed_by = Column(String(200), nullable=False, index=True)
    changed_at = Column(DateTime, default=datetime.utcnow, index=True)
    source = Column(String(50), default="API")  # API, SYSTEM
    ip_address = Column(String(50))
    notes = Column(String(1000))
