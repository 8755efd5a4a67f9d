"""
Audit Log Database Model.

Append-only ledger with one row per state-changing action on a tracked entity.
"""

from sqlalchemy import Column, BigInteger, Integer, String, DateTime, JSON, ForeignKey, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log entry.

    Rows are inserted by services.audit and never updated or deleted.

    ``details`` always holds a ``description``; updates also carry
    ``changed = {field: {"old": ..., "new": ...}}``. ``entity_id`` is a
    plain string, the target row may since have been deleted.
    """
    __tablename__ = "audit_logs"

    # BIGSERIAL on PostgreSQL; SQLite only autoincrements INTEGER keys
    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)

    # Acting principal
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    action = Column(String(32), nullable=False, index=True)
    entity_type = Column(String(32), nullable=False, index=True)
    entity_id = Column(String(50), nullable=False, index=True)

    details = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity_type}:{self.entity_id})>"
