"""
Statement database model.

A statement is a document (file path from the upload utility) recorded for a detainee.
"""

import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func
from backend.app.db.session import Base


class Statement(Base):
    __tablename__ = "statements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    file_url = Column(String(500), nullable=False)
    detainee_id = Column(Uuid, ForeignKey("detainees.id"), nullable=False, index=True)

    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Statement(id={self.id}, detainee_id={self.detainee_id})>"
