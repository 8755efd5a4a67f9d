"""
Seizure database model.

Seized vehicles; status moves from ``in_custody`` to released, disposed or evidence.
"""

import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import SeizureStatus


class Seizure(Base):
    __tablename__ = "seizures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    item_name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=False, index=True)
    seizure_location = Column(String(255), nullable=True)

    # Vehicle identification
    chassis_number = Column(String(100), nullable=True)
    plate_number = Column(String(50), nullable=True)

    # Owner
    owner_name = Column(String(255), nullable=True)
    owner_residence = Column(String(255), nullable=True)

    seizure_date = Column(DateTime, nullable=False, index=True)
    status = Column(String(50), default=SeizureStatus.IN_CUSTODY.value, nullable=False, index=True)
    release_date = Column(DateTime, nullable=True)

    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Seizure(id={self.id}, item_name='{self.item_name}', status='{self.status}')>"
