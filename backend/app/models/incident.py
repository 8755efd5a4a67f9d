"""
Incident and Victim database models.

Victims belong to an incident and disappear with it.
"""

import uuid
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func
from backend.app.db.session import Base


class Incident(Base):
    __tablename__ = "incidents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    incident_date = Column(DateTime, nullable=False, index=True)
    location = Column(String(255), nullable=False, index=True)
    event_type = Column(String(100), nullable=False, index=True)
    number_of_victims = Column(Integer, default=0, nullable=False)

    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Incident(id={self.id}, event_type='{self.event_type}', location='{self.location}')>"


class Victim(Base):
    __tablename__ = "victims"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    incident_id = Column(Uuid, ForeignKey("incidents.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sex = Column(String(10), nullable=False)
    cause_of_death = Column(Text, nullable=True)

    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Victim(id={self.id}, name='{self.name}', incident_id={self.incident_id})>"
