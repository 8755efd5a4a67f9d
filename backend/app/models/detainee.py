"""
Detainee database model.

A detainee is created ``in_custody`` and later released or transferred.
"""

import uuid
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func
from backend.app.db.session import Base
from backend.app.models.enums import DetaineeStatus


class Detainee(Base):
    """
    Detainee model.

    Hard-deleted; statements reference it without cascade.
    """
    __tablename__ = "detainees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Personal information
    first_name = Column(String(100), nullable=True, index=True)
    last_name = Column(String(100), nullable=True, index=True)
    sex = Column(String(10), nullable=False)
    place_of_birth = Column(String(255), nullable=True)
    date_of_birth = Column(DateTime, nullable=True)
    photo_url = Column(String(500), nullable=True)

    # Family
    parent_names = Column(Text, nullable=True)
    origin_neighborhood = Column(String(255), nullable=True)

    # Background
    education = Column(Text, nullable=True)
    employment = Column(String(255), nullable=True)
    marital_status = Column(String(50), nullable=True)
    marital_details = Column(Text, nullable=True)
    spouse_name = Column(String(100), nullable=True)
    number_of_children = Column(Integer, nullable=True)
    religion = Column(String(100), nullable=True)

    # Contact
    residence = Column(String(255), nullable=True)
    phone_number = Column(String(20), nullable=True)

    # Crime and arrest
    crime_reason = Column(Text, nullable=True)
    arrest_date = Column(DateTime, nullable=True, index=True)
    arrest_location = Column(String(255), nullable=True)
    arrested_by = Column(String(255), nullable=True)
    arrest_time = Column(String(5), nullable=True)  # HH:MM
    arrival_date = Column(DateTime, nullable=True)
    arrival_time = Column(String(5), nullable=True)  # HH:MM

    # Custody
    cell_number = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)
    status = Column(String(50), default=DetaineeStatus.IN_CUSTODY.value, nullable=False, index=True)

    # Release / transfer
    release_date = Column(DateTime, nullable=True)
    release_reason = Column(Text, nullable=True)
    transfer_destination = Column(String(255), nullable=True)

    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self):
        return f"<Detainee(id={self.id}, name='{self.full_name}', status='{self.status}')>"
