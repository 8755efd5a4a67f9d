"""
Employee database model.

Staff of the detention administration. Deleting an employee deactivates it.
"""

import uuid
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func
from backend.app.db.session import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Personal information
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    sex = Column(String(10), nullable=False)
    place_of_birth = Column(String(255), nullable=True)
    date_of_birth = Column(DateTime, nullable=True)
    education = Column(Text, nullable=True)
    marital_status = Column(String(50), nullable=True)

    # Professional information
    employee_id = Column(String(50), unique=True, nullable=True)
    function = Column(String(100), nullable=True)
    deployment_location = Column(String(255), nullable=True)

    # Contact
    residence = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(255), unique=True, nullable=True)

    # Path returned by the upload utility
    photo_url = Column(String(500), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False, index=True)
    created_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Employee(id={self.id}, name='{self.first_name} {self.last_name}', active={self.is_active})>"
