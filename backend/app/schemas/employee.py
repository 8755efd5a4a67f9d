"""
Employee Pydantic schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from backend.app.schemas.common import (
    AuthorNames,
    DateInput,
    MaritalStatusValue,
    PaginationMeta,
    PHONE_PATTERN,
    SexValue,
)


class EmployeeBase(BaseModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(None, min_length=2, max_length=100)
    sex: Optional[SexValue] = None
    place_of_birth: Optional[str] = Field(None, max_length=255)
    date_of_birth: Optional[DateInput] = None
    education: Optional[str] = Field(None, max_length=255)
    marital_status: Optional[MaritalStatusValue] = None
    employee_id: Optional[str] = Field(None, min_length=1, max_length=50)
    function: Optional[str] = Field(None, max_length=100)
    deployment_location: Optional[str] = Field(None, max_length=255)
    residence: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    email: Optional[EmailStr] = None
    photo_url: Optional[str] = Field(None, max_length=500)

    class Config:
        str_strip_whitespace = True

    @field_validator("phone", "email", "employee_id", mode="before")
    @classmethod
    def blank_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class EmployeeCreate(EmployeeBase):
    """Schema for registering an employee."""
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    sex: SexValue


class EmployeeUpdate(EmployeeBase):
    is_active: Optional[bool] = None

    @field_validator("first_name", "last_name", "sex", "is_active")
    @classmethod
    def required_fields_not_null(cls, value):
        if value is None:
            raise ValueError("Ce champ ne peut pas être vide")
        return value


class EmployeeResponse(AuthorNames):
    id: uuid.UUID
    first_name: Optional[str]
    last_name: Optional[str]
    sex: str
    place_of_birth: Optional[str]
    date_of_birth: Optional[datetime]
    education: Optional[str]
    marital_status: Optional[str]
    employee_id: Optional[str]
    function: Optional[str]
    deployment_location: Optional[str]
    residence: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    photo_url: Optional[str]
    is_active: bool
    created_by: Optional[uuid.UUID]
    updated_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class EmployeeListResponse(BaseModel):
    employees: List[EmployeeResponse]
    pagination: PaginationMeta
