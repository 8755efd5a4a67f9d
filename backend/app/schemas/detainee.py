"""
Detainee Pydantic schemas.

Field rules follow the registration form: trimmed text, bounded lengths,
international phone numbers and a birth date between 1940 and today.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from backend.app.schemas.common import (
    AuthorNames,
    DateInput,
    DetaineeStatusValue,
    MaritalStatusValue,
    PaginationMeta,
    PHONE_PATTERN,
    SexValue,
    TIME_PATTERN,
)

EARLIEST_BIRTH_DATE = datetime(1940, 1, 1)


class DetaineeBase(BaseModel):
    """Fields shared by create and update; everything optional here."""
    first_name: Optional[str] = Field(None, min_length=2, max_length=20)
    last_name: Optional[str] = Field(None, min_length=2, max_length=20)
    sex: Optional[SexValue] = None
    place_of_birth: Optional[str] = Field(None, min_length=2, max_length=20)
    date_of_birth: Optional[DateInput] = None
    photo_url: Optional[str] = Field(None, max_length=500)

    parent_names: Optional[str] = Field(None, max_length=100)
    origin_neighborhood: Optional[str] = Field(None, max_length=25)
    education: Optional[str] = Field(None, max_length=30)
    employment: Optional[str] = Field(None, max_length=25)
    marital_status: Optional[MaritalStatusValue] = None
    marital_details: Optional[str] = Field(None, max_length=200)
    spouse_name: Optional[str] = Field(None, max_length=100)
    number_of_children: Optional[int] = Field(None, ge=0, le=20)
    religion: Optional[str] = Field(None, max_length=25)

    residence: Optional[str] = Field(None, min_length=2, max_length=25)
    phone_number: Optional[str] = Field(None, pattern=PHONE_PATTERN)

    crime_reason: Optional[str] = Field(None, min_length=2, max_length=200)
    arrest_date: Optional[DateInput] = None
    arrest_location: Optional[str] = Field(None, min_length=2, max_length=100)
    arrested_by: Optional[str] = Field(None, max_length=100)
    arrest_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    arrival_date: Optional[DateInput] = None
    arrival_time: Optional[str] = Field(None, pattern=TIME_PATTERN)

    cell_number: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=50)

    class Config:
        str_strip_whitespace = True

    @field_validator("phone_number", mode="before")
    @classmethod
    def blank_phone_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("date_of_birth")
    @classmethod
    def birth_date_in_range(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return value
        if value < EARLIEST_BIRTH_DATE:
            raise ValueError("La date de naissance ne peut pas être avant 1940")
        if value > datetime.utcnow():
            raise ValueError("La date de naissance ne peut pas être dans le futur")
        return value


class DetaineeCreate(DetaineeBase):
    """Schema for registering a detainee. Status always starts as in_custody."""
    first_name: str = Field(..., min_length=2, max_length=20)
    last_name: str = Field(..., min_length=2, max_length=20)
    sex: SexValue
    place_of_birth: str = Field(..., min_length=2, max_length=20)
    date_of_birth: DateInput
    residence: str = Field(..., min_length=2, max_length=25)
    crime_reason: str = Field(..., min_length=2, max_length=200)
    arrest_date: DateInput
    arrest_location: str = Field(..., min_length=2, max_length=100)


class DetaineeUpdate(DetaineeBase):
    """Partial update; only the fields sent are applied."""
    status: Optional[DetaineeStatusValue] = None
    release_date: Optional[DateInput] = None
    release_reason: Optional[str] = Field(None, max_length=200)
    transfer_destination: Optional[str] = Field(None, max_length=255)

    @field_validator(
        "first_name", "last_name", "sex", "place_of_birth", "date_of_birth",
        "residence", "crime_reason", "arrest_date", "arrest_location", "status",
    )
    @classmethod
    def required_fields_not_null(cls, value):
        if value is None:
            raise ValueError("Ce champ ne peut pas être vide")
        return value


class DetaineeResponse(AuthorNames):
    id: uuid.UUID
    first_name: Optional[str]
    last_name: Optional[str]
    sex: str
    place_of_birth: Optional[str]
    date_of_birth: Optional[datetime]
    photo_url: Optional[str]
    parent_names: Optional[str]
    origin_neighborhood: Optional[str]
    education: Optional[str]
    employment: Optional[str]
    marital_status: Optional[str]
    marital_details: Optional[str]
    spouse_name: Optional[str]
    number_of_children: Optional[int]
    religion: Optional[str]
    residence: Optional[str]
    phone_number: Optional[str]
    crime_reason: Optional[str]
    arrest_date: Optional[datetime]
    arrest_location: Optional[str]
    arrested_by: Optional[str]
    arrest_time: Optional[str]
    arrival_date: Optional[datetime]
    arrival_time: Optional[str]
    cell_number: Optional[str]
    location: Optional[str]
    status: str
    release_date: Optional[datetime]
    release_reason: Optional[str]
    transfer_destination: Optional[str]
    created_by: Optional[uuid.UUID]
    updated_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class DetaineeListResponse(BaseModel):
    detainees: List[DetaineeResponse]
    pagination: PaginationMeta


class DetaineeSearchResult(BaseModel):
    """Autocomplete entry."""
    id: uuid.UUID
    first_name: Optional[str]
    last_name: Optional[str]
    status: str

    class Config:
        from_attributes = True
