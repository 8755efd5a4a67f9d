"""
Seizure Pydantic schemas.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from backend.app.schemas.common import (
    AuthorNames,
    DateInput,
    PaginationMeta,
    SeizureStatusValue,
    SeizureTypeValue,
)


class SeizureCreate(BaseModel):
    """Schema for recording a seized vehicle. Status starts as in_custody."""
    item_name: str = Field(..., min_length=1, max_length=255)
    type: SeizureTypeValue
    seizure_location: Optional[str] = Field(None, max_length=255)
    chassis_number: Optional[str] = Field(None, max_length=100)
    plate_number: Optional[str] = Field(None, max_length=50)
    owner_name: Optional[str] = Field(None, max_length=255)
    owner_residence: Optional[str] = Field(None, max_length=255)
    seizure_date: DateInput

    class Config:
        str_strip_whitespace = True


class SeizureUpdate(BaseModel):
    item_name: Optional[str] = Field(None, min_length=1, max_length=255)
    type: Optional[SeizureTypeValue] = None
    seizure_location: Optional[str] = Field(None, max_length=255)
    chassis_number: Optional[str] = Field(None, max_length=100)
    plate_number: Optional[str] = Field(None, max_length=50)
    owner_name: Optional[str] = Field(None, max_length=255)
    owner_residence: Optional[str] = Field(None, max_length=255)
    seizure_date: Optional[DateInput] = None
    status: Optional[SeizureStatusValue] = None
    release_date: Optional[DateInput] = None

    class Config:
        str_strip_whitespace = True

    @field_validator("item_name", "type", "seizure_date", "status")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Ce champ ne peut pas être vide")
        return value


class SeizureResponse(AuthorNames):
    id: uuid.UUID
    item_name: str
    type: str
    seizure_location: Optional[str]
    chassis_number: Optional[str]
    plate_number: Optional[str]
    owner_name: Optional[str]
    owner_residence: Optional[str]
    seizure_date: datetime
    status: str
    release_date: Optional[datetime]
    created_by: Optional[uuid.UUID]
    updated_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SeizureListResponse(BaseModel):
    seizures: List[SeizureResponse]
    pagination: PaginationMeta


class SeizureStatsResponse(BaseModel):
    total_seizures: int
    seizures_by_type: Dict[str, int]
    seizures_by_status: Dict[str, int]
