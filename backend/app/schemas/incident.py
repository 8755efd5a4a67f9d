"""
Incident and Victim Pydantic schemas.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from backend.app.schemas.common import AuthorNames, DateInput, PaginationMeta, SexValue


class VictimInput(BaseModel):
    name: str = Field(..., min_length=1, max_length=30)
    sex: SexValue
    cause_of_death: Optional[str] = Field(None, max_length=100)

    class Config:
        str_strip_whitespace = True


class VictimResponse(BaseModel):
    id: uuid.UUID
    incident_id: uuid.UUID
    name: str
    sex: str
    cause_of_death: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class IncidentCreate(BaseModel):
    """Schema for recording an incident together with its victims."""
    incident_date: DateInput
    location: str = Field(..., min_length=1, max_length=20)
    event_type: str = Field(..., min_length=1, max_length=100)
    number_of_victims: int = Field(0, ge=0)
    victims: List[VictimInput] = Field(default_factory=list)

    class Config:
        str_strip_whitespace = True


class IncidentUpdate(BaseModel):
    """
    Partial update.

    When ``victims`` is sent, the incident's victims are replaced by the list.
    """
    incident_date: Optional[DateInput] = None
    location: Optional[str] = Field(None, min_length=1, max_length=20)
    event_type: Optional[str] = Field(None, min_length=1, max_length=100)
    number_of_victims: Optional[int] = Field(None, ge=0)
    victims: Optional[List[VictimInput]] = None

    class Config:
        str_strip_whitespace = True

    @field_validator("incident_date", "location", "event_type", "number_of_victims", "victims")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Ce champ ne peut pas être vide")
        return value


class IncidentResponse(AuthorNames):
    id: uuid.UUID
    incident_date: datetime
    location: str
    event_type: str
    number_of_victims: int
    victims: List[VictimResponse] = []
    created_by: Optional[uuid.UUID]
    updated_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class IncidentListResponse(BaseModel):
    incidents: List[IncidentResponse]
    pagination: PaginationMeta


class IncidentStatsResponse(BaseModel):
    total_incidents: int
    incidents_by_type: Dict[str, int]
    total_victims: int
