"""
Report Pydantic schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from backend.app.schemas.common import AuthorNames, DateInput, PaginationMeta


class ReportCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    report_date: DateInput

    class Config:
        str_strip_whitespace = True


class ReportUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    report_date: Optional[DateInput] = None

    class Config:
        str_strip_whitespace = True

    @field_validator("title", "report_date")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Ce champ ne peut pas être vide")
        return value


class ReportResponse(AuthorNames):
    id: uuid.UUID
    title: str
    content: Optional[str]
    location: Optional[str]
    report_date: datetime
    created_by: Optional[uuid.UUID]
    updated_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReportListResponse(BaseModel):
    reports: List[ReportResponse]
    pagination: PaginationMeta


class ReportStatsResponse(BaseModel):
    total_reports: int
