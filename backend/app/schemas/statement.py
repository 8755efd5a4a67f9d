"""
Statement Pydantic schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from backend.app.schemas.common import AuthorNames, PaginationMeta


class StatementCreate(BaseModel):
    file_url: str = Field(..., min_length=1, max_length=500)
    detainee_id: uuid.UUID


class StatementUpdate(BaseModel):
    file_url: Optional[str] = Field(None, min_length=1, max_length=500)
    detainee_id: Optional[uuid.UUID] = None

    @field_validator("file_url", "detainee_id")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Ce champ ne peut pas être vide")
        return value


class StatementResponse(AuthorNames):
    id: uuid.UUID
    file_url: str
    detainee_id: uuid.UUID
    detainee_name: Optional[str] = None
    created_by: Optional[uuid.UUID]
    updated_by: Optional[uuid.UUID]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StatementListResponse(BaseModel):
    statements: List[StatementResponse]
    pagination: PaginationMeta
