"""
Audit log Pydantic schemas.

``AuditDetails`` is the typed shape of the ``details`` payload; it is used when
writing entries and keeps extra context fields as-is.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from backend.app.schemas.common import PaginationMeta


class FieldChange(BaseModel):
    """Old and new value of one changed field."""
    old: Any = None
    new: Any = None


class AuditDetails(BaseModel):
    """Details payload: a required description, an optional diff, any extra context."""
    description: str = Field(..., min_length=1)
    changed: Optional[Dict[str, FieldChange]] = None

    class Config:
        extra = "allow"
        str_strip_whitespace = True


class AuditLogResponse(BaseModel):
    id: int
    user_id: uuid.UUID
    action: str
    entity_type: str
    entity_id: str
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

    # Acting user
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    user_role: Optional[str] = None

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    audit_logs: List[AuditLogResponse]
    pagination: PaginationMeta


class AuditLogStatsResponse(BaseModel):
    total: int
    by_action: Dict[str, int]
    by_entity_type: Dict[str, int]
    last_7_days: int
