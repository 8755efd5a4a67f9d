"""
Shared Pydantic types: pagination envelope, date parsing and closed value sets.
"""

import math
from datetime import date, datetime, timezone
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, BeforeValidator

# Closed value sets accepted by the forms
SexValue = Literal["Male", "Female"]
MaritalStatusValue = Literal["Célibataire", "Marié(e)", "Divorcé(e)", "Veuf(ve)"]
DetaineeStatusValue = Literal["in_custody", "released", "transferred"]
SeizureTypeValue = Literal["car", "motorcycle"]
SeizureStatusValue = Literal["in_custody", "released", "disposed", "evidence"]
SortOrder = Literal["asc", "desc"]

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"
PHONE_PATTERN = r"^\+[1-9]\d{1,3}[0-9]{6,12}$"

# Keeps (page - 1) * limit inside a 64-bit OFFSET
MAX_PAGE = 1_000_000


def _parse_datetime(value):
    """Accept ISO dates/datetimes and store them as naive UTC."""
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError("Date invalide")
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return value


DateInput = Annotated[datetime, BeforeValidator(_parse_datetime)]


class PaginationMeta(BaseModel):
    """Offset pagination metadata returned with every list."""
    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


def build_pagination(page: int, limit: int, total_items: int) -> PaginationMeta:
    total_pages = math.ceil(total_items / limit)
    return PaginationMeta(
        page=page,
        limit=limit,
        total_items=total_items,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
    )


class AuthorNames(BaseModel):
    """Display names resolved from created_by / updated_by."""
    created_by_name: Optional[str] = None
    updated_by_name: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
