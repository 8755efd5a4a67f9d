"""
User management Pydantic schemas.

Password hashes and reset tokens never appear in responses.
"""

import uuid
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator

from backend.app.core.security import password_policy_errors
from backend.app.models.enums import UserRole
from backend.app.schemas.common import AuthorNames, PaginationMeta


def check_password_policy(value: str) -> str:
    errors = password_policy_errors(value)
    if errors:
        raise ValueError("; ".join(errors))
    return value


PolicyPassword = Annotated[str, AfterValidator(check_password_policy)]


class UserCreate(BaseModel):
    """Schema for creating a user account (admin only)."""
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: PolicyPassword
    role: UserRole = UserRole.USER

    class Config:
        str_strip_whitespace = True


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=2, max_length=100)
    last_name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    class Config:
        str_strip_whitespace = True

    @field_validator("email", "role", "is_active")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("Ce champ ne peut pas être vide")
        return value


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: PolicyPassword


class UserResponse(AuthorNames):
    id: uuid.UUID
    first_name: Optional[str]
    last_name: Optional[str]
    email: str
    role: UserRole
    is_active: bool
    is_password_set: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserListResponse(BaseModel):
    users: List[UserResponse]
    pagination: PaginationMeta


class PasswordResetLinkResponse(BaseModel):
    message: str
    reset_link: str
    expires_at: datetime
