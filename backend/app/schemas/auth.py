"""
Authentication Pydantic schemas.

Defines request and response models for login and password reset.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from backend.app.schemas.user import PolicyPassword, UserResponse


class LoginRequest(BaseModel):
    """Login credentials."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Bearer token returned after a successful login."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class ResetTokenStatus(BaseModel):
    valid: bool
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: PolicyPassword
