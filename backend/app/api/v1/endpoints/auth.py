"""
Authentication API endpoints.

Provides login, current-user info and the password reset endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import AuthenticationError, InvalidTokenError
from backend.app.core.jwt import create_access_token
from backend.app.core.security import get_password_hash, is_reset_token_valid, verify_password
from backend.app.db.session import atomic, get_db
from backend.app.models.user import User
from backend.app.schemas.auth import LoginRequest, ResetPasswordRequest, ResetTokenStatus, TokenResponse
from backend.app.schemas.common import MessageResponse
from backend.app.schemas.user import UserResponse
from backend.app.services.audit import AuditAction, log_user_action

router = APIRouter(prefix="/auth", tags=["Authentication"])


async def _user_by_reset_token(db: AsyncSession, token: str):
    result = await db.execute(select(User).where(User.reset_token == token))
    user = result.scalar_one_or_none()
    if not user or not user.is_active or not is_reset_token_valid(user.reset_token_expiry):
        return None
    return user


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Login user and return JWT token.

    Successful logins are recorded in the audit log through the standalone
    writer; a failure to record never blocks the login.
    """
    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password_hash):
        raise AuthenticationError("Email ou mot de passe incorrect")

    if not user.is_active:
        raise AuthenticationError("Ce compte a été désactivé")

    if not user.is_password_set:
        raise AuthenticationError("Le mot de passe de ce compte n'a pas encore été défini")

    access_token = create_access_token(data={
        "sub": user.email,
        "user_id": str(user.id),
        "role": user.role.value,
    })

    await log_user_action(None, user, AuditAction.LOGIN, user.id, {
        "description": f"Connexion de {user.email}",
    })

    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Return the authenticated user."""
    return UserResponse.model_validate(current_user)


@router.get("/reset-password/{token}", response_model=ResetTokenStatus)
async def check_reset_token(
    token: str,
    db: AsyncSession = Depends(get_db)
):
    """Tell the reset page whether a link is still usable."""
    user = await _user_by_reset_token(db, token)
    if user is None:
        return ResetTokenStatus(valid=False)
    return ResetTokenStatus(valid=True, email=user.email)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    reset_data: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Set a new password from a reset link.

    The token is single-use: it is cleared together with the password change.
    """
    async with atomic(db):
        user = await _user_by_reset_token(db, reset_data.token)
        if user is None:
            raise InvalidTokenError()

        user.password_hash = get_password_hash(reset_data.new_password)
        user.reset_token = None
        user.reset_token_expiry = None
        user.is_password_set = True
        user.updated_by = user.id
        user.updated_at = func.now()
        await db.flush()

        await log_user_action(db, user, AuditAction.PASSWORD_RESET_COMPLETED, user.id, {
            "description": f"Réinitialisation du mot de passe terminée pour {user.email}",
            "email": user.email,
        })

    return MessageResponse(message="Mot de passe réinitialisé avec succès")
