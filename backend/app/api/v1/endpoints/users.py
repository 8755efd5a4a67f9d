"""
User management API endpoints.

Account administration is restricted to admins; a user may change their own password.
"""

import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ConflictError, ResourceNotFoundError
from backend.app.core.guards import ensure_self_or_admin, require_admin
from backend.app.core.security import (
    generate_reset_token,
    get_password_hash,
    reset_token_expiry,
    verify_password,
)
from backend.app.db.session import atomic, get_db
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.schemas.common import MAX_PAGE, MessageResponse, SortOrder, build_pagination
from backend.app.schemas.user import (
    PasswordChangeRequest,
    PasswordResetLinkResponse,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from backend.app.services.audit import AuditAction, capture_changes, log_user_action, row_snapshot
from backend.app.services.listing import (
    count_query,
    fetch_page,
    fetch_with_authors,
    ordering,
    search_condition,
    select_with_authors,
    to_response,
)

router = APIRouter(prefix="/users", tags=["Users"])

UserSortField = Literal["first_name", "last_name", "email", "created_at"]


async def _get_user_or_404(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise ResourceNotFoundError("Utilisateur", message="Utilisateur non trouvé")
    return user


async def _email_taken(db: AsyncSession, email: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    query = select(User.id).where(User.email == email)
    if exclude_id is not None:
        query = query.where(User.id != exclude_id)
    return (await db.execute(query)).first() is not None


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Name or email"),
    sort_by: UserSortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    role: Optional[UserRole] = Query(None),
    is_active: Optional[bool] = Query(None),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List user accounts (admin only)."""
    conditions = []
    match = search_condition(search, User.first_name, User.last_name, User.email)
    if match is not None:
        conditions.append(match)
    if role is not None:
        conditions.append(User.role == role)
    if is_active is not None:
        conditions.append(User.is_active == is_active)

    query = select_with_authors(User).where(*conditions).order_by(ordering(User, sort_by, sort_order))
    rows, total = await fetch_page(db, query, count_query(User, conditions), page, limit)

    return UserListResponse(
        users=[to_response(UserResponse, *row) for row in rows],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    row = await fetch_with_authors(db, User, user_id)
    if row is None:
        raise ResourceNotFoundError("Utilisateur", message="Utilisateur non trouvé")
    return to_response(UserResponse, *row)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a user account (admin only)."""
    new_user = User(
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        email=user_data.email,
        password_hash=get_password_hash(user_data.password),
        role=user_data.role,
        is_active=True,
        is_password_set=True,
        created_by=admin.id,
        updated_by=admin.id,
    )

    try:
        async with atomic(db):
            if await _email_taken(db, user_data.email):
                raise ConflictError("Un utilisateur avec cet email existe déjà")
            db.add(new_user)
            await db.flush()
            await log_user_action(db, admin, AuditAction.CREATE, new_user.id, {
                "description": f"Nouvel utilisateur créé: {new_user.email}",
                "email": new_user.email,
                "role": new_user.role,
            })
    except IntegrityError:
        raise ConflictError("Un utilisateur avec cet email existe déjà")

    await db.refresh(new_user)
    return to_response(UserResponse, new_user, admin.full_name, admin.full_name)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    user_data: UserUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    update_data = user_data.model_dump(exclude_unset=True)

    try:
        async with atomic(db):
            user = await _get_user_or_404(db, user_id)
            if "email" in update_data and await _email_taken(db, update_data["email"], exclude_id=user.id):
                raise ConflictError("Cet email est déjà utilisé par un autre utilisateur")
            previous = row_snapshot(user)

            for field, value in update_data.items():
                setattr(user, field, value)
            user.updated_by = admin.id
            user.updated_at = func.now()
            await db.flush()

            await log_user_action(db, admin, AuditAction.UPDATE, user.id, {
                "description": f"Modification de l'utilisateur: {user.email}",
                "changed": capture_changes(previous, update_data),
            })
    except IntegrityError:
        raise ConflictError("Cet email est déjà utilisé par un autre utilisateur")

    await db.refresh(user)
    return to_response(UserResponse, *await fetch_with_authors(db, User, user_id))


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate a user account (soft delete)."""
    async with atomic(db):
        user = await _get_user_or_404(db, user_id)
        user.is_active = False
        user.updated_by = admin.id
        user.updated_at = func.now()
        await db.flush()

        await log_user_action(db, admin, AuditAction.DELETE, user.id, {
            "description": f"Suppression de l'utilisateur: {user.email}",
            "email": user.email,
            "soft_delete": True,
        })

    return MessageResponse(message="Utilisateur désactivé avec succès")


@router.post("/{user_id}/password-reset", response_model=PasswordResetLinkResponse)
async def initiate_password_reset(
    user_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Issue a password reset link for a user (admin only).

    The link is returned to the admin; sending it to the user happens outside
    this service.
    """
    async with atomic(db):
        user = await _get_user_or_404(db, user_id)
        user.reset_token = generate_reset_token()
        user.reset_token_expiry = reset_token_expiry()
        user.updated_by = admin.id
        user.updated_at = func.now()
        await db.flush()

        await log_user_action(db, admin, AuditAction.PASSWORD_RESET_INITIATED, user.id, {
            "description": f"Réinitialisation du mot de passe initiée pour {user.email}",
            "email": user.email,
        })

    return PasswordResetLinkResponse(
        message="Lien de réinitialisation généré",
        reset_link=f"{settings.frontend_url}/reset-password?token={user.reset_token}",
        expires_at=user.reset_token_expiry,
    )


@router.post("/{user_id}/password", response_model=MessageResponse)
async def change_password(
    user_id: uuid.UUID,
    password_data: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Change a password after checking the current one (own account or admin)."""
    ensure_self_or_admin(user_id, current_user)

    async with atomic(db):
        user = await _get_user_or_404(db, user_id)
        if not verify_password(password_data.current_password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Le mot de passe actuel est incorrect"
            )

        user.password_hash = get_password_hash(password_data.new_password)
        user.updated_by = current_user.id
        user.updated_at = func.now()
        await db.flush()

        await log_user_action(db, current_user, AuditAction.PASSWORD_CHANGE, user.id, {
            "description": f"Changement du mot de passe de {user.email}",
        })

    return MessageResponse(message="Mot de passe modifié avec succès")
