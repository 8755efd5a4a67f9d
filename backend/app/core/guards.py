"""
Security guards for role-based access control.
"""

from typing import List
from fastapi import Depends
from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import InsufficientPermissionsError
from backend.app.models.enums import UserRole
from backend.app.models.user import User


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/users")
        async def list_users(current_user: User = Depends(require_role([UserRole.ADMIN]))):
            ...

    Raises:
        InsufficientPermissionsError if the user's role is not in allowed_roles
    """
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise InsufficientPermissionsError(
                message=f"Accès refusé. Rôle requis : {', '.join([r.value for r in allowed_roles])}"
            )
        return current_user

    return role_checker


require_admin = require_role([UserRole.ADMIN])


def ensure_self_or_admin(target_user_id, current_user: User) -> None:
    """Allow an action on an account only to its owner or to an admin."""
    if current_user.role == UserRole.ADMIN:
        return
    if current_user.id != target_user_id:
        raise InsufficientPermissionsError(
            message="Vous ne pouvez modifier que votre propre compte"
        )
