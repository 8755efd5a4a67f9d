"""
Enumerations shared by models, schemas and services.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Manages user accounts
        USER: Records agent (default role)
    """
    ADMIN = "admin"
    USER = "user"


class DetaineeStatus(str, enum.Enum):
    """Custody status of a detainee."""
    IN_CUSTODY = "in_custody"
    RELEASED = "released"
    TRANSFERRED = "transferred"


class SeizureStatus(str, enum.Enum):
    """Status of a seized item."""
    IN_CUSTODY = "in_custody"
    RELEASED = "released"
    DISPOSED = "disposed"
    EVIDENCE = "evidence"
