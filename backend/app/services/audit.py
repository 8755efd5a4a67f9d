"""
Audit logging service for tracking every change made to the records.

Provides the change-capture utility, the two audit writers and the
per-entity action helpers used by the mutation handlers.

Two ways to write an entry:

- ``record_audit_log`` joins the caller's transaction. If the insert fails,
  the error propagates and the surrounding ``atomic`` block rolls back the
  entity write as well.
- ``create_audit_log`` is standalone: it opens its own session and never lets
  a failure reach the caller. The error is logged and swallowed.
"""

import enum
import logging
import uuid
from typing import Any, Dict, Optional, Union

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import session as db_session
from backend.app.models.audit_log import AuditLog
from backend.app.models.user import User
from backend.app.schemas.audit_log import AuditDetails

logger = logging.getLogger("dsr.audit")


class AuditAction(str, enum.Enum):
    """Standardized audit action values."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    STATUS_CHANGE = "status_change"
    PASSWORD_RESET_INITIATED = "password_reset_initiated"
    PASSWORD_RESET_COMPLETED = "password_reset_completed"

    # Session and bulk events
    LOGIN = "login"
    LOGOUT = "logout"
    PASSWORD_CHANGE = "password_change"
    BULK_UPDATE = "bulk_update"
    EXPORT = "export"
    IMPORT = "import"


class AuditEntityType(str, enum.Enum):
    USER = "user"
    EMPLOYEE = "employee"
    DETAINEE = "detainee"
    INCIDENT = "incident"
    REPORT = "report"
    STATEMENT = "statement"
    SEIZURE = "seizure"
    VICTIM = "victim"


ACTION_LABELS = {
    AuditAction.CREATE: "Création",
    AuditAction.UPDATE: "Modification",
    AuditAction.DELETE: "Suppression",
    AuditAction.STATUS_CHANGE: "Changement de statut",
    AuditAction.PASSWORD_RESET_INITIATED: "Réinitialisation de mot de passe initiée",
    AuditAction.PASSWORD_RESET_COMPLETED: "Réinitialisation de mot de passe terminée",
    AuditAction.LOGIN: "Connexion",
    AuditAction.LOGOUT: "Déconnexion",
    AuditAction.PASSWORD_CHANGE: "Changement de mot de passe",
    AuditAction.BULK_UPDATE: "Modification groupée",
    AuditAction.EXPORT: "Export",
    AuditAction.IMPORT: "Import",
}

ENTITY_LABELS = {
    AuditEntityType.USER: "d'un utilisateur",
    AuditEntityType.EMPLOYEE: "d'un employé",
    AuditEntityType.DETAINEE: "d'un détenu",
    AuditEntityType.INCIDENT: "d'un incident",
    AuditEntityType.REPORT: "d'un rapport",
    AuditEntityType.STATEMENT: "d'une déclaration",
    AuditEntityType.SEIZURE: "d'une saisie",
    AuditEntityType.VICTIM: "d'une victime",
}


def default_description(action: AuditAction, entity_type: AuditEntityType) -> str:
    """French fallback description, e.g. ``"Création d'un détenu"``."""
    action = AuditAction(action)
    entity_type = AuditEntityType(entity_type)
    return f"{ACTION_LABELS[action]} {ENTITY_LABELS[entity_type]}"


def capture_changes(old_data: Dict[str, Any], new_data: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """
    Diff two flat records.

    Every key of ``new_data`` whose value differs from the value under the same
    key in ``old_data`` is reported as ``{"old": ..., "new": ...}``. Keys only
    present in ``old_data`` are ignored; a key missing from ``old_data`` has an
    old value of None. Values are compared with ``!=``, so two datetimes for
    the same instant are equal.

    Neither input is modified. Returns an empty dict when nothing changed.
    """
    changes = {}
    for key, new_value in new_data.items():
        old_value = old_data.get(key)
        if old_value != new_value:
            changes[key] = {"old": old_value, "new": new_value}
    return changes


def row_snapshot(obj) -> Dict[str, Any]:
    """Current column values of an ORM object, keyed by attribute name."""
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def update_action(changes: Dict[str, Any]) -> AuditAction:
    """An update touching ``status`` is recorded as a status change."""
    if "status" in changes:
        return AuditAction.STATUS_CHANGE
    return AuditAction.UPDATE


def _serialize_details(details: Dict[str, Any]) -> Dict[str, Any]:
    # Validates the description and makes every value JSON-safe
    return AuditDetails.model_validate(details).model_dump(mode="json", exclude_unset=True)


async def record_audit_log(
    db: AsyncSession,
    user_id: uuid.UUID,
    action: Union[AuditAction, str],
    entity_type: Union[AuditEntityType, str],
    entity_id: Any,
    details: Dict[str, Any],
) -> AuditLog:
    """
    Add an audit entry to the caller's transaction.

    The entry is flushed but not committed; the caller commits it together
    with the entity write. Errors propagate.

    Args:
        db: Database session of the running unit of work
        user_id: Acting principal
        action: AuditAction value
        entity_type: AuditEntityType value
        entity_id: Identifier of the affected row (stored as text)
        details: Payload with a non-empty ``description``

    Returns:
        The pending AuditLog instance
    """
    audit_log = AuditLog(
        user_id=user_id,
        action=AuditAction(action).value,
        entity_type=AuditEntityType(entity_type).value,
        entity_id=str(entity_id),
        details=_serialize_details(details),
    )
    db.add(audit_log)
    await db.flush()
    return audit_log


async def create_audit_log(
    user_id: uuid.UUID,
    action: Union[AuditAction, str],
    entity_type: Union[AuditEntityType, str],
    entity_id: Any,
    details: Dict[str, Any],
) -> None:
    """
    Write an audit entry in its own session, fire-and-forget.

    Any failure is logged on the ``dsr.audit`` logger and swallowed, so
    the caller carries on as if the write had succeeded.
    """
    try:
        async with db_session.AsyncSessionLocal() as session:
            await record_audit_log(session, user_id, action, entity_type, entity_id, details)
            await session.commit()
    except Exception:
        logger.exception(
            "Failed to write audit log",
            extra={"action": str(action), "entity_type": str(entity_type), "entity_id": str(entity_id)},
        )


async def log_entity_action(
    db: Optional[AsyncSession],
    acting_user: Union[User, uuid.UUID],
    entity_type: AuditEntityType,
    action: AuditAction,
    entity_id: Any,
    details: Optional[Dict[str, Any]] = None,
) -> Optional[AuditLog]:
    """
    Log an action on one entity, filling in the default description.

    With a session the entry joins its transaction; without one it goes
    through the standalone writer.
    """
    payload = dict(details or {})
    if not (payload.get("description") or "").strip():
        payload["description"] = default_description(action, entity_type)

    user_id = acting_user.id if isinstance(acting_user, User) else acting_user

    if db is None:
        await create_audit_log(user_id, action, entity_type, entity_id, payload)
        return None
    return await record_audit_log(db, user_id, action, entity_type, entity_id, payload)


def _entity_logger(entity_type: AuditEntityType):
    async def log_action(
        db: Optional[AsyncSession],
        acting_user: Union[User, uuid.UUID],
        action: AuditAction,
        entity_id: Any,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        return await log_entity_action(db, acting_user, entity_type, action, entity_id, details)

    log_action.__name__ = f"log_{entity_type.value}_action"
    log_action.__doc__ = f"Log an action on a {entity_type.value} (see log_entity_action)."
    return log_action


log_user_action = _entity_logger(AuditEntityType.USER)
log_employee_action = _entity_logger(AuditEntityType.EMPLOYEE)
log_detainee_action = _entity_logger(AuditEntityType.DETAINEE)
log_incident_action = _entity_logger(AuditEntityType.INCIDENT)
log_report_action = _entity_logger(AuditEntityType.REPORT)
log_statement_action = _entity_logger(AuditEntityType.STATEMENT)
log_seizure_action = _entity_logger(AuditEntityType.SEIZURE)
log_victim_action = _entity_logger(AuditEntityType.VICTIM)
