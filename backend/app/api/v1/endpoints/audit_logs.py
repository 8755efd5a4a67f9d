"""
Audit Log API Endpoints.

Read-only access to the audit ledger; entries are never updated or deleted.
"""

import uuid
from datetime import date, datetime, timedelta
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.db.session import get_db
from backend.app.models.audit_log import AuditLog
from backend.app.models.user import User
from backend.app.schemas.audit_log import AuditLogListResponse, AuditLogResponse, AuditLogStatsResponse
from backend.app.schemas.common import MAX_PAGE, SortOrder, build_pagination
from backend.app.services.audit import AuditAction, AuditEntityType
from backend.app.services.listing import full_name, ordering

router = APIRouter(prefix="/audit-logs", tags=["Audit Logs"])

AuditLogSortField = Literal["created_at", "action", "entity_type", "user_id"]


def _select_audit_logs():
    return select(AuditLog, User.first_name, User.last_name, User.email, User.role).outerjoin(
        User, User.id == AuditLog.user_id
    )


def _audit_log_response(audit_log, first_name, last_name, email, role) -> AuditLogResponse:
    return AuditLogResponse.model_validate(audit_log).model_copy(update={
        "user_name": full_name(first_name, last_name),
        "user_email": email,
        "user_role": role.value if role is not None else None,
    })


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Action, entity type or entity id"),
    sort_by: AuditLogSortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    action: Optional[AuditAction] = Query(None),
    entity_type: Optional[AuditEntityType] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    date_from: Optional[date] = Query(None, description="First day included"),
    date_to: Optional[date] = Query(None, description="Last day included"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List audit entries with the acting user's name, e-mail and role."""
    conditions = []
    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(or_(
            AuditLog.action.ilike(pattern),
            AuditLog.entity_type.ilike(pattern),
            AuditLog.entity_id.ilike(pattern),
        ))
    if action is not None:
        conditions.append(AuditLog.action == action.value)
    if entity_type is not None:
        conditions.append(AuditLog.entity_type == entity_type.value)
    if user_id is not None:
        conditions.append(AuditLog.user_id == user_id)
    if date_from is not None:
        conditions.append(AuditLog.created_at >= datetime(date_from.year, date_from.month, date_from.day))
    if date_to is not None:
        day_after = datetime(date_to.year, date_to.month, date_to.day) + timedelta(days=1)
        conditions.append(AuditLog.created_at < day_after)

    total = (await db.execute(
        select(func.count()).select_from(AuditLog).where(*conditions)
    )).scalar_one()

    # id breaks ties between entries written in the same second
    query = (
        _select_audit_logs()
        .where(*conditions)
        .order_by(ordering(AuditLog, sort_by, sort_order), ordering(AuditLog, "id", sort_order))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await db.execute(query)

    return AuditLogListResponse(
        audit_logs=[_audit_log_response(*row) for row in result.all()],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/stats", response_model=AuditLogStatsResponse)
async def audit_log_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    total = (await db.execute(select(func.count()).select_from(AuditLog))).scalar_one()
    by_action = await db.execute(select(AuditLog.action, func.count()).group_by(AuditLog.action))
    by_entity_type = await db.execute(
        select(AuditLog.entity_type, func.count()).group_by(AuditLog.entity_type)
    )
    week_ago = datetime.utcnow() - timedelta(days=7)
    last_7_days = (await db.execute(
        select(func.count()).select_from(AuditLog).where(AuditLog.created_at >= week_ago)
    )).scalar_one()

    return AuditLogStatsResponse(
        total=total,
        by_action=dict(by_action.all()),
        by_entity_type=dict(by_entity_type.all()),
        last_7_days=last_7_days,
    )


@router.get("/{audit_log_id}", response_model=AuditLogResponse)
async def get_audit_log(
    audit_log_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(_select_audit_logs().where(AuditLog.id == audit_log_id))
    row = result.first()
    if row is None:
        raise ResourceNotFoundError("Entrée d'audit", message="Entrée d'audit non trouvée")
    return _audit_log_response(*row)
