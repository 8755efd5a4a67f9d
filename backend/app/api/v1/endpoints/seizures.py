"""
Seizure API Endpoints.

Seized vehicles move from in_custody to released, disposed or evidence;
each status move is logged as a status change.
"""

import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.db.session import atomic, get_db
from backend.app.models.enums import SeizureStatus
from backend.app.models.seizure import Seizure
from backend.app.models.user import User
from backend.app.schemas.common import (
    MAX_PAGE,
    MessageResponse,
    SeizureStatusValue,
    SeizureTypeValue,
    SortOrder,
    build_pagination,
)
from backend.app.schemas.seizure import (
    SeizureCreate,
    SeizureListResponse,
    SeizureResponse,
    SeizureStatsResponse,
    SeizureUpdate,
)
from backend.app.services.audit import (
    AuditAction,
    capture_changes,
    log_seizure_action,
    row_snapshot,
    update_action,
)
from backend.app.services.listing import (
    count_query,
    fetch_page,
    fetch_with_authors,
    ordering,
    search_condition,
    select_with_authors,
    to_response,
)

router = APIRouter(prefix="/seizures", tags=["Seizures"])

SeizureSortField = Literal[
    "seizure_date",
    "item_name",
    "type",
    "status",
    "created_at",
    "updated_at",
    "owner_name",
    "seizure_location",
]


async def _get_seizure_or_404(db: AsyncSession, seizure_id: uuid.UUID) -> Seizure:
    result = await db.execute(select(Seizure).where(Seizure.id == seizure_id))
    seizure = result.scalar_one_or_none()
    if not seizure:
        raise ResourceNotFoundError("Saisie", message="Saisie non trouvée")
    return seizure


@router.get("", response_model=SeizureListResponse)
async def list_seizures(
    page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Item, type, owner or location"),
    sort_by: SeizureSortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    type: Optional[SeizureTypeValue] = Query(None),
    status_filter: Optional[SeizureStatusValue] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    conditions = []
    match = search_condition(
        search, Seizure.item_name, Seizure.type, Seizure.owner_name, Seizure.seizure_location
    )
    if match is not None:
        conditions.append(match)
    if type:
        conditions.append(Seizure.type == type)
    if status_filter:
        conditions.append(Seizure.status == status_filter)

    query = select_with_authors(Seizure).where(*conditions).order_by(ordering(Seizure, sort_by, sort_order))
    rows, total = await fetch_page(db, query, count_query(Seizure, conditions), page, limit)

    return SeizureListResponse(
        seizures=[to_response(SeizureResponse, *row) for row in rows],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/stats", response_model=SeizureStatsResponse)
async def seizure_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    total = (await db.execute(select(func.count()).select_from(Seizure))).scalar_one()
    by_type = await db.execute(select(Seizure.type, func.count()).group_by(Seizure.type))
    by_status = await db.execute(select(Seizure.status, func.count()).group_by(Seizure.status))

    return SeizureStatsResponse(
        total_seizures=total,
        seizures_by_type=dict(by_type.all()),
        seizures_by_status=dict(by_status.all()),
    )


@router.get("/{seizure_id}", response_model=SeizureResponse)
async def get_seizure(
    seizure_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    row = await fetch_with_authors(db, Seizure, seizure_id)
    if row is None:
        raise ResourceNotFoundError("Saisie", message="Saisie non trouvée")
    return to_response(SeizureResponse, *row)


@router.post("", response_model=SeizureResponse, status_code=status.HTTP_201_CREATED)
async def create_seizure(
    seizure_data: SeizureCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    seizure = Seizure(
        **seizure_data.model_dump(),
        status=SeizureStatus.IN_CUSTODY.value,
        created_by=current_user.id,
        updated_by=current_user.id,
    )

    async with atomic(db):
        db.add(seizure)
        await db.flush()
        await log_seizure_action(db, current_user, AuditAction.CREATE, seizure.id, {
            "description": f"Nouvelle saisie enregistrée: {seizure.item_name}",
            "item_name": seizure.item_name,
            "type": seizure.type,
            "plate_number": seizure.plate_number,
        })

    await db.refresh(seizure)
    return to_response(SeizureResponse, seizure, current_user.full_name, current_user.full_name)


@router.patch("/{seizure_id}", response_model=SeizureResponse)
async def update_seizure(
    seizure_id: uuid.UUID,
    seizure_data: SeizureUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update a seizure; a changed ``status`` is logged as a status change."""
    update_data = seizure_data.model_dump(exclude_unset=True)

    async with atomic(db):
        seizure = await _get_seizure_or_404(db, seizure_id)
        previous = row_snapshot(seizure)

        for field, value in update_data.items():
            setattr(seizure, field, value)
        seizure.updated_by = current_user.id
        seizure.updated_at = func.now()
        await db.flush()

        changes = capture_changes(previous, update_data)
        action = update_action(changes)
        if action == AuditAction.STATUS_CHANGE:
            description = (
                f"Changement de statut de la saisie {seizure.item_name}: "
                f"{changes['status']['old']} -> {changes['status']['new']}"
            )
        else:
            description = f"Modification de la saisie: {seizure.item_name}"

        await log_seizure_action(db, current_user, action, seizure.id, {
            "description": description,
            "changed": changes,
        })

    await db.refresh(seizure)
    return to_response(SeizureResponse, *await fetch_with_authors(db, Seizure, seizure_id))


@router.delete("/{seizure_id}", response_model=MessageResponse)
async def delete_seizure(
    seizure_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    async with atomic(db):
        seizure = await _get_seizure_or_404(db, seizure_id)
        details = {
            "description": f"Suppression de la saisie: {seizure.item_name}",
            "item_name": seizure.item_name,
            "type": seizure.type,
            "status": seizure.status,
        }
        await db.delete(seizure)
        await db.flush()
        await log_seizure_action(db, current_user, AuditAction.DELETE, seizure_id, details)

    return MessageResponse(message="Saisie supprimée avec succès")
