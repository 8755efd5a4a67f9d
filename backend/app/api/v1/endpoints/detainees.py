"""
Detainee API Endpoints.

Registration, custody status changes and removal of detainees. Every
mutation writes its audit entry in the same transaction as the row.
"""

import uuid
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ConflictError, ResourceNotFoundError
from backend.app.db.session import atomic, get_db
from backend.app.models.detainee import Detainee
from backend.app.models.enums import DetaineeStatus
from backend.app.models.statement import Statement
from backend.app.models.user import User
from backend.app.schemas.common import (
    MAX_PAGE,
    DetaineeStatusValue,
    MessageResponse,
    SortOrder,
    build_pagination,
)
from backend.app.schemas.detainee import (
    DetaineeCreate,
    DetaineeListResponse,
    DetaineeResponse,
    DetaineeSearchResult,
    DetaineeUpdate,
)
from backend.app.services.audit import (
    AuditAction,
    capture_changes,
    log_detainee_action,
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

router = APIRouter(prefix="/detainees", tags=["Detainees"])

DetaineeSortField = Literal["first_name", "last_name", "arrest_date", "created_at"]


async def _get_detainee_or_404(db: AsyncSession, detainee_id: uuid.UUID) -> Detainee:
    result = await db.execute(select(Detainee).where(Detainee.id == detainee_id))
    detainee = result.scalar_one_or_none()
    if not detainee:
        raise ResourceNotFoundError("Détenu", message="Détenu non trouvé")
    return detainee


@router.get("", response_model=DetaineeListResponse)
async def list_detainees(
    page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Name, residence or arrest location"),
    sort_by: DetaineeSortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    status_filter: Optional[DetaineeStatusValue] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List detainees with search, status filter, sorting and pagination."""
    conditions = []
    match = search_condition(
        search, Detainee.first_name, Detainee.last_name, Detainee.residence, Detainee.arrest_location
    )
    if match is not None:
        conditions.append(match)
    if status_filter:
        conditions.append(Detainee.status == status_filter)

    query = select_with_authors(Detainee).where(*conditions).order_by(ordering(Detainee, sort_by, sort_order))
    rows, total = await fetch_page(db, query, count_query(Detainee, conditions), page, limit)

    return DetaineeListResponse(
        detainees=[to_response(DetaineeResponse, *row) for row in rows],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/search", response_model=List[DetaineeSearchResult])
async def search_detainees(
    query: str = Query(..., min_length=1, description="First name, last name or full name"),
    limit: int = Query(10, ge=1, le=20),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Autocomplete used when attaching a statement to a detainee."""
    pattern = f"%{query.strip()}%"
    result = await db.execute(
        select(Detainee)
        .where(
            or_(
                Detainee.first_name.ilike(pattern),
                Detainee.last_name.ilike(pattern),
                (Detainee.first_name + " " + Detainee.last_name).ilike(pattern),
            )
        )
        .order_by(Detainee.first_name.asc())
        .limit(limit)
    )
    return [DetaineeSearchResult.model_validate(d) for d in result.scalars().all()]


@router.get("/{detainee_id}", response_model=DetaineeResponse)
async def get_detainee(
    detainee_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    row = await fetch_with_authors(db, Detainee, detainee_id)
    if row is None:
        raise ResourceNotFoundError("Détenu", message="Détenu non trouvé")
    return to_response(DetaineeResponse, *row)


@router.post("", response_model=DetaineeResponse, status_code=status.HTTP_201_CREATED)
async def create_detainee(
    detainee_data: DetaineeCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new detainee.

    The detainee starts in custody. Row and audit entry are committed together.
    """
    detainee = Detainee(
        **detainee_data.model_dump(),
        status=DetaineeStatus.IN_CUSTODY.value,
        created_by=current_user.id,
        updated_by=current_user.id,
    )

    async with atomic(db):
        db.add(detainee)
        await db.flush()
        await log_detainee_action(db, current_user, AuditAction.CREATE, detainee.id, {
            "description": f"Nouveau détenu enregistré: {detainee.first_name} {detainee.last_name}",
            "first_name": detainee.first_name,
            "last_name": detainee.last_name,
            "crime_reason": detainee.crime_reason,
            "arrest_location": detainee.arrest_location,
        })

    await db.refresh(detainee)
    return to_response(DetaineeResponse, detainee, current_user.full_name, current_user.full_name)


@router.patch("/{detainee_id}", response_model=DetaineeResponse)
async def update_detainee(
    detainee_id: uuid.UUID,
    detainee_data: DetaineeUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a detainee.

    A change of ``status`` (release, transfer) is logged as a status change.
    """
    update_data = detainee_data.model_dump(exclude_unset=True)

    async with atomic(db):
        detainee = await _get_detainee_or_404(db, detainee_id)
        previous = row_snapshot(detainee)

        for field, value in update_data.items():
            setattr(detainee, field, value)
        detainee.updated_by = current_user.id
        detainee.updated_at = func.now()
        await db.flush()

        changes = capture_changes(previous, update_data)
        action = update_action(changes)
        name = f"{detainee.first_name} {detainee.last_name}"
        if action == AuditAction.STATUS_CHANGE:
            description = (
                f"Changement de statut du détenu {name}: "
                f"{changes['status']['old']} -> {changes['status']['new']}"
            )
        else:
            description = f"Modification du détenu: {name}"

        await log_detainee_action(db, current_user, action, detainee.id, {
            "description": description,
            "changed": changes,
        })

    await db.refresh(detainee)
    return to_response(DetaineeResponse, *await fetch_with_authors(db, Detainee, detainee_id))


@router.delete("/{detainee_id}", response_model=MessageResponse)
async def delete_detainee(
    detainee_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a detainee.

    Refused while statements still reference the detainee.
    """
    async with atomic(db):
        detainee = await _get_detainee_or_404(db, detainee_id)

        statement_count = (await db.execute(
            select(func.count()).select_from(Statement).where(Statement.detainee_id == detainee.id)
        )).scalar_one()
        if statement_count:
            raise ConflictError(
                "Impossible de supprimer ce détenu: des déclarations lui sont rattachées",
                details={"statements": statement_count},
            )

        details = {
            "description": f"Suppression du détenu: {detainee.first_name} {detainee.last_name}",
            "first_name": detainee.first_name,
            "last_name": detainee.last_name,
            "status": detainee.status,
            "arrest_date": detainee.arrest_date,
        }
        await db.delete(detainee)
        await db.flush()
        await log_detainee_action(db, current_user, AuditAction.DELETE, detainee_id, details)

    return MessageResponse(message="Détenu supprimé avec succès")
