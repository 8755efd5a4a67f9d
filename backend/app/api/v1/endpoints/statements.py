"""
Statement API Endpoints.

A statement is the recorded document of a detainee's declaration; the file
itself is stored by the upload utility and only its path is kept here.
"""

import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.db.session import atomic, get_db
from backend.app.models.detainee import Detainee
from backend.app.models.statement import Statement
from backend.app.models.user import User
from backend.app.schemas.common import MAX_PAGE, MessageResponse, SortOrder, build_pagination
from backend.app.schemas.statement import (
    StatementCreate,
    StatementListResponse,
    StatementResponse,
    StatementUpdate,
)
from backend.app.services.audit import AuditAction, capture_changes, log_statement_action, row_snapshot
from backend.app.services.listing import (
    fetch_page,
    full_name,
    ordering,
    search_condition,
    select_with_authors,
    to_response,
)

router = APIRouter(prefix="/statements", tags=["Statements"])

StatementSortField = Literal["created_at", "updated_at", "file_url"]


def _select_statements():
    return select_with_authors(Statement, Detainee.first_name, Detainee.last_name).outerjoin(
        Detainee, Detainee.id == Statement.detainee_id
    )


def _statement_response(statement, created_by_name, updated_by_name, first_name, last_name) -> StatementResponse:
    return to_response(
        StatementResponse, statement, created_by_name, updated_by_name,
        detainee_name=full_name(first_name, last_name),
    )


async def _get_statement_or_404(db: AsyncSession, statement_id: uuid.UUID) -> Statement:
    result = await db.execute(select(Statement).where(Statement.id == statement_id))
    statement = result.scalar_one_or_none()
    if not statement:
        raise ResourceNotFoundError("Déclaration", message="Déclaration non trouvée")
    return statement


async def _ensure_detainee_exists(db: AsyncSession, detainee_id: uuid.UUID) -> None:
    result = await db.execute(select(Detainee.id).where(Detainee.id == detainee_id))
    if result.first() is None:
        raise ResourceNotFoundError("Détenu", message="Détenu non trouvé")


async def _load_response(db: AsyncSession, statement_id: uuid.UUID) -> StatementResponse:
    result = await db.execute(_select_statements().where(Statement.id == statement_id))
    row = result.first()
    if row is None:
        raise ResourceNotFoundError("Déclaration", message="Déclaration non trouvée")
    statement, c_first, c_last, u_first, u_last, d_first, d_last = row
    return _statement_response(
        statement, full_name(c_first, c_last), full_name(u_first, u_last), d_first, d_last
    )


@router.get("", response_model=StatementListResponse)
async def list_statements(
    page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="File path or detainee name"),
    detainee_id: Optional[uuid.UUID] = Query(None),
    sort_by: StatementSortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List statements with the name of the detainee each belongs to."""
    conditions = []
    match = search_condition(
        search,
        Statement.file_url,
        Detainee.first_name,
        Detainee.last_name,
        Detainee.first_name + " " + Detainee.last_name,
    )
    if match is not None:
        conditions.append(match)
    if detainee_id:
        conditions.append(Statement.detainee_id == detainee_id)

    query = _select_statements().where(*conditions).order_by(ordering(Statement, sort_by, sort_order))
    count = (
        select(func.count())
        .select_from(Statement)
        .outerjoin(Detainee, Detainee.id == Statement.detainee_id)
        .where(*conditions)
    )
    rows, total = await fetch_page(db, query, count, page, limit)

    return StatementListResponse(
        statements=[_statement_response(*row) for row in rows],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/{statement_id}", response_model=StatementResponse)
async def get_statement(
    statement_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await _load_response(db, statement_id)


@router.post("", response_model=StatementResponse, status_code=status.HTTP_201_CREATED)
async def create_statement(
    statement_data: StatementCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a statement for an existing detainee."""
    statement = Statement(**statement_data.model_dump(), created_by=current_user.id, updated_by=current_user.id)

    async with atomic(db):
        await _ensure_detainee_exists(db, statement_data.detainee_id)
        db.add(statement)
        await db.flush()
        await log_statement_action(db, current_user, AuditAction.CREATE, statement.id, {
            "description": "Nouvelle déclaration enregistrée",
            "detainee_id": statement.detainee_id,
            "file_url": statement.file_url,
        })

    await db.refresh(statement)
    return await _load_response(db, statement.id)


@router.patch("/{statement_id}", response_model=StatementResponse)
async def update_statement(
    statement_id: uuid.UUID,
    statement_data: StatementUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    update_data = statement_data.model_dump(exclude_unset=True)

    async with atomic(db):
        statement = await _get_statement_or_404(db, statement_id)
        if "detainee_id" in update_data:
            await _ensure_detainee_exists(db, update_data["detainee_id"])
        previous = row_snapshot(statement)

        for field, value in update_data.items():
            setattr(statement, field, value)
        statement.updated_by = current_user.id
        statement.updated_at = func.now()
        await db.flush()

        await log_statement_action(db, current_user, AuditAction.UPDATE, statement.id, {
            "description": "Modification de la déclaration",
            "changed": capture_changes(previous, update_data),
        })

    await db.refresh(statement)
    return await _load_response(db, statement_id)


@router.delete("/{statement_id}", response_model=MessageResponse)
async def delete_statement(
    statement_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    async with atomic(db):
        statement = await _get_statement_or_404(db, statement_id)
        details = {
            "description": "Suppression de la déclaration",
            "detainee_id": statement.detainee_id,
            "file_url": statement.file_url,
        }
        await db.delete(statement)
        await db.flush()
        await log_statement_action(db, current_user, AuditAction.DELETE, statement_id, details)

    return MessageResponse(message="Déclaration supprimée avec succès")
