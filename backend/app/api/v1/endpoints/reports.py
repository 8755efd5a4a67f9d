"""
Report API Endpoints.
"""

import uuid
from datetime import date, datetime, timedelta
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.db.session import atomic, get_db
from backend.app.models.report import Report
from backend.app.models.user import User
from backend.app.schemas.common import MAX_PAGE, MessageResponse, SortOrder, build_pagination
from backend.app.schemas.report import (
    ReportCreate,
    ReportListResponse,
    ReportResponse,
    ReportStatsResponse,
    ReportUpdate,
)
from backend.app.services.audit import AuditAction, capture_changes, log_report_action, row_snapshot
from backend.app.services.listing import (
    count_query,
    fetch_page,
    fetch_with_authors,
    ordering,
    search_condition,
    select_with_authors,
    to_response,
)

router = APIRouter(prefix="/reports", tags=["Reports"])

ReportSortField = Literal["report_date", "title", "created_at", "updated_at"]


async def _get_report_or_404(db: AsyncSession, report_id: uuid.UUID) -> Report:
    result = await db.execute(select(Report).where(Report.id == report_id))
    report = result.scalar_one_or_none()
    if not report:
        raise ResourceNotFoundError("Rapport", message="Rapport non trouvé")
    return report


@router.get("", response_model=ReportListResponse)
async def list_reports(
    page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Title, content or location"),
    search_date: Optional[date] = Query(None, description="Reports dated on this day (YYYY-MM-DD)"),
    sort_by: ReportSortField = Query("report_date"),
    sort_order: SortOrder = Query("desc"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    conditions = []
    match = search_condition(search, Report.title, Report.content, Report.location)
    if match is not None:
        conditions.append(match)
    if search_date:
        day_start = datetime(search_date.year, search_date.month, search_date.day)
        conditions.append(Report.report_date >= day_start)
        conditions.append(Report.report_date < day_start + timedelta(days=1))

    query = select_with_authors(Report).where(*conditions).order_by(ordering(Report, sort_by, sort_order))
    rows, total = await fetch_page(db, query, count_query(Report, conditions), page, limit)

    return ReportListResponse(
        reports=[to_response(ReportResponse, *row) for row in rows],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/stats", response_model=ReportStatsResponse)
async def report_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    total = (await db.execute(select(func.count()).select_from(Report))).scalar_one()
    return ReportStatsResponse(total_reports=total)


@router.get("/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    row = await fetch_with_authors(db, Report, report_id)
    if row is None:
        raise ResourceNotFoundError("Rapport", message="Rapport non trouvé")
    return to_response(ReportResponse, *row)


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    report_data: ReportCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    report = Report(**report_data.model_dump(), created_by=current_user.id, updated_by=current_user.id)

    async with atomic(db):
        db.add(report)
        await db.flush()
        await log_report_action(db, current_user, AuditAction.CREATE, report.id, {
            "description": f"Nouveau rapport créé: {report.title}",
            "title": report.title,
            "location": report.location,
            "report_date": report.report_date,
        })

    await db.refresh(report)
    return to_response(ReportResponse, report, current_user.full_name, current_user.full_name)


@router.patch("/{report_id}", response_model=ReportResponse)
async def update_report(
    report_id: uuid.UUID,
    report_data: ReportUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    update_data = report_data.model_dump(exclude_unset=True)

    async with atomic(db):
        report = await _get_report_or_404(db, report_id)
        previous = row_snapshot(report)

        for field, value in update_data.items():
            setattr(report, field, value)
        report.updated_by = current_user.id
        report.updated_at = func.now()
        await db.flush()

        await log_report_action(db, current_user, AuditAction.UPDATE, report.id, {
            "description": f"Modification du rapport: {report.title}",
            "changed": capture_changes(previous, update_data),
        })

    await db.refresh(report)
    return to_response(ReportResponse, *await fetch_with_authors(db, Report, report_id))


@router.delete("/{report_id}", response_model=MessageResponse)
async def delete_report(
    report_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    async with atomic(db):
        report = await _get_report_or_404(db, report_id)
        details = {
            "description": f"Suppression du rapport: {report.title}",
            "title": report.title,
            "report_date": report.report_date,
        }
        await db.delete(report)
        await db.flush()
        await log_report_action(db, current_user, AuditAction.DELETE, report_id, details)

    return MessageResponse(message="Rapport supprimé avec succès")
