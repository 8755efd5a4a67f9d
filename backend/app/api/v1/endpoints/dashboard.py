"""
Dashboard API Endpoints.

Aggregate counts and recent activity across the records.
"""

from datetime import datetime, timedelta
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.db.session import get_db
from backend.app.models.detainee import Detainee
from backend.app.models.employee import Employee
from backend.app.models.incident import Incident
from backend.app.models.report import Report
from backend.app.models.seizure import Seizure
from backend.app.models.statement import Statement
from backend.app.models.user import User
from backend.app.schemas.dashboard import (
    DailyCount,
    DashboardStats,
    RecentActivity,
    RecentCounts,
    StatusBreakdowns,
    TotalCounts,
    WeeklyStats,
)
from backend.app.services.listing import Creator, full_name

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

RECENT_ACTIVITY_LIMIT = 10


async def _count(db: AsyncSession, model, *conditions) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*conditions))
    return result.scalar_one()


async def _status_breakdown(db: AsyncSession, model) -> dict:
    result = await db.execute(select(model.status, func.count()).group_by(model.status))
    return dict(result.all())


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Entity totals, status breakdowns and 30-day counts.

    Only active employees are counted.
    """
    since = datetime.utcnow() - timedelta(days=30)

    return DashboardStats(
        total_counts=TotalCounts(
            detainees=await _count(db, Detainee),
            employees=await _count(db, Employee, Employee.is_active.is_(True)),
            incidents=await _count(db, Incident),
            reports=await _count(db, Report),
            seizures=await _count(db, Seizure),
            statements=await _count(db, Statement),
        ),
        status_breakdowns=StatusBreakdowns(
            detainees=await _status_breakdown(db, Detainee),
            seizures=await _status_breakdown(db, Seizure),
        ),
        recent_activity=RecentCounts(
            detainees=await _count(db, Detainee, Detainee.created_at >= since),
            incidents=await _count(db, Incident, Incident.created_at >= since),
            reports=await _count(db, Report, Report.created_at >= since),
            seizures=await _count(db, Seizure, Seizure.created_at >= since),
        ),
    )


@router.get("/recent-activities", response_model=List[RecentActivity])
async def recent_activities(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Most recent detainees, incidents, reports and seizures, newest first."""
    sources = [
        ("detainee", Detainee, (Detainee.first_name, Detainee.last_name), Detainee.crime_reason),
        ("incident", Incident, (Incident.event_type,), Incident.location),
        ("report", Report, (Report.title,), Report.location),
        ("seizure", Seizure, (Seizure.item_name,), Seizure.seizure_location),
    ]

    activities = []
    for activity_type, model, title_columns, description_column in sources:
        result = await db.execute(
            select(
                model.id,
                model.created_at,
                description_column,
                Creator.first_name,
                Creator.last_name,
                *title_columns,
            )
            .outerjoin(Creator, Creator.id == model.created_by)
            .order_by(model.created_at.desc())
            .limit(RECENT_ACTIVITY_LIMIT)
        )
        for entity_id, created_at, description, c_first, c_last, *title_parts in result.all():
            activities.append(RecentActivity(
                id=entity_id,
                type=activity_type,
                title=" ".join(part for part in title_parts if part) or None,
                description=description,
                created_at=created_at,
                created_by_name=full_name(c_first, c_last),
            ))

    activities.sort(key=lambda activity: activity.created_at, reverse=True)
    return activities[:RECENT_ACTIVITY_LIMIT]


@router.get("/weekly-stats", response_model=WeeklyStats)
async def weekly_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Per-day creation counts over the last 7 days."""
    since = datetime.utcnow() - timedelta(days=7)

    async def daily_counts(model) -> List[DailyCount]:
        day = func.date(model.created_at)
        result = await db.execute(
            select(day, func.count()).where(model.created_at >= since).group_by(day).order_by(day)
        )
        return [DailyCount(date=str(value), count=count) for value, count in result.all()]

    return WeeklyStats(
        detainees=await daily_counts(Detainee),
        incidents=await daily_counts(Incident),
    )
