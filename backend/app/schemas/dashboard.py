"""
Dashboard Pydantic schemas.
"""

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel


class TotalCounts(BaseModel):
    detainees: int
    employees: int
    incidents: int
    reports: int
    seizures: int
    statements: int


class StatusBreakdowns(BaseModel):
    detainees: Dict[str, int]
    seizures: Dict[str, int]


class RecentCounts(BaseModel):
    """Entities created during the last 30 days."""
    detainees: int
    incidents: int
    reports: int
    seizures: int


class DashboardStats(BaseModel):
    total_counts: TotalCounts
    status_breakdowns: StatusBreakdowns
    recent_activity: RecentCounts


class RecentActivity(BaseModel):
    id: uuid.UUID
    type: str
    title: Optional[str]
    description: Optional[str]
    created_at: datetime
    created_by_name: Optional[str]


class DailyCount(BaseModel):
    date: str
    count: int


class WeeklyStats(BaseModel):
    detainees: List[DailyCount]
    incidents: List[DailyCount]
