"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.app.api.v1.endpoints import (
    auth, users, employees, detainees, incidents,
    reports, statements, seizures, audit_logs, dashboard
)

router = APIRouter()

# Session and account administration
router.include_router(auth.router)
router.include_router(users.router)

# Records
router.include_router(employees.router)
router.include_router(detainees.router)
router.include_router(incidents.router)
router.include_router(reports.router)
router.include_router(statements.router)
router.include_router(seizures.router)

# Ledger and overview
router.include_router(audit_logs.router)
router.include_router(dashboard.router)
