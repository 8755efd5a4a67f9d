"""
Employee API Endpoints.

Employees are deactivated rather than removed. Email and employee id are unique.
"""

import uuid
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ConflictError, ResourceNotFoundError
from backend.app.db.session import atomic, get_db
from backend.app.models.employee import Employee
from backend.app.models.user import User
from backend.app.schemas.common import MAX_PAGE, MessageResponse, SortOrder, build_pagination
from backend.app.schemas.employee import (
    EmployeeCreate,
    EmployeeListResponse,
    EmployeeResponse,
    EmployeeUpdate,
)
from backend.app.services.audit import AuditAction, capture_changes, log_employee_action, row_snapshot
from backend.app.services.listing import (
    count_query,
    fetch_page,
    fetch_with_authors,
    ordering,
    search_condition,
    select_with_authors,
    to_response,
)

router = APIRouter(prefix="/employees", tags=["Employees"])

EmployeeSortField = Literal["first_name", "last_name", "email", "created_at"]

DUPLICATE_MESSAGE = "Un employé avec cet email ou ce matricule existe déjà"


async def _get_employee_or_404(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
    result = await db.execute(select(Employee).where(Employee.id == employee_id))
    employee = result.scalar_one_or_none()
    if not employee:
        raise ResourceNotFoundError("Employé", message="Employé non trouvé")
    return employee


async def _ensure_unique(
    db: AsyncSession,
    email: Optional[str],
    employee_id: Optional[str],
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    """Raise ConflictError when another employee already uses the email or employee id."""
    checks = [
        (Employee.email, email, "Cet email est déjà utilisé par un autre employé"),
        (Employee.employee_id, employee_id, "Ce matricule est déjà utilisé par un autre employé"),
    ]
    for column, value, message in checks:
        if value is None:
            continue
        query = select(Employee.id).where(column == value)
        if exclude_id is not None:
            query = query.where(Employee.id != exclude_id)
        if (await db.execute(query)).first() is not None:
            raise ConflictError(message, details={"field": column.key})


@router.get("", response_model=EmployeeListResponse)
async def list_employees(
    page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Name or email"),
    sort_by: EmployeeSortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    is_active: Optional[bool] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    conditions = []
    match = search_condition(search, Employee.first_name, Employee.last_name, Employee.email)
    if match is not None:
        conditions.append(match)
    if is_active is not None:
        conditions.append(Employee.is_active == is_active)

    query = select_with_authors(Employee).where(*conditions).order_by(ordering(Employee, sort_by, sort_order))
    rows, total = await fetch_page(db, query, count_query(Employee, conditions), page, limit)

    return EmployeeListResponse(
        employees=[to_response(EmployeeResponse, *row) for row in rows],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    row = await fetch_with_authors(db, Employee, employee_id)
    if row is None:
        raise ResourceNotFoundError("Employé", message="Employé non trouvé")
    return to_response(EmployeeResponse, *row)


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    employee_data: EmployeeCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Register an employee. Duplicate email or employee id is a conflict."""
    employee = Employee(
        **employee_data.model_dump(),
        is_active=True,
        created_by=current_user.id,
        updated_by=current_user.id,
    )

    try:
        async with atomic(db):
            await _ensure_unique(db, employee_data.email, employee_data.employee_id)
            db.add(employee)
            await db.flush()
            await log_employee_action(db, current_user, AuditAction.CREATE, employee.id, {
                "description": f"Nouvel employé enregistré: {employee.first_name} {employee.last_name}",
                "first_name": employee.first_name,
                "last_name": employee.last_name,
                "function": employee.function,
            })
    except IntegrityError:
        raise ConflictError(DUPLICATE_MESSAGE)

    await db.refresh(employee)
    return to_response(EmployeeResponse, employee, current_user.full_name, current_user.full_name)


@router.patch("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: uuid.UUID,
    employee_data: EmployeeUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    update_data = employee_data.model_dump(exclude_unset=True)

    try:
        async with atomic(db):
            employee = await _get_employee_or_404(db, employee_id)
            await _ensure_unique(
                db, update_data.get("email"), update_data.get("employee_id"), exclude_id=employee.id
            )
            previous = row_snapshot(employee)

            for field, value in update_data.items():
                setattr(employee, field, value)
            employee.updated_by = current_user.id
            employee.updated_at = func.now()
            await db.flush()

            await log_employee_action(db, current_user, AuditAction.UPDATE, employee.id, {
                "description": f"Modification de l'employé: {employee.first_name} {employee.last_name}",
                "changed": capture_changes(previous, update_data),
            })
    except IntegrityError:
        raise ConflictError(DUPLICATE_MESSAGE)

    await db.refresh(employee)
    return to_response(EmployeeResponse, *await fetch_with_authors(db, Employee, employee_id))


@router.delete("/{employee_id}", response_model=MessageResponse)
async def delete_employee(
    employee_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate an employee (soft delete)."""
    async with atomic(db):
        employee = await _get_employee_or_404(db, employee_id)
        if not employee.is_active:
            raise ConflictError("Cet employé est déjà désactivé")

        employee.is_active = False
        employee.updated_by = current_user.id
        employee.updated_at = func.now()
        await db.flush()

        await log_employee_action(db, current_user, AuditAction.DELETE, employee.id, {
            "description": f"Suppression de l'employé: {employee.first_name} {employee.last_name}",
            "first_name": employee.first_name,
            "last_name": employee.last_name,
            "soft_delete": True,
        })

    return MessageResponse(message="Employé désactivé avec succès")
