"""
Incident API Endpoints.

Incidents carry their victims. Deleting an incident removes its victims.
"""

import uuid
from collections import defaultdict
from typing import Dict, List, Literal, Optional, Sequence

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.db.session import atomic, get_db
from backend.app.models.incident import Incident, Victim
from backend.app.models.user import User
from backend.app.schemas.common import MAX_PAGE, MessageResponse, SortOrder, build_pagination
from backend.app.schemas.incident import (
    IncidentCreate,
    IncidentListResponse,
    IncidentResponse,
    IncidentStatsResponse,
    IncidentUpdate,
    VictimInput,
    VictimResponse,
)
from backend.app.services.audit import (
    AuditAction,
    capture_changes,
    log_incident_action,
    log_victim_action,
    row_snapshot,
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

router = APIRouter(prefix="/incidents", tags=["Incidents"])

IncidentSortField = Literal["incident_date", "location", "event_type", "created_at"]


async def _get_incident_or_404(db: AsyncSession, incident_id: uuid.UUID) -> Incident:
    result = await db.execute(select(Incident).where(Incident.id == incident_id))
    incident = result.scalar_one_or_none()
    if not incident:
        raise ResourceNotFoundError("Incident", message="Incident non trouvé")
    return incident


async def _victims_by_incident(db: AsyncSession, incident_ids: Sequence[uuid.UUID]) -> Dict[uuid.UUID, List[Victim]]:
    grouped = defaultdict(list)
    if not incident_ids:
        return grouped
    result = await db.execute(
        select(Victim).where(Victim.incident_id.in_(incident_ids)).order_by(Victim.created_at.asc())
    )
    for victim in result.scalars().all():
        grouped[victim.incident_id].append(victim)
    return grouped


def _incident_response(incident, created_by_name, updated_by_name, victims) -> IncidentResponse:
    return to_response(
        IncidentResponse, incident, created_by_name, updated_by_name,
        victims=[VictimResponse.model_validate(v) for v in victims],
    )


def _new_victims(incident_id: uuid.UUID, victims: List[VictimInput], user_id: uuid.UUID) -> List[Victim]:
    return [
        Victim(
            incident_id=incident_id,
            name=victim.name,
            sex=victim.sex,
            cause_of_death=victim.cause_of_death,
            created_by=user_id,
            updated_by=user_id,
        )
        for victim in victims
    ]


async def _load_response(db: AsyncSession, incident_id: uuid.UUID) -> IncidentResponse:
    incident, created_by_name, updated_by_name = await fetch_with_authors(db, Incident, incident_id)
    victims = await _victims_by_incident(db, [incident_id])
    return _incident_response(incident, created_by_name, updated_by_name, victims[incident_id])


@router.get("", response_model=IncidentListResponse)
async def list_incidents(
    page: int = Query(1, ge=1, le=MAX_PAGE, description="Page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    search: Optional[str] = Query(None, description="Location or event type"),
    sort_by: IncidentSortField = Query("created_at"),
    sort_order: SortOrder = Query("desc"),
    event_type: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List incidents, each with its victims."""
    conditions = []
    match = search_condition(search, Incident.location, Incident.event_type)
    if match is not None:
        conditions.append(match)
    if event_type:
        conditions.append(Incident.event_type == event_type)

    query = select_with_authors(Incident).where(*conditions).order_by(ordering(Incident, sort_by, sort_order))
    rows, total = await fetch_page(db, query, count_query(Incident, conditions), page, limit)
    victims = await _victims_by_incident(db, [row[0].id for row in rows])

    return IncidentListResponse(
        incidents=[
            _incident_response(incident, created_by_name, updated_by_name, victims[incident.id])
            for incident, created_by_name, updated_by_name in rows
        ],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/stats", response_model=IncidentStatsResponse)
async def incident_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    total = (await db.execute(select(func.count()).select_from(Incident))).scalar_one()
    by_type = await db.execute(
        select(Incident.event_type, func.count()).group_by(Incident.event_type)
    )
    total_victims = (await db.execute(select(func.count()).select_from(Victim))).scalar_one()

    return IncidentStatsResponse(
        total_incidents=total,
        incidents_by_type={event_type: count for event_type, count in by_type.all()},
        total_victims=total_victims,
    )


@router.get("/{incident_id}", response_model=IncidentResponse)
async def get_incident(
    incident_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await _get_incident_or_404(db, incident_id)
    return await _load_response(db, incident_id)


@router.post("", response_model=IncidentResponse, status_code=status.HTTP_201_CREATED)
async def create_incident(
    incident_data: IncidentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record an incident with its victims."""
    incident = Incident(
        **incident_data.model_dump(exclude={"victims"}),
        created_by=current_user.id,
        updated_by=current_user.id,
    )

    async with atomic(db):
        db.add(incident)
        await db.flush()
        db.add_all(_new_victims(incident.id, incident_data.victims, current_user.id))
        await db.flush()

        await log_incident_action(db, current_user, AuditAction.CREATE, incident.id, {
            "description": f"Nouvel incident enregistré: {incident.event_type} à {incident.location}",
            "event_type": incident.event_type,
            "location": incident.location,
            "number_of_victims": incident.number_of_victims,
            "victim_names": [v.name for v in incident_data.victims],
        })

    await db.refresh(incident)
    return await _load_response(db, incident.id)


@router.patch("/{incident_id}", response_model=IncidentResponse)
async def update_incident(
    incident_id: uuid.UUID,
    incident_data: IncidentUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update an incident; a ``victims`` list replaces the current victims."""
    update_data = incident_data.model_dump(exclude_unset=True, exclude={"victims"})
    replace_victims = incident_data.victims is not None

    async with atomic(db):
        incident = await _get_incident_or_404(db, incident_id)
        previous = row_snapshot(incident)

        for field, value in update_data.items():
            setattr(incident, field, value)
        incident.updated_by = current_user.id
        incident.updated_at = func.now()

        if replace_victims:
            await db.execute(delete(Victim).where(Victim.incident_id == incident_id))
            db.add_all(_new_victims(incident_id, incident_data.victims, current_user.id))
        await db.flush()

        await log_incident_action(db, current_user, AuditAction.UPDATE, incident.id, {
            "description": f"Modification de l'incident: {incident.event_type} à {incident.location}",
            "changed": capture_changes(previous, update_data),
            "victims_updated": replace_victims,
        })

    await db.refresh(incident)
    return await _load_response(db, incident_id)


@router.delete("/{incident_id}", response_model=MessageResponse)
async def delete_incident(
    incident_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete an incident and its victims."""
    async with atomic(db):
        incident = await _get_incident_or_404(db, incident_id)
        details = {
            "description": f"Suppression de l'incident: {incident.event_type} à {incident.location}",
            "event_type": incident.event_type,
            "location": incident.location,
            "number_of_victims": incident.number_of_victims,
            "incident_date": incident.incident_date,
        }

        await db.execute(delete(Victim).where(Victim.incident_id == incident_id))
        await db.delete(incident)
        await db.flush()
        await log_incident_action(db, current_user, AuditAction.DELETE, incident_id, details)

    return MessageResponse(message="Incident supprimé avec succès")


@router.post("/{incident_id}/victims", response_model=VictimResponse, status_code=status.HTTP_201_CREATED)
async def add_victim(
    incident_id: uuid.UUID,
    victim_data: VictimInput,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    async with atomic(db):
        incident = await _get_incident_or_404(db, incident_id)
        victim = _new_victims(incident.id, [victim_data], current_user.id)[0]
        db.add(victim)
        await db.flush()

        await log_victim_action(db, current_user, AuditAction.CREATE, victim.id, {
            "description": f"Nouvelle victime enregistrée: {victim.name}",
            "incident_id": incident.id,
            "name": victim.name,
        })

    await db.refresh(victim)
    return VictimResponse.model_validate(victim)


@router.delete("/{incident_id}/victims/{victim_id}", response_model=MessageResponse)
async def remove_victim(
    incident_id: uuid.UUID,
    victim_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    async with atomic(db):
        result = await db.execute(
            select(Victim).where(Victim.id == victim_id, Victim.incident_id == incident_id)
        )
        victim = result.scalar_one_or_none()
        if not victim:
            raise ResourceNotFoundError("Victime", message="Victime non trouvée")

        details = {
            "description": f"Suppression de la victime: {victim.name}",
            "incident_id": incident_id,
            "name": victim.name,
        }
        await db.delete(victim)
        await db.flush()
        await log_victim_action(db, current_user, AuditAction.DELETE, victim_id, details)

    return MessageResponse(message="Victime supprimée avec succès")
