"""
Incident and Victim Tests.
"""

import pytest
from sqlalchemy import func, select

from backend.app.models.incident import Incident, Victim


@pytest.fixture
def incident_payload():
    return {
        "incident_date": "2024-03-05T14:00:00",
        "location": "Kibati",
        "event_type": "Attaque armée",
        "number_of_victims": 2,
        "victims": [
            {"name": "Amani Bahati", "sex": "Male", "cause_of_death": "Balle"},
            {"name": "Neema Furaha", "sex": "Female"},
        ],
    }


async def _create(client, headers, payload):
    response = await client.post("/v1/incidents", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def _victim_count(db_session):
    return (await db_session.execute(select(func.count()).select_from(Victim))).scalar_one()


@pytest.mark.asyncio
async def test_create_incident_with_victims(client, agent_headers, incident_payload, audit_entries):
    """TEST 1: Victims are stored with the incident and listed in the entry"""
    data = await _create(client, agent_headers, incident_payload)

    assert {v["name"] for v in data["victims"]} == {"Amani Bahati", "Neema Furaha"}
    assert all(v["incident_id"] == data["id"] for v in data["victims"])

    rows = await audit_entries(entity_type="incident")
    assert len(rows) == 1
    assert rows[0].details["description"] == "Nouvel incident enregistré: Attaque armée à Kibati"
    assert sorted(rows[0].details["victim_names"]) == ["Amani Bahati", "Neema Furaha"]


@pytest.mark.asyncio
async def test_update_replaces_victims(client, agent_headers, incident_payload, audit_entries, db_session):
    """TEST 2: Sending a victims list replaces the current victims"""
    incident = await _create(client, agent_headers, incident_payload)

    response = await client.patch(
        f"/v1/incidents/{incident['id']}",
        json={"victims": [{"name": "Espoir Kahindo", "sex": "Male"}], "location": "Kanyaruchinya"},
        headers=agent_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert [v["name"] for v in data["victims"]] == ["Espoir Kahindo"]
    assert data["location"] == "Kanyaruchinya"
    assert await _victim_count(db_session) == 1

    rows = await audit_entries(entity_type="incident", action="update")
    assert rows[0].details["victims_updated"] is True
    assert rows[0].details["changed"] == {"location": {"old": "Kibati", "new": "Kanyaruchinya"}}


@pytest.mark.asyncio
async def test_update_without_victims_keeps_them(client, agent_headers, incident_payload, db_session):
    incident = await _create(client, agent_headers, incident_payload)

    response = await client.patch(
        f"/v1/incidents/{incident['id']}", json={"event_type": "Embuscade"}, headers=agent_headers
    )

    assert response.status_code == 200
    assert len(response.json()["victims"]) == 2
    assert await _victim_count(db_session) == 2


@pytest.mark.asyncio
async def test_delete_incident_removes_victims(client, agent_headers, incident_payload, audit_entries, fetch_row, db_session):
    """TEST 3: Deleting an incident deletes its victims and logs a summary"""
    incident = await _create(client, agent_headers, incident_payload)

    response = await client.delete(f"/v1/incidents/{incident['id']}", headers=agent_headers)

    assert response.status_code == 200
    assert await fetch_row(Incident, incident["id"]) is None
    assert await _victim_count(db_session) == 0

    rows = await audit_entries(entity_type="incident", action="delete")
    details = rows[0].details
    assert details["event_type"] == "Attaque armée"
    assert details["location"] == "Kibati"
    assert details["number_of_victims"] == 2
    assert details["incident_date"].startswith("2024-03-05T14:00:00")


@pytest.mark.asyncio
async def test_delete_incident_rolls_back_when_audit_fails(
    client, failing_client, agent_headers, incident_payload, break_audit_log, fetch_row, db_session
):
    incident = await _create(client, agent_headers, incident_payload)
    break_audit_log()

    response = await failing_client.delete(f"/v1/incidents/{incident['id']}", headers=agent_headers)

    assert response.status_code == 500
    assert await fetch_row(Incident, incident["id"]) is not None
    assert await _victim_count(db_session) == 2


@pytest.mark.asyncio
async def test_add_and_remove_victim(client, agent_headers, incident_payload, audit_entries):
    """TEST 4: Victims added or removed on their own get victim entries"""
    incident = await _create(client, agent_headers, {**incident_payload, "victims": []})

    added = await client.post(
        f"/v1/incidents/{incident['id']}/victims",
        json={"name": "Baraka Mumbere", "sex": "Male", "cause_of_death": "Machette"},
        headers=agent_headers,
    )
    assert added.status_code == 201
    victim = added.json()

    removed = await client.delete(
        f"/v1/incidents/{incident['id']}/victims/{victim['id']}", headers=agent_headers
    )
    assert removed.status_code == 200

    rows = await audit_entries(entity_type="victim")
    assert [row.action for row in rows] == ["create", "delete"]
    assert rows[0].details["description"] == "Nouvelle victime enregistrée: Baraka Mumbere"
    assert rows[1].details["description"] == "Suppression de la victime: Baraka Mumbere"

    missing = await client.delete(
        f"/v1/incidents/{incident['id']}/victims/{victim['id']}", headers=agent_headers
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_list_and_stats(client, agent_headers, incident_payload):
    await _create(client, agent_headers, incident_payload)
    await _create(client, agent_headers, {**incident_payload, "event_type": "Noyade", "victims": []})

    listed = await client.get("/v1/incidents?event_type=Noyade", headers=agent_headers)
    assert listed.status_code == 200
    incidents = listed.json()["incidents"]
    assert len(incidents) == 1
    assert incidents[0]["victims"] == []

    stats = await client.get("/v1/incidents/stats", headers=agent_headers)
    data = stats.json()
    assert data["total_incidents"] == 2
    assert data["incidents_by_type"] == {"Attaque armée": 1, "Noyade": 1}
    assert data["total_victims"] == 2


@pytest.mark.asyncio
async def test_get_missing_incident(client, agent_headers):
    response = await client.get(
        "/v1/incidents/5b0c3f0e-0000-4000-8000-000000000000", headers=agent_headers
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Incident non trouvé"
