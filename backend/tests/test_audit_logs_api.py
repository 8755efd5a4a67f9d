"""
Audit Log API Tests.

The ledger is read-only through the API.
"""

from datetime import datetime, timedelta

import pytest


async def _seed(client, headers, detainee_payload, seizure_payload):
    detainee = (await client.post("/v1/detainees", json=detainee_payload, headers=headers)).json()
    await client.patch(f"/v1/detainees/{detainee['id']}", json={"status": "released"}, headers=headers)
    seizure = (await client.post("/v1/seizures", json=seizure_payload, headers=headers)).json()
    await client.delete(f"/v1/seizures/{seizure['id']}", headers=headers)
    return detainee, seizure


@pytest.mark.asyncio
async def test_list_includes_acting_user(client, agent_headers, detainee_payload, seizure_payload):
    """TEST 1: Entries come back newest first with the acting user's details"""
    await _seed(client, agent_headers, detainee_payload, seizure_payload)

    response = await client.get("/v1/audit-logs?entity_type=detainee", headers=agent_headers)

    assert response.status_code == 200
    entries = response.json()["audit_logs"]
    assert [e["action"] for e in entries] == ["status_change", "create"]
    assert entries[0]["user_name"] == "Paul Kabila"
    assert entries[0]["user_email"] == "agent@dsr.cd"
    assert entries[0]["user_role"] == "user"


@pytest.mark.asyncio
async def test_filters(client, agent_headers, agent_user, detainee_payload, seizure_payload):
    """TEST 2: Action, user and date filters narrow the ledger"""
    await _seed(client, agent_headers, detainee_payload, seizure_payload)

    deletes = await client.get("/v1/audit-logs?action=delete", headers=agent_headers)
    assert [e["entity_type"] for e in deletes.json()["audit_logs"]] == ["seizure"]

    mine = await client.get(f"/v1/audit-logs?user_id={agent_user.id}", headers=agent_headers)
    # login + detainee create + status change + seizure create + seizure delete
    assert mine.json()["pagination"]["total_items"] == 5

    today = datetime.utcnow().date().isoformat()
    in_range = await client.get(
        f"/v1/audit-logs?date_from={today}&date_to={today}", headers=agent_headers
    )
    assert in_range.json()["pagination"]["total_items"] == 5

    tomorrow = (datetime.utcnow().date() + timedelta(days=1)).isoformat()
    future = await client.get(f"/v1/audit-logs?date_from={tomorrow}", headers=agent_headers)
    assert future.json()["pagination"]["total_items"] == 0


@pytest.mark.asyncio
async def test_unknown_action_filter_is_rejected(client, agent_headers):
    response = await client.get("/v1/audit-logs?action=erase", headers=agent_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_page_beyond_bound_is_rejected(client, agent_headers):
    response = await client.get("/v1/audit-logs?page=100000000000000000000", headers=agent_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_single_entry(client, agent_headers, audit_entries, detainee_payload):
    await client.post("/v1/detainees", json=detainee_payload, headers=agent_headers)
    entry = (await audit_entries(entity_type="detainee"))[0]

    response = await client.get(f"/v1/audit-logs/{entry.id}", headers=agent_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["entity_id"] == entry.entity_id
    assert data["details"]["description"] == "Nouveau détenu enregistré: Jean Mukendi"

    missing = await client.get("/v1/audit-logs/999999", headers=agent_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_stats(client, agent_headers, detainee_payload, seizure_payload):
    await _seed(client, agent_headers, detainee_payload, seizure_payload)

    response = await client.get("/v1/audit-logs/stats", headers=agent_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 5
    assert data["by_action"] == {"login": 1, "create": 2, "status_change": 1, "delete": 1}
    assert data["by_entity_type"] == {"user": 1, "detainee": 2, "seizure": 2}
    assert data["last_7_days"] == 5


@pytest.mark.asyncio
async def test_ledger_cannot_be_modified(client, agent_headers, audit_entries, detainee_payload):
    """TEST 3: No route updates or deletes audit entries"""
    await client.post("/v1/detainees", json=detainee_payload, headers=agent_headers)
    entry = (await audit_entries(entity_type="detainee"))[0]

    assert (await client.delete(f"/v1/audit-logs/{entry.id}", headers=agent_headers)).status_code == 405
    assert (await client.patch(
        f"/v1/audit-logs/{entry.id}", json={"action": "update"}, headers=agent_headers
    )).status_code == 405
    assert (await client.post("/v1/audit-logs", json={}, headers=agent_headers)).status_code == 405
