"""
Seizure Management Tests.
"""

import pytest

from backend.app.models.seizure import Seizure


async def _create(client, headers, payload, **overrides):
    response = await client.post("/v1/seizures", json={**payload, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_seizure(client, agent_headers, seizure_payload, audit_entries):
    """TEST 1: A seizure starts in custody; the UTC timestamp is stored as given"""
    response = await client.post("/v1/seizures", json=seizure_payload, headers=agent_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "in_custody"
    assert data["seizure_date"].startswith("2024-02-10T08:30:00")

    rows = await audit_entries(entity_type="seizure")
    assert len(rows) == 1
    assert rows[0].action == "create"
    assert rows[0].details["description"] == "Nouvelle saisie enregistrée: Toyota Corolla"


@pytest.mark.asyncio
async def test_create_seizure_rejects_unknown_type(client, agent_headers, seizure_payload):
    response = await client.post(
        "/v1/seizures", json={**seizure_payload, "type": "boat"}, headers=agent_headers
    )

    assert response.status_code == 422
    assert response.json()["details"]["errors"][0]["field"] == "type"


@pytest.mark.asyncio
async def test_delete_seizure_logs_item_name(client, agent_headers, agent_user, seizure_payload, audit_entries, fetch_row):
    """TEST 2: Deleting a seizure removes it and logs the item name"""
    seizure = await _create(client, agent_headers, seizure_payload)

    response = await client.delete(f"/v1/seizures/{seizure['id']}", headers=agent_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Saisie supprimée avec succès"
    assert await fetch_row(Seizure, seizure["id"]) is None

    rows = await audit_entries(entity_type="seizure", action="delete")
    assert len(rows) == 1
    assert rows[0].entity_id == seizure["id"]
    assert rows[0].user_id == agent_user.id
    assert rows[0].details["description"] == "Suppression de la saisie: Toyota Corolla"


@pytest.mark.asyncio
async def test_delete_seizure_rolls_back_when_audit_fails(
    client, failing_client, agent_headers, seizure_payload, break_audit_log, fetch_row, audit_entries
):
    """TEST 3: The seizure survives a failed delete audit write"""
    seizure = await _create(client, agent_headers, seizure_payload)
    break_audit_log()

    response = await failing_client.delete(f"/v1/seizures/{seizure['id']}", headers=agent_headers)

    assert response.status_code == 500
    assert await fetch_row(Seizure, seizure["id"]) is not None
    assert await audit_entries(entity_type="seizure", action="delete") == []


@pytest.mark.asyncio
async def test_delete_missing_seizure(client, agent_headers):
    response = await client.delete(
        "/v1/seizures/5b0c3f0e-0000-4000-8000-000000000000", headers=agent_headers
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Saisie non trouvée"


@pytest.mark.asyncio
async def test_status_change_is_relabelled(client, agent_headers, seizure_payload, audit_entries):
    """TEST 4: Moving a seizure to evidence is logged as a status change"""
    seizure = await _create(client, agent_headers, seizure_payload)

    response = await client.patch(
        f"/v1/seizures/{seizure['id']}", json={"status": "evidence"}, headers=agent_headers
    )

    assert response.status_code == 200
    assert response.json()["status"] == "evidence"

    rows = await audit_entries(entity_type="seizure")
    assert [row.action for row in rows] == ["create", "status_change"]
    assert rows[1].details["changed"] == {"status": {"old": "in_custody", "new": "evidence"}}


@pytest.mark.asyncio
async def test_plain_update(client, agent_headers, seizure_payload, audit_entries):
    seizure = await _create(client, agent_headers, seizure_payload)

    response = await client.patch(
        f"/v1/seizures/{seizure['id']}",
        json={"owner_residence": "Himbi", "seizure_date": "2024-02-10T08:30:00Z"},
        headers=agent_headers,
    )

    assert response.status_code == 200
    rows = await audit_entries(entity_type="seizure", action="update")
    assert rows[0].details["changed"] == {"owner_residence": {"old": None, "new": "Himbi"}}
    assert rows[0].details["description"] == "Modification de la saisie: Toyota Corolla"


@pytest.mark.asyncio
async def test_list_filters_and_stats(client, agent_headers, seizure_payload):
    """TEST 5: Type and status filters and the breakdown endpoint agree"""
    car = await _create(client, agent_headers, seizure_payload)
    await _create(client, agent_headers, seizure_payload, item_name="Honda XR", type="motorcycle")
    await client.patch(f"/v1/seizures/{car['id']}", json={"status": "released"}, headers=agent_headers)

    motorcycles = await client.get("/v1/seizures?type=motorcycle", headers=agent_headers)
    assert [s["item_name"] for s in motorcycles.json()["seizures"]] == ["Honda XR"]

    released = await client.get("/v1/seizures?status=released", headers=agent_headers)
    assert [s["item_name"] for s in released.json()["seizures"]] == ["Toyota Corolla"]

    searched = await client.get("/v1/seizures?search=ilunga", headers=agent_headers)
    assert searched.json()["pagination"]["total_items"] == 2

    stats = await client.get("/v1/seizures/stats", headers=agent_headers)
    assert stats.status_code == 200
    data = stats.json()
    assert data["total_seizures"] == 2
    assert data["seizures_by_type"] == {"car": 1, "motorcycle": 1}
    assert data["seizures_by_status"] == {"released": 1, "in_custody": 1}
