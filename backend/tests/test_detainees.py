"""
Detainee Management Tests.

Registration, status changes, listing and deletion, with the audit entry
written alongside each mutation.
"""

import pytest
from sqlalchemy import func, select

from backend.app.models.detainee import Detainee


async def _create(client, headers, payload, **overrides):
    response = await client.post("/v1/detainees", json={**payload, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


# ========== REGISTRATION ==========

@pytest.mark.asyncio
async def test_create_detainee_writes_one_audit_entry(client, agent_headers, agent_user, detainee_payload, audit_entries):
    """TEST 1: Creating a detainee stores it in custody with one create entry"""
    response = await client.post("/v1/detainees", json=detainee_payload, headers=agent_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "in_custody"
    assert data["first_name"] == "Jean"
    assert data["created_by"] == str(agent_user.id)
    assert data["created_by_name"] == "Paul Kabila"

    rows = await audit_entries(entity_type="detainee")
    assert len(rows) == 1
    assert rows[0].action == "create"
    assert rows[0].user_id == agent_user.id
    assert rows[0].entity_id == data["id"]
    assert "Jean" in rows[0].details["description"]
    assert "Mukendi" in rows[0].details["description"]


@pytest.mark.asyncio
async def test_create_detainee_validation_errors(client, agent_headers, detainee_payload, audit_entries):
    """TEST 2: Invalid fields are rejected with French messages and nothing is written"""
    response = await client.post(
        "/v1/detainees", json={**detainee_payload, "first_name": "J"}, headers=agent_headers
    )

    assert response.status_code == 422
    errors = response.json()["details"]["errors"]
    assert errors[0]["field"] == "first_name"
    assert errors[0]["message"] == "Doit contenir au moins 2 caractères"
    assert await audit_entries(entity_type="detainee") == []


@pytest.mark.asyncio
async def test_create_detainee_birth_date_before_1940(client, agent_headers, detainee_payload):
    response = await client.post(
        "/v1/detainees", json={**detainee_payload, "date_of_birth": "1939-12-31"}, headers=agent_headers
    )

    assert response.status_code == 422
    errors = response.json()["details"]["errors"]
    assert errors[0]["message"] == "La date de naissance ne peut pas être avant 1940"


@pytest.mark.asyncio
async def test_create_detainee_invalid_phone(client, agent_headers, detainee_payload):
    response = await client.post(
        "/v1/detainees", json={**detainee_payload, "phone_number": "0991234567"}, headers=agent_headers
    )

    assert response.status_code == 422
    assert response.json()["details"]["errors"][0]["field"] == "phone_number"


@pytest.mark.asyncio
async def test_create_detainee_requires_auth(client, detainee_payload):
    response = await client.post("/v1/detainees", json=detainee_payload)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_detainee_rolls_back_when_audit_fails(
    failing_client, agent_headers, detainee_payload, break_audit_log, db_session
):
    """TEST 3: If the audit entry cannot be written, the detainee is not stored either"""
    break_audit_log()
    response = await failing_client.post("/v1/detainees", json=detainee_payload, headers=agent_headers)

    assert response.status_code == 500
    assert response.json()["error_code"] == "ERR_INTERNAL_SERVER"

    count = (await db_session.execute(select(func.count()).select_from(Detainee))).scalar_one()
    assert count == 0


# ========== UPDATES ==========

@pytest.mark.asyncio
async def test_release_is_logged_as_status_change(client, agent_headers, detainee_payload, audit_entries):
    """TEST 4: Changing the status records old and new status under a status change"""
    detainee = await _create(client, agent_headers, detainee_payload)

    response = await client.patch(
        f"/v1/detainees/{detainee['id']}",
        json={"status": "released", "release_reason": "Libération sous caution"},
        headers=agent_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "released"

    rows = await audit_entries(entity_type="detainee")
    assert [row.action for row in rows] == ["create", "status_change"]
    changed = rows[1].details["changed"]
    assert changed["status"] == {"old": "in_custody", "new": "released"}
    assert changed["release_reason"] == {"old": None, "new": "Libération sous caution"}
    assert "in_custody -> released" in rows[1].details["description"]


@pytest.mark.asyncio
async def test_update_records_only_changed_fields(client, agent_headers, detainee_payload, audit_entries):
    """TEST 5: Fields sent with their current value are not reported"""
    detainee = await _create(client, agent_headers, detainee_payload)

    response = await client.patch(
        f"/v1/detainees/{detainee['id']}",
        json={"residence": "Bukavu", "first_name": "Jean", "arrest_date": "2024-01-01"},
        headers=agent_headers,
    )

    assert response.status_code == 200
    assert response.json()["residence"] == "Bukavu"

    rows = await audit_entries(entity_type="detainee", action="update")
    assert len(rows) == 1
    assert rows[0].details["changed"] == {"residence": {"old": "Goma", "new": "Bukavu"}}
    assert rows[0].details["description"] == "Modification du détenu: Jean Mukendi"


@pytest.mark.asyncio
async def test_update_updates_author(client, agent_headers, admin_headers, admin_user, detainee_payload):
    detainee = await _create(client, agent_headers, detainee_payload)

    response = await client.patch(
        f"/v1/detainees/{detainee['id']}", json={"cell_number": "B12"}, headers=admin_headers
    )

    data = response.json()
    assert data["updated_by"] == str(admin_user.id)
    assert data["updated_by_name"] == "Admin Principal"
    assert data["created_by_name"] == "Paul Kabila"


@pytest.mark.asyncio
async def test_update_required_field_cannot_be_cleared(client, agent_headers, detainee_payload):
    detainee = await _create(client, agent_headers, detainee_payload)

    response = await client.patch(
        f"/v1/detainees/{detainee['id']}", json={"first_name": None}, headers=agent_headers
    )

    assert response.status_code == 422
    assert response.json()["details"]["errors"][0]["message"] == "Ce champ ne peut pas être vide"


@pytest.mark.asyncio
async def test_update_missing_detainee(client, agent_headers, audit_entries):
    """TEST 6: Updating an unknown detainee is a 404 without audit entry"""
    response = await client.patch(
        "/v1/detainees/5b0c3f0e-0000-4000-8000-000000000000",
        json={"residence": "Bukavu"},
        headers=agent_headers,
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Détenu non trouvé"
    assert await audit_entries(entity_type="detainee") == []


@pytest.mark.asyncio
async def test_update_rolls_back_when_audit_fails(
    client, failing_client, agent_headers, detainee_payload, fetch_row, break_audit_log
):
    """A failed audit write leaves the detainee unchanged"""
    detainee = await _create(client, agent_headers, detainee_payload)
    break_audit_log()

    response = await failing_client.patch(
        f"/v1/detainees/{detainee['id']}", json={"status": "released"}, headers=agent_headers
    )

    assert response.status_code == 500
    stored = await fetch_row(Detainee, detainee["id"])
    assert stored.status == "in_custody"


# ========== LISTING ==========

@pytest.mark.asyncio
async def test_list_pagination_past_last_page(client, agent_headers, detainee_payload):
    """TEST 7: A page past the end is empty but keeps the totals"""
    for name in ["Jean", "Marie", "Joseph"]:
        await _create(client, agent_headers, detainee_payload, first_name=name)

    response = await client.get("/v1/detainees?page=5&limit=2", headers=agent_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["detainees"] == []
    assert data["pagination"]["total_items"] == 3
    assert data["pagination"]["total_pages"] == 2
    assert data["pagination"]["has_next_page"] is False
    assert data["pagination"]["has_previous_page"] is True


@pytest.mark.asyncio
async def test_list_rejects_page_beyond_bound(client, agent_headers, detainee_payload):
    """A page number too large for an OFFSET is a validation error, not a crash"""
    await _create(client, agent_headers, detainee_payload)

    response = await client.get("/v1/detainees?page=100000000000000000000", headers=agent_headers)
    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"

    response = await client.get("/v1/detainees?page=1000001", headers=agent_headers)
    assert response.status_code == 422

    response = await client.get("/v1/detainees?page=1000000&limit=100", headers=agent_headers)
    assert response.status_code == 200
    assert response.json()["detainees"] == []


@pytest.mark.asyncio
async def test_list_first_page(client, agent_headers, detainee_payload):
    for name in ["Jean", "Marie", "Joseph"]:
        await _create(client, agent_headers, detainee_payload, first_name=name)

    response = await client.get(
        "/v1/detainees?page=1&limit=2&sort_by=first_name&sort_order=asc", headers=agent_headers
    )

    data = response.json()
    assert [d["first_name"] for d in data["detainees"]] == ["Jean", "Joseph"]
    assert data["pagination"]["has_next_page"] is True
    assert data["pagination"]["has_previous_page"] is False


@pytest.mark.asyncio
async def test_list_empty(client, agent_headers):
    response = await client.get("/v1/detainees", headers=agent_headers)

    data = response.json()
    assert data["detainees"] == []
    assert data["pagination"]["total_items"] == 0
    assert data["pagination"]["total_pages"] == 0
    assert data["pagination"]["has_next_page"] is False


@pytest.mark.asyncio
async def test_list_rejects_unknown_sort_field(client, agent_headers):
    """TEST 8: Sorting on a field outside the allowed set is refused"""
    response = await client.get("/v1/detainees?sort_by=crime_reason", headers=agent_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"


@pytest.mark.asyncio
async def test_list_search_and_status_filter(client, agent_headers, detainee_payload):
    first = await _create(client, agent_headers, detainee_payload)
    await _create(client, agent_headers, detainee_payload, first_name="Marie", last_name="Kasongo")
    await client.patch(f"/v1/detainees/{first['id']}", json={"status": "transferred"}, headers=agent_headers)

    by_name = await client.get("/v1/detainees?search=muk", headers=agent_headers)
    assert [d["last_name"] for d in by_name.json()["detainees"]] == ["Mukendi"]

    by_status = await client.get("/v1/detainees?status=in_custody", headers=agent_headers)
    assert [d["first_name"] for d in by_status.json()["detainees"]] == ["Marie"]


@pytest.mark.asyncio
async def test_autocomplete_search(client, agent_headers, detainee_payload):
    await _create(client, agent_headers, detainee_payload)
    await _create(client, agent_headers, detainee_payload, first_name="Marie", last_name="Kasongo")

    response = await client.get("/v1/detainees/search?query=Jean Muk", headers=agent_headers)

    assert response.status_code == 200
    results = response.json()
    assert len(results) == 1
    assert results[0]["last_name"] == "Mukendi"


@pytest.mark.asyncio
async def test_get_detainee(client, agent_headers, detainee_payload):
    detainee = await _create(client, agent_headers, detainee_payload)

    response = await client.get(f"/v1/detainees/{detainee['id']}", headers=agent_headers)

    assert response.status_code == 200
    assert response.json()["created_by_name"] == "Paul Kabila"


# ========== DELETION ==========

@pytest.mark.asyncio
async def test_delete_detainee(client, agent_headers, detainee_payload, audit_entries, fetch_row):
    """TEST 9: Deleting logs the name of the removed detainee"""
    detainee = await _create(client, agent_headers, detainee_payload)

    response = await client.delete(f"/v1/detainees/{detainee['id']}", headers=agent_headers)

    assert response.status_code == 200
    assert await fetch_row(Detainee, detainee["id"]) is None

    rows = await audit_entries(entity_type="detainee", action="delete")
    assert len(rows) == 1
    assert rows[0].entity_id == detainee["id"]
    assert rows[0].details["description"] == "Suppression du détenu: Jean Mukendi"


@pytest.mark.asyncio
async def test_delete_detainee_with_statements_is_refused(client, agent_headers, detainee_payload, audit_entries):
    """TEST 10: A detainee referenced by statements cannot be deleted"""
    detainee = await _create(client, agent_headers, detainee_payload)
    await client.post(
        "/v1/statements",
        json={"file_url": "/uploads/statements/jm-001.pdf", "detainee_id": detainee["id"]},
        headers=agent_headers,
    )

    response = await client.delete(f"/v1/detainees/{detainee['id']}", headers=agent_headers)

    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_001"
    assert await audit_entries(entity_type="detainee", action="delete") == []
