"""Tests that one doctor can never see or touch another doctor's records.

A foreign record must look exactly like a missing one.
"""

import uuid

import pytest
from httpx import AsyncClient


@pytest.fixture
async def asha_consultation_id(client: AsyncClient, auth_headers: dict, patient_in_db, belladonna_consultation) -> str:
    """A consultation recorded by doctor A for Asha."""
    response = await client.post(
        f"/api/patients/{patient_in_db}/consultations",
        json=belladonna_consultation,
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()["consultation_id"]


class TestForeignPatient:
    @pytest.mark.asyncio
    async def test_get_returns_404(self, client: AsyncClient, other_doctor_headers: dict, patient_in_db):
        foreign = await client.get(f"/api/patients/{patient_in_db}", headers=other_doctor_headers)
        missing = await client.get(f"/api/patients/{uuid.uuid4()}", headers=other_doctor_headers)

        assert foreign.status_code == 404
        assert foreign.json() == missing.json()

    @pytest.mark.asyncio
    async def test_update_returns_404_and_leaves_record(
        self, client: AsyncClient, auth_headers: dict, other_doctor_headers: dict, patient_in_db
    ):
        response = await client.put(
            f"/api/patients/{patient_in_db}",
            json={"name": "Mallory"},
            headers=other_doctor_headers,
        )
        assert response.status_code == 404

        own = await client.get(f"/api/patients/{patient_in_db}", headers=auth_headers)
        assert own.json()["name"] == "Asha"

    @pytest.mark.asyncio
    async def test_delete_returns_404_and_leaves_record(
        self, client: AsyncClient, auth_headers: dict, other_doctor_headers: dict, patient_in_db
    ):
        response = await client.delete(f"/api/patients/{patient_in_db}", headers=other_doctor_headers)
        assert response.status_code == 404

        own = await client.get(f"/api/patients/{patient_in_db}", headers=auth_headers)
        assert own.status_code == 200

    @pytest.mark.asyncio
    async def test_create_consultation_returns_404(
        self,
        client: AsyncClient,
        auth_headers: dict,
        other_doctor_headers: dict,
        patient_in_db,
        belladonna_consultation,
    ):
        response = await client.post(
            f"/api/patients/{patient_in_db}/consultations",
            json=belladonna_consultation,
            headers=other_doctor_headers,
        )
        assert response.status_code == 404

        own = await client.get(f"/api/patients/{patient_in_db}", headers=auth_headers)
        assert own.json()["total_consultations"] == 0

    @pytest.mark.asyncio
    async def test_list_consultations_returns_404(
        self, client: AsyncClient, other_doctor_headers: dict, patient_in_db, asha_consultation_id
    ):
        response = await client.get(
            f"/api/patients/{patient_in_db}/consultations",
            headers=other_doctor_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_not_in_listings_or_dashboards(
        self, client: AsyncClient, other_doctor_headers: dict, patient_in_db, asha_consultation_id
    ):
        listing = await client.get("/api/patients", headers=other_doctor_headers)
        search = await client.get("/api/patients/search?q=Asha", headers=other_doctor_headers)
        today = await client.get("/api/patients/today", headers=other_doctor_headers)
        stats = await client.get("/api/patients/stats", headers=other_doctor_headers)

        assert listing.json() == {"items": [], "count": 0}
        assert search.json()["pagination"]["total"] == 0
        assert today.json()["count"] == 0
        assert stats.json()["total_patients"] == 0
        assert stats.json()["total_consultations"] == 0


class TestForeignConsultation:
    @pytest.mark.asyncio
    async def test_fetch_returns_404(
        self, client: AsyncClient, other_doctor_headers: dict, asha_consultation_id
    ):
        response = await client.get(
            f"/api/consultations/{asha_consultation_id}",
            headers=other_doctor_headers,
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Consultation not found"

    @pytest.mark.asyncio
    async def test_follow_up_returns_404_and_leaves_record(
        self,
        client: AsyncClient,
        auth_headers: dict,
        other_doctor_headers: dict,
        patient_in_db,
        asha_consultation_id,
        bryonia_prescription,
    ):
        response = await client.put(
            f"/api/consultations/{asha_consultation_id}/followup",
            json={
                "response_to_treatment": "worsened",
                "decision": "change",
                "new_prescription": bryonia_prescription,
            },
            headers=other_doctor_headers,
        )
        assert response.status_code == 404

        own = (await client.get(f"/api/patients/{patient_in_db}", headers=auth_headers)).json()
        assert own["total_consultations"] == 1
        assert own["current_remedy"] == "Belladonna"
        assert own["consultations"][0]["decision"] is None


class TestOwnerAssignment:
    @pytest.mark.asyncio
    async def test_owner_comes_from_token_not_body(self, client: AsyncClient, other_doctor_headers: dict):
        response = await client.post(
            "/api/patients",
            json={"name": "Ravi", "doctor_id": "doctor-a"},
            headers=other_doctor_headers,
        )
        assert response.status_code == 201
        assert response.json()["doctor_id"] == "doctor-b"

    @pytest.mark.asyncio
    async def test_each_doctor_sees_own_patients(
        self, client: AsyncClient, auth_headers: dict, other_doctor_headers: dict
    ):
        await client.post("/api/patients", json={"name": "Asha"}, headers=auth_headers)
        await client.post("/api/patients", json={"name": "Ravi"}, headers=other_doctor_headers)

        mine = await client.get("/api/patients", headers=auth_headers)
        theirs = await client.get("/api/patients", headers=other_doctor_headers)

        assert [p["name"] for p in mine.json()["items"]] == ["Asha"]
        assert [p["name"] for p in theirs.json()["items"]] == ["Ravi"]
