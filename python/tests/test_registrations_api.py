"""
Tests for business registrations and generalized, versioned registrations.

Business payloads must persist and come back with their nested JSON
documents unchanged; generalized registrations must keep a version
history and an audit trail.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from database.models import CryptoFundInfo
from tests.factories import BUSINESS_PAYLOADS, business_payload

BUSINESS_TYPES = list(BUSINESS_PAYLOADS)
ADMIN_LISTING_PATHS = {
    "exchange": "exchanges",
    "stablecoin": "stablecoins",
    "defi": "defi",
    "nft": "nft",
    "fund": "funds",
}


class TestBusinessRegistrations:
    """Tests for POST/GET /api/{type}/..."""

    @pytest.mark.parametrize("registration_type", BUSINESS_TYPES)
    def test_payload_round_trips(self, alice, registration_type):
        """Every sent field, nested JSON included, comes back unchanged."""
        payload = business_payload(registration_type)
        created = alice.post(f"/api/{registration_type}/register", json=payload)
        assert created.status_code == 201, created.text
        row = created.json()
        assert row["userId"] == alice.user_id

        fetched = alice.get(f"/api/{registration_type}/registrations/{row['id']}")
        assert fetched.status_code == 200
        for key, value in payload.items():
            assert fetched.json()[key] == value, key

    @pytest.mark.parametrize("registration_type", BUSINESS_TYPES)
    def test_list_only_own(self, alice, bob, registration_type):
        """Listing returns the caller's rows only."""
        alice.post(f"/api/{registration_type}/register", json=business_payload(registration_type))
        assert len(alice.get(f"/api/{registration_type}/registrations").json()) == 1
        assert bob.get(f"/api/{registration_type}/registrations").json() == []

    def test_other_users_row_forbidden(self, alice, bob, admin):
        """Owner and admin can read a row; anyone else gets 403."""
        row = alice.post("/api/exchange/register", json=business_payload("exchange")).json()
        path = f"/api/exchange/registrations/{row['id']}"
        assert bob.get(path).status_code == 403
        assert admin.get(path).status_code == 200

    def test_missing_row_is_404(self, alice):
        response = alice.get("/api/stablecoin/registrations/999999")
        assert response.status_code == 404
        assert response.json()["message"] == "Registration not found"

    def test_requires_login(self, client):
        response = client.post("/api/exchange/register", json=business_payload("exchange"))
        assert response.status_code == 401

    def test_unknown_exchange_type_rejected(self, alice):
        """exchangeType is CEX or DEX."""
        response = alice.post("/api/exchange/register", json=business_payload("exchange", exchangeType="OTC"))
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == ["exchangeType"]

    @pytest.mark.parametrize("year", ["1989", "19x9", "3000"])
    def test_year_established_range(self, alice, year):
        """Year must be four digits between 1990 and this year."""
        response = alice.post("/api/exchange/register", json=business_payload("exchange", yearEstablished=year))
        assert response.status_code == 400

    def test_malformed_nested_document_rejected(self, alice):
        """Typed sub-documents report the nested path."""
        payload = business_payload("exchange")
        payload["washTradingDetection"]["timeStampGranularity"] = "hours"
        response = alice.post("/api/exchange/register", json=payload)
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == ["washTradingDetection", "timeStampGranularity"]

    def test_allocation_share_out_of_range(self, alice):
        payload = business_payload("fund")
        payload["assetAllocation"]["bitcoin"] = 140
        assert alice.post("/api/fund/register", json=payload).status_code == 400

    def test_invalid_website_url(self, alice):
        response = alice.post("/api/nft/register", json=business_payload("nft", websiteUrl="gallery nine"))
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == ["websiteUrl"]

    def test_fund_zero_jurisdiction_is_unset(self, alice):
        """The form's 0 placeholder is stored as no jurisdiction."""
        response = alice.post("/api/fund/register", json=business_payload("fund", jurisdictionId=0))
        assert response.status_code == 201
        assert response.json()["jurisdictionId"] is None

    def test_fund_unknown_jurisdiction(self, alice, session):
        response = alice.post("/api/fund/register", json=business_payload("fund", jurisdictionId=999999))
        assert response.status_code == 404
        assert response.json() == {"message": "Jurisdiction not found"}
        assert session.query(CryptoFundInfo).count() == 0


class TestAdminListings:
    """Tests for the admin-only listing of every business type."""

    @pytest.mark.parametrize("registration_type", BUSINESS_TYPES)
    def test_admin_sees_everyone(self, alice, bob, admin, registration_type):
        alice.post(f"/api/{registration_type}/register", json=business_payload(registration_type))
        bob.post(f"/api/{registration_type}/register", json=business_payload(registration_type))

        path = f"/api/admin/{ADMIN_LISTING_PATHS[registration_type]}"
        response = admin.get(path)
        assert response.status_code == 200
        assert sorted(r["userId"] for r in response.json()) == sorted([alice.user_id, bob.user_id])

    def test_non_admin_forbidden(self, alice):
        assert alice.get("/api/admin/exchanges").status_code == 403


class TestGeneralizedRegistrations:
    """Tests for /api/registrations versioning, soft delete and audit trail."""

    @pytest.fixture
    def registration(self, alice):
        response = alice.post("/api/registrations", json={
            "registrationType": "exchange",
            "name": "Harbor Exchange",
            "data": {"tier": 1, "licenses": ["MPI"]},
        })
        assert response.status_code == 201, response.text
        return response.json()

    def test_create_starts_at_version_one(self, alice, registration):
        """Creation writes version 1, one version row and one audit row."""
        assert registration["version"] == 1
        assert registration["status"] == "draft"
        assert registration["deletedAt"] is None

        versions = alice.get(f"/api/registrations/{registration['id']}/versions").json()
        assert [v["version"] for v in versions] == [1]
        assert versions[0]["data"] == {"tier": 1, "licenses": ["MPI"]}

        logs = alice.get(f"/api/registrations/{registration['id']}/audit-logs").json()
        assert [entry["action"] for entry in logs] == ["create"]
        assert logs[0]["tableName"] == "registrations"

    def test_update_bumps_version(self, alice, registration):
        """Each PATCH adds a version snapshot and an audit entry."""
        path = f"/api/registrations/{registration['id']}"
        response = alice.patch(path, json={"status": "submitted", "data": {"tier": 2}})
        assert response.status_code == 200
        updated = response.json()
        assert updated["version"] == 2
        assert updated["status"] == "submitted"
        assert updated["name"] == "Harbor Exchange"

        versions = alice.get(f"{path}/versions").json()
        assert [v["version"] for v in versions] == [2, 1]
        assert versions[0]["data"] == {"tier": 2}

        logs = alice.get(f"{path}/audit-logs").json()
        assert [entry["action"] for entry in logs] == ["update", "create"]
        assert logs[0]["oldData"]["version"] == 1
        assert logs[0]["newData"]["version"] == 2

    @pytest.mark.parametrize("field", ["name", "status", "data"])
    def test_null_for_required_column_rejected(self, alice, registration, field):
        path = f"/api/registrations/{registration['id']}"
        response = alice.patch(path, json={field: None})
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == [field]
        assert alice.get(path).json()["version"] == 1

    def test_soft_delete_hides_registration(self, alice, registration):
        """Deleted registrations 404 but keep their audit trail in the database."""
        path = f"/api/registrations/{registration['id']}"
        response = alice.delete(path)
        assert response.status_code == 200
        assert response.json() == {"message": "Registration deleted"}

        assert alice.get(path).status_code == 404
        assert alice.get("/api/user/registrations").json() == []

    def test_owner_or_admin_only(self, alice, bob, admin, registration):
        path = f"/api/registrations/{registration['id']}"
        assert bob.get(path).status_code == 403
        assert bob.patch(path, json={"name": "Hijacked"}).status_code == 403
        assert admin.get(path).status_code == 200

    def test_forbidden_before_validation(self, bob, registration):
        """Ownership is checked before the body is validated."""
        response = bob.patch(f"/api/registrations/{registration['id']}", json={"name": "x"})
        assert response.status_code == 403

    def test_user_registrations_lists_own(self, alice, bob, registration):
        assert [r["id"] for r in alice.get("/api/user/registrations").json()] == [registration["id"]]
        assert bob.get("/api/user/registrations").json() == []

    def test_admin_filter_by_type(self, alice, admin, registration):
        """GET /api/admin/registrations?type= filters on the discriminator."""
        alice.post("/api/registrations", json={
            "registrationType": "fund", "name": "Lighthouse", "data": {},
        })
        everything = admin.get("/api/admin/registrations").json()
        assert len(everything) == 2

        exchanges = admin.get("/api/admin/registrations", params={"type": "exchange"}).json()
        assert [r["id"] for r in exchanges] == [registration["id"]]

    def test_unknown_type_rejected(self, alice):
        response = alice.post("/api/registrations", json={
            "registrationType": "casino", "name": "Nope", "data": {},
        })
        assert response.status_code == 400


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
