"""
Tests for token registrations, their documents and reviewer decisions.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from tests.factories import TOKEN_CONTRACT, jurisdiction_document, token_payload


@pytest.fixture
def token(alice):
    response = alice.post("/api/tokens", json=token_payload())
    assert response.status_code == 201, response.text
    return response.json()


class TestTokenRegistrations:
    """Tests for creating, reading and updating tokens."""

    def test_create(self, alice, token):
        assert token["userId"] == alice.user_id
        assert token["tokenCategory"] == "REAL_WORLD_ASSET"
        assert token["registrationStatus"] == "draft"
        assert token["isListed"] is False
        assert token["smartContracts"] == [{"network": "Ethereum", "address": TOKEN_CONTRACT}]
        assert token["assetBackingDetails"]["custodian"] == "Vault AG"

    def test_unknown_category_rejected(self, alice):
        response = alice.post("/api/tokens", json=token_payload(tokenCategory="MEME"))
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == ["tokenCategory"]

    def test_bad_contract_address_rejected(self, alice):
        payload = token_payload(smartContracts=[{"network": "Ethereum", "address": "0x1234"}])
        response = alice.post("/api/tokens", json=payload)
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == ["smartContracts", 0, "address"]

    def test_list_own_only(self, alice, bob, token):
        assert [t["id"] for t in alice.get("/api/tokens").json()] == [token["id"]]
        assert bob.get("/api/tokens").json() == []

    def test_read_access(self, alice, bob, admin, token):
        path = f"/api/tokens/{token['id']}"
        assert alice.get(path).status_code == 200
        assert bob.get(path).status_code == 403
        assert admin.get(path).status_code == 200

    def test_missing_token(self, alice):
        response = alice.get("/api/tokens/999999")
        assert response.status_code == 404
        assert response.json() == {"message": "Token registration not found"}

    def test_patch_updates_given_fields(self, alice, token):
        response = alice.patch(f"/api/tokens/{token['id']}", json={
            "registrationStatus": "submitted", "circulatingSupply": 250000,
        })
        assert response.status_code == 200
        updated = response.json()
        assert updated["registrationStatus"] == "submitted"
        assert updated["circulatingSupply"] == 250000
        assert updated["tokenName"] == "Harbor Gold"

    def test_patch_by_other_user_forbidden(self, bob, token):
        assert bob.patch(f"/api/tokens/{token['id']}", json={"tokenName": "Stolen"}).status_code == 403

    @pytest.mark.parametrize("field", [
        "tokenName", "tokenSymbol", "tokenCategory", "description",
        "registrationStatus", "isListed", "visibility",
    ])
    def test_null_for_required_column_rejected(self, alice, token, field):
        response = alice.patch(f"/api/tokens/{token['id']}", json={field: None})
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == [field]
        assert alice.get(f"/api/tokens/{token['id']}").json()["tokenName"] == "Harbor Gold"


class TestAdminTokenListings:
    """Tests for /api/tokens/admin routes."""

    def test_admin_lists_everything(self, alice, bob, admin, token):
        bob.post("/api/tokens", json=token_payload(tokenSymbol="BOB", tokenCategory="UTILITY"))
        response = admin.get("/api/tokens/admin")
        assert response.status_code == 200
        assert len(response.json()) == 2

    def test_filter_by_category(self, bob, admin, token):
        bob.post("/api/tokens", json=token_payload(tokenSymbol="BOB", tokenCategory="UTILITY"))
        utility = admin.get("/api/tokens/admin/category/UTILITY").json()
        assert [t["tokenSymbol"] for t in utility] == ["BOB"]

    def test_invalid_category(self, admin):
        response = admin.get("/api/tokens/admin/category/MEME")
        assert response.status_code == 400
        assert response.json() == {"message": "Invalid token category: MEME"}

    def test_non_admin_forbidden(self, alice):
        assert alice.get("/api/tokens/admin").status_code == 403
        assert alice.get("/api/tokens/admin/category/UTILITY").status_code == 403


class TestTokenDocuments:
    """Owners upload supporting documents."""

    def test_owner_adds_document(self, alice, token):
        path = f"/api/tokens/{token['id']}/documents"
        response = alice.post(path, json={
            "documentType": "whitepaper",
            "documentName": "Harbor Gold Whitepaper",
            "documentUrl": "https://harbor.example.com/whitepaper.pdf",
        })
        assert response.status_code == 201
        assert response.json()["uploadedBy"] == alice.user_id
        assert [d["documentName"] for d in alice.get(path).json()] == ["Harbor Gold Whitepaper"]

    def test_invalid_url_rejected(self, alice, token):
        response = alice.post(f"/api/tokens/{token['id']}/documents", json={
            "documentType": "whitepaper", "documentName": "WP", "documentUrl": "not a url",
        })
        assert response.status_code == 400


class TestReviewerDecisions:
    """Verifications, risk assessments and approvals are recorded by admins."""

    def test_owner_cannot_record_verification(self, alice, token):
        response = alice.post(f"/api/tokens/{token['id']}/verifications", json={"verificationStatus": "verified"})
        assert response.status_code == 403

    def test_admin_records_verification(self, alice, admin, token):
        path = f"/api/tokens/{token['id']}/verifications"
        response = admin.post(path, json={"verificationStatus": "verified", "verificationNotes": "KYB complete"})
        assert response.status_code == 201
        assert response.json()["verifierUserId"] == admin.user_id
        assert [v["verificationStatus"] for v in alice.get(path).json()] == ["verified"]

    def test_risk_score_bounds(self, admin, token):
        path = f"/api/tokens/{token['id']}/risk-assessments"
        assert admin.post(path, json={"riskScore": 101, "riskLevel": "high"}).status_code == 400
        response = admin.post(path, json={"riskScore": 72, "riskLevel": "high", "riskFactors": {"custody": "single"}})
        assert response.status_code == 201
        assert response.json()["riskFactors"] == {"custody": "single"}

    def test_jurisdiction_approval(self, alice, admin, token):
        imported = admin.post("/api/jurisdictions/import", json=jurisdiction_document()).json()
        jurisdiction_id = imported["document"]["jurisdiction"]["id"]

        path = f"/api/tokens/{token['id']}/jurisdiction-approvals"
        response = admin.post(path, json={
            "jurisdictionId": jurisdiction_id,
            "approvalStatus": "approved",
            "approvalDate": "2025-09-01",
            "restrictions": ["no retail marketing"],
        })
        assert response.status_code == 201
        assert response.json()["approvalDate"] == "2025-09-01"
        assert len(alice.get(path).json()) == 1

    def test_approval_for_missing_jurisdiction(self, admin, token):
        response = admin.post(f"/api/tokens/{token['id']}/jurisdiction-approvals", json={
            "jurisdictionId": 999999, "approvalStatus": "approved",
        })
        assert response.status_code == 404
        assert response.json() == {"message": "Jurisdiction not found"}

    def test_other_user_cannot_read_decisions(self, bob, token):
        for child in ("verifications", "risk-assessments", "jurisdiction-approvals", "documents"):
            assert bob.get(f"/api/tokens/{token['id']}/{child}").status_code == 403, child


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
