"""
Tests for jurisdiction checklists, per-user checklist progress and
jurisdiction subscriptions.
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from database.models import ChecklistCategory, ChecklistItem, Jurisdiction, UserChecklistProgress, UserJurisdiction
from tests.factories import checklist_document, jurisdiction_document


@pytest.fixture
def jurisdiction_id(admin):
    response = admin.post("/api/jurisdictions/import", json=jurisdiction_document())
    assert response.status_code == 201, response.text
    return response.json()["document"]["jurisdiction"]["id"]


@pytest.fixture
def checklist(admin, jurisdiction_id):
    response = admin.post(f"/api/jurisdictions/{jurisdiction_id}/checklists", json=checklist_document())
    assert response.status_code == 201, response.text
    return response.json()


def item_ids(checklist: dict) -> dict:
    return {item["task"]: item["id"] for category in checklist["categories"] for item in category["items"]}


# ============================================
# CHECKLISTS
# ============================================

class TestChecklistImport:
    """Tests for POST /api/jurisdictions/{id}/checklists."""

    def test_counts_and_ordering(self, checklist):
        assert checklist["created"] == {"categories": 2, "items": 3}
        assert [c["name"] for c in checklist["categories"]] == ["Licensing", "AML/CTF Compliance"]
        aml = checklist["categories"][1]
        assert [i["task"] for i in aml["items"]] == ["Adopt an AML policy", "Appoint an MLRO"]

    def test_second_import_rejected(self, admin, jurisdiction_id, checklist):
        response = admin.post(f"/api/jurisdictions/{jurisdiction_id}/checklists", json=checklist_document())
        assert response.status_code == 400
        assert response.json() == {"message": "Checklist already exists for this jurisdiction"}

    def test_requires_admin(self, alice, jurisdiction_id):
        response = alice.post(f"/api/jurisdictions/{jurisdiction_id}/checklists", json=checklist_document())
        assert response.status_code == 403

    def test_unknown_jurisdiction(self, admin, session):
        response = admin.post("/api/jurisdictions/424242/checklists", json=checklist_document())
        assert response.status_code == 404
        assert response.json() == {"message": "Jurisdiction not found"}
        assert session.query(ChecklistCategory).count() == 0

    def test_empty_document_rejected(self, admin, jurisdiction_id):
        response = admin.post(f"/api/jurisdictions/{jurisdiction_id}/checklists", json={"categories": []})
        assert response.status_code == 400
        assert ["categories"] in [e["path"] for e in response.json()["errors"]]


class TestChecklistRead:
    """Tests for GET /api/jurisdictions/{id}/checklists."""

    def test_categories_with_items(self, alice, jurisdiction_id, checklist):
        categories = alice.get(f"/api/jurisdictions/{jurisdiction_id}/checklists").json()
        assert categories == checklist["categories"]
        licensing = categories[0]
        assert licensing["jurisdictionId"] == jurisdiction_id
        assert licensing["description"] == "Licences needed before launch"
        assert licensing["items"][0]["notes"] == "Dubai only"
        assert licensing["items"][0]["categoryId"] == licensing["id"]

    def test_jurisdiction_without_checklist(self, alice, jurisdiction_id):
        assert alice.get(f"/api/jurisdictions/{jurisdiction_id}/checklists").json() == []

    def test_unknown_jurisdiction(self, alice):
        assert alice.get("/api/jurisdictions/424242/checklists").status_code == 404

    def test_requires_login(self, client, jurisdiction_id):
        assert client.get(f"/api/jurisdictions/{jurisdiction_id}/checklists").status_code == 401


class TestChecklistProgress:
    """Tests for checklist-progress and POST /api/checklist-items/{id}/progress."""

    def test_untouched_items_read_as_not_started(self, alice, jurisdiction_id, checklist):
        progress = alice.get(f"/api/jurisdictions/{jurisdiction_id}/checklist-progress").json()
        assert [p["task"] for p in progress] == ["Obtain a VARA licence", "Adopt an AML policy", "Appoint an MLRO"]
        assert {p["status"] for p in progress} == {"not_started"}
        assert all(p["completedAt"] is None for p in progress)

    def test_update_and_read_back(self, alice, jurisdiction_id, checklist):
        item_id = item_ids(checklist)["Adopt an AML policy"]
        response = alice.post(f"/api/checklist-items/{item_id}/progress",
                              json={"status": "in_progress", "notes": "Drafting with counsel"})
        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"
        assert response.json()["userId"] == alice.user_id

        progress = alice.get(f"/api/jurisdictions/{jurisdiction_id}/checklist-progress").json()
        row = next(p for p in progress if p["itemId"] == item_id)
        assert row["status"] == "in_progress"
        assert row["notes"] == "Drafting with counsel"

    def test_completed_at_stamped_and_cleared(self, alice, session, checklist):
        item_id = item_ids(checklist)["Appoint an MLRO"]
        done = alice.post(f"/api/checklist-items/{item_id}/progress", json={"status": "completed", "notes": None})
        assert done.json()["completedAt"] is not None

        again = alice.post(f"/api/checklist-items/{item_id}/progress", json={"status": "completed", "notes": "ok"})
        # SQLite drops the UTC offset on reload
        assert again.json()["completedAt"][:19] == done.json()["completedAt"][:19]

        reopened = alice.post(f"/api/checklist-items/{item_id}/progress", json={"status": "in_progress", "notes": None})
        assert reopened.json()["completedAt"] is None
        assert session.query(UserChecklistProgress).count() == 1

    def test_progress_is_per_user(self, alice, bob, jurisdiction_id, checklist):
        item_id = item_ids(checklist)["Obtain a VARA licence"]
        alice.post(f"/api/checklist-items/{item_id}/progress", json={"status": "completed", "notes": None})

        bob_progress = bob.get(f"/api/jurisdictions/{jurisdiction_id}/checklist-progress").json()
        assert {p["status"] for p in bob_progress} == {"not_started"}

    def test_unknown_status_rejected(self, alice, checklist):
        item_id = item_ids(checklist)["Obtain a VARA licence"]
        response = alice.post(f"/api/checklist-items/{item_id}/progress", json={"status": "done"})
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == ["status"]

    def test_unknown_item(self, alice):
        response = alice.post("/api/checklist-items/424242/progress", json={"status": "completed"})
        assert response.status_code == 404
        assert response.json() == {"message": "Checklist item not found"}

    def test_jurisdiction_delete_cascades(self, alice, session, jurisdiction_id, checklist):
        item_id = item_ids(checklist)["Obtain a VARA licence"]
        alice.post(f"/api/checklist-items/{item_id}/progress", json={"status": "completed", "notes": None})

        session.delete(session.get(Jurisdiction, jurisdiction_id))
        session.commit()
        assert session.query(ChecklistCategory).count() == 0
        assert session.query(ChecklistItem).count() == 0
        assert session.query(UserChecklistProgress).count() == 0


# ============================================
# SUBSCRIPTIONS
# ============================================

class TestSubscriptions:
    """Tests for /api/user/jurisdictions."""

    def test_subscribe_with_snake_case_body(self, alice, jurisdiction_id):
        response = alice.post("/api/user/jurisdictions", json={"jurisdiction_id": jurisdiction_id, "is_primary": False})
        assert response.status_code == 201
        subscription = response.json()
        assert subscription["jurisdictionId"] == jurisdiction_id
        assert subscription["userId"] == alice.user_id
        assert subscription["jurisdictionName"] == "Singapore"
        assert subscription["jurisdictionRegion"] == "Asia Pacific"
        assert subscription["jurisdictionRiskLevel"] == "low"
        assert subscription["addedAt"]

    def test_list_is_per_user(self, alice, bob, jurisdiction_id):
        alice.post("/api/user/jurisdictions", json={"jurisdictionId": jurisdiction_id})
        assert len(alice.get("/api/user/jurisdictions").json()) == 1
        assert bob.get("/api/user/jurisdictions").json() == []

    def test_duplicate_subscription(self, alice, jurisdiction_id):
        alice.post("/api/user/jurisdictions", json={"jurisdictionId": jurisdiction_id})
        response = alice.post("/api/user/jurisdictions", json={"jurisdictionId": jurisdiction_id})
        assert response.status_code == 400
        assert response.json() == {"message": "Already subscribed to this jurisdiction"}

    def test_unknown_jurisdiction(self, alice):
        response = alice.post("/api/user/jurisdictions", json={"jurisdictionId": 424242})
        assert response.status_code == 404
        assert response.json() == {"message": "Jurisdiction not found"}

    def test_new_primary_demotes_previous(self, admin, alice):
        first = admin.post("/api/jurisdictions/import", json=jurisdiction_document("Malta")).json()
        second = admin.post("/api/jurisdictions/import", json=jurisdiction_document("Singapore")).json()
        malta_id = first["document"]["jurisdiction"]["id"]
        singapore_id = second["document"]["jurisdiction"]["id"]

        alice.post("/api/user/jurisdictions", json={"jurisdictionId": malta_id, "isPrimary": True})
        alice.post("/api/user/jurisdictions", json={"jurisdictionId": singapore_id, "isPrimary": True})

        subscriptions = alice.get("/api/user/jurisdictions").json()
        assert [(s["jurisdictionName"], s["isPrimary"]) for s in subscriptions] == [
            ("Singapore", True), ("Malta", False),
        ]

    def test_unsubscribe(self, alice, session, jurisdiction_id):
        subscription = alice.post("/api/user/jurisdictions", json={"jurisdictionId": jurisdiction_id}).json()
        response = alice.delete(f"/api/user/jurisdictions/{subscription['id']}")
        assert response.status_code == 200
        assert response.json() == {"message": "Unsubscribed from jurisdiction"}
        assert session.query(UserJurisdiction).count() == 0

    def test_cannot_remove_another_users_subscription(self, alice, bob, session, jurisdiction_id):
        subscription = alice.post("/api/user/jurisdictions", json={"jurisdictionId": jurisdiction_id}).json()
        assert bob.delete(f"/api/user/jurisdictions/{subscription['id']}").status_code == 403
        assert session.query(UserJurisdiction).count() == 1

    def test_unknown_subscription(self, alice):
        response = alice.delete("/api/user/jurisdictions/424242")
        assert response.status_code == 404
        assert response.json() == {"message": "Subscription not found"}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
