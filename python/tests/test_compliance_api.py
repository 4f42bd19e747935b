"""
Tests for compliance reporting: report types, reports, schedules and news.
"""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from news_client import NewsFetchError


@pytest.fixture
def report_type(admin):
    response = admin.post("/api/compliance/report-types", json={
        "name": "Suspicious Transaction Report",
        "category": "AML",
        "frequency": "ad_hoc",
        "appliesTo": "exchange",
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def schedule(alice, report_type):
    response = alice.post("/api/compliance/report-schedules", json={
        "reportTypeId": report_type["id"],
        "entityType": "exchange",
        "frequency": "monthly",
        "nextDueDate": "2025-01-31",
    })
    assert response.status_code == 201, response.text
    return response.json()


class TestReportTypes:
    """Tests for the report type catalog."""

    def test_anyone_logged_in_can_list(self, alice, report_type):
        names = [t["name"] for t in alice.get("/api/compliance/report-types").json()]
        assert names == ["Suspicious Transaction Report"]

    def test_create_is_admin_only(self, alice):
        response = alice.post("/api/compliance/report-types", json={
            "name": "Travel Rule Report", "category": "AML", "frequency": "monthly", "appliesTo": "exchange",
        })
        assert response.status_code == 403

    def test_duplicate_name(self, admin, report_type):
        response = admin.post("/api/compliance/report-types", json={
            "name": "Suspicious Transaction Report", "category": "AML",
            "frequency": "ad_hoc", "appliesTo": "exchange",
        })
        assert response.status_code == 400
        assert response.json()["message"] == "Report type already exists: Suspicious Transaction Report"

    def test_unknown_frequency(self, admin):
        response = admin.post("/api/compliance/report-types", json={
            "name": "Hourly report", "category": "AML", "frequency": "hourly", "appliesTo": "exchange",
        })
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == ["frequency"]


class TestComplianceReports:
    """Tests for report filings."""

    def test_create_and_read(self, alice, report_type):
        response = alice.post("/api/compliance/reports", json={
            "reportTypeId": report_type["id"],
            "entityType": "exchange",
            "title": "STR 2025-014",
            "dueDate": "2025-10-01",
            "reportData": {"transactions": 3},
        })
        assert response.status_code == 201
        report = response.json()
        assert report["status"] == "draft"
        assert report["userId"] == alice.user_id
        assert report["submissionDate"] is None

        fetched = alice.get(f"/api/compliance/reports/{report['id']}").json()
        assert fetched["reportData"] == {"transactions": 3}

    def test_unknown_report_type(self, alice):
        response = alice.post("/api/compliance/reports", json={
            "reportTypeId": 999999, "entityType": "exchange", "title": "Orphan",
        })
        assert response.status_code == 404
        assert response.json() == {"message": "Report type not found"}

    def test_submitting_stamps_submission_date(self, alice, report_type):
        report = alice.post("/api/compliance/reports", json={
            "reportTypeId": report_type["id"], "entityType": "exchange", "title": "STR 2025-015",
        }).json()

        response = alice.patch(f"/api/compliance/reports/{report['id']}", json={"status": "submitted"})
        assert response.status_code == 200
        assert response.json()["status"] == "submitted"
        assert response.json()["submissionDate"] is not None

    def test_explicit_submission_date_kept(self, alice, report_type):
        report = alice.post("/api/compliance/reports", json={
            "reportTypeId": report_type["id"], "entityType": "exchange", "title": "STR 2025-016",
        }).json()

        response = alice.patch(f"/api/compliance/reports/{report['id']}", json={
            "status": "submitted", "submissionDate": "2025-09-30T12:00:00",
        })
        assert response.json()["submissionDate"].startswith("2025-09-30T12:00:00")

    def test_visibility(self, alice, bob, admin, report_type):
        report = alice.post("/api/compliance/reports", json={
            "reportTypeId": report_type["id"], "entityType": "exchange", "title": "STR 2025-017",
        }).json()
        path = f"/api/compliance/reports/{report['id']}"

        assert bob.get(path).status_code == 403
        assert admin.get(path).status_code == 200
        assert bob.get("/api/compliance/reports").json() == []
        assert len(admin.get("/api/compliance/reports").json()) == 1

    def test_missing_report(self, alice):
        response = alice.get("/api/compliance/reports/999999")
        assert response.status_code == 404
        assert response.json() == {"message": "Report not found"}

    @pytest.mark.parametrize("field", ["title", "status"])
    def test_null_for_required_column_rejected(self, alice, report_type, field):
        report = alice.post("/api/compliance/reports", json={
            "reportTypeId": report_type["id"], "entityType": "exchange", "title": "STR 2025-018",
        }).json()

        response = alice.patch(f"/api/compliance/reports/{report['id']}", json={field: None})
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == [field]
        assert alice.get(f"/api/compliance/reports/{report['id']}").json()["title"] == "STR 2025-018"

    def test_null_for_optional_column_clears_it(self, alice, report_type):
        report = alice.post("/api/compliance/reports", json={
            "reportTypeId": report_type["id"], "entityType": "exchange", "title": "STR 2025-019", "notes": "draft",
        }).json()
        response = alice.patch(f"/api/compliance/reports/{report['id']}", json={"notes": None})
        assert response.status_code == 200
        assert response.json()["notes"] is None


class TestReportSchedules:
    """Tests for recurring schedules."""

    def test_defaults(self, schedule):
        assert schedule["status"] == "active"
        assert schedule["reminderDaysBefore"] == 7
        assert schedule["remindersEnabled"] is True

    def test_upcoming_clamps_month_end(self, alice, schedule):
        response = alice.get(f"/api/compliance/report-schedules/{schedule['id']}/upcoming", params={"count": 3})
        assert response.status_code == 200
        assert response.json() == {
            "scheduleId": schedule["id"],
            "frequency": "monthly",
            "dueDates": ["2025-01-31", "2025-02-28", "2025-03-31"],
        }

    def test_upcoming_default_count(self, alice, schedule):
        dates = alice.get(f"/api/compliance/report-schedules/{schedule['id']}/upcoming").json()["dueDates"]
        assert len(dates) == 6

    @pytest.mark.parametrize("count", [0, 25])
    def test_upcoming_count_bounds(self, alice, schedule, count):
        response = alice.get(f"/api/compliance/report-schedules/{schedule['id']}/upcoming", params={"count": count})
        assert response.status_code == 400

    def test_generate_advances_schedule(self, alice, schedule):
        response = alice.post(f"/api/compliance/report-schedules/{schedule['id']}/generate")
        assert response.status_code == 201
        body = response.json()
        assert body["report"]["title"] == "Suspicious Transaction Report - 2025-01-31"
        assert body["report"]["dueDate"] == "2025-01-31"
        assert body["report"]["status"] == "draft"
        assert body["schedule"]["nextDueDate"] == "2025-02-28"

        reports = alice.get("/api/compliance/reports").json()
        assert [r["id"] for r in reports] == [body["report"]["id"]]

    def test_generated_dates_match_upcoming(self, alice, schedule):
        """Generation keeps returning to the 31st after February, as the projection does."""
        path = f"/api/compliance/report-schedules/{schedule['id']}"
        upcoming = alice.get(f"{path}/upcoming", params={"count": 4}).json()["dueDates"]

        generated = [alice.post(f"{path}/generate").json()["report"]["dueDate"] for _ in range(3)]
        assert generated == ["2025-01-31", "2025-02-28", "2025-03-31"]
        assert generated == upcoming[:3]
        assert alice.get(f"{path}/upcoming", params={"count": 2}).json()["dueDates"] == ["2025-04-30", "2025-05-31"]

    def test_redating_moves_anchor(self, alice, schedule):
        path = f"/api/compliance/report-schedules/{schedule['id']}"
        assert alice.patch(path, json={"nextDueDate": "2025-04-15"}).status_code == 200

        dates = alice.get(f"{path}/upcoming", params={"count": 3}).json()["dueDates"]
        assert dates == ["2025-04-15", "2025-05-15", "2025-06-15"]

    @pytest.mark.parametrize("field", [
        "frequency", "nextDueDate", "status", "reminderDaysBefore", "remindersEnabled",
    ])
    def test_null_for_required_column_rejected(self, alice, schedule, field):
        response = alice.patch(f"/api/compliance/report-schedules/{schedule['id']}", json={field: None})
        assert response.status_code == 400
        assert response.json()["errors"][0]["path"] == [field]

    def test_paused_schedule_cannot_generate(self, alice, schedule):
        path = f"/api/compliance/report-schedules/{schedule['id']}"
        assert alice.patch(path, json={"status": "paused"}).json()["status"] == "paused"

        response = alice.post(f"{path}/generate")
        assert response.status_code == 400
        assert "paused" in response.json()["message"]

    def test_ad_hoc_schedule_completes(self, alice, report_type):
        schedule = alice.post("/api/compliance/report-schedules", json={
            "reportTypeId": report_type["id"], "entityType": "exchange",
            "frequency": "ad_hoc", "nextDueDate": "2025-05-01",
        }).json()
        body = alice.post(f"/api/compliance/report-schedules/{schedule['id']}/generate").json()
        assert body["schedule"]["status"] == "completed"
        assert body["schedule"]["nextDueDate"] == "2025-05-01"

    def test_other_user_forbidden(self, bob, schedule):
        assert bob.get(f"/api/compliance/report-schedules/{schedule['id']}/upcoming").status_code == 403
        assert bob.get("/api/compliance/report-schedules").json() == []

    def test_missing_schedule(self, alice):
        response = alice.patch("/api/compliance/report-schedules/999999", json={"status": "paused"})
        assert response.status_code == 404
        assert response.json() == {"message": "Report schedule not found"}

    def test_schedule_needs_known_report_type(self, alice):
        response = alice.post("/api/compliance/report-schedules", json={
            "reportTypeId": 999999, "entityType": "exchange", "frequency": "monthly", "nextDueDate": "2025-01-31",
        })
        assert response.status_code == 404


class TestComplianceNews:
    """The news feed is proxied; the upstream client is mocked."""

    def test_returns_articles(self, alice):
        articles = [{"title": "MiCA in force", "description": "d", "url": "https://n.example.com/1",
                     "publishedAt": "2025-10-01T00:00:00Z", "source": "Wire"}]
        with patch("api.routes.compliance.NewsClient") as client_cls:
            client_cls.return_value.fetch_articles.return_value = articles
            response = alice.get("/api/compliance/news")
        assert response.status_code == 200
        assert response.json() == articles

    def test_upstream_failure_is_500(self, alice):
        with patch("api.routes.compliance.NewsClient") as client_cls:
            client_cls.return_value.fetch_articles.side_effect = NewsFetchError("News API returned HTTP 503")
            response = alice.get("/api/compliance/news")
        assert response.status_code == 500
        assert response.json()["message"] == "Failed to fetch compliance news"

    def test_requires_login(self, client):
        assert client.get("/api/compliance/news").status_code == 401


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
