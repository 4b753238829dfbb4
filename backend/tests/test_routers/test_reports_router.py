"""Integration tests for /api/reports endpoints."""

import repositories.db_models as db_models
from authentication.auth import create_admin_token

Status = db_models.ReportStatus

SUBMISSION = {
    "type": "flooding",
    "description": "Knee-deep flood, small cars cannot pass",
    "address": "España Boulevard near UST",
    "latitude": 14.6096,
    "longitude": 120.9894,
    "province": "Metro Manila",
    "city": "Manila",
    "barangay": "Sampaloc",
    "severity": "high",
}


class TestSubmit:
    def test_anonymous_submission(self, client):
        response = client.post(
            "/api/reports",
            json={**SUBMISSION, "reported_by": {"name": "Rosa", "phone": "09171112222"}},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "pending"
        assert data["reporter_name"] == "Rosa"
        assert data["submitted_by_id"] is None
        assert data["verified_at"] is None

    def test_signed_in_submission(self, client, reporter, reporter_headers):
        response = client.post("/api/reports", json=SUBMISSION, headers=reporter_headers)

        assert response.status_code == 201
        assert response.json()["submitted_by_id"] == reporter.id

    def test_out_of_range_latitude(self, client, db_session):
        response = client.post("/api/reports", json={**SUBMISSION, "latitude": 95})

        assert response.status_code == 422
        body = response.json()
        assert "Latitude" in body["detail"]
        assert "correlation_id" in body
        assert db_session.query(db_models.Report).count() == 0

    def test_unknown_type(self, client):
        response = client.post("/api/reports", json={**SUBMISSION, "type": "volcano"})

        assert response.status_code == 422

    def test_daily_limit_status(self, client, reporter_headers):
        client.post("/api/reports", json=SUBMISSION, headers=reporter_headers)

        response = client.get("/api/reports/daily-limit", headers=reporter_headers)

        assert response.status_code == 200
        assert response.json()["used_today"] == 1

    def test_my_reports_require_login(self, client):
        assert client.get("/api/reports/mine").status_code == 401


class TestPublicMap:
    def test_only_verified_and_resolved_are_public(self, client, report_factory):
        visible = report_factory(status=Status.VERIFIED)
        report_factory(status=Status.PENDING)
        report_factory(status=Status.REJECTED)
        resolved = report_factory(status=Status.RESOLVED)

        response = client.get("/api/reports/map")

        assert response.status_code == 200
        ids = {item["id"] for item in response.json()["items"]}
        assert ids == {visible.id, resolved.id}

    def test_asking_for_pending_returns_nothing(self, client, report_factory):
        report_factory(status=Status.PENDING)

        response = client.get("/api/reports/map", params={"status": "pending"})

        assert response.json() == {"items": [], "count": 0}

    def test_map_items_hide_reporter_contact(self, client, report_factory):
        report_factory(status=Status.VERIFIED, reporter_email="secret@example.com")

        item = client.get("/api/reports/map").json()["items"][0]

        assert "reporter_email" not in item
        assert item["latitude"] == 14.5547

    def test_bad_filter_value(self, client):
        response = client.get("/api/reports/map", params={"status": "fixed"})

        assert response.status_code == 422
        assert "Invalid filter" in response.json()["detail"]


class TestAdminQueries:
    def test_listing_requires_token(self, client):
        assert client.get("/api/reports").status_code == 401

    def test_reporter_token_is_not_an_admin_token(self, client, reporter_headers):
        assert client.get("/api/reports", headers=reporter_headers).status_code == 401

    def test_combined_filters(self, client, report_factory, viewer_headers):
        report_factory(status=Status.VERIFIED, type=db_models.ReportType.POTHOLE)
        report_factory(status=Status.VERIFIED, type=db_models.ReportType.POTHOLE)
        report_factory(status=Status.VERIFIED, type=db_models.ReportType.FLOODING)
        report_factory(status=Status.PENDING, type=db_models.ReportType.POTHOLE)
        report_factory(status=Status.PENDING, type=db_models.ReportType.POTHOLE)

        response = client.get(
            "/api/reports",
            params={"status": "verified", "type": "pothole"},
            headers=viewer_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert all(
            r["status"] == "verified" and r["type"] == "pothole" for r in data["items"]
        )

        everything = client.get(
            "/api/reports", params={"status": "all", "type": ""}, headers=viewer_headers
        )
        assert everything.json()["total"] == 5

    def test_limit_is_capped(self, client, viewer_headers):
        response = client.get(
            "/api/reports", params={"limit": 500}, headers=viewer_headers
        )

        assert response.status_code == 422

    def test_admin_map_shows_every_status(self, client, report_factory, viewer_headers):
        report_factory(status=Status.PENDING)
        report_factory(status=Status.REJECTED)

        response = client.get("/api/reports/admin/map", headers=viewer_headers)

        assert response.json()["count"] == 2

    def test_get_unknown_report(self, client, viewer_headers):
        response = client.get("/api/reports/4040", headers=viewer_headers)

        assert response.status_code == 404

    def test_statistics_need_analytics_permission(self, client, viewer_headers):
        response = client.get("/api/reports/statistics", headers=viewer_headers)

        assert response.status_code == 403

    def test_statistics(self, client, report_factory, regular_admin_headers):
        report_factory(status=Status.VERIFIED)

        response = client.get(
            "/api/reports/statistics", params={"days": 14}, headers=regular_admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["verified"] == 1
        assert len(data["daily_trend"]) == 14


class TestStatusChange:
    def test_verify(self, client, pending_report, regular_admin, regular_admin_headers):
        response = client.patch(
            f"/api/reports/{pending_report.id}/status",
            json={"status": "verified", "admin_notes": "Confirmed"},
            headers=regular_admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "verified"
        assert data["verified_by"]["id"] == regular_admin.id
        assert data["verified_at"] is not None

    def test_illegal_transition_is_a_conflict(
        self, client, report_factory, super_admin_headers
    ):
        report = report_factory(status=Status.REJECTED)

        response = client.patch(
            f"/api/reports/{report.id}/status",
            json={"status": "verified"},
            headers=super_admin_headers,
        )

        assert response.status_code == 409
        body = response.json()
        assert body["type"] == "invalid_transition"
        assert body["current_status"] == "rejected"
        assert body["target_status"] == "verified"

    def test_missing_permission(self, client, pending_report, viewer_headers):
        response = client.patch(
            f"/api/reports/{pending_report.id}/status",
            json={"status": "verified"},
            headers=viewer_headers,
        )

        assert response.status_code == 403

    def test_no_token(self, client, pending_report):
        response = client.patch(
            f"/api/reports/{pending_report.id}/status", json={"status": "verified"}
        )

        assert response.status_code == 401

    def test_resolve_without_feedback(
        self, client, verified_report, super_admin_headers
    ):
        response = client.patch(
            f"/api/reports/{verified_report.id}/status",
            json={"status": "resolved"},
            headers=super_admin_headers,
        )

        assert response.status_code == 422

    def test_history(self, client, pending_report, super_admin_headers):
        client.patch(
            f"/api/reports/{pending_report.id}/status",
            json={"status": "rejected", "admin_notes": "Not a road hazard"},
            headers=super_admin_headers,
        )

        response = client.get(
            f"/api/reports/{pending_report.id}/history", headers=super_admin_headers
        )

        assert [entry["action"] for entry in response.json()] == ["report_reject"]


class TestEditAndDelete:
    def test_edit(self, client, pending_report, regular_admin_headers):
        response = client.put(
            f"/api/reports/{pending_report.id}",
            json={"priority": "urgent", "affected_lanes": 2},
            headers=regular_admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["priority"] == "urgent"
        assert response.json()["status"] == "pending"

    def test_regular_admin_cannot_delete(
        self, client, db_session, pending_report, regular_admin_headers
    ):
        response = client.delete(
            f"/api/reports/{pending_report.id}", headers=regular_admin_headers
        )

        assert response.status_code == 403
        entry = db_session.query(db_models.ActivityLog).one()
        assert entry.outcome == db_models.AuditOutcome.BLOCKED
        assert entry.resource_id == str(pending_report.id)

    def test_super_admin_deletes(
        self, client, pending_report, super_admin, super_admin_headers
    ):
        response = client.delete(
            f"/api/reports/{pending_report.id}", headers=super_admin_headers
        )

        assert response.status_code == 204
        assert (
            client.get(
                f"/api/reports/{pending_report.id}", headers=super_admin_headers
            ).status_code
            == 404
        )

    def test_deactivated_admin_token_is_refused(
        self, client, db_session, regular_admin, pending_report
    ):
        headers = {"Authorization": f"Bearer {create_admin_token(regular_admin)}"}
        regular_admin.is_active = False
        db_session.commit()

        response = client.get(f"/api/reports/{pending_report.id}", headers=headers)

        assert response.status_code == 401
