"""Integration tests for /api/users endpoints."""

import repositories.db_models as db_models


class TestUsersRouter:
    def test_list_and_search(self, client, reporter, regular_admin_headers):
        response = client.get(
            "/api/users", params={"search": "dela cruz"}, headers=regular_admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["username"] == "juan"
        assert "hashed_password" not in data["items"][0]

    def test_viewer_cannot_list(self, client, reporter, viewer_headers):
        assert client.get("/api/users", headers=viewer_headers).status_code == 403

    def test_freeze_needs_permission(
        self, client, db_session, reporter, regular_admin_headers
    ):
        response = client.post(
            f"/api/users/{reporter.id}/freeze", headers=regular_admin_headers
        )

        assert response.status_code == 403
        entry = db_session.query(db_models.ActivityLog).one()
        assert entry.action == db_models.AuditAction.USER_FREEZE
        assert entry.outcome == db_models.AuditOutcome.BLOCKED
        assert entry.resource_id == str(reporter.id)

    def test_frozen_reporter_loses_access(
        self, client, reporter, reporter_headers, admin_factory
    ):
        from authentication.auth import create_admin_token
        from models.permissions import Permission

        freezer = admin_factory("freezer", permissions=[Permission.USER_FREEZE])
        headers = {"Authorization": f"Bearer {create_admin_token(freezer)}"}

        frozen = client.post(f"/api/users/{reporter.id}/freeze", headers=headers)
        assert frozen.json()["is_frozen"] is True

        mine = client.get("/api/reports/mine", headers=reporter_headers)
        assert mine.status_code == 401

        unfrozen = client.post(f"/api/users/{reporter.id}/unfreeze", headers=headers)
        assert unfrozen.json()["is_frozen"] is False

    def test_delete(self, client, reporter, super_admin_headers):
        response = client.delete(f"/api/users/{reporter.id}", headers=super_admin_headers)

        assert response.status_code == 204
        assert (
            client.get(f"/api/users/{reporter.id}", headers=super_admin_headers).status_code
            == 404
        )
