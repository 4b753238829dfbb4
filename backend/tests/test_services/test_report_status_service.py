"""Tests for ReportStatusService transitions."""

import itertools

import pytest
from sqlalchemy.exc import SQLAlchemyError

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    InsufficientPermissionsException,
    InvalidTransitionException,
    ReportNotFoundException,
    ValidationException,
)
from models.permissions import Permission
from repositories.activity_log_repository import ActivityLogRepository
from services.report_status_service import (
    LEGAL_TRANSITIONS,
    ReportStatusService,
    is_legal_transition,
)

Status = db_models.ReportStatus
FEEDBACK = "Patched with cold asphalt by the city crew"


def _change(status: Status, **kwargs) -> schemas.StatusChange:
    if status == Status.RESOLVED:
        kwargs.setdefault("admin_feedback", FEEDBACK)
    return schemas.StatusChange(status=status, **kwargs)


def _audit_entries(db_session, report_id):
    return (
        db_session.query(db_models.ActivityLog)
        .filter(
            db_models.ActivityLog.resource_type == "report",
            db_models.ActivityLog.resource_id == str(report_id),
        )
        .all()
    )


class TestTransitionGraph:
    def test_legal_edges(self):
        assert is_legal_transition(Status.PENDING, Status.VERIFIED)
        assert is_legal_transition(Status.PENDING, Status.REJECTED)
        assert is_legal_transition(Status.VERIFIED, Status.RESOLVED)

    def test_pending_cannot_jump_to_resolved(self):
        assert not is_legal_transition(Status.PENDING, Status.RESOLVED)

    def test_terminal_states_have_no_exits(self):
        assert LEGAL_TRANSITIONS[Status.REJECTED] == frozenset()
        assert LEGAL_TRANSITIONS[Status.RESOLVED] == frozenset()

    @pytest.mark.parametrize(
        "current,target",
        [
            (c, t)
            for c, t in itertools.product(Status, Status)
            if c != t and t != Status.PENDING
        ],
    )
    def test_every_pair_is_accepted_iff_legal(
        self, db_session, report_factory, super_admin, current, target
    ):
        report = report_factory(status=current)

        if is_legal_transition(current, target):
            updated = ReportStatusService.change_status(
                db_session, report.id, _change(target), super_admin
            )
            assert updated.status == target
        else:
            with pytest.raises(InvalidTransitionException):
                ReportStatusService.change_status(
                    db_session, report.id, _change(target), super_admin
                )
            db_session.refresh(report)
            assert report.status == current

    @pytest.mark.parametrize("current", list(Status))
    def test_pending_is_never_a_target(
        self, db_session, report_factory, super_admin, current
    ):
        report = report_factory(status=current)

        with pytest.raises(InvalidTransitionException):
            ReportStatusService.change_status(
                db_session, report.id, _change(Status.PENDING), super_admin
            )


class TestSideEffects:
    def test_verify_stamps_reviewer_and_time(
        self, db_session, pending_report, regular_admin
    ):
        report = ReportStatusService.change_status(
            db_session,
            pending_report.id,
            _change(Status.VERIFIED, admin_notes="Confirmed by barangay tanod"),
            regular_admin,
        )

        assert report.status == Status.VERIFIED
        assert report.verified_by_id == regular_admin.id
        assert report.verified_at is not None
        assert report.admin_notes == "Confirmed by barangay tanod"
        assert report.resolved_at is None

    def test_reject_does_not_stamp_verification(
        self, db_session, pending_report, regular_admin
    ):
        report = ReportStatusService.change_status(
            db_session,
            pending_report.id,
            _change(Status.REJECTED, admin_notes="Duplicate of #12"),
            regular_admin,
        )

        assert report.status == Status.REJECTED
        assert report.verified_at is None
        assert report.verified_by_id is None
        assert report.admin_notes == "Duplicate of #12"

    def test_resolve_stamps_resolution_and_keeps_verification(
        self, db_session, verified_report, regular_admin
    ):
        verified_at = verified_report.verified_at

        report = ReportStatusService.change_status(
            db_session, verified_report.id, _change(Status.RESOLVED), regular_admin
        )

        assert report.status == Status.RESOLVED
        assert report.resolved_by_id == regular_admin.id
        assert report.resolved_at is not None
        assert report.admin_feedback == FEEDBACK
        assert report.verified_at == verified_at

    def test_resolve_requires_feedback(self, db_session, verified_report, super_admin):
        with pytest.raises(ValidationException):
            ReportStatusService.change_status(
                db_session,
                verified_report.id,
                schemas.StatusChange(status=Status.RESOLVED, admin_feedback="done"),
                super_admin,
            )

        db_session.refresh(verified_report)
        assert verified_report.status == Status.VERIFIED

    def test_resolve_stores_evidence_photo(
        self, db_session, verified_report, super_admin
    ):
        photo = schemas.ImageAttachment(
            url="https://cdn.example.com/evidence.jpg", mimetype="image/jpeg", size=2048
        )

        report = ReportStatusService.change_status(
            db_session,
            verified_report.id,
            _change(Status.RESOLVED, evidence_photo=photo),
            super_admin,
        )

        assert report.evidence_photo["url"] == "https://cdn.example.com/evidence.jpg"

    def test_transition_writes_one_audit_entry(
        self, db_session, pending_report, regular_admin
    ):
        ReportStatusService.change_status(
            db_session, pending_report.id, _change(Status.VERIFIED), regular_admin
        )

        entries = _audit_entries(db_session, pending_report.id)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.action == db_models.AuditAction.REPORT_VERIFY
        assert entry.admin_id == regular_admin.id
        assert entry.previous_values == {"status": "pending"}
        assert entry.new_values["status"] == "verified"
        assert entry.details["report_type"] == "pothole"

    def test_unknown_report(self, db_session, super_admin):
        with pytest.raises(ReportNotFoundException):
            ReportStatusService.change_status(
                db_session, 9999, _change(Status.VERIFIED), super_admin
            )


class TestIdempotence:
    def test_repeat_verify_is_a_no_op(self, db_session, pending_report, super_admin):
        first = ReportStatusService.change_status(
            db_session, pending_report.id, _change(Status.VERIFIED), super_admin
        )
        verified_at = first.verified_at

        second = ReportStatusService.change_status(
            db_session, pending_report.id, _change(Status.VERIFIED), super_admin
        )

        assert second.status == Status.VERIFIED
        assert second.verified_at == verified_at
        assert len(_audit_entries(db_session, pending_report.id)) == 1

    def test_repeat_reject_is_a_no_op(self, db_session, report_factory, super_admin):
        report = report_factory(status=Status.REJECTED)

        result = ReportStatusService.change_status(
            db_session, report.id, _change(Status.REJECTED), super_admin
        )

        assert result.status == Status.REJECTED
        assert _audit_entries(db_session, report.id) == []


class TestPermissions:
    def test_super_admin_passes_with_empty_permission_list(
        self, db_session, pending_report, admin_factory
    ):
        from models.permissions import AdminRole

        chief = admin_factory("chief2", role=AdminRole.SUPER_ADMIN, permissions=[])

        report = ReportStatusService.change_status(
            db_session, pending_report.id, _change(Status.VERIFIED), chief
        )

        assert report.status == Status.VERIFIED

    def test_missing_permission_is_denied_before_any_write(
        self, db_session, pending_report, viewer_admin
    ):
        with pytest.raises(InsufficientPermissionsException):
            ReportStatusService.change_status(
                db_session, pending_report.id, _change(Status.VERIFIED), viewer_admin
            )

        db_session.refresh(pending_report)
        assert pending_report.status == Status.PENDING
        assert pending_report.verified_at is None

    def test_permission_check_precedes_transition_check(
        self, db_session, report_factory, viewer_admin
    ):
        report = report_factory(status=Status.REJECTED)

        # Illegal edge, but the missing permission is reported first
        with pytest.raises(InsufficientPermissionsException):
            ReportStatusService.change_status(
                db_session, report.id, _change(Status.RESOLVED), viewer_admin
            )

    def test_denied_attempt_is_recorded_as_blocked(
        self, db_session, pending_report, viewer_admin
    ):
        with pytest.raises(InsufficientPermissionsException):
            ReportStatusService.change_status(
                db_session, pending_report.id, _change(Status.REJECTED), viewer_admin
            )

        entries = _audit_entries(db_session, pending_report.id)
        assert len(entries) == 1
        assert entries[0].outcome == db_models.AuditOutcome.BLOCKED
        assert entries[0].action == db_models.AuditAction.REPORT_REJECT

    def test_inactive_admin_holds_nothing(
        self, db_session, pending_report, admin_factory
    ):
        admin = admin_factory(
            "retired", permissions=[Permission.REPORT_VERIFY], is_active=False
        )

        with pytest.raises(InsufficientPermissionsException):
            ReportStatusService.change_status(
                db_session, pending_report.id, _change(Status.VERIFIED), admin
            )


class TestConcurrentReview:
    def test_second_reviewer_on_stale_state_fails(
        self, db_session, other_session, pending_report, super_admin, regular_admin
    ):
        # Second reviewer has already loaded the report while it is pending
        stale = other_session.get(db_models.Report, pending_report.id)
        stale_admin = other_session.get(db_models.Admin, regular_admin.id)
        assert stale.status == Status.PENDING

        ReportStatusService.change_status(
            db_session, pending_report.id, _change(Status.VERIFIED), super_admin
        )

        with pytest.raises(InvalidTransitionException) as exc_info:
            ReportStatusService.change_status(
                other_session,
                pending_report.id,
                _change(Status.REJECTED),
                stale_admin,
            )
        assert exc_info.value.current_status == "verified"

        db_session.expire_all()
        report = db_session.get(db_models.Report, pending_report.id)
        assert report.status == Status.VERIFIED
        assert report.verified_by_id == super_admin.id
        assert len(_audit_entries(db_session, pending_report.id)) == 1


class TestAuditFailure:
    def test_audit_failure_does_not_undo_transition(
        self, db_session, pending_report, super_admin, monkeypatch
    ):
        def failing_create(self, entity):
            raise SQLAlchemyError("activity_logs is locked")

        monkeypatch.setattr(ActivityLogRepository, "create", failing_create)

        report = ReportStatusService.change_status(
            db_session, pending_report.id, _change(Status.VERIFIED), super_admin
        )

        assert report.status == Status.VERIFIED
        db_session.expire_all()
        stored = db_session.get(db_models.Report, pending_report.id)
        assert stored.status == Status.VERIFIED
        assert _audit_entries(db_session, pending_report.id) == []

    def test_audit_failure_is_reported_to_sentry(
        self, db_session, pending_report, super_admin, monkeypatch
    ):
        captured = []

        def failing_create(self, entity):
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(ActivityLogRepository, "create", failing_create)
        monkeypatch.setattr(
            "services.audit_service.sentry_sdk.capture_exception", captured.append
        )

        ReportStatusService.change_status(
            db_session, pending_report.id, _change(Status.REJECTED), super_admin
        )

        assert len(captured) == 1
        assert isinstance(captured[0], SQLAlchemyError)
