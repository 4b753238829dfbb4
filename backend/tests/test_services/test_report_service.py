"""Tests for ReportService submission, editing and queries."""

from datetime import datetime, timedelta, timezone

import pytest

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    CannotDeleteReportException,
    DailyReportLimitExceededException,
    InactiveAccountException,
    ReportNotFoundException,
    ValidationException,
)
from services.report_service import ReportService
from services.settings_service import SettingsService

Status = db_models.ReportStatus
ReportType = db_models.ReportType


def _submission(**overrides) -> schemas.ReportCreate:
    values = {
        "type": ReportType.POTHOLE,
        "description": "Knee-deep pothole near the jeepney stop",
        "address": "Katipunan Avenue, near Miriam College",
        "latitude": 14.6400,
        "longitude": 121.0760,
        "province": "Metro Manila",
        "city": "Quezon City",
        "barangay": "Loyola Heights",
        "severity": db_models.Severity.HIGH,
    }
    values.update(overrides)
    return schemas.ReportCreate(**values)


def _set_setting(db_session, key, value):
    SettingsService.initialize_defaults(db_session)
    setting = SettingsService.get_setting(db_session, key)
    setting.value = value
    db_session.commit()


class TestCreateReport:
    def test_anonymous_submission_is_pending(self, db_session):
        report = ReportService.create_report(
            db_session,
            _submission(reported_by=schemas.ReporterInfo(name="Maria")),
        )

        assert report.id is not None
        assert report.status == Status.PENDING
        assert report.submitted_by_id is None
        assert report.reporter_name == "Maria"
        assert report.verified_at is None
        assert report.resolved_at is None

    def test_signed_in_reporter_is_copied_onto_report(self, db_session, reporter):
        report = ReportService.create_report(
            db_session,
            _submission(reported_by=schemas.ReporterInfo(name="Someone Else")),
            reporter,
        )

        assert report.submitted_by_id == reporter.id
        assert report.reporter_name == "Juan dela Cruz"
        assert report.reporter_email == "juan@example.com"

    def test_whitespace_is_trimmed(self, db_session):
        report = ReportService.create_report(
            db_session, _submission(address="  Commonwealth Ave  ", city=" Quezon City ")
        )

        assert report.address == "Commonwealth Ave"
        assert report.city == "Quezon City"

    @pytest.mark.parametrize(
        "latitude,longitude",
        [(95.0, 121.0), (-90.5, 121.0), (14.5, -200.0), (14.5, 180.5)],
    )
    def test_out_of_range_coordinates_are_rejected_before_persisting(
        self, db_session, latitude, longitude
    ):
        with pytest.raises(ValidationException):
            ReportService.create_report(
                db_session, _submission(latitude=latitude, longitude=longitude)
            )

        assert db_session.query(db_models.Report).count() == 0

    def test_boundary_coordinates_are_accepted(self, db_session):
        report = ReportService.create_report(
            db_session, _submission(latitude=-90.0, longitude=180.0)
        )

        assert report.latitude == -90.0

    @pytest.mark.parametrize("address", ["", "ab", "x" * 201])
    def test_address_length(self, db_session, address):
        with pytest.raises(ValidationException):
            ReportService.create_report(db_session, _submission(address=address))

    def test_description_too_long(self, db_session):
        with pytest.raises(ValidationException):
            ReportService.create_report(
                db_session, _submission(description="x" * 501)
            )

    @pytest.mark.parametrize("field", ["province", "city", "barangay"])
    def test_location_parts_are_required(self, db_session, field):
        with pytest.raises(ValidationException) as exc_info:
            ReportService.create_report(db_session, _submission(**{field: "  "}))

        assert "is required" in exc_info.value.message

    def test_images_are_stored_in_order(self, db_session):
        images = [
            schemas.ImageAttachment(
                url=f"https://cdn.example.com/{name}.jpg",
                mimetype="IMAGE/JPEG",
                size=1024,
            )
            for name in ("wide", "close")
        ]

        report = ReportService.create_report(db_session, _submission(images=images))

        assert [image.position for image in report.images] == [0, 1]
        assert report.images[1].url == "https://cdn.example.com/close.jpg"
        assert report.images[0].mimetype == "image/jpeg"

    def test_non_image_attachment_is_rejected(self, db_session):
        attachment = schemas.ImageAttachment(
            url="https://cdn.example.com/notes.pdf", mimetype="application/pdf"
        )

        with pytest.raises(ValidationException):
            ReportService.create_report(
                db_session, _submission(images=[attachment])
            )

    def test_require_image_setting(self, db_session):
        _set_setting(db_session, "require_image", True)

        with pytest.raises(ValidationException) as exc_info:
            ReportService.create_report(db_session, _submission())

        assert "image" in exc_info.value.message

    def test_frozen_reporter_cannot_submit(self, db_session, reporter):
        reporter.is_frozen = True
        db_session.commit()

        with pytest.raises(InactiveAccountException):
            ReportService.create_report(db_session, _submission(), reporter)

    def test_daily_limit(self, db_session, reporter):
        _set_setting(db_session, "max_reports_per_day", 2)

        ReportService.create_report(db_session, _submission(), reporter)
        ReportService.create_report(db_session, _submission(), reporter)

        with pytest.raises(DailyReportLimitExceededException):
            ReportService.create_report(db_session, _submission(), reporter)

    def test_daily_limit_ignores_anonymous_reports(self, db_session):
        _set_setting(db_session, "max_reports_per_day", 1)

        ReportService.create_report(db_session, _submission())
        ReportService.create_report(db_session, _submission())

        assert db_session.query(db_models.Report).count() == 2


class TestDailyLimitStatus:
    def test_counts_only_today(self, db_session, reporter, report_factory):
        yesterday = datetime.now(timezone.utc) - timedelta(days=1, hours=1)
        report_factory(submitted_by_id=reporter.id, created_at=yesterday)
        report_factory(submitted_by_id=reporter.id)

        status = ReportService.get_daily_limit_status(db_session, reporter.id)

        assert status.max_reports == 10
        assert status.used_today == 1
        assert status.remaining == 9
        assert status.can_submit


class TestUpdateReportDetails:
    def test_edit_is_audited_with_previous_values(
        self, db_session, pending_report, regular_admin
    ):
        report = ReportService.update_report_details(
            db_session,
            pending_report.id,
            schemas.ReportUpdate(
                severity=db_models.Severity.HIGH, priority=db_models.Priority.URGENT
            ),
            regular_admin,
        )

        assert report.severity == db_models.Severity.HIGH
        assert report.status == Status.PENDING

        entry = db_session.query(db_models.ActivityLog).one()
        assert entry.action == db_models.AuditAction.REPORT_EDIT
        assert entry.previous_values == {"severity": "medium", "priority": "medium"}
        assert entry.new_values == {"severity": "high", "priority": "urgent"}

    def test_unchanged_values_write_nothing(
        self, db_session, pending_report, regular_admin
    ):
        ReportService.update_report_details(
            db_session,
            pending_report.id,
            schemas.ReportUpdate(city="Makati"),
            regular_admin,
        )

        assert db_session.query(db_models.ActivityLog).count() == 0

    def test_unknown_report(self, db_session, regular_admin):
        with pytest.raises(ReportNotFoundException):
            ReportService.update_report_details(
                db_session, 404, schemas.ReportUpdate(city="Pasig"), regular_admin
            )

    def test_blank_address_is_rejected(
        self, db_session, pending_report, regular_admin
    ):
        with pytest.raises(ValidationException):
            ReportService.update_report_details(
                db_session,
                pending_report.id,
                schemas.ReportUpdate(address=" "),
                regular_admin,
            )


class TestDeleteReport:
    def test_deleted_report_disappears_but_audit_remains(
        self, db_session, verified_report, super_admin
    ):
        report_id = verified_report.id

        ReportService.delete_report(db_session, report_id, super_admin)

        with pytest.raises(ReportNotFoundException):
            ReportService.get_report(db_session, report_id)
        listing = ReportService.search_reports(db_session, schemas.ReportFilters())
        assert listing.total == 0

        entry = db_session.query(db_models.ActivityLog).one()
        assert entry.action == db_models.AuditAction.REPORT_DELETE
        assert entry.resource_id == str(report_id)
        assert entry.previous_values["status"] == "verified"
        assert entry.severity == db_models.AuditSeverity.HIGH

    def test_unknown_report(self, db_session, super_admin):
        with pytest.raises(ReportNotFoundException):
            ReportService.delete_report(db_session, 1234, super_admin)


class TestDeleteMyReport:
    def test_owner_can_withdraw_pending_report(
        self, db_session, reporter, report_factory
    ):
        report = report_factory(submitted_by_id=reporter.id)

        ReportService.delete_my_report(db_session, report.id, reporter)

        assert db_session.get(db_models.Report, report.id) is None

    def test_reviewed_report_cannot_be_withdrawn(
        self, db_session, reporter, report_factory
    ):
        report = report_factory(submitted_by_id=reporter.id, status=Status.VERIFIED)

        with pytest.raises(CannotDeleteReportException):
            ReportService.delete_my_report(db_session, report.id, reporter)

    def test_other_reporters_report(self, db_session, reporter, pending_report):
        with pytest.raises(CannotDeleteReportException):
            ReportService.delete_my_report(db_session, pending_report.id, reporter)

    def test_list_my_reports(self, db_session, reporter, report_factory):
        report_factory(submitted_by_id=reporter.id)
        report_factory(submitted_by_id=reporter.id)
        report_factory()

        listing = ReportService.list_my_reports(db_session, reporter, limit=1)

        assert listing.total == 2
        assert len(listing.items) == 1
        assert listing.has_more


class TestSearchReports:
    @pytest.fixture
    def city_reports(self, report_factory):
        return [
            report_factory(status=Status.VERIFIED, type=ReportType.POTHOLE),
            report_factory(status=Status.VERIFIED, type=ReportType.POTHOLE),
            report_factory(status=Status.VERIFIED, type=ReportType.FLOODING),
            report_factory(status=Status.PENDING, type=ReportType.POTHOLE),
            report_factory(status=Status.PENDING, type=ReportType.POTHOLE),
        ]

    def test_filters_are_combined(self, db_session, city_reports):
        filters = schemas.ReportFilters(status="verified", type="pothole")

        result = ReportService.search_reports(db_session, filters)

        assert result.total == 2
        assert {r.id for r in result.items} == {
            city_reports[0].id,
            city_reports[1].id,
        }

    @pytest.mark.parametrize("value", ["all", ""])
    def test_all_and_blank_mean_no_constraint(self, db_session, city_reports, value):
        filters = schemas.ReportFilters(status=value, type=value)

        assert ReportService.search_reports(db_session, filters).total == 5

    def test_status_list(self, db_session, city_reports, report_factory):
        report_factory(status=Status.REJECTED)
        filters = schemas.ReportFilters(status="verified,pending")

        assert ReportService.search_reports(db_session, filters).total == 5

    def test_pagination(self, db_session, city_reports):
        result = ReportService.search_reports(
            db_session, schemas.ReportFilters(), skip=4, limit=2
        )

        assert result.total == 5
        assert len(result.items) == 1
        assert not result.has_more

    def test_text_search_is_case_insensitive(self, db_session, report_factory):
        match = report_factory(description="Manhole cover missing on C5")
        report_factory(description="Faded pedestrian lane")

        result = ReportService.search_reports(
            db_session, schemas.ReportFilters(search="MANHOLE")
        )

        assert [r.id for r in result.items] == [match.id]

    def test_search_treats_wildcards_literally(self, db_session, report_factory):
        report_factory(description="Lane 100% blocked")
        report_factory(description="Lane 1 blocked")

        result = ReportService.search_reports(
            db_session, schemas.ReportFilters(search="100%")
        )

        assert result.total == 1

    def test_search_does_not_look_at_location_names(self, db_session, report_factory):
        report_factory(description="Crack", address="Main St", city="Pasig")
        report_factory(description="Crack", address="Main St", barangay="Pasig")
        match = report_factory(description="Crack", address="Pasig Blvd")

        result = ReportService.search_reports(
            db_session, schemas.ReportFilters(search="pasig")
        )

        assert [r.id for r in result.items] == [match.id]

    def test_city_filter_ignores_case(self, db_session, report_factory):
        report_factory(city="Pasig")
        report_factory(city="Taguig")

        result = ReportService.search_reports(
            db_session, schemas.ReportFilters(city="pasig")
        )

        assert result.total == 1

    def test_bounding_box(self, db_session, report_factory):
        inside = report_factory(latitude=14.55, longitude=121.02)
        report_factory(latitude=10.31, longitude=123.89)

        filters = schemas.ReportFilters(
            min_lat=14.0, max_lat=15.0, min_lng=120.5, max_lng=121.5
        )
        result = ReportService.search_reports(db_session, filters)

        assert [r.id for r in result.items] == [inside.id]

    def test_radius(self, db_session, report_factory):
        # About 1.1 km and 11 km north of the centre
        near = report_factory(latitude=14.5647, longitude=121.0244)
        report_factory(latitude=14.6547, longitude=121.0244)

        filters = schemas.ReportFilters(near_lat=14.5547, near_lng=121.0244, radius_km=5)
        result = ReportService.search_reports(db_session, filters)

        assert result.total == 1
        assert result.items[0].id == near.id

    def test_radius_across_the_antimeridian(self, db_session, report_factory):
        # About 22 km apart on either side of longitude 180
        across = report_factory(latitude=0.0, longitude=-179.9)
        report_factory(latitude=0.0, longitude=-179.0)

        filters = schemas.ReportFilters(near_lat=0.0, near_lng=179.9, radius_km=50)
        result = ReportService.search_reports(db_session, filters)

        assert [r.id for r in result.items] == [across.id]

    def test_sort_by_severity(self, db_session, report_factory):
        low = report_factory(severity=db_models.Severity.LOW)
        high = report_factory(severity=db_models.Severity.HIGH)
        medium = report_factory(severity=db_models.Severity.MEDIUM)

        result = ReportService.search_reports(
            db_session, schemas.ReportFilters(sort_by="severity", sort_order="ASC")
        )

        assert [r.id for r in result.items] == [low.id, medium.id, high.id]

    def test_unknown_sort_key(self, db_session):
        with pytest.raises(ValidationException):
            ReportService.search_reports(
                db_session, schemas.ReportFilters(sort_by="reporter_email")
            )

    def test_inverted_date_range(self, db_session):
        now = datetime.now(timezone.utc)
        filters = schemas.ReportFilters(start_date=now, end_date=now - timedelta(days=1))

        with pytest.raises(ValidationException):
            ReportService.search_reports(db_session, filters)

    def test_date_range(self, db_session, report_factory):
        now = datetime.now(timezone.utc)
        report_factory(created_at=now - timedelta(days=10))
        recent = report_factory(created_at=now - timedelta(hours=2))

        filters = schemas.ReportFilters(start_date=now - timedelta(days=1))
        result = ReportService.search_reports(db_session, filters)

        assert [r.id for r in result.items] == [recent.id]


class TestMapReports:
    def test_map_is_capped_and_newest_first(
        self, db_session, report_factory, monkeypatch
    ):
        monkeypatch.setattr("services.report_service.settings.MAP_MAX_RESULTS", 2)
        now = datetime.now(timezone.utc)
        report_factory(created_at=now - timedelta(hours=3))
        middle = report_factory(created_at=now - timedelta(hours=2))
        newest = report_factory(created_at=now - timedelta(hours=1))

        result = ReportService.get_map_reports(db_session, schemas.ReportFilters())

        assert result.count == 2
        assert [r.id for r in result.items] == [newest.id, middle.id]
