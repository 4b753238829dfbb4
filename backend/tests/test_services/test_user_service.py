"""Tests for UserService."""

import pytest

import models.schemas as schemas
import repositories.db_models as db_models
from models.exceptions import (
    RegistrationClosedException,
    UserNotFoundException,
    UsernameTakenException,
    ValidationException,
)
from services.settings_service import SettingsService
from services.user_service import UserService


def _signup(**overrides) -> schemas.UserCreate:
    values = {
        "username": "ana",
        "email": "Ana@Example.com",
        "name": " Ana Santos ",
        "password": "secure123",
    }
    values.update(overrides)
    return schemas.UserCreate(**values)


class TestRegister:
    def test_register(self, db_session):
        user = UserService.register(db_session, _signup())

        assert user.id is not None
        assert user.email == "ana@example.com"
        assert user.name == "Ana Santos"
        assert not user.is_frozen
        assert user.hashed_password != "secure123"

    def test_duplicate_username(self, db_session, reporter):
        with pytest.raises(UsernameTakenException):
            UserService.register(db_session, _signup(username="juan"))

    def test_duplicate_email(self, db_session, reporter):
        with pytest.raises(UsernameTakenException):
            UserService.register(db_session, _signup(email="juan@example.com"))

    def test_password_policy(self, db_session):
        with pytest.raises(ValidationException):
            UserService.register(db_session, _signup(password="short1"))

    def test_registration_closed(self, db_session):
        SettingsService.initialize_defaults(db_session)
        setting = SettingsService.get_setting(db_session, "allow_user_registration")
        setting.value = False
        db_session.commit()

        with pytest.raises(RegistrationClosedException):
            UserService.register(db_session, _signup())


class TestFreeze:
    def test_freeze_and_unfreeze(self, db_session, reporter, regular_admin):
        user = UserService.set_frozen(db_session, reporter.id, True, regular_admin)

        assert user.is_frozen
        assert user.frozen_at is not None

        user = UserService.set_frozen(db_session, reporter.id, False, regular_admin)

        assert not user.is_frozen
        assert user.frozen_at is None
        actions = [
            entry.action for entry in db_session.query(db_models.ActivityLog).all()
        ]
        assert actions == [
            db_models.AuditAction.USER_FREEZE,
            db_models.AuditAction.USER_UNFREEZE,
        ]

    def test_repeat_freeze_is_a_no_op(self, db_session, reporter, regular_admin):
        UserService.set_frozen(db_session, reporter.id, True, regular_admin)
        UserService.set_frozen(db_session, reporter.id, True, regular_admin)

        assert db_session.query(db_models.ActivityLog).count() == 1

    def test_unknown_user(self, db_session, regular_admin):
        with pytest.raises(UserNotFoundException):
            UserService.set_frozen(db_session, 77, True, regular_admin)


class TestDeleteUser:
    def test_reports_survive_their_reporter(
        self, db_session, reporter, super_admin, report_factory
    ):
        report = report_factory(
            submitted_by_id=reporter.id, reporter_name="Juan dela Cruz"
        )

        UserService.delete_user(db_session, reporter.id, super_admin)

        db_session.expire_all()
        stored = db_session.get(db_models.Report, report.id)
        assert stored is not None
        assert stored.submitted_by_id is None
        assert stored.reporter_name == "Juan dela Cruz"

        entry = db_session.query(db_models.ActivityLog).one()
        assert entry.action == db_models.AuditAction.USER_DELETE
        assert entry.previous_values["report_count"] == 1


def test_list_users_search_and_frozen_filter(db_session, reporter, regular_admin):
    other = UserService.register(
        db_session, _signup(username="pedro", email="pedro@example.com", name="Pedro")
    )
    UserService.set_frozen(db_session, other.id, True, regular_admin)

    assert UserService.list_users(db_session, search="PEDRO").total == 1
    frozen = UserService.list_users(db_session, is_frozen=True)
    assert [u.username for u in frozen.items] == ["pedro"]
