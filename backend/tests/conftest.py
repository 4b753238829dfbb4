"""
Pytest configuration and fixtures for backend tests.
"""

import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Set test environment variables before importing config
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["CORS_ORIGINS"] = '["http://localhost:3000"]'
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SUPER_ADMIN_USERNAME"] = "superadmin"
os.environ["SUPER_ADMIN_PASSWORD"] = "SuperAdmin123!"

from authentication.auth import (  # noqa: E402
    create_admin_token,
    create_user_token,
    get_password_hash,
)
from models.permissions import AdminRole, Permission  # noqa: E402
from repositories.database import Base, get_db  # noqa: E402
import repositories.db_models as db_models  # noqa: E402
from services.permission_service import PermissionService  # noqa: E402

# Test database engine (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_PASSWORD = "adminpassword123"
USER_PASSWORD = "userpassword123"


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh in-memory database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def other_session(db_session):
    """A second session on the same database, for concurrent-request tests."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with overridden database dependency."""
    from main import app
    from helpers.rate_limiter import limiter

    # Reset rate limiter storage before each test to prevent rate limit errors
    limiter.reset()

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _make_admin(db_session, username, role, permissions=None, is_active=True):
    admin = db_models.Admin(
        username=username,
        email=f"{username}@bantaydalan.test",
        hashed_password=get_password_hash(ADMIN_PASSWORD),
        role=role,
        permissions=(
            PermissionService.default_permissions(role)
            if permissions is None
            else [p.value for p in permissions]
        ),
        is_active=is_active,
    )
    db_session.add(admin)
    db_session.commit()
    db_session.refresh(admin)
    return admin


@pytest.fixture
def super_admin(db_session) -> db_models.Admin:
    return _make_admin(db_session, "chief", AdminRole.SUPER_ADMIN)


@pytest.fixture
def regular_admin(db_session) -> db_models.Admin:
    """An admin_user with the role's default permissions."""
    return _make_admin(db_session, "moderator", AdminRole.ADMIN_USER)


@pytest.fixture
def viewer_admin(db_session) -> db_models.Admin:
    """An admin_user who may only look at reports."""
    return _make_admin(
        db_session, "viewer", AdminRole.ADMIN_USER, permissions=[Permission.REPORT_VIEW]
    )


@pytest.fixture
def admin_factory(db_session):
    def factory(username, role=AdminRole.ADMIN_USER, permissions=None, is_active=True):
        return _make_admin(db_session, username, role, permissions, is_active)

    return factory


@pytest.fixture
def reporter(db_session) -> db_models.User:
    """A reporter account."""
    user = db_models.User(
        username="juan",
        email="juan@example.com",
        name="Juan dela Cruz",
        phone="+639171234567",
        hashed_password=get_password_hash(USER_PASSWORD),
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def report_factory(db_session):
    """Insert reports directly, bypassing submission rules."""

    def factory(**overrides) -> db_models.Report:
        values = {
            "type": db_models.ReportType.POTHOLE,
            "description": "Deep pothole in the outer lane",
            "address": "EDSA corner Ayala Avenue",
            "latitude": 14.5547,
            "longitude": 121.0244,
            "province": "Metro Manila",
            "city": "Makati",
            "barangay": "Bel-Air",
            "severity": db_models.Severity.MEDIUM,
            "status": db_models.ReportStatus.PENDING,
        }
        values.update(overrides)
        report = db_models.Report(**values)
        db_session.add(report)
        db_session.commit()
        db_session.refresh(report)
        return report

    return factory


@pytest.fixture
def pending_report(report_factory) -> db_models.Report:
    return report_factory()


@pytest.fixture
def verified_report(report_factory, super_admin) -> db_models.Report:
    return report_factory(
        status=db_models.ReportStatus.VERIFIED,
        verified_by_id=super_admin.id,
        verified_at=datetime.now(timezone.utc),
    )


def admin_headers(admin: db_models.Admin) -> dict:
    return {"Authorization": f"Bearer {create_admin_token(admin)}"}


@pytest.fixture
def super_admin_headers(super_admin) -> dict:
    return admin_headers(super_admin)


@pytest.fixture
def regular_admin_headers(regular_admin) -> dict:
    return admin_headers(regular_admin)


@pytest.fixture
def viewer_headers(viewer_admin) -> dict:
    return admin_headers(viewer_admin)


@pytest.fixture
def reporter_headers(reporter) -> dict:
    return {"Authorization": f"Bearer {create_user_token(reporter)}"}
