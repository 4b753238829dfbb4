"""Initialize the database with default settings and the first super admin."""

from sqlalchemy.orm import Session

from authentication.auth import get_password_hash
from models.config import settings
from models.permissions import AdminRole
from repositories.admin_repository import AdminRepository
from repositories.database import Base, SessionLocal, engine
from repositories.db_models import Admin
from services.permission_service import PermissionService
from services.settings_service import SettingsService


def seed_super_admin(db: Session) -> bool:
    """Create the configured super admin unless the username is taken.

    Returns:
        True when an account was created.
    """
    if AdminRepository(db).get_by_username(settings.SUPER_ADMIN_USERNAME):
        return False

    admin = Admin(
        username=settings.SUPER_ADMIN_USERNAME,
        email=settings.SUPER_ADMIN_EMAIL,
        hashed_password=get_password_hash(settings.SUPER_ADMIN_PASSWORD),
        role=AdminRole.SUPER_ADMIN,
        permissions=PermissionService.default_permissions(AdminRole.SUPER_ADMIN),
        is_active=True,
    )
    db.add(admin)
    db.commit()
    return True


def init_db(db: Session | None = None) -> None:
    """Initialize the database with default data."""
    Base.metadata.create_all(bind=engine)
    session = db or SessionLocal()

    try:
        created = SettingsService.initialize_defaults(session)
        print(f"[OK] {created} default settings created")

        if seed_super_admin(session):
            print("[OK] Super admin created")
            print(f"  Username: {settings.SUPER_ADMIN_USERNAME}")
            print("  Password: (from SUPER_ADMIN_PASSWORD in .env)")
            print("  IMPORTANT: Change this password in production!")

        print("\n[OK] Database initialization complete!")
    finally:
        if db is None:
            session.close()


if __name__ == "__main__":
    init_db()
