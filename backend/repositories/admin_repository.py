"""
Admin account repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from models.permissions import AdminRole
from .base import BaseRepository


class AdminRepository(BaseRepository[db_models.Admin]):
    """Repository for Admin entity database operations."""

    def __init__(self, db: Session):
        """
        Initialize admin repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.Admin, db)

    def get_by_username(self, username: str) -> Optional[db_models.Admin]:
        """
        Get admin by username.

        Args:
            username: Username

        Returns:
            Admin if found, None otherwise
        """
        return (
            self.db.query(db_models.Admin)
            .filter(db_models.Admin.username == username)
            .first()
        )

    def get_by_email(self, email: str) -> Optional[db_models.Admin]:
        return (
            self.db.query(db_models.Admin)
            .filter(func.lower(db_models.Admin.email) == email.lower())
            .first()
        )

    def list_admins(
        self,
        role: Optional[AdminRole] = None,
        is_active: Optional[bool] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[List[db_models.Admin], int]:
        """
        List admin accounts in creation order.

        Args:
            role: Only admins with this role
            is_active: Only active (True) or inactive (False) admins
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (page of admins, total matching count)
        """
        query = self.db.query(db_models.Admin)
        if role is not None:
            query = query.filter(db_models.Admin.role == role)
        if is_active is not None:
            query = query.filter(db_models.Admin.is_active == is_active)

        total = query.count()
        items = query.order_by(db_models.Admin.id).offset(skip).limit(limit).all()
        return items, total

    def count_active_super_admins(self) -> int:
        return (
            self.db.query(func.count(db_models.Admin.id))
            .filter(
                db_models.Admin.role == AdminRole.SUPER_ADMIN,
                db_models.Admin.is_active == True,  # noqa: E712
            )
            .scalar()
            or 0
        )
