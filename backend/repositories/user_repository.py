"""
Reporter account repository for database operations.
"""

from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository
from .report_repository import escape_like


class UserRepository(BaseRepository[db_models.User]):
    """Repository for User entity database operations."""

    def __init__(self, db: Session):
        """
        Initialize user repository.

        Args:
            db: Database session
        """
        super().__init__(db_models.User, db)

    def get_by_email(self, email: str) -> Optional[db_models.User]:
        """
        Get user by email (case-insensitive).

        Args:
            email: User email

        Returns:
            User if found, None otherwise
        """
        return (
            self.db.query(db_models.User)
            .filter(func.lower(db_models.User.email) == email.lower())
            .first()
        )

    def get_by_username(self, username: str) -> Optional[db_models.User]:
        """
        Get user by username.

        Args:
            username: Username

        Returns:
            User if found, None otherwise
        """
        return (
            self.db.query(db_models.User)
            .filter(db_models.User.username == username)
            .first()
        )

    def get_by_username_or_email(self, identifier: str) -> Optional[db_models.User]:
        """Look up a login identifier as a username first, then as an email."""
        return self.get_by_username(identifier) or self.get_by_email(identifier)

    def username_or_email_exists(self, username: str, email: str) -> bool:
        return (
            self.db.query(db_models.User.id)
            .filter(
                or_(
                    db_models.User.username == username,
                    func.lower(db_models.User.email) == email.lower(),
                )
            )
            .first()
            is not None
        )

    def search(
        self,
        search: Optional[str] = None,
        is_frozen: Optional[bool] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[List[db_models.User], int]:
        """
        List reporter accounts, newest first.

        Args:
            search: Substring matched against username, email and name
            is_frozen: Only frozen (True) or only unfrozen (False) accounts
            skip: Number of records to skip
            limit: Maximum number of records to return

        Returns:
            Tuple of (page of users, total matching count)
        """
        query = self.db.query(db_models.User)
        if search:
            pattern = f"%{escape_like(search)}%"
            query = query.filter(
                or_(
                    db_models.User.username.ilike(pattern, escape="\\"),
                    db_models.User.email.ilike(pattern, escape="\\"),
                    db_models.User.name.ilike(pattern, escape="\\"),
                )
            )
        if is_frozen is not None:
            query = query.filter(db_models.User.is_frozen == is_frozen)

        total = query.count()
        items = (
            query.order_by(db_models.User.created_at.desc(), db_models.User.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total
