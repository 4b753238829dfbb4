"""
Reporter notification repository.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import update
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from .base import BaseRepository

_Notification = db_models.Notification


class NotificationRepository(BaseRepository[db_models.Notification]):
    """Repository for a reporter's in-app notifications."""

    def __init__(self, db: Session):
        super().__init__(db_models.Notification, db)

    def get_for_user(
        self, notification_id: int, user_id: int
    ) -> Optional[db_models.Notification]:
        """Return the notification only if it belongs to this user."""
        return (
            self.db.query(_Notification)
            .filter(
                _Notification.id == notification_id,
                _Notification.user_id == user_id,
            )
            .first()
        )

    def list_for_user(
        self,
        user_id: int,
        unread_only: bool = False,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[db_models.Notification], int]:
        """
        A page of a user's notifications, newest first.

        Returns:
            (notifications, total matching)
        """
        query = self.db.query(_Notification).filter(_Notification.user_id == user_id)
        if unread_only:
            query = query.filter(_Notification.is_read == False)  # noqa: E712

        total = query.count()
        items = (
            query.order_by(_Notification.created_at.desc(), _Notification.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def count_unread(self, user_id: int) -> int:
        return (
            self.db.query(_Notification)
            .filter(
                _Notification.user_id == user_id,
                _Notification.is_read == False,  # noqa: E712
            )
            .count()
        )

    def mark_all_read(self, user_id: int, read_at: datetime) -> int:
        """Mark every unread notification of a user as read; returns the row count."""
        result = self.db.execute(
            update(_Notification)
            .where(
                _Notification.user_id == user_id,
                _Notification.is_read == False,  # noqa: E712
            )
            .values(is_read=True, read_at=read_at)
            .execution_options(synchronize_session="fetch")
        )
        self.db.commit()
        return result.rowcount
