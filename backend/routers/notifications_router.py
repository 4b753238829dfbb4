"""
Reporter notifications router.

Signed-in reporters read and dismiss the messages written when their
reports are received, verified, rejected or resolved.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from repositories.database import get_db
from services import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=schemas.NotificationListResponse)
def list_notifications(
    unread_only: bool = False,
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_user),
) -> schemas.NotificationListResponse:
    """
    Your notifications, newest first.

    Returns:
        A page of notifications plus the overall unread count
    """
    return NotificationService.list_notifications(
        db, current_user, unread_only, skip, limit
    )


@router.get("/unread-count", response_model=schemas.UnreadCount)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_user),
) -> schemas.UnreadCount:
    return schemas.UnreadCount(
        count=NotificationService.get_unread_count(db, current_user)
    )


@router.put("/read-all", response_model=schemas.NotificationsMarkedRead)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_user),
) -> schemas.NotificationsMarkedRead:
    return schemas.NotificationsMarkedRead(
        updated=NotificationService.mark_all_read(db, current_user)
    )


@router.put("/{notification_id}/read", response_model=schemas.Notification)
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_user),
) -> db_models.Notification:
    return NotificationService.mark_read(db, notification_id, current_user)


@router.delete("/{notification_id}", status_code=204)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_user),
) -> Response:
    NotificationService.delete_notification(db, notification_id, current_user)
    return Response(status_code=204)
