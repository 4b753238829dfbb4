"""Activity log endpoints."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimitLarge, PaginationSkip
from models.permissions import Permission
from repositories.database import get_db
from services import AuditService

router = APIRouter(prefix="/audit-logs", tags=["audit"])


@router.get("", response_model=schemas.ActivityLogListResponse)
def list_audit_logs(
    admin_id: Optional[int] = None,
    action: Optional[db_models.AuditAction] = None,
    category: Optional[db_models.AuditCategory] = None,
    outcome: Optional[db_models.AuditOutcome] = None,
    severity: Optional[db_models.AuditSeverity] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = Query(None, max_length=100),
    skip: PaginationSkip = 0,
    limit: PaginationLimitLarge = 50,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.AUDIT_LOGS_VIEW)
    ),
) -> schemas.ActivityLogListResponse:
    """
    Search the activity log, newest first.

    Includes blocked attempts (outcome "blocked") as well as completed actions.
    """
    return AuditService.get_logs(
        db,
        admin_id=admin_id,
        action=action,
        category=category,
        outcome=outcome,
        severity=severity,
        resource_type=resource_type,
        resource_id=resource_id,
        start_date=start_date,
        end_date=end_date,
        search=search,
        skip=skip,
        limit=limit,
    )


@router.get("/statistics", response_model=schemas.AuditLogStatistics)
def get_audit_statistics(
    since: Optional[datetime] = None,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.AUDIT_LOGS_VIEW)
    ),
) -> schemas.AuditLogStatistics:
    return AuditService.get_statistics(db, since)


@router.get("/acceptance", response_model=schemas.AcceptanceLogResponse)
def get_acceptance_log(
    admin_id: Optional[int] = None,
    action: Optional[db_models.AuditAction] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    skip: PaginationSkip = 0,
    limit: PaginationLimitLarge = 50,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.ANALYTICS_VIEW)
    ),
) -> schemas.AcceptanceLogResponse:
    """Verify, reject and resolve decisions with the admin who made them."""
    return AuditService.get_acceptance_log(
        db,
        admin_id=admin_id,
        action=action,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )


@router.get("/admins/{admin_id}", response_model=schemas.ActivityLogListResponse)
def get_admin_activity(
    admin_id: int,
    skip: PaginationSkip = 0,
    limit: PaginationLimitLarge = 50,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.AUDIT_LOGS_VIEW)
    ),
) -> schemas.ActivityLogListResponse:
    return AuditService.get_logs(db, admin_id=admin_id, skip=skip, limit=limit)
