"""Report router endpoints: submission, queries and review."""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.pagination import PaginationLimit, PaginationSkip
from helpers.rate_limiter import SUBMIT_RATE_LIMIT, limiter
from helpers.request_utils import RequestContext, get_request_context
from models.exceptions import ValidationException
from models.permissions import Permission
from repositories.database import get_db
from services import AnalyticsService, AuditService, ReportService, ReportStatusService

router = APIRouter(prefix="/reports", tags=["reports"])

# Statuses anyone may see on the public map
PUBLIC_MAP_STATUSES = (db_models.ReportStatus.VERIFIED, db_models.ReportStatus.RESOLVED)


def get_report_filters(
    status: Optional[str] = Query(
        None, description="Status, or comma-separated statuses; 'all' for any"
    ),
    type: Optional[str] = None,
    severity: Optional[str] = None,
    priority: Optional[str] = None,
    province: Optional[str] = None,
    city: Optional[str] = None,
    barangay: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    min_lat: Optional[float] = None,
    max_lat: Optional[float] = None,
    min_lng: Optional[float] = None,
    max_lng: Optional[float] = None,
    near_lat: Optional[float] = None,
    near_lng: Optional[float] = None,
    radius_km: Optional[float] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> schemas.ReportFilters:
    """Collect report filter query parameters into ReportFilters."""
    try:
        return schemas.ReportFilters(
            status=status,
            type=type,
            severity=severity,
            priority=priority,
            province=province,
            city=city,
            barangay=barangay,
            search=search,
            start_date=start_date,
            end_date=end_date,
            min_lat=min_lat,
            max_lat=max_lat,
            min_lng=min_lng,
            max_lng=max_lng,
            near_lat=near_lat,
            near_lng=near_lng,
            radius_km=radius_km,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except PydanticValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        raise ValidationException(f"Invalid filter '{field}': {error['msg']}") from None


# Reporter endpoints


@router.post("", response_model=schemas.Report, status_code=201)
@limiter.limit(SUBMIT_RATE_LIMIT)
def submit_report(
    request: Request,
    report: schemas.ReportCreate,
    db: Session = Depends(get_db),
    current_user: Optional[db_models.User] = Depends(auth.get_current_user_optional),
) -> db_models.Report:
    """
    Submit a road hazard report.

    Anonymous submissions are accepted; signed-in reporters are subject to
    the daily limit and have their contact details attached.
    """
    return ReportService.create_report(db, report, current_user)


@router.get("/map", response_model=schemas.MapReportsResponse)
def get_public_map_reports(
    filters: schemas.ReportFilters = Depends(get_report_filters),
    db: Session = Depends(get_db),
) -> schemas.MapReportsResponse:
    """Verified and resolved reports for the public map."""
    statuses = [s for s in (filters.status or PUBLIC_MAP_STATUSES) if s in PUBLIC_MAP_STATUSES]
    if not statuses:
        return schemas.MapReportsResponse(items=[], count=0)
    return ReportService.get_map_reports(
        db, filters.model_copy(update={"status": statuses})
    )


@router.get("/mine", response_model=schemas.ReportListResponse)
def get_my_reports(
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 20,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_user),
) -> schemas.ReportListResponse:
    return ReportService.list_my_reports(db, current_user, skip, limit)


@router.delete("/mine/{report_id}", status_code=204)
def delete_my_report(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_user),
) -> Response:
    """Withdraw one of your own reports while it is still pending."""
    ReportService.delete_my_report(db, report_id, current_user)
    return Response(status_code=204)


@router.get("/daily-limit", response_model=schemas.DailyLimitStatus)
def get_daily_limit(
    db: Session = Depends(get_db),
    current_user: db_models.User = Depends(auth.get_current_user),
) -> schemas.DailyLimitStatus:
    return ReportService.get_daily_limit_status(db, current_user.id)


# Admin endpoints


@router.get("", response_model=schemas.ReportListResponse)
def search_reports(
    skip: PaginationSkip = 0,
    limit: PaginationLimit = 20,
    filters: schemas.ReportFilters = Depends(get_report_filters),
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.REPORT_VIEW)
    ),
) -> schemas.ReportListResponse:
    """
    List reports with filters, sorting and pagination.

    Empty values and "all" leave a filter unconstrained.
    """
    return ReportService.search_reports(db, filters, skip, limit)


@router.get("/admin/map", response_model=schemas.MapReportsResponse)
def get_admin_map_reports(
    filters: schemas.ReportFilters = Depends(get_report_filters),
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.REPORT_VIEW)
    ),
) -> schemas.MapReportsResponse:
    """Reports in any status for the admin map."""
    return ReportService.get_map_reports(db, filters)


@router.get("/statistics", response_model=schemas.ReportStatistics)
def get_report_statistics(
    days: int = Query(7, ge=1, le=90, description="Length of the daily trend"),
    filters: schemas.ReportFilters = Depends(get_report_filters),
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.ANALYTICS_VIEW)
    ),
) -> schemas.ReportStatistics:
    return AnalyticsService.get_statistics(db, filters, days)


@router.get("/{report_id}", response_model=schemas.Report)
def get_report(
    report_id: int,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.REPORT_VIEW)
    ),
) -> db_models.Report:
    return ReportService.get_report(db, report_id)


@router.get("/{report_id}/history", response_model=List[schemas.ActivityLog])
def get_report_history(
    report_id: int,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.REPORT_VIEW)
    ),
) -> List[schemas.ActivityLog]:
    """Audit trail of a report, oldest first. Works for deleted reports too."""
    return AuditService.get_resource_history(db, "report", report_id)


@router.put("/{report_id}", response_model=schemas.Report)
def update_report(
    report_id: int,
    update: schemas.ReportUpdate,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(
            Permission.REPORT_EDIT,
            db_models.AuditAction.REPORT_EDIT,
            db_models.AuditCategory.REPORTS,
            resource_type="report",
            resource_param="report_id",
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> db_models.Report:
    """Edit report details. Status cannot be changed here."""
    return ReportService.update_report_details(
        db, report_id, update, current_admin, context
    )


@router.patch("/{report_id}/status", response_model=schemas.Report)
def change_report_status(
    report_id: int,
    change: schemas.StatusChange,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(auth.get_current_admin),
    context: RequestContext = Depends(get_request_context),
) -> db_models.Report:
    """
    Verify, reject or resolve a report.

    Returns 403 without the matching permission and 409 when the report
    is not in a status the target can be reached from.
    """
    return ReportStatusService.change_status(
        db, report_id, change, current_admin, context
    )


@router.delete("/{report_id}", status_code=204)
def delete_report(
    report_id: int,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(
            Permission.REPORT_DELETE,
            db_models.AuditAction.REPORT_DELETE,
            db_models.AuditCategory.REPORTS,
            resource_type="report",
            resource_param="report_id",
        )
    ),
    context: RequestContext = Depends(get_request_context),
) -> Response:
    """Permanently delete a report."""
    ReportService.delete_report(db, report_id, current_admin, context)
    return Response(status_code=204)
