"""System settings endpoints."""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import authentication.auth as auth
import models.schemas as schemas
import repositories.db_models as db_models
from helpers.request_utils import RequestContext, get_request_context
from models.permissions import Permission
from repositories.database import get_db
from services import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])


def _require_settings_update():
    return auth.require_permission(
        Permission.SETTINGS_UPDATE,
        db_models.AuditAction.SETTINGS_UPDATE,
        db_models.AuditCategory.SETTINGS,
        resource_type="setting",
        resource_param="key",
    )


@router.get("", response_model=List[schemas.Setting])
def list_settings(
    category: Optional[db_models.SettingCategory] = None,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.SETTINGS_VIEW)
    ),
) -> List[db_models.SystemSetting]:
    return SettingsService.list_settings(db, category)


@router.get("/public")
def get_public_settings(db: Session = Depends(get_db)) -> dict[str, Any]:
    """Settings the public site needs, as a key to value map. No auth required."""
    return SettingsService.get_public_settings(db)


@router.post("/initialize", response_model=schemas.MessageResponse)
def initialize_settings(
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.SETTINGS_UPDATE)
    ),
) -> schemas.MessageResponse:
    """Create any missing default settings. Existing values are left alone."""
    created = SettingsService.initialize_defaults(db)
    return schemas.MessageResponse(message=f"Created {created} settings")


@router.put("", response_model=List[schemas.Setting])
def bulk_update_settings(
    update: schemas.BulkSettingsUpdate,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(_require_settings_update()),
    context: RequestContext = Depends(get_request_context),
) -> List[db_models.SystemSetting]:
    """
    Update several settings at once.

    Every value is validated before anything is written; one bad value
    leaves all settings unchanged.
    """
    return SettingsService.bulk_update(db, update.settings, current_admin, context)


@router.get("/{key}", response_model=schemas.Setting)
def get_setting(
    key: str,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(
        auth.require_permission(Permission.SETTINGS_VIEW)
    ),
) -> db_models.SystemSetting:
    return SettingsService.get_setting(db, key)


@router.put("/{key}", response_model=schemas.Setting)
def update_setting(
    key: str,
    update: schemas.SettingUpdate,
    db: Session = Depends(get_db),
    current_admin: db_models.Admin = Depends(_require_settings_update()),
    context: RequestContext = Depends(get_request_context),
) -> db_models.SystemSetting:
    return SettingsService.update_setting(db, key, update.value, current_admin, context)
