"""
System settings service.

Settings are typed key/value rows. Values are checked against the
declared data type on every write, and every write is audited with the
previous and new values.
"""

from typing import Any, List, Optional

from loguru import logger
from sqlalchemy.orm import Session

from helpers.request_utils import RequestContext
from models.exceptions import SettingNotFoundException, ValidationException
from repositories import db_models
from repositories.setting_repository import SettingRepository
from services.audit_service import AuditService

Category = db_models.SettingCategory
DataType = db_models.SettingDataType

DEFAULT_SETTINGS: list[dict[str, Any]] = [
    {
        "key": "site_name",
        "value": "BantayDalan",
        "category": Category.GENERAL,
        "data_type": DataType.STRING,
        "description": "Name shown in the app header",
        "is_public": True,
    },
    {
        "key": "maintenance_mode",
        "value": False,
        "category": Category.GENERAL,
        "data_type": DataType.BOOLEAN,
        "description": "Show a maintenance notice to reporters",
        "is_public": True,
    },
    {
        "key": "map_default_zoom",
        "value": 13,
        "category": Category.MAP,
        "data_type": DataType.NUMBER,
        "description": "Initial zoom level of the hazard map",
        "is_public": True,
    },
    {
        "key": "max_reports_per_day",
        "value": 10,
        "category": Category.REPORTS,
        "data_type": DataType.NUMBER,
        "description": "Reports a single reporter may submit per UTC day",
        "is_public": True,
    },
    {
        "key": "require_image",
        "value": False,
        "category": Category.REPORTS,
        "data_type": DataType.BOOLEAN,
        "description": "Reject reports submitted without a photo",
        "is_public": True,
    },
    {
        "key": "allow_user_registration",
        "value": True,
        "category": Category.USERS,
        "data_type": DataType.BOOLEAN,
        "description": "Allow new reporter accounts to sign up",
        "is_public": True,
    },
    {
        "key": "min_password_length",
        "value": 8,
        "category": Category.SECURITY,
        "data_type": DataType.NUMBER,
        "description": "Minimum password length for new passwords",
        "is_public": True,
    },
]

DEFAULTS_BY_KEY = {item["key"]: item for item in DEFAULT_SETTINGS}

# Inclusive bounds for numeric settings
NUMBER_RANGES: dict[str, tuple[int, int]] = {
    "max_reports_per_day": (1, 1000),
    "min_password_length": (6, 128),
    "map_default_zoom": (1, 20),
}

_TYPE_CHECKS = {
    DataType.STRING: lambda v: isinstance(v, str),
    DataType.NUMBER: lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    DataType.BOOLEAN: lambda v: isinstance(v, bool),
    DataType.ARRAY: lambda v: isinstance(v, list),
    DataType.OBJECT: lambda v: isinstance(v, dict),
}


class SettingsService:
    """Service for system settings."""

    @staticmethod
    def initialize_defaults(db: Session) -> int:
        """
        Insert any default settings that are missing.

        Existing rows are left untouched.

        Returns:
            Number of settings created
        """
        repo = SettingRepository(db)
        existing = repo.get_by_keys(list(DEFAULTS_BY_KEY))
        created = 0
        for item in DEFAULT_SETTINGS:
            if item["key"] in existing:
                continue
            repo.add(db_models.SystemSetting(**item))
            created += 1
        if created:
            repo.commit()
            logger.info(f"Initialized {created} default system settings")
        return created

    @staticmethod
    def get_value(db: Session, key: str, default: Any = None) -> Any:
        """Current value of a setting, falling back to its built-in default."""
        setting = SettingRepository(db).get_by_key(key)
        if setting is not None:
            return setting.value
        if key in DEFAULTS_BY_KEY:
            return DEFAULTS_BY_KEY[key]["value"]
        return default

    @staticmethod
    def get_setting(db: Session, key: str) -> db_models.SystemSetting:
        setting = SettingRepository(db).get_by_key(key)
        if not setting:
            raise SettingNotFoundException(key)
        return setting

    @staticmethod
    def list_settings(
        db: Session, category: Optional[db_models.SettingCategory] = None
    ) -> List[db_models.SystemSetting]:
        return SettingRepository(db).list_settings(category=category)

    @staticmethod
    def get_public_settings(db: Session) -> dict[str, Any]:
        """Public settings as a flat key/value mapping, defaults filled in."""
        values = {
            item["key"]: item["value"]
            for item in DEFAULT_SETTINGS
            if item["is_public"]
        }
        for setting in SettingRepository(db).list_settings(public_only=True):
            values[setting.key] = setting.value
        return values

    @staticmethod
    def validate_value(setting: db_models.SystemSetting, value: Any) -> Any:
        """
        Check a new value against the setting's declared type and range.

        Raises:
            ValidationException: On a type mismatch or out-of-range number
        """
        check = _TYPE_CHECKS[setting.data_type]
        if value is None or not check(value):
            raise ValidationException(
                f"Setting '{setting.key}' expects a {setting.data_type.value} value"
            )
        if setting.key in NUMBER_RANGES:
            low, high = NUMBER_RANGES[setting.key]
            if not low <= value <= high:
                raise ValidationException(
                    f"Setting '{setting.key}' must be between {low} and {high}"
                )
        return value

    @staticmethod
    def update_setting(
        db: Session,
        key: str,
        value: Any,
        admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> db_models.SystemSetting:
        updated = SettingsService.bulk_update(db, {key: value}, admin, context)
        return updated[0]

    @staticmethod
    def bulk_update(
        db: Session,
        updates: dict[str, Any],
        admin: db_models.Admin,
        context: Optional[RequestContext] = None,
    ) -> List[db_models.SystemSetting]:
        """
        Update several settings in one transaction.

        Every key and value is validated before anything is written, so a
        single bad entry leaves all settings unchanged.

        Args:
            db: Database session
            updates: Mapping of key to new value
            admin: Acting admin
            context: Caller IP and user agent for the audit entry

        Returns:
            The updated settings

        Raises:
            ValidationException: Empty update or invalid value
            SettingNotFoundException: Unknown key
        """
        if not updates:
            raise ValidationException("No settings to update")

        repo = SettingRepository(db)
        settings_by_key = repo.get_by_keys(list(updates))
        for key in updates:
            if key not in settings_by_key:
                raise SettingNotFoundException(key)

        for key, value in updates.items():
            SettingsService.validate_value(settings_by_key[key], value)

        previous = {key: settings_by_key[key].value for key in updates}
        for key, value in updates.items():
            setting = settings_by_key[key]
            setting.value = value
            setting.last_modified_by_id = admin.id
        repo.commit()
        for setting in settings_by_key.values():
            repo.refresh(setting)

        logger.info(f"Settings updated by admin {admin.id}: {sorted(updates)}")

        AuditService.record(
            db,
            admin,
            db_models.AuditAction.SETTINGS_UPDATE,
            db_models.AuditCategory.SETTINGS,
            f"Updated settings: {', '.join(sorted(updates))}",
            resource_type="setting",
            resource_id=",".join(sorted(updates))[:64],
            previous_values=previous,
            new_values=dict(updates),
            severity=db_models.AuditSeverity.HIGH,
            context=context,
        )
        return [settings_by_key[key] for key in updates]
