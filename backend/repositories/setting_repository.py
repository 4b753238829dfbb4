"""
System settings repository.
"""

from typing import List, Optional

from sqlalchemy.orm import Session

from repositories import db_models
from repositories.base import BaseRepository


class SettingRepository(BaseRepository[db_models.SystemSetting]):
    """Repository for key/value system settings."""

    def __init__(self, db: Session):
        """Initialize repository."""
        super().__init__(db_models.SystemSetting, db)

    def get_by_key(self, key: str) -> Optional[db_models.SystemSetting]:
        return self.db.query(self.model).filter(self.model.key == key).first()

    def get_by_keys(self, keys: list[str]) -> dict[str, db_models.SystemSetting]:
        if not keys:
            return {}
        rows = self.db.query(self.model).filter(self.model.key.in_(keys)).all()
        return {row.key: row for row in rows}

    def list_settings(
        self,
        category: Optional[db_models.SettingCategory] = None,
        public_only: bool = False,
    ) -> List[db_models.SystemSetting]:
        """Settings ordered by category, then key."""
        query = self.db.query(self.model)
        if category is not None:
            query = query.filter(self.model.category == category)
        if public_only:
            query = query.filter(self.model.is_public == True)  # noqa: E712
        return query.order_by(self.model.category, self.model.key).all()
