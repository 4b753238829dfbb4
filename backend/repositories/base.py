"""
Generic repository with the operations every entity shares.
"""

from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from repositories.database import Base

T = TypeVar("T", bound=Base)  # type: ignore[type-arg]


class BaseRepository(Generic[T]):
    """
    CRUD helpers over one SQLAlchemy model.

    Subclasses pass their model class and add entity-specific queries.
    """

    def __init__(self, model: type[T], db: Session):
        self.model = model
        self.db = db

    def get_by_id(self, id: int) -> T | None:
        """Return the entity with this primary key, or None."""
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_all(self, skip: int = 0, limit: int = 100) -> list[T]:
        """Return a page of entities in primary key order."""
        return (
            self.db.query(self.model)
            .order_by(self.model.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def add(self, entity: T) -> None:
        """Stage an entity without committing."""
        self.db.add(entity)

    def create(self, entity: T) -> T:
        """
        Insert an entity and commit.

        Args:
            entity: Transient entity

        Returns:
            The persisted entity, refreshed from the database
        """
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def update(self, entity: T) -> T:
        """Commit pending changes on an entity and refresh it."""
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete(self, entity: T) -> None:
        """Delete an entity and commit."""
        self.db.delete(entity)
        self.db.commit()

    def count(self) -> int:
        """Count all rows of this entity."""
        return self.db.query(self.model).count()

    def commit(self) -> None:
        self.db.commit()

    def flush(self) -> None:
        self.db.flush()

    def rollback(self) -> None:
        self.db.rollback()

    def refresh(self, entity: T) -> None:
        self.db.refresh(entity)
