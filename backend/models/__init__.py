"""Models package - Pydantic schemas, settings and domain types."""

from .permissions import AdminRole, Permission

__all__ = [
    "AdminRole",
    "Permission",
]
