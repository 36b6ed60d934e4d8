"""
SQLAlchemy Models Package

Import all models here so they are registered on ``Base.metadata``
(Alembic autogenerate relies on it).
"""

from user_service.models.user import (
    MAX_BOOKS_BY_TYPE,
    MembershipStatus,
    MembershipType,
    User,
)

__all__ = [
    "MAX_BOOKS_BY_TYPE",
    "MembershipStatus",
    "MembershipType",
    "User",
]
