"""
Pydantic Schemas Package

Schema Naming Convention:
- XxxBase: Shared fields between create/update
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating
- XxxResponse: Fields returned in API responses
"""

from user_service.schemas.user import (
    BorrowEligibilityResponse,
    CamelModel,
    UserBase,
    UserCreate,
    UserDeletedResponse,
    UserResponse,
    UserUpdate,
)

__all__ = [
    "BorrowEligibilityResponse",
    "CamelModel",
    "UserBase",
    "UserCreate",
    "UserDeletedResponse",
    "UserResponse",
    "UserUpdate",
]
