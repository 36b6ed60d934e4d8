"""
Pydantic Schemas Package

Schema Naming Convention:
- XxxBase: Shared fields between create/update
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating
- XxxResponse: Fields returned in API responses
"""

from book_service.schemas.book import (
    BookBase,
    BookCreate,
    BookDeletedResponse,
    BookResponse,
    BookUpdate,
    CamelModel,
)

__all__ = [
    "BookBase",
    "BookCreate",
    "BookDeletedResponse",
    "BookResponse",
    "BookUpdate",
    "CamelModel",
]
