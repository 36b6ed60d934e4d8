"""
Services Package

Business logic kept separate from HTTP handling (routers) and from data
access (repositories).

- catalog.py: book CRUD and the borrow/return coordinator
- user_client.py: HTTP client for the user ledger
- discovery.py: service name → base URL resolution
- rate_limiter.py: slowapi limiter for write endpoints
"""

from book_service.services.catalog import CatalogService
from book_service.services.discovery import (
    AddressResolver,
    StaticAddressResolver,
    UnknownServiceError,
)
from book_service.services.user_client import UserServiceClient

__all__ = [
    "AddressResolver",
    "CatalogService",
    "StaticAddressResolver",
    "UnknownServiceError",
    "UserServiceClient",
]
