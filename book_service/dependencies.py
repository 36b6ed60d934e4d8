"""
FastAPI Dependencies Module

Wires request-scoped objects together:

    get_db ─┐
            ├─► CatalogService
    get_http_client ─► get_user_client ─┘
    get_address_resolver ─┘

The ``httpx.Client`` is created once in the application lifespan and kept
on ``app.state``; everything else is built per request. Tests override
``get_db`` and ``get_http_client``.
"""

from typing import Annotated

import httpx
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from book_service.config import get_settings
from book_service.database import get_db
from book_service.repositories import BookRepository
from book_service.services import (
    AddressResolver,
    CatalogService,
    StaticAddressResolver,
    UserServiceClient,
)

DbSession = Annotated[Session, Depends(get_db)]


def get_http_client(request: Request) -> httpx.Client:
    """Shared HTTP client created in ``main.lifespan``."""
    return request.app.state.http_client


def get_address_resolver() -> AddressResolver:
    return StaticAddressResolver(get_settings().service_addresses)


def get_user_client(
    http_client: Annotated[httpx.Client, Depends(get_http_client)],
    resolver: Annotated[AddressResolver, Depends(get_address_resolver)],
) -> UserServiceClient:
    settings = get_settings()
    return UserServiceClient(
        resolver,
        http_client,
        service_name=settings.user_service_name,
        timeout=settings.user_service_timeout,
    )


def get_catalog_service(
    db: DbSession,
    user_client: Annotated[UserServiceClient, Depends(get_user_client)],
) -> CatalogService:
    """Build the catalog service for the current request."""
    settings = get_settings()
    return CatalogService(
        BookRepository(db),
        user_client,
        check_eligibility=settings.check_eligibility_before_borrow,
        compensate_on_remote_failure=settings.compensate_on_remote_failure,
    )


Catalog = Annotated[CatalogService, Depends(get_catalog_service)]
