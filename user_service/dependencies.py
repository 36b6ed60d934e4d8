"""
FastAPI Dependencies Module

Wires request-scoped objects together: a database session per request,
a repository over that session, and the ledger service over the
repository. Tests override ``get_db`` to point at their own database.
"""

from datetime import timedelta
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from user_service.config import get_settings
from user_service.database import get_db
from user_service.repositories import UserRepository
from user_service.services import UserLedger

DbSession = Annotated[Session, Depends(get_db)]


def get_user_ledger(db: DbSession) -> UserLedger:
    """Build the ledger service for the current request."""
    settings = get_settings()
    return UserLedger(
        UserRepository(db),
        membership_duration=timedelta(days=settings.membership_duration_days),
    )


Ledger = Annotated[UserLedger, Depends(get_user_ledger)]
