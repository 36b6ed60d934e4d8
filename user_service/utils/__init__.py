"""
Utilities Package

Date/time helpers shared by the ledger models and services.

All ledger timestamps are UTC. SQLite (used by the test suite) hands back
naive datetimes even for ``DateTime(timezone=True)`` columns, so values
read from the database go through ``as_utc()`` before being compared.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
