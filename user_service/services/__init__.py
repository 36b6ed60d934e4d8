"""
Services Package

Business logic kept separate from HTTP handling (routers) and from data
access (repositories).

- ledger.py: member CRUD, membership lifecycle, borrowed-count bookkeeping
"""

from user_service.services.ledger import UserLedger

__all__ = ["UserLedger"]
