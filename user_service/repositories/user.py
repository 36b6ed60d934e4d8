"""
User Repository

Data access layer for the ledger. Every query against the ``users`` table
lives here so the service layer can be exercised with any session.

The borrowed-count mutations are single conditional UPDATE statements:
the eligibility predicate is part of the WHERE clause, so two concurrent
increments cannot push a member past ``max_books_allowed``.
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from user_service.models import MembershipStatus, User


class UserRepository:
    """Repository for ``User`` records."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def get_by_id(self, user_id: int) -> User | None:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return self.db.execute(stmt).scalar_one_or_none()

    def email_exists(self, email: str) -> bool:
        return self.get_by_email(email) is not None

    def list_all(self) -> Sequence[User]:
        stmt = select(User).order_by(User.id)
        return self.db.execute(stmt).scalars().all()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    def add(self, user: User) -> User:
        """Insert a new user and return it refreshed from the database."""
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        """Commit pending changes on an already tracked user."""
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.commit()

    def refresh(self, user: User) -> User:
        self.db.refresh(user)
        return user

    # -------------------------------------------------------------------------
    # Atomic Counter Updates
    # -------------------------------------------------------------------------
    def increment_borrowed(self, user_id: int, now: datetime) -> bool:
        """
        Add one borrowed book if the member is eligible at ``now``.

        Args:
            user_id: Member to update
            now: Reference time for the expiry check (UTC)

        Returns:
            True if the row was updated, False if the member was not
            eligible (or does not exist)
        """
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.membership_status == MembershipStatus.ACTIVE.value,
                User.expiry_date > now,
                User.borrowed_books_count < User.max_books_allowed,
            )
            .values(borrowed_books_count=User.borrowed_books_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount == 1

    def decrement_borrowed(self, user_id: int) -> bool:
        """
        Remove one borrowed book, never going below zero.

        Returns:
            True if the count changed, False if it was already zero
        """
        stmt = (
            update(User)
            .where(User.id == user_id, User.borrowed_books_count > 0)
            .values(borrowed_books_count=User.borrowed_books_count - 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount == 1
