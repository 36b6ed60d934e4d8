"""
User Model

Represents a library member in the User Ledger.

Besides profile fields the record carries the borrow-eligibility state the
catalog service depends on:

- membership_type: tier, fixes max_books_allowed
- membership_status: ACTIVE / SUSPENDED / EXPIRED
- expiry_date: membership end
- borrowed_books_count: books currently out, 0 <= count <= max_books_allowed
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from user_service.database import Base
from user_service.utils import as_utc, utcnow


class MembershipType(str, Enum):
    """
    Membership tiers. Each tier implies a borrowing limit.

    - STUDENT: up to 3 books
    - REGULAR: up to 5 books
    - PREMIUM: up to 10 books
    """
    STUDENT = "STUDENT"
    REGULAR = "REGULAR"
    PREMIUM = "PREMIUM"

    @property
    def max_books(self) -> int:
        return MAX_BOOKS_BY_TYPE[self]


MAX_BOOKS_BY_TYPE: dict[MembershipType, int] = {
    MembershipType.STUDENT: 3,
    MembershipType.REGULAR: 5,
    MembershipType.PREMIUM: 10,
}


class MembershipStatus(str, Enum):
    """
    Current state of a membership.

    - ACTIVE: may borrow
    - SUSPENDED: blocked (late returns, unpaid fines, ...)
    - EXPIRED: needs renewal
    """
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    EXPIRED = "EXPIRED"


class User(Base):
    """
    User model representing library members.

    Table: users

    Constraints:
    - email is unique
    - 0 <= borrowed_books_count <= max_books_allowed (CHECK constraint)

    Example:
        user = User(
            name="Jane Doe",
            email="jane@example.com",
            membership_type=MembershipType.STUDENT.value,
            membership_status=MembershipStatus.ACTIVE.value,
            max_books_allowed=3,
            joined_date=now,
            expiry_date=now + timedelta(days=365),
        )
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "borrowed_books_count >= 0 AND borrowed_books_count <= max_books_allowed",
            name="ck_users_borrowed_books_count_range",
        ),
    )

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Profile Fields
    # -------------------------------------------------------------------------
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Member's full name"
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="Member's email address"
    )

    phone: Mapped[str | None] = mapped_column(
        String(10),
        nullable=True,
        comment="10 digit contact number"
    )

    # -------------------------------------------------------------------------
    # Membership
    # -------------------------------------------------------------------------
    membership_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Membership tier (STUDENT, REGULAR, PREMIUM)"
    )

    membership_status: Mapped[str] = mapped_column(
        String(20),
        default=MembershipStatus.ACTIVE.value,
        nullable=False,
        comment="Membership state (ACTIVE, SUSPENDED, EXPIRED)"
    )

    joined_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        comment="When the member registered"
    )

    expiry_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When the membership expires"
    )

    # -------------------------------------------------------------------------
    # Borrowing State
    # -------------------------------------------------------------------------
    borrowed_books_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Books currently borrowed"
    )

    max_books_allowed: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Borrowing limit derived from the membership tier"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Eligibility
    # -------------------------------------------------------------------------
    def is_expired(self, now: datetime) -> bool:
        return as_utc(self.expiry_date) <= now

    def can_borrow(self, now: datetime) -> bool:
        """
        Whether the member may borrow one more book at ``now``.

        Mirrors the SQL predicate used by ``UserRepository.increment_borrowed``.
        """
        return (
            self.membership_status == MembershipStatus.ACTIVE.value
            and not self.is_expired(now)
            and self.borrowed_books_count < self.max_books_allowed
        )

    def __repr__(self) -> str:
        return (
            f"User(id={self.id}, email='{self.email}', "
            f"borrowed={self.borrowed_books_count}/{self.max_books_allowed})"
        )
