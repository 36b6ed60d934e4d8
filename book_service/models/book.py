"""
Book Model

A catalog entry and its copy-availability state.

Books are keyed by ISBN (stored without hyphens) and carry two counters:

- total_copies: copies the library owns
- available_copies: copies currently on the shelf

The catalog never knows *who* holds a copy; the borrowed count per member
lives in the user service.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from book_service.database import Base


class Book(Base):
    """
    Book model.

    Table: books

    Constraints:
    - isbn is unique
    - 0 <= available_copies <= total_copies (CHECK constraint)
    """

    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="ck_books_available_copies_range",
        ),
    )

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Catalog Fields
    # -------------------------------------------------------------------------
    isbn: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=False,
        comment="ISBN-10 or ISBN-13 without hyphens"
    )

    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        index=True,
        comment="Book title"
    )

    author: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Author name as printed on the book"
    )

    # -------------------------------------------------------------------------
    # Availability
    # -------------------------------------------------------------------------
    total_copies: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Copies owned by the library"
    )

    available_copies: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Copies currently on the shelf"
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

    @property
    def is_available(self) -> bool:
        return self.available_copies > 0

    @property
    def all_copies_returned(self) -> bool:
        return self.available_copies >= self.total_copies

    def __repr__(self) -> str:
        return (
            f"Book(id={self.id}, isbn='{self.isbn}', "
            f"available={self.available_copies}/{self.total_copies})"
        )
