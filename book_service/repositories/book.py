"""
Book Repository

Data access layer for the catalog. Every query against the ``books`` table
lives here.

Copy counters are changed with conditional UPDATE statements only
(decrement-if-positive, increment-if-below-total), so two concurrent
borrowers can never take the same last copy and the CHECK constraint is
never the thing that stops them.
"""

from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from book_service.models import Book


class BookRepository:
    """Repository for ``Book`` records."""

    def __init__(self, db: Session) -> None:
        self.db = db

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def get_by_id(self, book_id: int) -> Book | None:
        return self.db.get(Book, book_id)

    def get_by_isbn(self, isbn: str) -> Book | None:
        """Look up a book by its normalised ISBN."""
        stmt = select(Book).where(Book.isbn == isbn)
        return self.db.execute(stmt).scalar_one_or_none()

    def isbn_exists(self, isbn: str) -> bool:
        return self.get_by_isbn(isbn) is not None

    def list_all(self) -> Sequence[Book]:
        stmt = select(Book).order_by(Book.id)
        return self.db.execute(stmt).scalars().all()

    def list_by_author(self, author: str) -> Sequence[Book]:
        stmt = select(Book).where(Book.author == author).order_by(Book.id)
        return self.db.execute(stmt).scalars().all()

    def list_available(self) -> Sequence[Book]:
        stmt = select(Book).where(Book.available_copies > 0).order_by(Book.id)
        return self.db.execute(stmt).scalars().all()

    def search_by_title(self, keyword: str) -> Sequence[Book]:
        """Case-insensitive substring match on the title."""
        stmt = (
            select(Book)
            .where(Book.title.ilike(f"%{keyword}%"))
            .order_by(Book.title)
        )
        return self.db.execute(stmt).scalars().all()

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------
    def add(self, book: Book) -> Book:
        self.db.add(book)
        self.db.commit()
        self.db.refresh(book)
        return book

    def save(self, book: Book) -> Book:
        self.db.commit()
        self.db.refresh(book)
        return book

    def delete(self, book: Book) -> None:
        self.db.delete(book)
        self.db.commit()

    def refresh(self, book: Book) -> Book:
        self.db.refresh(book)
        return book

    # -------------------------------------------------------------------------
    # Atomic Counter Updates
    # -------------------------------------------------------------------------
    def decrement_available(self, book_id: int) -> bool:
        """
        Take one copy off the shelf if any is left.

        Returns:
            True if a copy was taken, False if none was available
        """
        stmt = (
            update(Book)
            .where(Book.id == book_id, Book.available_copies > 0)
            .values(available_copies=Book.available_copies - 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount == 1

    def increment_available(self, book_id: int) -> bool:
        """
        Put one copy back on the shelf unless all copies are already there.

        Returns:
            True if a copy was put back, False if the shelf was full
        """
        stmt = (
            update(Book)
            .where(Book.id == book_id, Book.available_copies < Book.total_copies)
            .values(available_copies=Book.available_copies + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        self.db.commit()
        return result.rowcount == 1
