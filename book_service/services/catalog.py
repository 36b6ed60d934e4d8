"""
Catalog Service

Book CRUD plus the borrow/return coordinator.

Borrow/Return Protocol
======================
Availability lives in this service's database, borrowed counts live in
the user ledger. There is no distributed transaction between the two, so
the order of the steps matters:

Borrow(isbn, user_id):
1. Look up the book (404 if unknown)
2. No copy on the shelf → 409, nothing else happens
3. Optionally ask the ledger ``can-borrow`` → 409 if it says no
4. Take one copy with a conditional UPDATE and commit
5. THEN tell the ledger to increment the user's count

Return(isbn, user_id):
1. Look up the book (404 if unknown)
2. All copies already on the shelf → 409, nothing else happens
3. Put one copy back with a conditional UPDATE and commit
4. THEN tell the ledger to decrement the user's count

If the ledger call in the last step fails, the local change is already
committed and stays that way: the caller gets the error (503, 409 or 404)
and the two services disagree by one. With ``compensate_on_remote_failure``
the local change is undone before the error is re-raised.
"""

import logging
from collections.abc import Sequence

from book_service.exceptions import (
    ConflictError,
    NotFoundError,
    ServiceError,
    ValidationFailedError,
)
from book_service.models import Book
from book_service.repositories import BookRepository
from book_service.schemas import BookCreate, BookUpdate
from book_service.services.user_client import UserServiceClient
from book_service.utils import normalize_isbn

logger = logging.getLogger(__name__)

NOT_ELIGIBLE_MESSAGE = (
    "User is not eligible to borrow books. Possible reasons: "
    "membership expired, max limit reached, or account suspended"
)


class CatalogService:
    """
    Catalog operations and the borrow/return coordinator.

    Args:
        repository: Data access for books
        user_client: Client for the user ledger
        check_eligibility: Call ``can-borrow`` before taking a copy
        compensate_on_remote_failure: Undo the local copy change when the
            ledger call fails
    """

    def __init__(
        self,
        repository: BookRepository,
        user_client: UserServiceClient,
        check_eligibility: bool = True,
        compensate_on_remote_failure: bool = False,
    ) -> None:
        self.repository = repository
        self.user_client = user_client
        self.check_eligibility = check_eligibility
        self.compensate_on_remote_failure = compensate_on_remote_failure

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------
    def create_book(self, data: BookCreate) -> Book:
        """
        Add a book to the catalog.

        Raises:
            ConflictError: If a book with this ISBN already exists
            ValidationFailedError: If available copies exceed total copies
        """
        logger.info(f"Creating new book with ISBN: {data.isbn}")

        if self.repository.isbn_exists(data.isbn):
            logger.warning(f"Book with ISBN {data.isbn} already exists")
            raise ConflictError(f"Book with ISBN {data.isbn} already exists")

        self._check_copies(data.total_copies, data.available_copies)

        book = self.repository.add(
            Book(
                isbn=data.isbn,
                title=data.title,
                author=data.author,
                total_copies=data.total_copies,
                available_copies=data.available_copies,
            )
        )
        logger.info(f"Book created with ID: {book.id}")
        return book

    def list_books(self) -> Sequence[Book]:
        return self.repository.list_all()

    def get_book(self, book_id: int) -> Book:
        book = self.repository.get_by_id(book_id)
        if book is None:
            logger.warning(f"Book not found with ID: {book_id}")
            raise NotFoundError(f"Book not found with ID: {book_id}")
        return book

    def get_book_by_isbn(self, isbn: str) -> Book:
        """
        Fetch a book by ISBN. Hyphens and spaces in ``isbn`` are ignored.

        Raises:
            NotFoundError: If no book has this ISBN
        """
        normalized = normalize_isbn(isbn)
        book = self.repository.get_by_isbn(normalized)
        if book is None:
            logger.warning(f"Book not found with ISBN: {isbn}")
            raise NotFoundError(f"Book not found with ISBN: {isbn}")
        return book

    def books_by_author(self, author: str) -> Sequence[Book]:
        books = self.repository.list_by_author(author)
        logger.info(f"Found {len(books)} books by {author}")
        return books

    def available_books(self) -> Sequence[Book]:
        books = self.repository.list_available()
        logger.info(f"Found {len(books)} available books")
        return books

    def search_by_title(self, keyword: str) -> Sequence[Book]:
        books = self.repository.search_by_title(keyword)
        logger.info(f"Found {len(books)} books matching '{keyword}'")
        return books

    def update_book(self, isbn: str, data: BookUpdate) -> Book:
        """
        Replace a book's fields.

        Raises:
            NotFoundError: If the book does not exist
            ConflictError: If the new ISBN belongs to another book
            ValidationFailedError: If available copies exceed total copies
        """
        logger.info(f"Updating book: {isbn}")
        book = self.get_book_by_isbn(isbn)

        if data.isbn != book.isbn and self.repository.isbn_exists(data.isbn):
            raise ConflictError(f"Book with ISBN {data.isbn} already exists")

        self._check_copies(data.total_copies, data.available_copies)

        book.isbn = data.isbn
        book.title = data.title
        book.author = data.author
        book.total_copies = data.total_copies
        book.available_copies = data.available_copies
        book = self.repository.save(book)

        logger.info(f"Book updated successfully: {book.isbn}")
        return book

    def delete_book(self, book_id: int) -> None:
        logger.info(f"Deleting book: {book_id}")
        book = self.get_book(book_id)
        self.repository.delete(book)
        logger.info(f"Book deleted successfully: {book.title}")

    @staticmethod
    def _check_copies(total_copies: int, available_copies: int) -> None:
        if available_copies > total_copies:
            raise ValidationFailedError("Available copies cannot exceed total copies")

    # -------------------------------------------------------------------------
    # Borrow / Return
    # -------------------------------------------------------------------------
    def borrow_book(self, isbn: str, user_id: int) -> Book:
        """
        Lend one copy of a book to a user.

        Raises:
            NotFoundError: Unknown book, or the ledger does not know the user
            ConflictError: Out of stock, or the user may not borrow
            RemoteServiceUnavailableError: The ledger could not be reached
        """
        logger.info(f"Processing borrow request: ISBN={isbn}, UserID={user_id}")

        book = self.get_book_by_isbn(isbn)
        if not book.is_available:
            logger.warning(f"Book '{book.title}' is out of stock")
            raise ConflictError("Book is currently out of stock")

        if self.check_eligibility:
            if not self.user_client.can_borrow(user_id):
                logger.warning(f"User {user_id} is not eligible to borrow books")
                raise ConflictError(NOT_ELIGIBLE_MESSAGE)
            logger.info(f"User {user_id} is eligible to borrow")

        if not self.repository.decrement_available(book.id):
            logger.warning(f"Last copy of '{book.title}' was taken concurrently")
            raise ConflictError("Book is currently out of stock")
        logger.info(f"Copy of '{book.title}' taken, notifying User Service")

        try:
            self.user_client.increment_borrowed(user_id)
        except ServiceError as exc:
            self._handle_remote_failure("borrow", book, user_id, exc)
            raise

        book = self.repository.refresh(book)
        logger.info(
            f"Book borrowed successfully: '{book.title}' by user {user_id} "
            f"({book.available_copies}/{book.total_copies} available)"
        )
        return book

    def return_book(self, isbn: str, user_id: int) -> Book:
        """
        Take back one copy of a book from a user.

        Raises:
            NotFoundError: Unknown book, or the ledger does not know the user
            ConflictError: All copies are already on the shelf
            RemoteServiceUnavailableError: The ledger could not be reached
        """
        logger.info(f"Processing return request: ISBN={isbn}, UserID={user_id}")

        book = self.get_book_by_isbn(isbn)
        if book.all_copies_returned:
            logger.warning(f"All copies of '{book.title}' are already returned")
            raise ConflictError("All copies are already returned")

        if not self.repository.increment_available(book.id):
            logger.warning(f"All copies of '{book.title}' were returned concurrently")
            raise ConflictError("All copies are already returned")
        logger.info(f"Copy of '{book.title}' returned, notifying User Service")

        try:
            self.user_client.decrement_borrowed(user_id)
        except ServiceError as exc:
            self._handle_remote_failure("return", book, user_id, exc)
            raise

        book = self.repository.refresh(book)
        logger.info(
            f"Book returned successfully: '{book.title}' by user {user_id} "
            f"({book.available_copies}/{book.total_copies} available)"
        )
        return book

    def _handle_remote_failure(
        self,
        operation: str,
        book: Book,
        user_id: int,
        exc: ServiceError,
    ) -> None:
        """Log the inconsistency and, if enabled, undo the local change."""
        if not self.compensate_on_remote_failure:
            logger.error(
                f"User Service update failed after {operation} of book {book.id} "
                f"by user {user_id}; local change kept: {exc.message}"
            )
            return

        if operation == "borrow":
            undone = self.repository.increment_available(book.id)
        else:
            undone = self.repository.decrement_available(book.id)

        if undone:
            logger.warning(
                f"User Service update failed after {operation} of book {book.id} "
                f"by user {user_id}; local change reverted: {exc.message}"
            )
        else:
            logger.error(
                f"Could not revert {operation} of book {book.id} for user {user_id}"
            )
