"""
Books Router

Catalog CRUD plus the borrow/return endpoints:

- PUT /api/books/{isbn}/borrow?userId={id}
- PUT /api/books/{isbn}/return?userId={id}

ISBNs are stored and returned without hyphens or spaces: posting
``978-0134685991`` answers with ``"isbn": "9780134685991"``. ISBNs in paths
may keep their hyphens; they are normalised the same way before the lookup.

Write endpoints (create, update, delete, borrow, return) are rate limited
with slowapi. slowapi needs the ``request`` argument on every decorated
endpoint even when the body does not use it.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, Request, status

from book_service.config import get_settings
from book_service.dependencies import Catalog
from book_service.schemas import (
    BookCreate,
    BookDeletedResponse,
    BookResponse,
    BookUpdate,
)
from book_service.services.rate_limiter import limiter

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/api/books",
    tags=["Books"],
    responses={
        404: {"description": "Book not found"},
    },
)

UserIdQuery = Annotated[int, Query(alias="userId", description="Borrowing user's ID")]


# =============================================================================
# Lookup Endpoints
# =============================================================================
# Literal paths first so they are not captured by /{isbn}.

@router.get("/health", summary="Health check")
def health_check() -> dict:
    return {
        "status": "UP",
        "service": settings.app_name,
        "port": str(settings.port),
    }


@router.get(
    "/id/{book_id}",
    response_model=BookResponse,
    summary="Get a book by ID",
)
def get_book(book_id: int, catalog: Catalog) -> BookResponse:
    logger.info(f"GET /api/books/id/{book_id} - Fetching book")
    return BookResponse.model_validate(catalog.get_book(book_id))


@router.get(
    "/author/{author}",
    response_model=list[BookResponse],
    summary="List books by author",
    description="Exact match on the author name.",
)
def books_by_author(author: str, catalog: Catalog) -> list[BookResponse]:
    logger.info(f"GET /api/books/author/{author} - Fetching books")
    return [BookResponse.model_validate(book) for book in catalog.books_by_author(author)]


@router.get(
    "/available",
    response_model=list[BookResponse],
    summary="List books with copies on the shelf",
)
def available_books(catalog: Catalog) -> list[BookResponse]:
    logger.info("GET /api/books/available - Fetching available books")
    return [BookResponse.model_validate(book) for book in catalog.available_books()]


@router.get(
    "/search",
    response_model=list[BookResponse],
    summary="Search books by title",
    description="Case-insensitive substring match on the title.",
)
def search_books(
    catalog: Catalog,
    title: Annotated[str, Query(min_length=1, description="Part of the title")],
) -> list[BookResponse]:
    logger.info(f"GET /api/books/search?title={title} - Searching books")
    return [BookResponse.model_validate(book) for book in catalog.search_by_title(title)]


# =============================================================================
# CRUD Endpoints
# =============================================================================

@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a book",
    description="The ISBN is validated as ISBN-10 or ISBN-13 and stored without hyphens or spaces.",
    responses={
        400: {"description": "Available copies exceed total copies"},
        409: {"description": "ISBN already exists"},
    },
)
@limiter.limit(settings.rate_limit_write)
def create_book(request: Request, book_data: BookCreate, catalog: Catalog) -> BookResponse:
    logger.info(f"POST /api/books - Creating book: {book_data.title}")
    return BookResponse.model_validate(catalog.create_book(book_data))


@router.get(
    "",
    response_model=list[BookResponse],
    summary="List all books",
)
def list_books(catalog: Catalog) -> list[BookResponse]:
    logger.info("GET /api/books - Fetching all books")
    return [BookResponse.model_validate(book) for book in catalog.list_books()]


@router.get(
    "/{isbn}",
    response_model=BookResponse,
    summary="Get a book by ISBN",
)
def get_book_by_isbn(isbn: str, catalog: Catalog) -> BookResponse:
    logger.info(f"GET /api/books/{isbn} - Fetching book")
    return BookResponse.model_validate(catalog.get_book_by_isbn(isbn))


@router.put(
    "/{isbn}",
    response_model=BookResponse,
    summary="Update a book",
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    isbn: str,
    book_data: BookUpdate,
    catalog: Catalog,
) -> BookResponse:
    logger.info(f"PUT /api/books/{isbn} - Updating book")
    return BookResponse.model_validate(catalog.update_book(isbn, book_data))


@router.delete(
    "/{book_id}",
    response_model=BookDeletedResponse,
    summary="Delete a book",
)
@limiter.limit(settings.rate_limit_write)
def delete_book(request: Request, book_id: int, catalog: Catalog) -> BookDeletedResponse:
    logger.info(f"DELETE /api/books/{book_id} - Deleting book")
    catalog.delete_book(book_id)
    return BookDeletedResponse(message="Book deleted successfully", book_id=str(book_id))


# =============================================================================
# Borrow / Return
# =============================================================================

@router.put(
    "/{isbn}/borrow",
    response_model=BookResponse,
    summary="Borrow a book",
    description=(
        "Take one copy off the shelf and record it on the user's account in "
        "the User Service."
    ),
    responses={
        409: {"description": "Out of stock or user not eligible"},
        503: {"description": "User Service unavailable"},
    },
)
@limiter.limit(settings.rate_limit_write)
def borrow_book(
    request: Request,
    isbn: str,
    user_id: UserIdQuery,
    catalog: Catalog,
) -> BookResponse:
    logger.info(f"PUT /api/books/{isbn}/borrow - User {user_id} borrowing book")
    return BookResponse.model_validate(catalog.borrow_book(isbn, user_id))


@router.put(
    "/{isbn}/return",
    response_model=BookResponse,
    summary="Return a book",
    responses={
        409: {"description": "All copies already returned"},
        503: {"description": "User Service unavailable"},
    },
)
@limiter.limit(settings.rate_limit_write)
def return_book(
    request: Request,
    isbn: str,
    user_id: UserIdQuery,
    catalog: Catalog,
) -> BookResponse:
    logger.info(f"PUT /api/books/{isbn}/return - User {user_id} returning book")
    return BookResponse.model_validate(catalog.return_book(isbn, user_id))
