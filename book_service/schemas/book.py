"""
Book Pydantic Schemas

Request and response models for the catalog API.

Includes:
- ISBN validation and normalisation (hyphens stripped)
- camelCase JSON (``totalCopies``, ``availableCopies``)
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from book_service.utils import normalize_isbn


class CamelModel(BaseModel):
    """Base schema emitting camelCase JSON and reading ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class BookBase(CamelModel):
    """
    Shared book fields for create and update.

    Validation:
    - ISBN must be a valid ISBN-10 or ISBN-13 once hyphens are removed
    - title and author must not be blank
    - copy counts must not be negative
    """

    isbn: str = Field(
        ...,
        min_length=10,
        max_length=20,
        description="ISBN-10 or ISBN-13; hyphens and spaces are stripped before storing",
        examples=["978-0134685991", "0451524934"],
    )

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        description="Book title",
        examples=["Effective Java"],
    )

    author: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Author name",
        examples=["Joshua Bloch"],
    )

    total_copies: int = Field(
        ...,
        ge=0,
        description="Copies owned by the library",
        examples=[5],
    )

    available_copies: int = Field(
        ...,
        ge=0,
        description="Copies on the shelf, at most total_copies",
        examples=[5],
    )

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str) -> str:
        """
        Validate ISBN format.

        Accepts:
        - ISBN-10: 9 digits followed by a digit or X
        - ISBN-13: 13 digits

        Returns the ISBN without hyphens or spaces.
        """
        cleaned = normalize_isbn(v)

        if len(cleaned) == 10:
            if not re.match(r"^\d{9}[\dX]$", cleaned):
                raise ValueError(
                    "Invalid ISBN-10 format. Must be 10 characters: "
                    "9 digits followed by a digit or 'X'"
                )
        elif len(cleaned) == 13:
            if not cleaned.isdigit():
                raise ValueError("Invalid ISBN-13 format. Must be exactly 13 digits")
        else:
            raise ValueError(
                "ISBN must be either 10 or 13 characters (excluding hyphens)"
            )

        return cleaned

    @field_validator("title", "author")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Cannot be empty or whitespace")
        return v.strip()


class BookCreate(BookBase):
    """
    Schema for adding a book to the catalog.

    Example request body:
    {
        "isbn": "978-0134685991",
        "title": "Effective Java",
        "author": "Joshua Bloch",
        "totalCopies": 5,
        "availableCopies": 5
    }
    """


class BookUpdate(BookBase):
    """Schema for PUT /api/books/{isbn}. All fields are replaced."""


class BookResponse(CamelModel):
    """Full book record as returned by every catalog endpoint."""

    id: int
    isbn: str = Field(..., description="Normalised ISBN, digits (and a trailing X) only")
    title: str
    author: str
    total_copies: int = Field(..., ge=0)
    available_copies: int = Field(..., ge=0)
    created_at: datetime
    updated_at: datetime


class BookDeletedResponse(CamelModel):
    message: str
    book_id: str
