"""
User Pydantic Schemas

Request and response models for the ledger API.

JSON uses camelCase keys (``borrowedBooksCount``, ``membershipType``) so
the catalog service and existing clients see the same field names as the
rest of the library system. Requests accept snake_case too.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from user_service.models import MembershipStatus, MembershipType


class CamelModel(BaseModel):
    """Base schema emitting camelCase JSON and reading ORM objects."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserBase(CamelModel):
    """
    Shared user fields for create and update.

    Validation:
    - name must not be blank
    - email must be a valid address
    - phone, when given, must be exactly 10 digits
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Member's full name",
        examples=["Jane Doe"],
    )

    email: EmailStr = Field(
        ...,
        description="Member's email address",
        examples=["jane@example.com"],
    )

    phone: str | None = Field(
        default=None,
        pattern=r"^[0-9]{10}$",
        description="10 digit contact number",
        examples=["5551234567"],
    )

    membership_type: MembershipType = Field(
        ...,
        description="Membership tier, fixes the borrowing limit",
        examples=["STUDENT", "REGULAR", "PREMIUM"],
    )

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class UserCreate(UserBase):
    """
    Schema for registering a new member.

    Example request body:
    {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "phone": "5551234567",
        "membershipType": "STUDENT"
    }
    """


class UserUpdate(UserBase):
    """Schema for PUT /api/users/{id}. All profile fields are replaced."""


class UserResponse(CamelModel):
    """Full user record as returned by every ledger endpoint."""

    id: int
    name: str
    email: str
    phone: str | None = None
    membership_type: MembershipType
    membership_status: MembershipStatus
    joined_date: datetime
    expiry_date: datetime
    borrowed_books_count: int = Field(..., ge=0)
    max_books_allowed: int = Field(..., ge=0)
    created_at: datetime
    updated_at: datetime


class BorrowEligibilityResponse(CamelModel):
    """Body of GET /api/users/{id}/can-borrow: ``{"canBorrow": true}``."""

    can_borrow: bool


class UserDeletedResponse(CamelModel):
    message: str
    user_id: str
