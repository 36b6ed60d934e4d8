"""
Users Router

Member management endpoints plus the three endpoints the catalog service
calls during borrow/return:

- GET /api/users/{id}/can-borrow → {"canBorrow": bool}
- PUT /api/users/{id}/borrow     → increment borrowed count (409 if ineligible)
- PUT /api/users/{id}/return     → decrement borrowed count (no-op at zero)

Routers stay thin: they log the call, delegate to ``UserLedger`` and
serialize the result. Errors raised by the ledger are rendered by the
exception handlers registered in ``main.create_app()``.
"""

import logging

from fastapi import APIRouter, status

from user_service.config import get_settings
from user_service.dependencies import Ledger
from user_service.schemas import (
    BorrowEligibilityResponse,
    UserCreate,
    UserDeletedResponse,
    UserResponse,
    UserUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    responses={
        404: {"description": "User not found"},
    },
)


# =============================================================================
# Service Endpoints
# =============================================================================
# Declared before /{user_id} so the literal paths win the route match.

@router.get(
    "/health",
    summary="Health check",
)
def health_check() -> dict:
    settings = get_settings()
    return {
        "status": "UP",
        "service": settings.app_name,
        "port": str(settings.port),
    }


@router.get(
    "/email/{email}",
    response_model=UserResponse,
    summary="Get a user by email",
)
def get_user_by_email(email: str, ledger: Ledger) -> UserResponse:
    logger.info(f"GET /api/users/email/{email} - Fetching user")
    return UserResponse.model_validate(ledger.get_user_by_email(email))


# =============================================================================
# CRUD Endpoints
# =============================================================================

@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create a member. The borrowing limit follows the membership type.",
)
def create_user(user_data: UserCreate, ledger: Ledger) -> UserResponse:
    logger.info(f"POST /api/users - Creating user: {user_data.email}")
    return UserResponse.model_validate(ledger.create_user(user_data))


@router.get(
    "",
    response_model=list[UserResponse],
    summary="List all users",
)
def list_users(ledger: Ledger) -> list[UserResponse]:
    logger.info("GET /api/users - Fetching all users")
    return [UserResponse.model_validate(user) for user in ledger.list_users()]


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Get a user by ID",
)
def get_user(user_id: int, ledger: Ledger) -> UserResponse:
    logger.info(f"GET /api/users/{user_id} - Fetching user")
    return UserResponse.model_validate(ledger.get_user(user_id))


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update a user",
    responses={409: {"description": "Email taken or tier below borrowed count"}},
)
def update_user(user_id: int, user_data: UserUpdate, ledger: Ledger) -> UserResponse:
    logger.info(f"PUT /api/users/{user_id} - Updating user")
    return UserResponse.model_validate(ledger.update_user(user_id, user_data))


@router.delete(
    "/{user_id}",
    response_model=UserDeletedResponse,
    summary="Delete a user",
    responses={409: {"description": "User still has borrowed books"}},
)
def delete_user(user_id: int, ledger: Ledger) -> UserDeletedResponse:
    logger.info(f"DELETE /api/users/{user_id} - Deleting user")
    ledger.delete_user(user_id)
    return UserDeletedResponse(message="User deleted successfully", user_id=str(user_id))


# =============================================================================
# Membership Lifecycle
# =============================================================================

@router.put("/{user_id}/suspend", response_model=UserResponse, summary="Suspend membership")
def suspend_user(user_id: int, ledger: Ledger) -> UserResponse:
    logger.info(f"PUT /api/users/{user_id}/suspend - Suspending user")
    return UserResponse.model_validate(ledger.suspend_user(user_id))


@router.put("/{user_id}/activate", response_model=UserResponse, summary="Activate membership")
def activate_user(user_id: int, ledger: Ledger) -> UserResponse:
    logger.info(f"PUT /api/users/{user_id}/activate - Activating user")
    return UserResponse.model_validate(ledger.activate_user(user_id))


@router.put("/{user_id}/renew", response_model=UserResponse, summary="Renew membership")
def renew_membership(user_id: int, ledger: Ledger) -> UserResponse:
    logger.info(f"PUT /api/users/{user_id}/renew - Renewing membership")
    return UserResponse.model_validate(ledger.renew_membership(user_id))


# =============================================================================
# Borrowing (called by the catalog service)
# =============================================================================

@router.get(
    "/{user_id}/can-borrow",
    response_model=BorrowEligibilityResponse,
    summary="Check borrow eligibility",
    description="Whether the user may borrow one more book. No side effects.",
)
def can_borrow(user_id: int, ledger: Ledger) -> BorrowEligibilityResponse:
    logger.info(f"GET /api/users/{user_id}/can-borrow - Checking eligibility")
    return BorrowEligibilityResponse(can_borrow=ledger.can_borrow(user_id))


@router.put(
    "/{user_id}/borrow",
    response_model=UserResponse,
    summary="Increment borrowed books",
    responses={409: {"description": "Limit reached or membership not active"}},
)
def borrow_book(user_id: int, ledger: Ledger) -> UserResponse:
    logger.info(f"PUT /api/users/{user_id}/borrow - User borrowing book")
    return UserResponse.model_validate(ledger.increment_borrowed(user_id))


@router.put(
    "/{user_id}/return",
    response_model=UserResponse,
    summary="Decrement borrowed books",
    description="Never fails on a zero count; the count is clamped at zero.",
)
def return_book(user_id: int, ledger: Ledger) -> UserResponse:
    logger.info(f"PUT /api/users/{user_id}/return - User returning book")
    return UserResponse.model_validate(ledger.decrement_borrowed(user_id))
