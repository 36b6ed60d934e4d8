"""
User Ledger Service

Business logic for library members and their borrow-eligibility state.

Eligibility
===========
A member may borrow one more book when ALL of these hold:
1. membership_status is ACTIVE
2. the membership has not expired (now < expiry_date)
3. borrowed_books_count < max_books_allowed

The catalog service relies on three operations:
- can_borrow(): read-only eligibility check
- increment_borrowed(): re-checks eligibility and adds one, or raises Conflict
- decrement_borrowed(): removes one, clamped at zero (never an error)

A return is always accepted, even if the ledger already shows zero
books out.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from user_service.exceptions import ConflictError, NotFoundError
from user_service.models import MembershipStatus, User
from user_service.repositories import UserRepository
from user_service.schemas import UserCreate, UserUpdate
from user_service.utils import utcnow

logger = logging.getLogger(__name__)


class UserLedger:
    """
    Member management and borrowed-count bookkeeping.

    Args:
        repository: Data access for users
        membership_duration: Validity of a new or renewed membership
        clock: Returns the current UTC time (injectable for tests)
    """

    def __init__(
        self,
        repository: UserRepository,
        membership_duration: timedelta = timedelta(days=365),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.membership_duration = membership_duration
        self.clock = clock

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------
    def create_user(self, data: UserCreate) -> User:
        """
        Register a new member.

        New members start ACTIVE with no borrowed books; the borrowing
        limit comes from the membership tier and the membership runs for
        ``membership_duration`` from now.

        Raises:
            ConflictError: If the email is already registered
        """
        logger.info(f"Creating new user with email: {data.email}")

        if self.repository.email_exists(data.email):
            logger.warning(f"User with email {data.email} already exists")
            raise ConflictError(f"User with email {data.email} already exists")

        now = self.clock()
        user = User(
            name=data.name,
            email=data.email,
            phone=data.phone,
            membership_type=data.membership_type.value,
            membership_status=MembershipStatus.ACTIVE.value,
            borrowed_books_count=0,
            max_books_allowed=data.membership_type.max_books,
            joined_date=now,
            expiry_date=now + self.membership_duration,
        )
        user = self.repository.add(user)

        logger.info(
            f"User created with ID: {user.id} and membership type: "
            f"{user.membership_type}"
        )
        return user

    def list_users(self) -> Sequence[User]:
        return self.repository.list_all()

    def get_user(self, user_id: int) -> User:
        """
        Fetch a member by id.

        Raises:
            NotFoundError: If no member has this id
        """
        user = self.repository.get_by_id(user_id)
        if user is None:
            logger.warning(f"User not found with ID: {user_id}")
            raise NotFoundError(f"User not found with id: {user_id}")
        return user

    def get_user_by_email(self, email: str) -> User:
        user = self.repository.get_by_email(email)
        if user is None:
            logger.warning(f"User not found with email: {email}")
            raise NotFoundError(f"User not found with email: {email}")
        return user

    def update_user(self, user_id: int, data: UserUpdate) -> User:
        """
        Replace a member's profile.

        Changing the membership tier recomputes the borrowing limit. A
        downgrade that would leave the member above the new limit is
        rejected so ``borrowed_books_count <= max_books_allowed`` keeps
        holding.

        Raises:
            NotFoundError: If the member does not exist
            ConflictError: If the new email is taken, or the new tier's
                limit is below the books currently borrowed
        """
        logger.info(f"Updating user with ID: {user_id}")
        user = self.get_user(user_id)

        if data.email != user.email and self.repository.email_exists(data.email):
            logger.warning(f"Email {data.email} already exists")
            raise ConflictError(f"Email {data.email} already exists")

        new_limit = data.membership_type.max_books
        if new_limit < user.borrowed_books_count:
            raise ConflictError(
                f"Membership {data.membership_type.value} allows {new_limit} books "
                f"but user has {user.borrowed_books_count} borrowed"
            )

        user.name = data.name
        user.email = data.email
        user.phone = data.phone
        user.membership_type = data.membership_type.value
        user.max_books_allowed = new_limit
        return self.repository.save(user)

    def delete_user(self, user_id: int) -> None:
        """
        Delete a member who has no books out.

        Raises:
            NotFoundError: If the member does not exist
            ConflictError: If the member still has borrowed books
        """
        logger.info(f"Deleting user with ID: {user_id}")
        user = self.get_user(user_id)

        if user.borrowed_books_count > 0:
            raise ConflictError(
                f"User {user_id} still has {user.borrowed_books_count} "
                "borrowed books and cannot be deleted"
            )

        self.repository.delete(user)
        logger.info(f"User deleted: {user_id}")

    # -------------------------------------------------------------------------
    # Membership Lifecycle
    # -------------------------------------------------------------------------
    def suspend_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        user.membership_status = MembershipStatus.SUSPENDED.value
        logger.info(f"User suspended: {user_id}")
        return self.repository.save(user)

    def activate_user(self, user_id: int) -> User:
        user = self.get_user(user_id)
        user.membership_status = MembershipStatus.ACTIVE.value
        logger.info(f"User activated: {user_id}")
        return self.repository.save(user)

    def renew_membership(self, user_id: int) -> User:
        """Extend the membership from now and reactivate it if it had expired."""
        user = self.get_user(user_id)
        user.expiry_date = self.clock() + self.membership_duration
        if user.membership_status == MembershipStatus.EXPIRED.value:
            user.membership_status = MembershipStatus.ACTIVE.value
        logger.info(f"Membership renewed for user: {user_id}")
        return self.repository.save(user)

    # -------------------------------------------------------------------------
    # Borrowing
    # -------------------------------------------------------------------------
    def _ineligibility_reason(self, user: User, now: datetime) -> str | None:
        """Explain why ``User.can_borrow`` is False, for the logs."""
        if user.membership_status != MembershipStatus.ACTIVE.value:
            return f"membership status is {user.membership_status}"
        if user.is_expired(now):
            return f"membership expired on {user.expiry_date}"
        if user.borrowed_books_count >= user.max_books_allowed:
            return (
                f"has {user.borrowed_books_count} books "
                f"(max: {user.max_books_allowed})"
            )
        return None

    def can_borrow(self, user_id: int) -> bool:
        """
        Check whether the member may borrow one more book. No side effects.

        Raises:
            NotFoundError: If the member does not exist
        """
        user = self.get_user(user_id)
        now = self.clock()
        if not user.can_borrow(now):
            reason = self._ineligibility_reason(user, now) or "not eligible"
            logger.warning(f"User {user_id} cannot borrow - {reason}")
            return False

        logger.info(
            f"User {user_id} can borrow more books "
            f"({user.borrowed_books_count}/{user.max_books_allowed})"
        )
        return True

    def increment_borrowed(self, user_id: int) -> User:
        """
        Record one more borrowed book.

        The eligibility predicate is evaluated inside the UPDATE itself,
        so a concurrent increment cannot slip past the limit.

        Raises:
            NotFoundError: If the member does not exist
            ConflictError: If the member is not eligible; nothing changes
        """
        logger.info(f"Incrementing borrowed books for user ID: {user_id}")
        user = self.get_user(user_id)
        now = self.clock()

        if not self.repository.increment_borrowed(user_id, now):
            user = self.repository.refresh(user)
            reason = self._ineligibility_reason(user, now) or "not eligible"
            logger.warning(f"User {user_id} cannot borrow - {reason}")
            raise ConflictError(
                "User has reached maximum book limit or membership is not active"
            )

        user = self.repository.refresh(user)
        logger.info(
            f"User {user_id} now has {user.borrowed_books_count} books borrowed"
        )
        return user

    def decrement_borrowed(self, user_id: int) -> User:
        """
        Record one returned book. At zero this is a no-op, not an error.

        Raises:
            NotFoundError: If the member does not exist
        """
        logger.info(f"Decrementing borrowed books for user ID: {user_id}")
        user = self.get_user(user_id)

        if not self.repository.decrement_borrowed(user_id):
            logger.info(f"User {user_id} has no borrowed books, nothing to decrement")

        user = self.repository.refresh(user)
        logger.info(
            f"User {user_id} now has {user.borrowed_books_count} books borrowed"
        )
        return user
