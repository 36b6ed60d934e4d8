"""
Tests for the Borrow/Return Protocol

PUT /api/books/{isbn}/borrow?userId={id}
PUT /api/books/{isbn}/return?userId={id}

The Book Service calls the real User Service app in-process (through its
TestClient) unless a test needs the User Service to misbehave, in which
case requests go through an ``httpx.MockTransport`` handler.
"""

import logging
import random

import httpx
import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from book_service.config import get_settings
from book_service.models import Book
from tests.conftest import forward_to, make_book, make_user, mock_user_service
from user_service.models import MembershipStatus, MembershipType, User

ISBN = "9780134685991"


def borrow(client: TestClient, user_id: int, isbn: str = ISBN) -> httpx.Response:
    return client.put(f"/api/books/{isbn}/borrow", params={"userId": user_id})


def give_back(client: TestClient, user_id: int, isbn: str = ISBN) -> httpx.Response:
    return client.put(f"/api/books/{isbn}/return", params={"userId": user_id})


def borrowed_count(user_client: TestClient, user_id: int) -> int:
    return user_client.get(f"/api/users/{user_id}").json()["borrowedBooksCount"]


def recording_user_service(calls: list, can_borrow: bool = True) -> httpx.Client:
    """User Service double that records every call and always succeeds."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        if request.url.path.endswith("/can-borrow"):
            return httpx.Response(200, json={"canBorrow": can_borrow})
        return httpx.Response(200, json={"id": 1, "borrowedBooksCount": 0})

    return mock_user_service(handler)


@pytest.fixture
def compensation(monkeypatch):
    """Turn on compensation of the local change after a failed ledger call."""
    monkeypatch.setattr(get_settings(), "compensate_on_remote_failure", True)


@pytest.fixture
def no_precheck(monkeypatch):
    """Skip the can-borrow call before taking a copy."""
    monkeypatch.setattr(get_settings(), "check_eligibility_before_borrow", False)


# =============================================================================
# Test: Borrow
# =============================================================================


class TestBorrow:
    """Tests for PUT /api/books/{isbn}/borrow."""

    def test_borrow_success(
        self,
        book_client: TestClient,
        user_client: TestClient,
        sample_book: Book,
        student: User,
    ):
        """One copy leaves the shelf and the user's count goes up."""
        response = borrow(book_client, student.id)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["isbn"] == ISBN
        assert data["availableCopies"] == 2
        assert data["totalCopies"] == 3
        assert borrowed_count(user_client, student.id) == 1

    def test_borrow_with_hyphenated_isbn(
        self,
        book_client: TestClient,
        sample_book: Book,
        student: User,
    ):
        response = borrow(book_client, student.id, isbn="978-0134685991")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["availableCopies"] == 2

    def test_borrow_out_of_stock_makes_no_remote_call(
        self,
        book_client_for,
        book_db: Session,
    ):
        make_book(book_db, total=2, available=0)
        calls: list = []
        client = book_client_for(recording_user_service(calls))

        response = borrow(client, 1)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["message"] == "Book is currently out of stock"
        assert calls == []

    def test_borrow_unknown_book_makes_no_remote_call(self, book_client_for):
        calls: list = []
        client = book_client_for(recording_user_service(calls))

        response = borrow(client, 1)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert calls == []

    def test_borrow_ineligible_user(
        self,
        book_client: TestClient,
        user_client: TestClient,
        user_db: Session,
        book_db: Session,
        sample_book: Book,
    ):
        """A suspended member is turned away before any copy is taken."""
        user = make_user(user_db, status=MembershipStatus.SUSPENDED)

        response = borrow(book_client, user.id)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["message"].startswith(
            "User is not eligible to borrow books"
        )
        book_db.refresh(sample_book)
        assert sample_book.available_copies == 3
        assert borrowed_count(user_client, user.id) == 0

    def test_borrow_unknown_user(
        self,
        book_client: TestClient,
        book_db: Session,
        sample_book: Book,
    ):
        response = borrow(book_client, 99999)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "User not found with id: 99999"
        book_db.refresh(sample_book)
        assert sample_book.available_copies == 3

    def test_borrow_requires_user_id(self, book_client: TestClient, sample_book: Book):
        response = book_client.put(f"/api/books/{ISBN}/borrow")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "userId" in response.json()["fieldErrors"]

    def test_borrow_user_service_down(
        self,
        book_client_for,
        book_db: Session,
        sample_book: Book,
    ):
        """Nobody answers the eligibility check: 503 and the shelf is untouched."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        response = borrow(book_client_for(mock_user_service(handler)), 1)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["error"] == "Service Unavailable"
        book_db.refresh(sample_book)
        assert sample_book.available_copies == 3


class TestStudentScenario:
    """A STUDENT (max 3) empties a 3-copy book."""

    def test_three_borrows_then_conflict(
        self,
        book_client: TestClient,
        user_client: TestClient,
        sample_book: Book,
        student: User,
    ):
        for expected_available, expected_borrowed in ((2, 1), (1, 2), (0, 3)):
            response = borrow(book_client, student.id)
            assert response.status_code == status.HTTP_200_OK
            assert response.json()["availableCopies"] == expected_available
            assert borrowed_count(user_client, student.id) == expected_borrowed

        response = borrow(book_client, student.id)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert borrowed_count(user_client, student.id) == 3

    def test_limit_reached_on_another_book(
        self,
        book_client: TestClient,
        user_client: TestClient,
        book_db: Session,
        student: User,
    ):
        """With copies left elsewhere, the ledger limit is what stops the fourth borrow."""
        make_book(book_db, isbn=ISBN, total=3)
        other = make_book(book_db, isbn="9780132350884", title="Clean Code", total=2)
        for _ in range(3):
            borrow(book_client, student.id)

        response = borrow(book_client, student.id, isbn=other.isbn)

        assert response.status_code == status.HTTP_409_CONFLICT
        book_db.refresh(other)
        assert other.available_copies == 2


# =============================================================================
# Test: Return
# =============================================================================


class TestReturn:
    """Tests for PUT /api/books/{isbn}/return."""

    def test_return_success(
        self,
        book_client: TestClient,
        user_client: TestClient,
        book_db: Session,
        user_db: Session,
    ):
        make_book(book_db, total=3, available=1)
        user = make_user(user_db, borrowed=2)

        response = give_back(book_client, user.id)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["availableCopies"] == 2
        assert borrowed_count(user_client, user.id) == 1

    def test_return_all_copies_present_makes_no_remote_call(
        self,
        book_client_for,
        sample_book: Book,
    ):
        calls: list = []
        client = book_client_for(recording_user_service(calls))

        response = give_back(client, 1)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["message"] == "All copies are already returned"
        assert calls == []

    def test_return_when_ledger_shows_zero(
        self,
        book_client: TestClient,
        user_client: TestClient,
        book_db: Session,
        student: User,
    ):
        """The ledger clamps at zero, so the return still succeeds."""
        make_book(book_db, total=3, available=2)

        response = give_back(book_client, student.id)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["availableCopies"] == 3
        assert borrowed_count(user_client, student.id) == 0

    def test_round_trip_restores_both_counters(
        self,
        book_client: TestClient,
        user_client: TestClient,
        sample_book: Book,
        student: User,
    ):
        borrow(book_client, student.id)
        response = give_back(book_client, student.id)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["availableCopies"] == 3
        assert borrowed_count(user_client, student.id) == 0


# =============================================================================
# Test: Partial Failure
# =============================================================================


class TestRemoteFailureAfterLocalChange:
    """
    The ledger call happens after the local commit. Without compensation
    the local change stays; with it, the change is undone.
    """

    @staticmethod
    def timeout_on_put(user_client: TestClient) -> httpx.Client:
        """Eligibility checks reach the real ledger, updates time out."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "PUT":
                raise httpx.ReadTimeout("timed out", request=request)
            return forward_to(user_client, request)

        return mock_user_service(handler)

    def test_borrow_timeout_keeps_local_decrement(
        self,
        book_client_for,
        user_client: TestClient,
        book_db: Session,
        sample_book: Book,
        student: User,
    ):
        """Book decremented, user unchanged, caller gets 503."""
        client = book_client_for(self.timeout_on_put(user_client))

        response = borrow(client, student.id)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        book_db.refresh(sample_book)
        assert sample_book.available_copies == 2
        assert borrowed_count(user_client, student.id) == 0

    def test_return_timeout_keeps_local_increment(
        self,
        book_client_for,
        user_client: TestClient,
        book_db: Session,
        user_db: Session,
    ):
        book = make_book(book_db, total=3, available=2)
        user = make_user(user_db, borrowed=1)
        client = book_client_for(self.timeout_on_put(user_client))

        response = give_back(client, user.id)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        book_db.refresh(book)
        assert book.available_copies == 3
        assert borrowed_count(user_client, user.id) == 1

    def test_ledger_refusal_without_precheck(
        self,
        no_precheck,
        book_client: TestClient,
        book_db: Session,
        user_db: Session,
    ):
        """Without can-borrow, the ledger's 409 arrives after the copy is taken."""
        make_book(book_db, total=3)
        user = make_user(user_db, borrowed=3)

        response = borrow(book_client, user.id)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["message"] == (
            "User has reached maximum book limit or membership is not active"
        )
        assert book_client.get(f"/api/books/{ISBN}").json()["availableCopies"] == 2

    def test_borrow_timeout_with_compensation(
        self,
        compensation,
        book_client_for,
        user_client: TestClient,
        book_db: Session,
        sample_book: Book,
        student: User,
        caplog,
    ):
        client = book_client_for(self.timeout_on_put(user_client))

        with caplog.at_level(logging.WARNING):
            response = borrow(client, student.id)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        book_db.refresh(sample_book)
        assert sample_book.available_copies == 3
        assert "local change reverted" in caplog.text

    def test_return_timeout_with_compensation(
        self,
        compensation,
        book_client_for,
        user_client: TestClient,
        book_db: Session,
        user_db: Session,
    ):
        book = make_book(book_db, total=3, available=2)
        user = make_user(user_db, borrowed=1)
        client = book_client_for(self.timeout_on_put(user_client))

        response = give_back(client, user.id)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        book_db.refresh(book)
        assert book.available_copies == 2

    def test_ledger_refusal_with_compensation(
        self,
        no_precheck,
        compensation,
        book_client: TestClient,
        book_db: Session,
        user_db: Session,
    ):
        make_book(book_db, total=3)
        user = make_user(user_db, membership_type=MembershipType.STUDENT, borrowed=3)

        response = borrow(book_client, user.id)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert book_client.get(f"/api/books/{ISBN}").json()["availableCopies"] == 3


# =============================================================================
# Test: Invariants
# =============================================================================


class TestCounterInvariants:
    def test_random_sequence_keeps_counters_in_range(
        self,
        book_client: TestClient,
        user_client: TestClient,
        user_db: Session,
        book_db: Session,
    ):
        """0 <= available <= total and 0 <= borrowed <= max, whatever the order."""
        book = make_book(book_db, total=4)
        user = make_user(user_db, membership_type=MembershipType.REGULAR)
        rng = random.Random(42)

        for _ in range(40):
            action = borrow if rng.random() < 0.6 else give_back
            response = action(book_client, user.id)
            assert response.status_code in (status.HTTP_200_OK, status.HTTP_409_CONFLICT)

            book_db.refresh(book)
            borrowed = borrowed_count(user_client, user.id)
            assert 0 <= book.available_copies <= book.total_copies
            assert 0 <= borrowed <= 5
            assert book.total_copies - book.available_copies == borrowed
