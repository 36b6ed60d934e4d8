"""
pytest Fixtures for the Library Services Tests

Both services run in-process: each FastAPI app gets its own SQLite
in-memory database, and the Book Service talks to the User Service
through the User Service's ``TestClient`` (a real ``httpx.Client``), so
borrow/return tests exercise the full HTTP round trip without sockets.

Failure modes of the User Service (timeouts, refused connections, 5xx)
are simulated with ``httpx.MockTransport``.

FIXTURE SCOPES:
- session: database engines (expensive to create)
- function: sessions, clients and sample data (isolation between tests)
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the apps
import os

os.environ["USER_SERVICE_DATABASE_URL"] = "sqlite://"
os.environ["BOOK_SERVICE_DATABASE_URL"] = "sqlite://"
os.environ["BOOK_SERVICE_RATE_LIMIT_ENABLED"] = "false"

from collections.abc import Callable, Generator
from datetime import timedelta

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from book_service.database import Base as BookBase
from book_service.database import get_db as get_book_db
from book_service.dependencies import get_http_client
from book_service.main import app as book_app
from book_service.models import Book
from user_service.database import Base as UserBase
from user_service.database import get_db as get_user_db
from user_service.main import app as user_app
from user_service.models import MembershipStatus, MembershipType, User
from user_service.utils import utcnow

USER_SERVICE_URL = "http://localhost:8081"


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

def _memory_engine() -> Engine:
    """
    SQLite in-memory engine.

    StaticPool keeps the single connection alive, otherwise the in-memory
    database would disappear between connections.
    """
    return create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(scope="session")
def user_engine():
    engine = _memory_engine()
    UserBase.metadata.create_all(bind=engine)
    yield engine
    UserBase.metadata.drop_all(bind=engine)


@pytest.fixture(scope="session")
def book_engine():
    engine = _memory_engine()
    BookBase.metadata.create_all(bind=engine)
    yield engine
    BookBase.metadata.drop_all(bind=engine)


def _transactional_session(engine: Engine) -> Generator[Session, None, None]:
    """
    Session wrapped in an outer transaction that is rolled back afterwards.

    Repository commits only end the session's inner transaction, so every
    test starts from empty tables.
    """
    connection = engine.connect()
    transaction = connection.begin()
    session = sessionmaker(autocommit=False, autoflush=False)(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def user_db(user_engine) -> Generator[Session, None, None]:
    """Fresh User Service session for each test."""
    yield from _transactional_session(user_engine)


@pytest.fixture
def book_db(book_engine) -> Generator[Session, None, None]:
    """Fresh Book Service session for each test."""
    yield from _transactional_session(book_engine)


# =============================================================================
# CLIENT FIXTURES
# =============================================================================

@pytest.fixture
def user_client(user_db: Session) -> Generator[TestClient, None, None]:
    """User Service test client bound to the test database."""

    def override_get_db():
        yield user_db

    user_app.dependency_overrides[get_user_db] = override_get_db

    with TestClient(user_app, base_url=USER_SERVICE_URL) as test_client:
        yield test_client

    user_app.dependency_overrides.clear()


@pytest.fixture
def book_client_for(book_db: Session) -> Generator[Callable[[httpx.Client], TestClient], None, None]:
    """
    Factory for Book Service test clients.

    The argument is the ``httpx.Client`` the Book Service uses to reach the
    User Service: either the User Service ``TestClient`` or a client built
    with ``mock_user_service()``.
    """

    def override_get_db():
        yield book_db

    clients: list[TestClient] = []

    def build(http_client: httpx.Client) -> TestClient:
        book_app.dependency_overrides[get_book_db] = override_get_db
        book_app.dependency_overrides[get_http_client] = lambda: http_client
        test_client = TestClient(book_app)
        clients.append(test_client)
        return test_client

    yield build

    for test_client in clients:
        test_client.close()
    book_app.dependency_overrides.clear()


@pytest.fixture
def book_client(book_client_for, user_client: TestClient) -> TestClient:
    """Book Service test client wired to the in-process User Service."""
    return book_client_for(user_client)


# =============================================================================
# USER SERVICE DOUBLES
# =============================================================================

def mock_user_service(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """
    Build an ``httpx.Client`` whose requests are answered by ``handler``.

    ``handler`` may also raise ``httpx.ConnectError``, ``httpx.ReadTimeout``
    and friends to simulate network failures.
    """
    return httpx.Client(transport=httpx.MockTransport(handler))


def forward_to(client: TestClient, request: httpx.Request) -> httpx.Response:
    """Replay ``request`` against an in-process app and copy the answer."""
    response = client.request(request.method, request.url.path)
    return httpx.Response(
        response.status_code,
        content=response.content,
        headers={"content-type": response.headers.get("content-type", "application/json")},
    )


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

def make_user(
    db: Session,
    email: str = "jane@example.com",
    membership_type: MembershipType = MembershipType.STUDENT,
    status: MembershipStatus = MembershipStatus.ACTIVE,
    borrowed: int = 0,
    expires_in: timedelta = timedelta(days=365),
) -> User:
    """Insert a user directly, bypassing the API."""
    now = utcnow()
    user = User(
        name="Jane Doe",
        email=email,
        phone="5551234567",
        membership_type=membership_type.value,
        membership_status=status.value,
        borrowed_books_count=borrowed,
        max_books_allowed=membership_type.max_books,
        joined_date=now,
        expiry_date=now + expires_in,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_book(
    db: Session,
    isbn: str = "9780134685991",
    title: str = "Effective Java",
    author: str = "Joshua Bloch",
    total: int = 3,
    available: int | None = None,
) -> Book:
    """Insert a book directly, bypassing the API."""
    book = Book(
        isbn=isbn,
        title=title,
        author=author,
        total_copies=total,
        available_copies=total if available is None else available,
    )
    db.add(book)
    db.commit()
    db.refresh(book)
    return book


@pytest.fixture
def student(user_db: Session) -> User:
    """ACTIVE STUDENT member: may borrow up to 3 books."""
    return make_user(user_db)


@pytest.fixture
def sample_book(book_db: Session) -> Book:
    """Book with 3 copies, all on the shelf."""
    return make_book(book_db)
