"""
pytest Fixtures for TomeTracker Tests

Shared fixtures used across all test files.

FIXTURE SCOPES:
- engine: function scope. The inventory ledger commits and rolls back on
  its own, so tests cannot be isolated with an outer transaction. Every
  test gets a fresh in-memory database instead.
- db_session: function scope, one session per test
- client: function scope, TestClient wired to the test database

For database tests, we use SQLite in-memory with StaticPool. The
concurrency tests build their own file-backed engine (see
test_inventory_concurrency.py) because threads need real connections.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting and sets a test secret key
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "development"

from collections.abc import Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tometracker.database import Base, enforce_sqlite_foreign_keys, get_db, get_session_factory
from tometracker.main import app
from tometracker.models import Book, LedgerEntry, Library, User
from tometracker.models.user import Role
from tometracker.repositories import SqlAlchemyLedgerRepository
from tometracker.services.inventory import InventoryLedger
from tometracker.services.security import IdentitySnapshot, hash_password, issue_token_pair

PASSWORD = "SecurePass123"


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """
    Create a SQLite in-memory database engine.

    StaticPool keeps the single connection alive for the whole test.
    Without it, the in-memory database would disappear between connections.
    Foreign keys are enforced, as they are on the application engine.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enforce_sqlite_foreign_keys(engine)
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def repository(db_session: Session) -> SqlAlchemyLedgerRepository:
    return SqlAlchemyLedgerRepository(db_session)


@pytest.fixture
def ledger(repository: SqlAlchemyLedgerRepository) -> InventoryLedger:
    return InventoryLedger(repository)


@pytest.fixture
def client(
    db_session: Session,
    session_factory: sessionmaker,
) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database.

    get_db yields the test session; get_session_factory hands background
    jobs a factory bound to the same in-memory database.

    The base URL is https so the client sends back the Secure session
    cookies it receives.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    with TestClient(app, base_url="https://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================
@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory for users with a known password."""

    def _make_user(email: str, role: Role = Role.USER) -> User:
        user = User(
            email=email,
            hashed_password=hash_password(PASSWORD),
            role=role.value,
            first_name="Test",
            last_name="Reader",
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def sample_user(make_user) -> User:
    return make_user("reader@example.com")


@pytest.fixture
def second_user(make_user) -> User:
    return make_user("second.reader@example.com")


@pytest.fixture
def staff_user(make_user) -> User:
    return make_user("desk@example.com", Role.STAFF)


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user("admin@example.com", Role.ADMIN)


@pytest.fixture
def sample_library(db_session: Session) -> Library:
    library = Library(name="Central Branch", city="Lisbon", country="Portugal")
    db_session.add(library)
    db_session.commit()
    db_session.refresh(library)
    return library


@pytest.fixture
def second_library(db_session: Session) -> Library:
    library = Library(name="Harbour Branch", city="Porto", country="Portugal")
    db_session.add(library)
    db_session.commit()
    db_session.refresh(library)
    return library


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    book = Book(
        title="The Left Hand of Darkness",
        author="Ursula K. Le Guin",
        isbn="9780441478125",
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def stock(db_session: Session) -> Callable[..., LedgerEntry]:
    """Factory that puts ``copies`` available copies of a book at a library."""

    def _stock(book: Book, library: Library, copies: int, borrowed: int = 0) -> LedgerEntry:
        entry = LedgerEntry(
            book_id=book.id,
            library_id=library.id,
            total_copies=copies,
            available_copies=copies - borrowed,
            borrowed_copies=borrowed,
        )
        db_session.add(entry)
        db_session.commit()
        db_session.refresh(entry)
        return entry

    return _stock


# =============================================================================
# AUTH HELPERS
# =============================================================================
def bearer_headers(user: User) -> dict[str, str]:
    """Authorization header carrying a fresh access token for ``user``."""
    pair, _ = issue_token_pair(IdentitySnapshot.from_user(user))
    return {"Authorization": f"Bearer {pair.access_token}"}


@pytest.fixture
def auth_headers(sample_user: User) -> dict[str, str]:
    return bearer_headers(sample_user)


@pytest.fixture
def staff_headers(staff_user: User) -> dict[str, str]:
    return bearer_headers(staff_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict[str, str]:
    return bearer_headers(admin_user)
