"""
Pydantic Schemas Package

Request/response models kept separate from the SQLAlchemy models so the
API controls exactly which fields are exposed.

Schema Naming Convention:
- XxxCreate: Fields required when creating a new record
- XxxRequest: Bodies of action endpoints
- XxxResponse: Fields returned in API responses
"""

from tometracker.schemas.ledger import (
    LedgerEntryResponse,
    LoanBookSummary,
    LoanRequest,
    LoanResponse,
)
from tometracker.schemas.book import (
    BookCreate,
    BookCreatedResponse,
    BookCreateRequest,
    BookResponse,
    LibraryCreate,
    LibraryResponse,
)
from tometracker.schemas.user import (
    LoginRequest,
    RoleUpdate,
    TokenResponse,
    UserCreate,
    UserInfo,
    UserResponse,
)

__all__ = [
    # Ledger schemas
    "LedgerEntryResponse",
    "LoanBookSummary",
    "LoanRequest",
    "LoanResponse",
    # Book / library schemas
    "BookCreate",
    "BookCreatedResponse",
    "BookCreateRequest",
    "BookResponse",
    "LibraryCreate",
    "LibraryResponse",
    # User / session schemas
    "LoginRequest",
    "RoleUpdate",
    "TokenResponse",
    "UserCreate",
    "UserInfo",
    "UserResponse",
]
