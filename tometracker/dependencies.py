"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

Provided here:
- Database session, repository and inventory ledger per request
- Session factory for background jobs
- Verified claims from a bearer access token or the refresh cookie
- Role guards (UserClaims, StaffClaims, AdminClaims)

Route signatures use the Annotated aliases:

    @router.post("/books/borrow")
    def borrow(body: LoanRequest, claims: UserClaims, ledger: Ledger):
        ...
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session, sessionmaker

from tometracker.config import get_settings
from tometracker.database import get_db, get_session_factory
from tometracker.models.user import Role
from tometracker.repositories import SqlAlchemyLedgerRepository
from tometracker.services.authorization import authorize
from tometracker.services.inventory import InventoryLedger
from tometracker.services.security import Claims, verify_access_token, verify_and_extract

settings = get_settings()

# =============================================================================
# Database
# =============================================================================
DbSession = Annotated[Session, Depends(get_db)]
SessionFactory = Annotated[sessionmaker, Depends(get_session_factory)]


def get_repository(db: DbSession) -> SqlAlchemyLedgerRepository:
    """Repository bound to the request's session."""
    return SqlAlchemyLedgerRepository(db)


Repository = Annotated[SqlAlchemyLedgerRepository, Depends(get_repository)]


def get_ledger(repository: Repository) -> InventoryLedger:
    return InventoryLedger(repository)


Ledger = Annotated[InventoryLedger, Depends(get_ledger)]


# =============================================================================
# Credentials
# =============================================================================
# HTTPBearer extracts "Authorization: Bearer <token>" and adds the
# "Authorize" button to Swagger UI. auto_error=False lets requests without
# the header fall through to the refresh cookie.
bearer_scheme = HTTPBearer(auto_error=False)


def get_optional_claims(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Claims | None:
    """
    Verify whichever credential the request carries.

    1. A bearer access token, if present
    2. Otherwise the refresh cookie, if present
    3. Otherwise None (the guard turns that into a 401)

    A credential that is present but invalid always raises; it never
    silently downgrades to anonymous.
    """
    if credentials is not None:
        return verify_access_token(credentials.credentials)
    if settings.refresh_cookie_name in request.cookies:
        return verify_and_extract(request.cookies)
    return None


OptionalClaims = Annotated[Claims | None, Depends(get_optional_claims)]


def get_refresh_claims(request: Request) -> Claims:
    """Claims of the refresh cookie; used by the session endpoints."""
    return verify_and_extract(request.cookies)


RefreshClaims = Annotated[Claims, Depends(get_refresh_claims)]


# =============================================================================
# Role Guards
# =============================================================================
def require_role(role: Role):
    """
    Build a dependency that only lets ``role`` (or a role above it) through.

    Usage:
        @router.post("/books", dependencies=[Depends(require_role(Role.ADMIN))])
    """

    def check_role(claims: OptionalClaims) -> Claims:
        return authorize(claims, role)

    return check_role


UserClaims = Annotated[Claims, Depends(require_role(Role.USER))]
StaffClaims = Annotated[Claims, Depends(require_role(Role.STAFF))]
AdminClaims = Annotated[Claims, Depends(require_role(Role.ADMIN))]
