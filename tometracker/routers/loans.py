"""
Loans Router

Borrowing and returning books, and a user's loan history.

Endpoints:
- POST /users/books/borrow       borrow a copy at a library
- POST /users/books/return       return a copy at a library
- GET  /users/{user_id}/borrowed loans not yet returned
- GET  /users/{user_id}/returned loans returned recently

Users act on their own loans. Staff and admins may pass another user_id,
which is how the circulation desk lends on a patron's behalf.
"""

import logging

from fastapi import APIRouter, Path, Query

from tometracker.config import get_settings
from tometracker.dependencies import Ledger, UserClaims
from tometracker.schemas.ledger import LedgerEntryResponse, LoanRequest, LoanResponse
from tometracker.services.authorization import authorize_for_user

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/users",
    tags=["Loans"],
    responses={
        401: {"description": "Missing or invalid credentials"},
        403: {"description": "Role does not allow this action"},
        404: {"description": "Book not stocked here, or no open loan"},
        409: {"description": "Already borrowed, or no copies available"},
        503: {"description": "Database unavailable, safe to retry"},
    },
)


@router.post(
    "/books/borrow",
    response_model=LedgerEntryResponse,
    summary="Borrow a book",
    description="""
    Borrow one copy of a book at a library.

    **Rules:**
    - The library must stock the book
    - The user must not already hold this book, at any library
    - A copy must be available

    The loan is due `loan_period_days` (14) days from now. The response
    holds the library's copy counts after the borrow.
    """,
)
def borrow_book(body: LoanRequest, claims: UserClaims, ledger: Ledger) -> LedgerEntryResponse:
    user_id = body.user_id or claims.user_id
    authorize_for_user(claims, user_id)

    snapshot = ledger.borrow(user_id, body.book_id, body.library_id)
    return LedgerEntryResponse.model_validate(snapshot)


@router.post(
    "/books/return",
    response_model=LedgerEntryResponse,
    summary="Return a book",
    description="""
    Return a borrowed copy to the library that lent it. Naming any other
    library is refused with 404 and changes nothing.

    The response holds the library's copy counts after the return.
    """,
)
def return_book(body: LoanRequest, claims: UserClaims, ledger: Ledger) -> LedgerEntryResponse:
    user_id = body.user_id or claims.user_id
    authorize_for_user(claims, user_id)

    snapshot = ledger.return_book(user_id, body.book_id, body.library_id)
    return LedgerEntryResponse.model_validate(snapshot)


@router.get(
    "/{user_id}/borrowed",
    response_model=list[LoanResponse],
    summary="List borrowed books",
    description="Loans the user has not returned yet, ordered by title.",
)
def list_borrowed(
    claims: UserClaims,
    ledger: Ledger,
    user_id: int = Path(..., ge=1),
) -> list[LoanResponse]:
    authorize_for_user(claims, user_id)
    loans = ledger.list_open_loans(user_id)
    return [LoanResponse.model_validate(loan) for loan in loans]


@router.get(
    "/{user_id}/returned",
    response_model=list[LoanResponse],
    summary="List recently returned books",
    description="Loans the user returned within the last `days` days, ordered by title.",
)
def list_returned(
    claims: UserClaims,
    ledger: Ledger,
    user_id: int = Path(..., ge=1),
    days: int = Query(
        default=settings.recently_returned_days,
        ge=1,
        le=365,
        description="How far back to look",
    ),
) -> list[LoanResponse]:
    authorize_for_user(claims, user_id)
    loans = ledger.list_recent_returns(user_id, days=days)
    return [LoanResponse.model_validate(loan) for loan in loans]
