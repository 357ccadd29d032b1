"""
Books Router

Public availability lookups.

Endpoints:
- GET /books/{book_id}/libraries/{library_id}  copy counts at one library
"""

from fastapi import APIRouter, Path

from tometracker.dependencies import Ledger
from tometracker.schemas.ledger import LedgerEntryResponse

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={404: {"description": "Book not stocked at this library"}},
)


@router.get(
    "/{book_id}/libraries/{library_id}",
    response_model=LedgerEntryResponse,
    summary="Get availability at a library",
    description="""
    Return how many copies of a book a library owns, how many are on the
    shelf and how many are out on loan. Read-only; no credentials needed.
    """,
)
def get_availability(
    ledger: Ledger,
    book_id: int = Path(..., ge=1, description="Book ID"),
    library_id: int = Path(..., ge=1, description="Library ID"),
) -> LedgerEntryResponse:
    return LedgerEntryResponse.model_validate(ledger.get_entry(book_id, library_id))
