"""
Ledger and Loan Pydantic Schemas

Schemas:
- LoanRequest: body of borrow and return calls
- LedgerEntryResponse: copy counts returned after every borrow/return
- LoanResponse: one loan, with a short summary of the book
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LoanRequest(BaseModel):
    """
    Body of POST /users/books/borrow and POST /users/books/return.

    user_id defaults to the caller. Passing another user's id is reserved
    for staff acting at the desk.
    """

    book_id: int = Field(..., ge=1, examples=[12])
    library_id: int = Field(..., ge=1, examples=[3])
    user_id: int | None = Field(default=None, ge=1)


class LedgerEntryResponse(BaseModel):
    """Copy counts of one book at one library."""

    book_id: int
    library_id: int
    total_copies: int = Field(..., ge=0)
    available_copies: int = Field(..., ge=0)
    borrowed_copies: int = Field(..., ge=0)

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "book_id": 12,
                "library_id": 3,
                "total_copies": 4,
                "available_copies": 3,
                "borrowed_copies": 1,
            }
        },
    )


class LoanBookSummary(BaseModel):
    id: int
    title: str
    author: str | None = None
    isbn: str | None = None
    thumbnail: str | None = None

    model_config = ConfigDict(from_attributes=True)


class LoanResponse(BaseModel):
    id: int
    user_id: int
    book_id: int
    library_id: int
    due_date: datetime
    borrowed_at: datetime
    returned_at: datetime | None = None
    book: LoanBookSummary

    model_config = ConfigDict(from_attributes=True)
