"""
Repository Interface

The persistence contract consumed by the inventory ledger, the stocking
job and the session flows. The ledger only talks to this protocol, so the
borrow/return rules can be exercised against any store that honours it.

Contract notes:
- adjust_ledger_entry is a single atomic conditional update. It returns
  None when no row matched, either because the entry does not exist or
  because applying the deltas would make a count negative.
- close_loan only closes a loan that is still open and reports whether it
  did, so two concurrent returns cannot both succeed.
- Nothing here commits on its own; the caller owns the transaction.
"""

from datetime import datetime
from typing import Protocol

from tometracker.models import LedgerEntry, Loan, User


class LedgerRepository(Protocol):
    # -------------------------------------------------------------------------
    # Ledger entries
    # -------------------------------------------------------------------------
    def find_ledger_entry(self, book_id: int, library_id: int) -> LedgerEntry | None: ...

    def adjust_ledger_entry(
        self,
        book_id: int,
        library_id: int,
        available_delta: int,
        borrowed_delta: int,
        total_delta: int = 0,
    ) -> LedgerEntry | None: ...

    def create_ledger_entry(
        self,
        book_id: int,
        library_id: int,
        total_copies: int,
    ) -> LedgerEntry: ...

    def book_ids_without_entry(self, library_id: int) -> list[int]: ...

    # -------------------------------------------------------------------------
    # Loans
    # -------------------------------------------------------------------------
    def find_open_loan(self, user_id: int, book_id: int) -> Loan | None: ...

    def insert_loan(
        self,
        user_id: int,
        book_id: int,
        library_id: int,
        due_date: datetime,
        borrowed_at: datetime,
    ) -> int: ...

    def close_loan(self, loan_id: int, returned_at: datetime) -> bool: ...

    def list_open_loans(self, user_id: int) -> list[Loan]: ...

    def list_returned_loans(self, user_id: int, since: datetime) -> list[Loan]: ...

    # -------------------------------------------------------------------------
    # Identities and libraries
    # -------------------------------------------------------------------------
    def find_identity_by_email(self, email: str) -> User | None: ...

    def find_identity_by_id(self, user_id: int) -> User | None: ...

    def first_library_id(self) -> int | None: ...

    def library_exists(self, library_id: int) -> bool: ...

    # -------------------------------------------------------------------------
    # Transaction control
    # -------------------------------------------------------------------------
    def commit(self) -> None: ...

    def rollback(self) -> None: ...
