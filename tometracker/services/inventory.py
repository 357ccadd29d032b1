"""
Inventory Ledger Service

The borrow/return state machine for copies of a book at a library.

Every ledger entry satisfies, after every committed operation:
    total_copies == available_copies + borrowed_copies
    available_copies >= 0
    borrowed_copies >= 0

and every (user, book) pair has at most one open loan.

Borrow:
=======
0. The user exists                                          → UserNotFoundError
1. Ledger entry for (book, library) exists and holds copies → NotStockedError
2. User has no open loan for the book in ANY library        → AlreadyBorrowedError
3. At least one copy is available                           → NoCopiesAvailableError
4. available -= 1, borrowed += 1 (conditional UPDATE)
5. Loan created, due loan_period_days after borrowing
6. Commit, return the refreshed entry

Return:
=======
0. The user exists                                          → UserNotFoundError
1. User has an open loan for the book from this library     → NoOpenLoanError
2. Entry for (book, library) has a borrowed copy            → InconsistentStateError
3. Loan closed, available += 1, borrowed -= 1
4. Commit, return the refreshed entry

Each operation is one transaction. Any error rolls back everything the
call did, so a failed or timed-out request leaves the ledger untouched.

Concurrency:
============
Steps 1-3 are fast pre-checks that give precise errors. The real guard is
the conditional UPDATE in step 4, which only matches while a copy is
available; with N copies at most N concurrent borrows get past it. The
partial unique index on open loans stops a user racing themselves.

Usage:
    from tometracker.services.inventory import InventoryLedger

    ledger = InventoryLedger(SqlAlchemyLedgerRepository(db))
    entry = ledger.borrow(user_id=1, book_id=12, library_id=3)
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from tometracker.config import get_settings
from tometracker.exceptions import (
    AlreadyBorrowedError,
    InconsistentStateError,
    NoCopiesAvailableError,
    NoOpenLoanError,
    NotStockedError,
    StorageUnavailableError,
    UserNotFoundError,
)
from tometracker.models import LedgerEntry, Loan
from tometracker.repositories.base import LedgerRepository

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass(frozen=True)
class LedgerSnapshot:
    """Copy counts of one (book, library) entry at a point in time."""

    book_id: int
    library_id: int
    total_copies: int
    available_copies: int
    borrowed_copies: int

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "LedgerSnapshot":
        return cls(
            book_id=entry.book_id,
            library_id=entry.library_id,
            total_copies=entry.total_copies,
            available_copies=entry.available_copies,
            borrowed_copies=entry.borrowed_copies,
        )

    @property
    def is_consistent(self) -> bool:
        return (
            self.available_copies >= 0
            and self.borrowed_copies >= 0
            and self.total_copies == self.available_copies + self.borrowed_copies
        )


class InventoryLedger:
    """
    Borrow and return books against a LedgerRepository.

    Args:
        repository: Persistence for ledger entries and loans
        loan_period: Time between borrowing and the due date
            (defaults to settings.loan_period_days)
    """

    def __init__(
        self,
        repository: LedgerRepository,
        loan_period: timedelta | None = None,
    ) -> None:
        self.repository = repository
        self.loan_period = loan_period or timedelta(days=settings.loan_period_days)

    # -------------------------------------------------------------------------
    # Transaction boundary
    # -------------------------------------------------------------------------
    @contextmanager
    def _unit_of_work(self, operation: str) -> Iterator[None]:
        """
        Commit on success, roll back on any error.

        Storage failures (statement timeouts, lock waits, lost connections,
        exhausted pools) become StorageUnavailableError so callers can retry.
        """
        try:
            yield
            self.repository.commit()
        except (OperationalError, PoolTimeoutError) as exc:
            self.repository.rollback()
            logger.error(f"Storage error during {operation}: {exc}")
            raise StorageUnavailableError() from exc
        except Exception:
            self.repository.rollback()
            raise

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------
    def borrow(
        self,
        user_id: int,
        book_id: int,
        library_id: int,
        now: datetime | None = None,
    ) -> LedgerSnapshot:
        """
        Lend one copy of a book at a library to a user.

        Returns:
            The ledger entry after the borrow

        Raises:
            UserNotFoundError: No user with this id
            NotStockedError: The library has no copies of the book
            AlreadyBorrowedError: The user already holds this book
            NoCopiesAvailableError: Every copy at this library is out
            StorageUnavailableError: The database failed; nothing was changed
        """
        borrowed_at = now or datetime.now(UTC)

        with self._unit_of_work("borrow"):
            self._require_user(user_id)

            entry = self.repository.find_ledger_entry(book_id, library_id)
            if entry is None or entry.total_copies < 1:
                raise NotStockedError()

            if self.repository.find_open_loan(user_id, book_id) is not None:
                raise AlreadyBorrowedError(
                    f"User has already borrowed book with id {book_id} "
                    "and this has not been returned yet"
                )

            if entry.available_copies < 1:
                raise NoCopiesAvailableError()

            updated = self.repository.adjust_ledger_entry(
                book_id, library_id, available_delta=-1, borrowed_delta=1
            )
            if updated is None:
                # Another borrow took the last copy after our pre-check
                raise NoCopiesAvailableError()

            try:
                self.repository.insert_loan(
                    user_id,
                    book_id,
                    library_id,
                    due_date=borrowed_at + self.loan_period,
                    borrowed_at=borrowed_at,
                )
            except IntegrityError as exc:
                self.repository.rollback()
                if self.repository.find_open_loan(user_id, book_id) is not None:
                    raise AlreadyBorrowedError() from exc
                raise

            snapshot = LedgerSnapshot.from_entry(updated)

        logger.info(
            f"User {user_id} borrowed book {book_id} at library {library_id} "
            f"({snapshot.available_copies}/{snapshot.total_copies} available)"
        )
        return snapshot

    def return_book(
        self,
        user_id: int,
        book_id: int,
        library_id: int,
        now: datetime | None = None,
    ) -> LedgerSnapshot:
        """
        Take a borrowed copy back in at a library.

        Raises:
            UserNotFoundError: No user with this id
            NoOpenLoanError: The user has no open loan for this book, or
                borrowed it from a different library
            InconsistentStateError: The library shows no borrowed copy
            StorageUnavailableError: The database failed; nothing was changed
        """
        returned_at = now or datetime.now(UTC)

        with self._unit_of_work("return"):
            self._require_user(user_id)

            loan = self.repository.find_open_loan(user_id, book_id)
            if loan is None:
                raise NoOpenLoanError()
            if loan.library_id != library_id:
                raise NoOpenLoanError(
                    f"Book with id {book_id} was borrowed from library "
                    f"{loan.library_id}, not library {library_id}."
                )

            entry = self.repository.find_ledger_entry(book_id, library_id)
            if entry is None or entry.borrowed_copies < 1:
                self._report_inconsistency(user_id, book_id, library_id, entry)

            if not self.repository.close_loan(loan.id, returned_at):
                # A concurrent return closed it first
                raise NoOpenLoanError()

            updated = self.repository.adjust_ledger_entry(
                book_id, library_id, available_delta=1, borrowed_delta=-1
            )
            if updated is None:
                self._report_inconsistency(user_id, book_id, library_id, None)

            snapshot = LedgerSnapshot.from_entry(updated)

        logger.info(
            f"User {user_id} returned book {book_id} at library {library_id} "
            f"({snapshot.available_copies}/{snapshot.total_copies} available)"
        )
        return snapshot

    def get_entry(self, book_id: int, library_id: int) -> LedgerSnapshot:
        """Read the current copy counts without changing anything."""
        entry = self.repository.find_ledger_entry(book_id, library_id)
        if entry is None:
            raise NotStockedError()
        return LedgerSnapshot.from_entry(entry)

    def list_open_loans(self, user_id: int) -> list[Loan]:
        """Loans the user has not returned yet, ordered by book title."""
        return self.repository.list_open_loans(user_id)

    def list_recent_returns(
        self,
        user_id: int,
        now: datetime | None = None,
        days: int | None = None,
    ) -> list[Loan]:
        """Loans the user returned within the last ``days`` days."""
        window = timedelta(days=days or settings.recently_returned_days)
        since = (now or datetime.now(UTC)) - window
        return self.repository.list_returned_loans(user_id, since)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------
    def _require_user(self, user_id: int) -> None:
        if self.repository.find_identity_by_id(user_id) is None:
            raise UserNotFoundError(f"User with id {user_id} not found.")

    @staticmethod
    def _report_inconsistency(
        user_id: int,
        book_id: int,
        library_id: int,
        entry: LedgerEntry | None,
    ) -> None:
        state = repr(entry) if entry is not None else "no ledger entry"
        logger.critical(
            f"Ledger inconsistency: user {user_id} holds an open loan for book "
            f"{book_id} but library {library_id} has no borrowed copy ({state})"
        )
        raise InconsistentStateError()
