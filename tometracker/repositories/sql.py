"""
SQLAlchemy Ledger Repository

Implements LedgerRepository on top of a SQLAlchemy Session.

Counter changes are issued as one conditional UPDATE:

    UPDATE books_libraries
       SET available_copies = available_copies + :a,
           borrowed_copies  = borrowed_copies  + :b,
           total_copies     = total_copies     + :t
     WHERE book_id = :book AND library_id = :library
       AND available_copies + :a >= 0
       AND borrowed_copies  + :b >= 0

The database evaluates the guard and the assignment under the row lock of
the UPDATE itself, so concurrent borrows of the last copy cannot both
match. rowcount tells us whether the guard held.
"""

from datetime import datetime

from sqlalchemy import exists, select, update
from sqlalchemy.orm import Session, selectinload

from tometracker.models import Book, LedgerEntry, Library, Loan, User


class SqlAlchemyLedgerRepository:
    """LedgerRepository backed by a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    # -------------------------------------------------------------------------
    # Ledger entries
    # -------------------------------------------------------------------------
    def find_ledger_entry(self, book_id: int, library_id: int) -> LedgerEntry | None:
        stmt = (
            select(LedgerEntry)
            .where(
                LedgerEntry.book_id == book_id,
                LedgerEntry.library_id == library_id,
            )
            # Always read the committed row, not a stale identity-map copy
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def adjust_ledger_entry(
        self,
        book_id: int,
        library_id: int,
        available_delta: int,
        borrowed_delta: int,
        total_delta: int = 0,
    ) -> LedgerEntry | None:
        stmt = (
            update(LedgerEntry)
            .where(
                LedgerEntry.book_id == book_id,
                LedgerEntry.library_id == library_id,
                LedgerEntry.available_copies + available_delta >= 0,
                LedgerEntry.borrowed_copies + borrowed_delta >= 0,
            )
            .values(
                available_copies=LedgerEntry.available_copies + available_delta,
                borrowed_copies=LedgerEntry.borrowed_copies + borrowed_delta,
                total_copies=LedgerEntry.total_copies + total_delta,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount == 0:
            return None
        return self.find_ledger_entry(book_id, library_id)

    def create_ledger_entry(
        self,
        book_id: int,
        library_id: int,
        total_copies: int,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            book_id=book_id,
            library_id=library_id,
            total_copies=total_copies,
            available_copies=total_copies,
            borrowed_copies=0,
        )
        self.session.add(entry)
        self.session.flush()
        return entry

    def book_ids_without_entry(self, library_id: int) -> list[int]:
        stocked = exists().where(
            LedgerEntry.book_id == Book.id,
            LedgerEntry.library_id == library_id,
        )
        stmt = select(Book.id).where(~stocked).order_by(Book.id)
        return list(self.session.execute(stmt).scalars())

    # -------------------------------------------------------------------------
    # Loans
    # -------------------------------------------------------------------------
    def find_open_loan(self, user_id: int, book_id: int) -> Loan | None:
        stmt = (
            select(Loan)
            .where(
                Loan.user_id == user_id,
                Loan.book_id == book_id,
                Loan.returned_at.is_(None),
            )
            .execution_options(populate_existing=True)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def insert_loan(
        self,
        user_id: int,
        book_id: int,
        library_id: int,
        due_date: datetime,
        borrowed_at: datetime,
    ) -> int:
        loan = Loan(
            user_id=user_id,
            book_id=book_id,
            library_id=library_id,
            due_date=due_date,
            borrowed_at=borrowed_at,
        )
        self.session.add(loan)
        self.session.flush()
        return loan.id

    def close_loan(self, loan_id: int, returned_at: datetime) -> bool:
        stmt = (
            update(Loan)
            .where(Loan.id == loan_id, Loan.returned_at.is_(None))
            .values(returned_at=returned_at)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def list_open_loans(self, user_id: int) -> list[Loan]:
        stmt = (
            select(Loan)
            .join(Loan.book)
            .options(selectinload(Loan.book))
            .where(Loan.user_id == user_id, Loan.returned_at.is_(None))
            .order_by(Book.title)
        )
        return list(self.session.execute(stmt).scalars())

    def list_returned_loans(self, user_id: int, since: datetime) -> list[Loan]:
        stmt = (
            select(Loan)
            .join(Loan.book)
            .options(selectinload(Loan.book))
            .where(
                Loan.user_id == user_id,
                Loan.returned_at.is_not(None),
                Loan.returned_at >= since,
            )
            .order_by(Book.title)
        )
        return list(self.session.execute(stmt).scalars())

    # -------------------------------------------------------------------------
    # Identities and libraries
    # -------------------------------------------------------------------------
    def find_identity_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email.lower())
        return self.session.execute(stmt).scalar_one_or_none()

    def find_identity_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id, populate_existing=True)

    def first_library_id(self) -> int | None:
        stmt = select(Library.id).order_by(Library.id).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def library_exists(self, library_id: int) -> bool:
        stmt = select(exists().where(Library.id == library_id))
        return bool(self.session.execute(stmt).scalar())

    # -------------------------------------------------------------------------
    # Transaction control
    # -------------------------------------------------------------------------
    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
