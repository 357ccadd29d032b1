"""
Ledger Entry Model

One row per (book, library) pair holding that library's copy counts.

Invariants (enforced here as CHECK constraints and by the ledger service):
- total_copies = available_copies + borrowed_copies
- available_copies >= 0
- borrowed_copies >= 0

Counts are only ever changed with a single conditional UPDATE that moves
available and borrowed together, so no intermediate state is persisted.
"""

from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tometracker.database import Base

if TYPE_CHECKING:
    from tometracker.models.book import Book
    from tometracker.models.library import Library


class LedgerEntry(Base):
    """
    Copy counts of one book at one library.

    Table: books_libraries
    """

    __tablename__ = "books_libraries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    book_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    library_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("libraries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    total_copies: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    available_copies: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    borrowed_copies: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    book: Mapped["Book"] = relationship("Book", back_populates="ledger_entries")
    library: Mapped["Library"] = relationship("Library", back_populates="ledger_entries")

    __table_args__ = (
        UniqueConstraint("book_id", "library_id", name="uq_books_libraries_book_library"),
        CheckConstraint("available_copies >= 0", name="ck_books_libraries_available"),
        CheckConstraint("borrowed_copies >= 0", name="ck_books_libraries_borrowed"),
        CheckConstraint(
            "total_copies = available_copies + borrowed_copies",
            name="ck_books_libraries_total",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry(book_id={self.book_id}, library_id={self.library_id}, "
            f"total={self.total_copies}, available={self.available_copies}, "
            f"borrowed={self.borrowed_copies})>"
        )
