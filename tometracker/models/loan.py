"""
Loan Model

A user borrowing a single copy of a book from one library. The loan is
open while returned_at is NULL and is closed, never deleted, on return.

Business Rules:
- At most one open loan per (user, book), across all libraries
- The copy goes back to the library that lent it
- Due date is fixed when the loan is created
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tometracker.database import Base

if TYPE_CHECKING:
    from tometracker.models.book import Book
    from tometracker.models.library import Library
    from tometracker.models.user import User


class Loan(Base):
    """
    Loan record.

    Table: users_books

    Attributes:
        id: Primary key
        user_id: Borrower
        book_id: Borrowed book
        library_id: Library the copy was lent from
        due_date: When the copy has to be back
        borrowed_at: When the loan was created
        returned_at: When the copy came back (NULL while open)
    """

    __tablename__ = "users_books"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    book_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        nullable=False,
    )
    library_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("libraries.id", ondelete="CASCADE"),
        nullable=False,
    )

    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    borrowed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    returned_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    user: Mapped["User"] = relationship("User", back_populates="loans")
    book: Mapped["Book"] = relationship("Book", back_populates="loans")
    library: Mapped["Library"] = relationship("Library", back_populates="loans")

    __table_args__ = (
        # Lookup path for "the" open loan of a user for a book
        Index("ix_users_books_user_book_returned", "user_id", "book_id", "returned_at"),
        # Second line of defence against two concurrent borrows of one book
        Index(
            "uq_users_books_open_loan",
            "user_id",
            "book_id",
            unique=True,
            postgresql_where=text("returned_at IS NULL"),
            sqlite_where=text("returned_at IS NULL"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Loan(id={self.id}, user_id={self.user_id}, book_id={self.book_id}, "
            f"library_id={self.library_id}, returned_at={self.returned_at})>"
        )
