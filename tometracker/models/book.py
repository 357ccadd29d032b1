"""
Book Model

A bibliographic record. A book on its own has no copies; copies live in
ledger entries, one per library that stocks the book.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tometracker.database import Base

if TYPE_CHECKING:
    from tometracker.models.ledger import LedgerEntry
    from tometracker.models.loan import Loan


class Book(Base):
    """
    Book model representing titles in the catalog.

    Table: books

    Relationships:
    - ledger_entries: One-to-Many (copy counts per library)
    - loans: One-to-Many (every time the book was borrowed)
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str | None] = mapped_column(
        String(255),
        index=True,
        nullable=True,
        comment="Author name as printed on the cover"
    )

    # Optional because older books might not have one
    isbn: Mapped[str | None] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=True,
        comment="International Standard Book Number"
    )

    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Publication date"
    )

    summary: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    thumbnail: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="URL of the cover thumbnail"
    )

    edition: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    ledger_entries: Mapped[list["LedgerEntry"]] = relationship(
        "LedgerEntry",
        back_populates="book",
        cascade="all, delete-orphan",
    )

    loans: Mapped[list["Loan"]] = relationship(
        "Loan",
        back_populates="book",
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', isbn='{self.isbn}')"
