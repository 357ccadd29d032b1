"""
Library Model

A physical branch that holds copies of books.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tometracker.database import Base

if TYPE_CHECKING:
    from tometracker.models.ledger import LedgerEntry
    from tometracker.models.loan import Loan


class Library(Base):
    """
    Library model.

    Table: libraries

    Creating a library schedules a stocking job that gives it a ledger
    entry for every book already in the catalog.
    """

    __tablename__ = "libraries"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    street_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

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

    ledger_entries: Mapped[list["LedgerEntry"]] = relationship(
        "LedgerEntry",
        back_populates="library",
        cascade="all, delete-orphan",
    )

    loans: Mapped[list["Loan"]] = relationship(
        "Loan",
        back_populates="library",
    )

    def __repr__(self) -> str:
        return f"Library(id={self.id}, name='{self.name}')"
