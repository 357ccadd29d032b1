"""
SQLAlchemy Models Package

This package contains all database models for the TomeTracker API.

Model Relationships:
- Book <-> Library: Many-to-Many through LedgerEntry (books_libraries),
                    which carries the copy counts
- User <-> Book: Many-to-Many through Loan (users_books), one row per
                 borrow

Import all models here so Alembic discovers them for migrations.
"""

from tometracker.models.user import Role, User
from tometracker.models.book import Book
from tometracker.models.library import Library
from tometracker.models.ledger import LedgerEntry
from tometracker.models.loan import Loan

__all__ = [
    "Role",
    "User",
    "Book",
    "Library",
    "LedgerEntry",
    "Loan",
]
