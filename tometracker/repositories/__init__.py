"""
Repositories Package

Persistence behind the inventory ledger:
- base.py: LedgerRepository protocol (the contract the core depends on)
- sql.py: SqlAlchemyLedgerRepository, the SQL implementation
"""

from tometracker.repositories.base import LedgerRepository
from tometracker.repositories.sql import SqlAlchemyLedgerRepository

__all__ = [
    "LedgerRepository",
    "SqlAlchemyLedgerRepository",
]
