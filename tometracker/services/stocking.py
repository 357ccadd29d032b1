"""
Stocking Service

Puts copies of books on library shelves.

Two entry points:
- add_book_copy: one more copy of a newly created book at a library,
  run inside the request that created the book
- stock_new_library: give a freshly created library a random number of
  copies of every book in the catalogue, run as a background task

stock_new_library commits one book at a time, so a failure half way leaves
the books already stocked in place. It never raises: the request that
scheduled it has already answered, so failures are logged instead.
"""

import logging
import random

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from tometracker.config import get_settings
from tometracker.exceptions import LibraryNotFoundError
from tometracker.models import LedgerEntry
from tometracker.repositories.base import LedgerRepository
from tometracker.repositories.sql import SqlAlchemyLedgerRepository

logger = logging.getLogger(__name__)
settings = get_settings()


def add_book_copy(
    repository: LedgerRepository,
    book_id: int,
    library_id: int | None = None,
) -> LedgerEntry:
    """
    Add one available copy of a book to a library.

    Creates the ledger entry when the library does not stock the book yet,
    otherwise bumps total and available by one. The caller commits.

    Args:
        repository: Ledger persistence, sharing the caller's transaction
        book_id: Book to stock
        library_id: Target library (defaults to the first library)

    Raises:
        LibraryNotFoundError: No libraries exist, or library_id is unknown
    """
    if library_id is None:
        library_id = repository.first_library_id()
        if library_id is None:
            raise LibraryNotFoundError("No library exists to stock the book in")
    elif not repository.library_exists(library_id):
        raise LibraryNotFoundError(f"Library with id {library_id} not found")

    entry = repository.adjust_ledger_entry(
        book_id, library_id, available_delta=1, borrowed_delta=0, total_delta=1
    )
    if entry is None:
        entry = repository.create_ledger_entry(book_id, library_id, total_copies=1)

    logger.info(
        f"Stocked book {book_id} at library {library_id} "
        f"({entry.total_copies} copies)"
    )
    return entry


def stock_new_library(
    session_factory: sessionmaker,
    library_id: int,
    rng: random.Random | None = None,
) -> int:
    """
    Stock every catalogue book at a library.

    Each book gets between settings.stock_min_copies and
    settings.stock_max_copies copies, all available. Books the library
    already stocks are left alone.

    Args:
        session_factory: Creates the job's own session
        library_id: Library to stock
        rng: Random source (tests pass a seeded one)

    Returns:
        Number of books stocked
    """
    rng = rng or random.Random()
    session = session_factory()
    repository = SqlAlchemyLedgerRepository(session)
    stocked = 0

    try:
        for book_id in repository.book_ids_without_entry(library_id):
            copies = rng.randint(settings.stock_min_copies, settings.stock_max_copies)
            try:
                repository.create_ledger_entry(book_id, library_id, total_copies=copies)
                repository.commit()
                stocked += 1
            except IntegrityError:
                # Stocked by someone else in the meantime
                repository.rollback()
                logger.debug(f"Book {book_id} already stocked at library {library_id}")
    except SQLAlchemyError:
        session.rollback()
        logger.exception(
            f"Stocking library {library_id} stopped after {stocked} books"
        )
    finally:
        session.close()

    logger.info(f"Stocked {stocked} books at library {library_id}")
    return stocked
