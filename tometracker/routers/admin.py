"""
Admin Router

Catalogue and account management. Every endpoint requires the admin role.

Endpoints:
- POST  /admin/books                add a book and one copy of it
- POST  /admin/libraries            add a library and stock it in the background
- PATCH /admin/users/{user_id}/role change a user's role
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Path, status
from sqlalchemy.exc import IntegrityError

from tometracker.dependencies import AdminClaims, DbSession, Repository, SessionFactory
from tometracker.exceptions import DuplicateError, UserNotFoundError
from tometracker.models import Book, Library
from tometracker.schemas.book import (
    BookCreatedResponse,
    BookCreateRequest,
    BookResponse,
    LibraryCreate,
    LibraryResponse,
)
from tometracker.schemas.ledger import LedgerEntryResponse
from tometracker.schemas.user import RoleUpdate, UserResponse
from tometracker.services.stocking import add_book_copy, stock_new_library

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses={
        401: {"description": "Missing or invalid credentials"},
        403: {"description": "Admin role required"},
    },
)


@router.post(
    "/books",
    response_model=BookCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a book",
    description="""
    Add a book to the catalogue with one available copy.

    The copy goes to `library_id`, or to the first library when it is
    omitted. Fails with 404 when there is no such library.
    """,
)
def create_book(
    body: BookCreateRequest,
    claims: AdminClaims,
    db: DbSession,
    repository: Repository,
) -> BookCreatedResponse:
    book = Book(**body.book.model_dump())
    db.add(book)
    try:
        db.flush()
        entry = add_book_copy(repository, book.id, body.library_id)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateError(f"A book with ISBN {body.book.isbn} already exists") from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(book)
    logger.info(f"Admin {claims.user_id} created book {book.id} ('{book.title}')")

    return BookCreatedResponse(
        book=BookResponse.model_validate(book),
        ledger_entry=LedgerEntryResponse.model_validate(entry),
    )


@router.post(
    "/libraries",
    response_model=LibraryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a library",
    description="""
    Add a library.

    Once the response is sent, a background job gives the library a random
    number of copies of every book in the catalogue.
    """,
)
def create_library(
    body: LibraryCreate,
    claims: AdminClaims,
    db: DbSession,
    session_factory: SessionFactory,
    background_tasks: BackgroundTasks,
) -> LibraryResponse:
    library = Library(**body.model_dump())
    db.add(library)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateError(f"A library named '{body.name}' already exists") from exc
    db.refresh(library)

    logger.info(f"Admin {claims.user_id} created library {library.id} ('{library.name}')")

    background_tasks.add_task(stock_new_library, session_factory, library.id)

    return LibraryResponse.model_validate(library)


@router.patch(
    "/users/{user_id}/role",
    response_model=UserResponse,
    summary="Change a user's role",
    description="""
    Set a user's role.

    Tokens already issued keep the old role until they are refreshed.
    """,
)
def update_role(
    body: RoleUpdate,
    claims: AdminClaims,
    db: DbSession,
    repository: Repository,
    user_id: int = Path(..., ge=1),
) -> UserResponse:
    user = repository.find_identity_by_id(user_id)
    if user is None:
        raise UserNotFoundError(f"User with id {user_id} not found")

    previous = user.role
    user.role = body.role.value
    db.commit()
    db.refresh(user)

    logger.info(f"Admin {claims.user_id} changed role of user {user_id}: {previous} -> {user.role}")

    return UserResponse.model_validate(user)
