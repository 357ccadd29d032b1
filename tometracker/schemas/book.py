"""
Book and Library Pydantic Schemas

Handles ISBN validation and the payloads admins use to add books and
libraries to the catalog.
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tometracker.schemas.ledger import LedgerEntryResponse


class BookCreate(BaseModel):
    """
    Schema for a new book.

    Contains validation for:
    - ISBN format (ISBN-10 or ISBN-13)
    - Title (not blank)
    """

    title: str = Field(
        ...,
        min_length=1,
        max_length=500,
        examples=["The Left Hand of Darkness"],
    )
    author: str | None = Field(default=None, max_length=255, examples=["Ursula K. Le Guin"])
    isbn: str | None = Field(
        default=None,
        max_length=20,
        description="ISBN-10 or ISBN-13",
        examples=["978-0441478125"],
    )
    published_at: datetime | None = None
    summary: str | None = Field(default=None, max_length=5000)
    thumbnail: str | None = Field(default=None, max_length=2000)
    edition: str | None = Field(default=None, max_length=50)

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, v: str | None) -> str | None:
        """
        Validate ISBN format.

        ISBNs can include hyphens, which we strip for storage.
        """
        if v is None:
            return v

        cleaned = re.sub(r"[-\s]", "", v)

        if len(cleaned) == 10:
            if not re.match(r"^\d{9}[\dX]$", cleaned):
                raise ValueError(
                    "Invalid ISBN-10 format. Must be 10 characters: "
                    "9 digits followed by a digit or 'X'"
                )
        elif len(cleaned) == 13:
            if not cleaned.isdigit():
                raise ValueError("Invalid ISBN-13 format. Must be exactly 13 digits")
        else:
            raise ValueError("ISBN must be either 10 or 13 characters (excluding hyphens)")

        return cleaned

    @field_validator("title")
    @classmethod
    def title_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip()


class BookCreateRequest(BaseModel):
    """
    Body of POST /admin/books.

    library_id is optional; without it the copy goes to the first library.
    """

    book: BookCreate
    library_id: int | None = Field(default=None, ge=1)


class BookResponse(BaseModel):
    id: int
    title: str
    author: str | None = None
    isbn: str | None = None
    published_at: datetime | None = None
    summary: str | None = None
    thumbnail: str | None = None
    edition: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookCreatedResponse(BaseModel):
    """A freshly created book together with the copy it was given."""

    book: BookResponse
    ledger_entry: LedgerEntryResponse


class LibraryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Central Branch"])
    city: str | None = Field(default=None, max_length=255)
    street_address: str | None = Field(default=None, max_length=255)
    postal_code: str | None = Field(default=None, max_length=20)
    country: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=50)

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name cannot be empty or whitespace")
        return v.strip()


class LibraryResponse(BaseModel):
    id: int
    name: str
    city: str | None = None
    street_address: str | None = None
    postal_code: str | None = None
    country: str | None = None
    phone: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
