"""
User Model

Represents a registered identity: a patron, a staff member or an admin.

SQLAlchemy 2.0 Features Used:
- mapped_column(): New way to define columns with full type support
- Mapped[]: Type hint wrapper for SQLAlchemy columns
- relationship(): Define relationships between models
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tometracker.database import Base

if TYPE_CHECKING:
    from tometracker.models.loan import Loan


class Role(str, Enum):
    """
    Roles a user can hold.

    - USER: borrows and returns books
    - STAFF: manages inventory and acts on behalf of users
    - ADMIN: everything staff can do, plus creating books, libraries, roles
    """
    USER = "user"
    STAFF = "staff"
    ADMIN = "admin"


class User(Base):
    """
    User model representing registered identities.

    Table: users

    The role is copied into every token issued for the user, so a role
    change only takes effect the next time a token pair is issued.

    Indexes:
    - Primary key on id (automatic)
    - email: Unique index for login lookups
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Authentication Fields
    # -------------------------------------------------------------------------
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="User's email address (used for login, stored lower-case)"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    role: Mapped[str] = mapped_column(
        String(20),
        default=Role.USER.value,
        nullable=False,
        comment="Role: user, staff or admin"
    )

    # -------------------------------------------------------------------------
    # Profile Fields
    # -------------------------------------------------------------------------
    first_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    last_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        comment="When the user registered"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="When the user profile was last updated"
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    loans: Mapped[list["Loan"]] = relationship(
        "Loan",
        back_populates="user",
    )

    def __repr__(self) -> str:
        """Developer-friendly string representation."""
        return f"User(id={self.id}, email='{self.email}', role='{self.role}')"
