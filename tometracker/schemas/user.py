"""
User and Session Pydantic Schemas

Schemas:
- UserCreate: Registration data
- LoginRequest: Email/password login
- UserResponse: Public user data (never exposes password)
- UserInfo: The identity snapshot carried in tokens
- TokenResponse: Access token plus identity, returned by every session flow
- RoleUpdate: Admin role change

Pydantic v2 Features Used:
- model_config: Configure model behavior
- Field(): Define constraints and metadata
- field_validator / model_validator: Validate and transform values
- EmailStr: Built-in email validation
"""

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from tometracker.models.user import Role


def _check_password_strength(v: str) -> str:
    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one number")
    return v


class UserCreate(BaseModel):
    """
    Schema for user registration.

    Self-registered accounts always get the "user" role; staff and admin
    roles are granted by an admin afterwards.
    """

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["reader@example.com"],
    )

    password: str = Field(
        ...,
        min_length=8,
        max_length=72,  # bcrypt only looks at the first 72 bytes
        description="Password (min 8 chars, must include uppercase and number)",
        examples=["SecurePass123"],
    )

    confirm_password: str = Field(
        ...,
        description="Must match password",
    )

    first_name: str | None = Field(default=None, max_length=255)
    last_name: str | None = Field(default=None, max_length=255)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v: str) -> str:
        """
        Validate password strength.

        Requirements:
        - At least 8 characters (enforced by min_length)
        - At least 1 uppercase letter
        - At least 1 lowercase letter
        - At least 1 number
        """
        return _check_password_strength(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "UserCreate":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    """Schema for JSON login requests."""

    email: EmailStr = Field(..., examples=["reader@example.com"])
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserResponse(BaseModel):
    """
    Schema for user responses.

    SECURITY: Never includes the password hash.
    """

    id: int = Field(..., description="Unique user identifier", examples=[1, 42])
    email: EmailStr
    first_name: str | None = None
    last_name: str | None = None
    role: Role
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UserInfo(BaseModel):
    """Identity snapshot embedded in tokens and returned with them."""

    id: int
    email: EmailStr
    role: str

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """
    Schema for responses that establish or renew a session.

    The refresh token itself is never in the body; it is only sent as the
    http-only refresh cookie.
    """

    access_token: str = Field(..., description="Short-lived signed access token")
    token_type: str = Field(default="bearer")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    user_info: UserInfo

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                "token_type": "bearer",
                "expires_in": 60,
                "user_info": {"id": 1, "email": "reader@example.com", "role": "user"},
            }
        },
    )


class RoleUpdate(BaseModel):
    """Schema for an admin changing a user's role."""

    role: Role
