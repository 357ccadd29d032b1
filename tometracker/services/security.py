"""
Security Service

Credential and session management: password hashing, signed token pairs
and the cookies that carry them.

Security Features:
==================
1. Password hashing with bcrypt (passlib)
2. HS256-signed access/refresh token pairs (python-jose)
3. Only HS256 is accepted when verifying, so a token that names another
   algorithm in its header is rejected outright
4. Expired tokens and tokens from another issuer fail with distinct errors
5. Both tokens of a pair are built from one identity snapshot, so they can
   never disagree about the user's role

Token Lifetimes:
================
- Access token: settings.access_token_expire_minutes (1 minute)
- Refresh token: settings.refresh_token_expire_hours (24 hours)

Usage:
    from tometracker.services.security import issue_token_pair, verify_and_extract

    pair, access_cookie = issue_token_pair(IdentitySnapshot.from_user(user))
    claims = verify_and_extract(request.cookies)
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from starlette.responses import Response

from tometracker.config import get_settings
from tometracker.exceptions import (
    InvalidIssuerError,
    InvalidTokenError,
    MissingCredentialsError,
    TokenExpiredError,
)

logger = logging.getLogger(__name__)
settings = get_settings()

# -------------------------------------------------------------------------
# Password Hashing Configuration
# -------------------------------------------------------------------------
# bcrypt's work factor makes every guess expensive; "auto" re-hashes
# passwords stored with a deprecated scheme on next login.
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Example:
        >>> hashed = hash_password("SecurePass123")
        >>> hashed.startswith("$2b$")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a bcrypt hash.

    Uses constant-time comparison. A mismatch returns False; a hash that
    cannot be identified raises, since that means the stored data is bad.
    """
    return pwd_context.verify(plain_password, hashed_password)


# -------------------------------------------------------------------------
# Value Objects
# -------------------------------------------------------------------------
@dataclass(frozen=True)
class IdentitySnapshot:
    """The identity fields copied into a token pair at issuance time."""

    id: int
    email: str
    role: str

    @classmethod
    def from_user(cls, user: Any) -> "IdentitySnapshot":
        return cls(id=user.id, email=user.email, role=user.role)


@dataclass(frozen=True)
class Claims:
    """Decoded, verified token payload."""

    subject: str
    user_id: int
    email: str
    role: str
    issuer: str
    audience: str
    issued_at: datetime
    expires_at: datetime
    token_type: str

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Claims":
        try:
            audience = payload["aud"]
            if isinstance(audience, list):
                audience = audience[0]
            return cls(
                subject=payload["sub"],
                user_id=int(payload["id"]),
                email=payload["email"],
                role=payload["role"],
                issuer=payload["iss"],
                audience=audience,
                issued_at=datetime.fromtimestamp(payload["iat"], UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
                token_type=payload["type"],
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError("Token payload is incomplete") from exc


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class Cookie:
    """
    A session cookie ready to be attached to a response.

    Defaults match what cross-site session cookies need: Secure, HttpOnly
    and SameSite=None.
    """

    key: str
    value: str
    max_age: int
    expires: datetime
    path: str = "/"
    domain: str | None = None
    secure: bool = True
    httponly: bool = True
    samesite: str = "none"

    def apply(self, response: Response) -> None:
        response.set_cookie(
            key=self.key,
            value=self.value,
            max_age=self.max_age,
            expires=self.expires,
            path=self.path,
            domain=self.domain,
            secure=self.secure,
            httponly=self.httponly,
            samesite=self.samesite,
        )


# -------------------------------------------------------------------------
# Token Issuance
# -------------------------------------------------------------------------
def access_token_lifetime() -> timedelta:
    return timedelta(minutes=settings.access_token_expire_minutes)


def refresh_token_lifetime() -> timedelta:
    return timedelta(hours=settings.refresh_token_expire_hours)


def _encode_token(
    identity: IdentitySnapshot,
    token_type: str,
    issued_at: datetime,
    lifetime: timedelta,
) -> str:
    payload = {
        "sub": str(identity.id),
        "id": identity.id,
        "email": identity.email,
        "role": identity.role,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "type": token_type,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def issue_token_pair(
    identity: IdentitySnapshot,
    now: datetime | None = None,
) -> tuple[TokenPair, Cookie]:
    """
    Sign an access/refresh token pair and build the access cookie.

    Args:
        identity: Snapshot of the user taken once for both tokens
        now: Issuance time (defaults to the current UTC time)

    Returns:
        Tuple of (TokenPair, access-token Cookie)
    """
    issued_at = now or datetime.now(UTC)

    access_token = _encode_token(identity, ACCESS_TOKEN, issued_at, access_token_lifetime())
    refresh_token = _encode_token(identity, REFRESH_TOKEN, issued_at, refresh_token_lifetime())

    lifetime = access_token_lifetime()
    access_cookie = Cookie(
        key=settings.access_cookie_name,
        value=access_token,
        max_age=int(lifetime.total_seconds()),
        expires=issued_at + lifetime,
        domain=settings.effective_cookie_domain,
    )

    return TokenPair(access_token=access_token, refresh_token=refresh_token), access_cookie


def build_refresh_cookie(refresh_token: str, now: datetime | None = None) -> Cookie:
    """Wrap a refresh token in an http-only cookie with the refresh lifetime."""
    lifetime = refresh_token_lifetime()
    return Cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        max_age=int(lifetime.total_seconds()),
        expires=(now or datetime.now(UTC)) + lifetime,
        domain=settings.effective_cookie_domain,
    )


def build_expired_cookie(key: str | None = None) -> Cookie:
    """
    Build a cookie that makes the browser drop an existing session cookie.

    Defaults to the refresh cookie, which is what ends a session.
    """
    return Cookie(
        key=key or settings.refresh_cookie_name,
        value="",
        max_age=0,
        expires=EPOCH,
        domain=settings.effective_cookie_domain,
    )


# -------------------------------------------------------------------------
# Token Verification
# -------------------------------------------------------------------------
def decode_token(token: str, expected_type: str) -> Claims:
    """
    Verify a token and return its claims.

    Checks, in order:
    1. Signature made with our secret using HS256 (any other alg is refused)
    2. Expiry (TokenExpiredError)
    3. Audience
    4. Issuer (InvalidIssuerError)
    5. Token type (access vs refresh)

    Raises:
        TokenExpiredError, InvalidIssuerError, InvalidTokenError
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
            audience=settings.jwt_audience,
        )
    except ExpiredSignatureError as exc:
        logger.info("Rejected expired token")
        raise TokenExpiredError() from exc
    except JWTError as exc:
        logger.warning(f"JWT decode error: {exc}")
        raise InvalidTokenError() from exc

    if payload.get("iss") != settings.jwt_issuer:
        logger.warning(f"Token issuer mismatch: {payload.get('iss')!r}")
        raise InvalidIssuerError()

    if payload.get("type") != expected_type:
        logger.warning(f"Token type mismatch: expected {expected_type}")
        raise InvalidTokenError(f"Expected an {expected_type} token")

    return Claims.from_payload(payload)


def verify_and_extract(cookies: Mapping[str, str]) -> Claims:
    """
    Read the refresh cookie from a request and verify it.

    Raises:
        MissingCredentialsError: No refresh cookie was sent
        TokenExpiredError, InvalidIssuerError, InvalidTokenError
    """
    token = cookies.get(settings.refresh_cookie_name)
    if not token:
        raise MissingCredentialsError()
    return decode_token(token, REFRESH_TOKEN)


def verify_access_token(token: str) -> Claims:
    """Verify a bearer access token."""
    return decode_token(token, ACCESS_TOKEN)
