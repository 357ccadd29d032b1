"""
Authentication Router

Handles the session endpoints:
- Registration (email/password → new user, signed in straight away)
- Login (email/password → token pair)
- Token refresh (refresh cookie → new token pair)
- Logout (expire both cookies)
- Current identity (from the refresh cookie)

Security:
=========
- Passwords are hashed with bcrypt before storage and never logged
- The access token is short-lived and returned in the body and in the
  access cookie
- The refresh token only ever travels in an http-only, Secure,
  SameSite=None cookie
- Refresh re-reads the user, so a role change takes effect on the next
  refresh instead of waiting for the old refresh token to expire
"""

import logging

from fastapi import APIRouter, Request, Response, status
from sqlalchemy.exc import IntegrityError

from tometracker.config import get_settings
from tometracker.dependencies import DbSession, RefreshClaims, Repository
from tometracker.exceptions import DuplicateError, InvalidCredentialsError, InvalidTokenError
from tometracker.models.user import Role, User
from tometracker.schemas.user import (
    LoginRequest,
    TokenResponse,
    UserCreate,
    UserInfo,
)
from tometracker.services.rate_limiter import limiter
from tometracker.services.security import (
    IdentitySnapshot,
    access_token_lifetime,
    build_expired_cookie,
    build_refresh_cookie,
    hash_password,
    issue_token_pair,
    verify_password,
)

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"description": "Bad request"},
        401: {"description": "Unauthorized"},
        409: {"description": "Conflict (email already registered)"},
    },
)


def _start_session(response: Response, user: User) -> TokenResponse:
    """Issue a token pair for ``user`` and attach both cookies."""
    identity = IdentitySnapshot.from_user(user)
    pair, access_cookie = issue_token_pair(identity)

    access_cookie.apply(response)
    build_refresh_cookie(pair.refresh_token).apply(response)

    return TokenResponse(
        access_token=pair.access_token,
        token_type="bearer",
        expires_in=int(access_token_lifetime().total_seconds()),
        user_info=UserInfo(id=identity.id, email=identity.email, role=identity.role),
    )


# -------------------------------------------------------------------------
# Registration Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="""
    Create a new account and sign it in.

    **Password Requirements:**
    - Minimum 8 characters
    - At least 1 uppercase letter
    - At least 1 lowercase letter
    - At least 1 number

    New accounts always get the `user` role.
    """,
)
@limiter.limit(settings.rate_limit_auth)
def register(
    request: Request,
    response: Response,
    user_data: UserCreate,
    db: DbSession,
    repository: Repository,
) -> TokenResponse:
    if repository.find_identity_by_email(user_data.email) is not None:
        raise DuplicateError("Email already registered")

    user = User(
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        role=Role.USER.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with another registration for the same email
        db.rollback()
        raise DuplicateError("Email already registered") from exc
    db.refresh(user)

    logger.info(f"New user registered: {user.email}")

    return _start_session(response, user)


# -------------------------------------------------------------------------
# Login Endpoint
# -------------------------------------------------------------------------
@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with email and password",
    description="""
    Authenticate with email and password.

    **Returns:**
    - `access_token`: Short-lived token for the Authorization header
    - `expires_in`: Access token lifetime in seconds
    - `user_info`: id, email and role the tokens were issued for

    The refresh token is set as the http-only `RefreshCookie`.
    """,
)
@limiter.limit(settings.rate_limit_auth)
def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    repository: Repository,
) -> TokenResponse:
    user = repository.find_identity_by_email(credentials.email)

    # Same error for unknown email and wrong password
    if user is None:
        logger.warning(f"Login failed: user not found for {credentials.email}")
        raise InvalidCredentialsError()

    if not verify_password(credentials.password, user.hashed_password):
        logger.warning(f"Login failed: incorrect password for {credentials.email}")
        raise InvalidCredentialsError()

    logger.info(f"User logged in: {user.email}")

    return _start_session(response, user)


# -------------------------------------------------------------------------
# Token Refresh Endpoint
# -------------------------------------------------------------------------
@router.get(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh the token pair",
    description="""
    Exchange a valid refresh cookie for a new token pair.

    The user is read again, so email and role changes made since the last
    login are picked up here.
    """,
)
def refresh(
    response: Response,
    claims: RefreshClaims,
    repository: Repository,
) -> TokenResponse:
    user = repository.find_identity_by_id(claims.user_id)
    if user is None:
        raise InvalidTokenError("Token refers to a user that no longer exists")

    logger.info(f"Session refreshed for user {user.id}")

    return _start_session(response, user)


# -------------------------------------------------------------------------
# Current Identity Endpoint
# -------------------------------------------------------------------------
@router.get(
    "/me",
    response_model=UserInfo,
    summary="Get current identity",
    description="Return the identity carried by the refresh cookie.",
)
def me(claims: RefreshClaims) -> UserInfo:
    return UserInfo(id=claims.user_id, email=claims.email, role=claims.role)


# -------------------------------------------------------------------------
# Logout Endpoint
# -------------------------------------------------------------------------
@router.get(
    "/logout",
    status_code=status.HTTP_200_OK,
    summary="Logout",
    description="Expire both session cookies.",
)
def logout(response: Response) -> dict:
    build_expired_cookie(settings.access_cookie_name).apply(response)
    build_expired_cookie(settings.refresh_cookie_name).apply(response)
    return {"message": "Successfully logged out"}
