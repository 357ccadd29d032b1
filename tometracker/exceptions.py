"""
Domain Exceptions

Typed errors raised by the session manager, the authorization guard and the
inventory ledger. Core code raises these and never converts them to HTTP
responses; the mapping to status codes lives in main.py.

Taxonomy:
- ValidationError: bad input or unknown referenced records, nothing touched
- BusinessRuleError: a lending rule refused the request, retrying is useless
- AuthenticationError: missing, malformed, expired or foreign credentials
- AuthorizationError: valid credentials, insufficient role
- InfrastructureError: storage timeouts and disconnects, safe to retry
- InvariantViolationError: the ledger is corrupted, a prior bug
"""


class TomeTrackerError(Exception):
    """Base exception for all TomeTracker errors."""

    retryable = False

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__


# =============================================================================
# Validation Errors
# =============================================================================
class ValidationError(TomeTrackerError):
    """The request was rejected before any state was touched."""


class BookNotFoundError(ValidationError):
    """Book not found."""


class LibraryNotFoundError(ValidationError):
    """Library not found."""


class UserNotFoundError(ValidationError):
    """User not found."""


class DuplicateError(ValidationError):
    """A record with the same unique value already exists."""


# =============================================================================
# Business-Rule Errors
# =============================================================================
class BusinessRuleError(TomeTrackerError):
    """A lending rule refused the request."""


class NotStockedError(BusinessRuleError):
    """Book is not available at this library."""


class AlreadyBorrowedError(BusinessRuleError):
    """User has already borrowed this book and has not returned it yet."""


class NoCopiesAvailableError(BusinessRuleError):
    """No available copies of this book at this library for borrowing."""


class NoOpenLoanError(BusinessRuleError):
    """The user hasn't borrowed this book or has already returned it."""


# =============================================================================
# Authentication / Authorization Errors
# =============================================================================
class AuthenticationError(TomeTrackerError):
    """Could not validate credentials."""


class MissingCredentialsError(AuthenticationError):
    """No auth token provided."""


class InvalidCredentialsError(AuthenticationError):
    """Incorrect email or password."""


class InvalidTokenError(AuthenticationError):
    """Invalid token provided."""


class TokenExpiredError(AuthenticationError):
    """Token expired."""


class InvalidIssuerError(AuthenticationError):
    """Invalid issuer."""


class AuthorizationError(TomeTrackerError):
    """Not allowed to perform this action."""


class InsufficientRoleError(AuthorizationError):
    """Role does not grant access to this resource."""

    def __init__(self, role: str, required: str) -> None:
        super().__init__(f"Role mismatch ({role} != {required})")
        self.role = role
        self.required = required


# =============================================================================
# Infrastructure / Invariant Errors
# =============================================================================
class InfrastructureError(TomeTrackerError):
    """The storage layer failed; the request may be retried."""

    retryable = True


class StorageUnavailableError(InfrastructureError):
    """The database did not answer in time. Please retry."""


class InvariantViolationError(TomeTrackerError):
    """Stored state breaks an invariant that should always hold."""


class InconsistentStateError(InvariantViolationError):
    """Ledger entry has no borrowed copies to return."""
