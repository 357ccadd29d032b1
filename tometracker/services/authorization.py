"""
Authorization Guard

Maps a verified role to the set of roles it may act as.

Role hierarchy:
    admin ⊇ staff ⊇ user

The hierarchy is data, not a chain of if-statements: a new role only
needs an entry in ROLE_CAPABILITIES. A role missing from the map can act
as nothing, so an unknown role is always denied.

Decisions are made per request from freshly verified claims and are
never cached.
"""

import logging

from tometracker.exceptions import InsufficientRoleError, MissingCredentialsError
from tometracker.models.user import Role
from tometracker.services.security import Claims

logger = logging.getLogger(__name__)

ROLE_CAPABILITIES: dict[str, frozenset[str]] = {
    Role.ADMIN.value: frozenset({Role.ADMIN.value, Role.STAFF.value, Role.USER.value}),
    Role.STAFF.value: frozenset({Role.STAFF.value, Role.USER.value}),
    Role.USER.value: frozenset({Role.USER.value}),
}


def capabilities(role: str) -> frozenset[str]:
    """Return the roles that ``role`` may act as."""
    return ROLE_CAPABILITIES.get(role, frozenset())


def has_capability(role: str, required: Role | str) -> bool:
    required_value = required.value if isinstance(required, Role) else required
    return required_value in capabilities(role)


def authorize(claims: Claims | None, required: Role | str) -> Claims:
    """
    Allow or deny a request.

    Args:
        claims: Verified claims, or None when no credential was presented
        required: Role the endpoint requires

    Returns:
        The same claims when access is allowed

    Raises:
        MissingCredentialsError: No credential was presented
        InsufficientRoleError: The credential's role does not cover ``required``
    """
    if claims is None:
        raise MissingCredentialsError()

    required_value = required.value if isinstance(required, Role) else required
    if not has_capability(claims.role, required_value):
        logger.warning(
            f"Denied user {claims.user_id}: role {claims.role} lacks {required_value}"
        )
        raise InsufficientRoleError(claims.role, required_value)

    return claims


def authorize_for_user(claims: Claims, user_id: int) -> Claims:
    """
    Allow a caller to act on ``user_id``'s loans.

    Users may only act on themselves; staff and admins may act on anyone.
    """
    if claims.user_id == user_id:
        return claims
    return authorize(claims, Role.STAFF)
