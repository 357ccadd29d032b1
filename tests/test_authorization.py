"""
Tests for the Authorization Guard

The role hierarchy is admin ⊇ staff ⊇ user; unknown roles get nothing.
"""

from datetime import UTC, datetime, timedelta

import pytest

from tometracker.exceptions import InsufficientRoleError, MissingCredentialsError
from tometracker.models.user import Role
from tometracker.services.authorization import (
    authorize,
    authorize_for_user,
    capabilities,
    has_capability,
)
from tometracker.services.security import Claims


def make_claims(role: str, user_id: int = 1) -> Claims:
    now = datetime.now(UTC)
    return Claims(
        subject=str(user_id),
        user_id=user_id,
        email="reader@example.com",
        role=role,
        issuer="tometracker.com",
        audience="tometracker.com",
        issued_at=now,
        expires_at=now + timedelta(minutes=1),
        token_type="access",
    )


class TestCapabilities:
    @pytest.mark.parametrize(
        "role,expected",
        [
            ("admin", {"admin", "staff", "user"}),
            ("staff", {"staff", "user"}),
            ("user", {"user"}),
            ("librarian", set()),
            ("", set()),
        ],
    )
    def test_capability_sets(self, role, expected):
        assert capabilities(role) == expected

    def test_hierarchy_is_monotone(self):
        assert capabilities("user") <= capabilities("staff") <= capabilities("admin")

    def test_accepts_enum_or_string(self):
        assert has_capability("staff", Role.USER)
        assert has_capability("staff", "user")
        assert not has_capability("user", Role.STAFF)


class TestAuthorize:
    def test_no_credentials(self):
        with pytest.raises(MissingCredentialsError):
            authorize(None, Role.USER)

    @pytest.mark.parametrize("role", ["user", "staff", "admin"])
    def test_every_role_passes_user_guard(self, role):
        claims = make_claims(role)
        assert authorize(claims, Role.USER) is claims

    def test_user_denied_staff(self):
        with pytest.raises(InsufficientRoleError) as exc_info:
            authorize(make_claims("user"), Role.STAFF)

        assert exc_info.value.role == "user"
        assert exc_info.value.required == "staff"
        assert "Role mismatch" in exc_info.value.message

    def test_staff_denied_admin(self):
        with pytest.raises(InsufficientRoleError):
            authorize(make_claims("staff"), Role.ADMIN)

    def test_unknown_role_denied_everything(self):
        with pytest.raises(InsufficientRoleError):
            authorize(make_claims("superhero"), Role.USER)


class TestAuthorizeForUser:
    def test_user_may_act_on_self(self):
        claims = make_claims("user", user_id=5)
        assert authorize_for_user(claims, 5) is claims

    def test_user_may_not_act_on_others(self):
        with pytest.raises(InsufficientRoleError):
            authorize_for_user(make_claims("user", user_id=5), 6)

    @pytest.mark.parametrize("role", ["staff", "admin"])
    def test_staff_may_act_on_others(self, role):
        claims = make_claims(role, user_id=5)
        assert authorize_for_user(claims, 6) is claims
