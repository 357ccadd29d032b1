"""
Tests for the Credential & Session Manager

Covers:
- Password hashing
- Token pair issuance (shared identity snapshot, lifetimes, claims)
- Token verification (expiry, issuer, algorithm, secret, type)
- Session cookies (attributes, expiry cookie)
"""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from tometracker.config import get_settings
from tometracker.exceptions import (
    InvalidIssuerError,
    InvalidTokenError,
    MissingCredentialsError,
    TokenExpiredError,
)
from tometracker.services.security import (
    ACCESS_TOKEN,
    ALGORITHM,
    EPOCH,
    REFRESH_TOKEN,
    IdentitySnapshot,
    build_expired_cookie,
    build_refresh_cookie,
    decode_token,
    hash_password,
    issue_token_pair,
    verify_access_token,
    verify_and_extract,
    verify_password,
)

settings = get_settings()

IDENTITY = IdentitySnapshot(id=7, email="reader@example.com", role="staff")


def _signed(payload_overrides: dict, key: str | None = None, algorithm: str = ALGORITHM) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": "7",
        "id": 7,
        "email": "reader@example.com",
        "role": "staff",
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(minutes=5),
        "type": REFRESH_TOKEN,
    }
    payload.update(payload_overrides)
    return jwt.encode(payload, key or settings.secret_key, algorithm=algorithm)


class TestPasswordHashing:
    def test_hash_is_not_plaintext(self):
        hashed = hash_password("SecurePass123")
        assert hashed != "SecurePass123"
        assert hashed.startswith("$2b$")

    def test_verify_correct_password(self):
        assert verify_password("SecurePass123", hash_password("SecurePass123")) is True

    def test_verify_wrong_password(self):
        assert verify_password("WrongPass123", hash_password("SecurePass123")) is False

    def test_same_password_gets_different_salts(self):
        assert hash_password("SecurePass123") != hash_password("SecurePass123")


class TestTokenIssuance:
    def test_pair_shares_identity_snapshot(self):
        pair, _ = issue_token_pair(IDENTITY)

        access = verify_access_token(pair.access_token)
        refresh = decode_token(pair.refresh_token, REFRESH_TOKEN)

        for claims in (access, refresh):
            assert claims.user_id == 7
            assert claims.subject == "7"
            assert claims.email == "reader@example.com"
            assert claims.role == "staff"
            assert claims.issuer == settings.jwt_issuer
            assert claims.audience == settings.jwt_audience

        assert access.token_type == ACCESS_TOKEN
        assert refresh.token_type == REFRESH_TOKEN

    def test_lifetimes(self):
        now = datetime.now(UTC).replace(microsecond=0)
        pair, _ = issue_token_pair(IDENTITY, now=now)

        access = verify_access_token(pair.access_token)
        refresh = decode_token(pair.refresh_token, REFRESH_TOKEN)

        assert access.expires_at - access.issued_at == timedelta(
            minutes=settings.access_token_expire_minutes
        )
        assert refresh.expires_at - refresh.issued_at == timedelta(
            hours=settings.refresh_token_expire_hours
        )

    def test_access_cookie_attributes(self):
        pair, cookie = issue_token_pair(IDENTITY)

        assert cookie.key == settings.access_cookie_name
        assert cookie.value == pair.access_token
        assert cookie.max_age == settings.access_token_expire_minutes * 60
        assert cookie.secure is True
        assert cookie.httponly is True
        assert cookie.samesite == "none"


class TestTokenVerification:
    def test_expired_token(self):
        past = datetime.now(UTC) - timedelta(hours=2)
        token = _signed({"iat": past, "exp": past + timedelta(minutes=1)})

        with pytest.raises(TokenExpiredError):
            decode_token(token, REFRESH_TOKEN)

    def test_access_token_expires_after_its_lifetime(self):
        issued = datetime.now(UTC) - timedelta(minutes=settings.access_token_expire_minutes + 1)
        pair, _ = issue_token_pair(IDENTITY, now=issued)

        with pytest.raises(TokenExpiredError):
            verify_access_token(pair.access_token)
        # The refresh token of the same pair is still good
        assert decode_token(pair.refresh_token, REFRESH_TOKEN).user_id == 7

    def test_foreign_issuer(self):
        token = _signed({"iss": "someone-else.example"})

        with pytest.raises(InvalidIssuerError):
            decode_token(token, REFRESH_TOKEN)

    def test_wrong_secret(self):
        token = _signed({}, key="another-secret-key-that-is-also-32-characters")

        with pytest.raises(InvalidTokenError):
            decode_token(token, REFRESH_TOKEN)

    def test_other_algorithm_rejected(self):
        token = _signed({}, algorithm="HS512")

        with pytest.raises(InvalidTokenError):
            decode_token(token, REFRESH_TOKEN)

    def test_garbage_token(self):
        with pytest.raises(InvalidTokenError):
            decode_token("not-a-token", ACCESS_TOKEN)

    def test_refresh_token_is_not_an_access_token(self):
        pair, _ = issue_token_pair(IDENTITY)

        with pytest.raises(InvalidTokenError):
            verify_access_token(pair.refresh_token)

    def test_missing_claim(self):
        payload = jwt.get_unverified_claims(_signed({}))
        del payload["role"]
        token = jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)

        with pytest.raises(InvalidTokenError):
            decode_token(token, REFRESH_TOKEN)


class TestVerifyAndExtract:
    def test_reads_refresh_cookie(self):
        pair, _ = issue_token_pair(IDENTITY)

        claims = verify_and_extract({settings.refresh_cookie_name: pair.refresh_token})

        assert claims.user_id == 7
        assert claims.role == "staff"

    def test_missing_cookie(self):
        with pytest.raises(MissingCredentialsError):
            verify_and_extract({})

    def test_access_token_in_refresh_cookie(self):
        pair, _ = issue_token_pair(IDENTITY)

        with pytest.raises(InvalidTokenError):
            verify_and_extract({settings.refresh_cookie_name: pair.access_token})


class TestCookies:
    def test_refresh_cookie(self):
        cookie = build_refresh_cookie("token-value")

        assert cookie.key == settings.refresh_cookie_name
        assert cookie.value == "token-value"
        assert cookie.max_age == settings.refresh_token_expire_hours * 3600
        assert cookie.httponly is True
        assert cookie.secure is True
        assert cookie.samesite == "none"

    def test_expired_cookie(self):
        cookie = build_expired_cookie()

        assert cookie.key == settings.refresh_cookie_name
        assert cookie.value == ""
        assert cookie.max_age == 0
        assert cookie.expires == EPOCH

    def test_expired_access_cookie(self):
        assert build_expired_cookie(settings.access_cookie_name).key == settings.access_cookie_name
