"""
Taskboard API: Security Helper Tests
=====================================

What:  Password hashing, reset-token hashing and JWT issue/verify.
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from taskboard.config import settings
from taskboard.exceptions import ForbiddenError
from taskboard.services.security import (
    TokenIdentity,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
)


class TestPasswords:

    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong-pass", hashed)

    def test_missing_hash_never_verifies(self):
        assert not verify_password("anything", None)
        assert not verify_password("anything", "")


class TestResetTokens:

    def test_reset_token_is_140_hex_chars(self):
        token = generate_reset_token()
        assert len(token) == 140
        int(token, 16)

    def test_hash_token_is_stable_sha256(self):
        assert hash_token("abc") == hash_token("abc")
        assert len(hash_token("abc")) == 64
        assert hash_token("abc") != hash_token("abd")


class TestJWT:

    def setup_method(self):
        self.identity = TokenIdentity(user_id=uuid.uuid4(), username="alice")

    def test_access_token_round_trip(self):
        decoded = decode_access_token(create_access_token(self.identity))
        assert decoded == self.identity

    def test_refresh_token_round_trip(self):
        decoded = decode_refresh_token(create_refresh_token(self.identity))
        assert decoded.user_id == self.identity.user_id

    def test_access_token_lifetime_is_fifteen_minutes(self):
        token = create_access_token(self.identity)
        payload = jwt.decode(
            token, settings.access_token_secret, algorithms=[settings.jwt_algorithm]
        )
        assert payload["exp"] - payload["iat"] == settings.access_token_ttl == 900
        assert payload["type"] == "access"
        assert payload["sub"] == str(self.identity.user_id)

    def test_refresh_token_is_not_an_access_token(self):
        with pytest.raises(ForbiddenError):
            decode_access_token(create_refresh_token(self.identity))

    def test_access_token_is_not_a_refresh_token(self):
        with pytest.raises(ForbiddenError):
            decode_refresh_token(create_access_token(self.identity))

    def test_expired_token_is_forbidden(self):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {
                "sub": str(self.identity.user_id),
                "username": "alice",
                "type": "access",
                "iat": past - timedelta(minutes=15),
                "exp": past,
            },
            settings.access_token_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(ForbiddenError, match="expired"):
            decode_access_token(token)

    def test_tampered_token_is_forbidden(self):
        token = create_access_token(self.identity)
        with pytest.raises(ForbiddenError):
            decode_access_token(token[:-2] + ("AA" if token[-2:] != "AA" else "BB"))

    def test_garbage_is_forbidden(self):
        with pytest.raises(ForbiddenError):
            decode_access_token("not-a-jwt")

    def test_non_uuid_subject_is_forbidden(self):
        token = jwt.encode(
            {
                "sub": "42",
                "type": "access",
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            settings.access_token_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(ForbiddenError):
            decode_access_token(token)
