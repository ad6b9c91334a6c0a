"""
Taskboard API: Password Hashing and Session Tokens
===================================================

What:  Hashing for user/board passwords and reset tokens; JWT issue/verify.
How:   pwdlib (Argon2) for passwords, PyJWT (HS256) for the two token types,
       sha256 for password-reset tokens.
Who:   AuthService, UserService, BoardService and the auth dependency.

Token Types:
    access   sub=<user id>, username, type="access"   signed with ACCESS_TOKEN_SECRET
    refresh  sub=<user id>, username, type="refresh"  signed with REFRESH_TOKEN_SECRET

    Both are stateless: verification is signature + expiry + type claim.
    There is no server-side revocation list; logout only clears the cookie.
"""

import hashlib
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from pwdlib import PasswordHash

from taskboard.config import settings
from taskboard.exceptions import ForbiddenError

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"

_password_hasher = PasswordHash.recommended()


# ══════════════════════════════════════════════════════════════════════════
# Passwords
# ══════════════════════════════════════════════════════════════════════════

def hash_password(password: str) -> str:
    """Hash a user or board password with Argon2."""
    return _password_hasher.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Constant-effort comparison delegated to pwdlib; False for a missing hash."""
    if not hashed_password:
        return False
    return _password_hasher.verify(plain_password, hashed_password)


# ══════════════════════════════════════════════════════════════════════════
# Random tokens
# ══════════════════════════════════════════════════════════════════════════

def generate_verification_token() -> str:
    return secrets.token_hex(40)


def generate_reset_token() -> str:
    return secrets.token_hex(70)


def hash_token(token: str) -> str:
    """One-way digest stored in place of a reset token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# ══════════════════════════════════════════════════════════════════════════
# JWT
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TokenIdentity:
    """The minimal identity claim carried by both token types."""

    user_id: uuid.UUID
    username: str


def _encode(identity: TokenIdentity, token_type: str, secret: str, ttl: int) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": str(identity.user_id),
        "username": identity.username,
        "type": token_type,
        "iat": now,
        "exp": now + timedelta(seconds=ttl),
    }
    return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, token_type: str, secret: str) -> TokenIdentity:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise ForbiddenError("Token has expired")
    except jwt.InvalidTokenError:
        raise ForbiddenError("Invalid token")

    if payload.get("type") != token_type:
        raise ForbiddenError("Invalid token")
    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise ForbiddenError("Invalid token")
    return TokenIdentity(user_id=user_id, username=payload.get("username", ""))


def create_access_token(identity: TokenIdentity) -> str:
    return _encode(
        identity, ACCESS_TOKEN_TYPE, settings.access_token_secret, settings.access_token_ttl
    )


def create_refresh_token(identity: TokenIdentity) -> str:
    return _encode(
        identity, REFRESH_TOKEN_TYPE, settings.refresh_token_secret, settings.refresh_token_ttl
    )


def decode_access_token(token: str) -> TokenIdentity:
    """
    Verify a bearer access token.

    Raises:
        ForbiddenError: bad signature, expired, malformed or a refresh token
    """
    return _decode(token, ACCESS_TOKEN_TYPE, settings.access_token_secret)


def decode_refresh_token(token: str) -> TokenIdentity:
    """Verify the refresh cookie; same failure modes as decode_access_token."""
    return _decode(token, REFRESH_TOKEN_TYPE, settings.refresh_token_secret)
