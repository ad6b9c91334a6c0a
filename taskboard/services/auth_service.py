"""
Taskboard API: Auth Service
============================

What:  Registration, login, token refresh and the password-reset flow.
How:   Passwords and tokens go through services/security.py; lookups and
       uniqueness checks through UserService. The service never touches
       HTTP: the route sets or clears the refresh cookie from the returned
       IssuedSession.
Who:   Called by routes/auth.py.

Password Reset Flow:
    ┌───────────────────┐   ┌────────────────────────┐   ┌──────────────────┐
    │ forgot_password   │──▶│ email with raw token   │──▶│ reset_password   │
    │ store sha256+exp  │   │ {frontend}/user/reset… │   │ compare sha256   │
    └───────────────────┘   └────────────────────────┘   └──────────────────┘

    Both ends answer with the same message whether or not the account exists.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional
from urllib.parse import urlencode

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import settings
from taskboard.exceptions import ConflictError, UnauthorizedError, ValidationError
from taskboard.models.user import User, utcnow
from taskboard.services.mail_service import MailService
from taskboard.services.security import (
    TokenIdentity,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    generate_reset_token,
    generate_verification_token,
    hash_password,
    hash_token,
    verify_password,
)
from taskboard.services.user_service import user_service
from taskboard.validation import check_password_length, ensure_utc, ensure_valid

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If the email exists, a link to reset the password has been sent"
RESET_PASSWORD_MESSAGE = "Password has been reset"


@dataclass(frozen=True)
class IssuedSession:
    user: User
    access_token: str
    refresh_token: str


def issue_session(user: User) -> IssuedSession:
    identity = TokenIdentity(user_id=user.id, username=user.username)
    return IssuedSession(
        user=user,
        access_token=create_access_token(identity),
        refresh_token=create_refresh_token(identity),
    )


def build_reset_link(token: str, email: str) -> str:
    query = urlencode({"token": token, "email": email})
    return f"{settings.frontend_origin.rstrip('/')}/user/reset-password?{query}"


class AuthService:
    async def register(
        self, db: AsyncSession, username: str, email: str, password: str
    ) -> IssuedSession:
        """
        Create an account and sign it in.

        Raises:
            ValidationError: password too short or too long
            ConflictError:   username or email already used (case-insensitive)
        """
        ensure_valid(check_password_length(password))
        await user_service.ensure_unique(db, username=username, email=email)

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password),
            verification_token=generate_verification_token(),
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("Username or email is already taken")

        logger.info("Registered user %s (%s)", user.id, user.username)
        return issue_session(user)

    async def login(
        self,
        db: AsyncSession,
        password: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> IssuedSession:
        """Raises UnauthorizedError for an unknown account or a wrong password."""
        user = None
        if email:
            user = await user_service.get_by_email(db, email)
        elif username:
            user = await user_service.get_by_username(db, username)

        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", email or username)
            raise UnauthorizedError("Invalid credentials")

        return issue_session(user)

    async def refresh(self, db: AsyncSession, refresh_token: Optional[str]) -> str:
        """
        Exchange the refresh cookie for a new access token.

        Raises:
            UnauthorizedError: no cookie, or the account was deleted
            ForbiddenError:    the cookie fails verification
        """
        if not refresh_token:
            raise UnauthorizedError("Missing refresh token")

        identity = decode_refresh_token(refresh_token)
        user = await db.get(User, identity.user_id)
        if user is None:
            raise UnauthorizedError("User no longer exists")

        return create_access_token(TokenIdentity(user_id=user.id, username=user.username))

    async def forgot_password(self, db: AsyncSession, mailer: MailService, email: str) -> str:
        user = await user_service.get_by_email(db, email)
        if user is None:
            return FORGOT_PASSWORD_MESSAGE

        token = generate_reset_token()
        user.password_token = hash_token(token)
        user.password_token_expires_at = utcnow() + timedelta(seconds=settings.password_reset_ttl)
        await db.flush()

        link = build_reset_link(token, user.email)
        html = (
            f"<p>Hello {user.username},</p>"
            f"<p>Click <a href=\"{link}\">here</a> to reset your password. "
            f"The link expires in {settings.password_reset_ttl // 60} minutes.</p>"
        )
        await mailer.send(user.email, "Reset your password", html)
        logger.info("Password reset link issued for user %s", user.id)
        return FORGOT_PASSWORD_MESSAGE

    async def reset_password(
        self, db: AsyncSession, token: str, email: str, new_password: str
    ) -> str:
        """
        Consume a reset token.

        An unknown email or a token that does not match is a silent no-op;
        only an expired link or a bad password length is reported (400).
        """
        ensure_valid(check_password_length(new_password))
        user = await user_service.get_by_email(db, email)
        if user is None:
            return RESET_PASSWORD_MESSAGE

        expires_at = ensure_utc(user.password_token_expires_at)
        if expires_at is not None and expires_at < utcnow():
            raise ValidationError("Password reset link has expired", field="token")

        if user.password_token and user.password_token == hash_token(token):
            user.password_hash = hash_password(new_password)
            user.password_token = None
            user.password_token_expires_at = None
            user.updated_at = utcnow()
            await db.flush()
            logger.info("Password reset for user %s", user.id)

        return RESET_PASSWORD_MESSAGE


auth_service = AuthService()
