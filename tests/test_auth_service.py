"""
Taskboard API: Auth Service Tests
==================================

What:  Registration, login, refresh and the password-reset flow against a
       real (in-memory) database.

What we test:
    ✅ Case-insensitive username/email uniqueness
    ✅ Login by username or email, wrong password
    ✅ Refresh: missing cookie, bad token, deleted user
    ✅ Password length checked on register and reset
    ✅ Reset: expired link, mismatched token no-op, unknown email no-op
"""

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from taskboard.exceptions import (
    ConflictError,
    ForbiddenError,
    MailDeliveryError,
    UnauthorizedError,
    ValidationError,
)
from taskboard.models.user import utcnow
from taskboard.services.auth_service import (
    FORGOT_PASSWORD_MESSAGE,
    RESET_PASSWORD_MESSAGE,
    AuthService,
)
from taskboard.services.mail_service import MailService
from taskboard.services.security import decode_access_token, decode_refresh_token, verify_password

from tests.conftest import DEFAULT_PASSWORD


def _token_from(mail: dict) -> str:
    href = mail["html"].split('href="', 1)[1].split('"', 1)[0]
    query = parse_qs(urlparse(href.replace("&amp;", "&")).query)
    return query["token"][0]


class TestRegisterAndLogin:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_register_issues_both_tokens(self, db_session):
        session = await self.service.register(db_session, "alice", "alice@example.com", "secret123")

        assert session.user.id is not None
        assert session.user.password_hash != "secret123"
        assert session.user.verification_token
        assert decode_access_token(session.access_token).user_id == session.user.id
        assert decode_refresh_token(session.refresh_token).user_id == session.user.id

    @pytest.mark.asyncio
    async def test_username_differing_only_in_case_conflicts(self, db_session):
        await self.service.register(db_session, "alice", "alice@example.com", "secret123")
        with pytest.raises(ConflictError) as exc_info:
            await self.service.register(db_session, "ALICE", "other@example.com", "secret123")
        assert exc_info.value.field == "username"

    @pytest.mark.asyncio
    async def test_email_differing_only_in_case_conflicts(self, db_session):
        await self.service.register(db_session, "alice", "alice@example.com", "secret123")
        with pytest.raises(ConflictError) as exc_info:
            await self.service.register(db_session, "bob", "Alice@Example.com", "secret123")
        assert exc_info.value.field == "email"

    @pytest.mark.asyncio
    async def test_short_password_is_rejected_before_anything_is_stored(self, db_session):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.register(db_session, "hank", "hank@example.com", "abc")

        assert exc_info.value.field == "password"
        with pytest.raises(UnauthorizedError):
            await self.service.login(db_session, "abc", username="hank")

    @pytest.mark.asyncio
    async def test_login_by_username_or_email(self, db_session, make_user):
        user = await make_user(username="carol")

        by_name = await self.service.login(db_session, DEFAULT_PASSWORD, username="CAROL")
        by_email = await self.service.login(db_session, DEFAULT_PASSWORD, email=user.email.upper())

        assert by_name.user.id == by_email.user.id == user.id

    @pytest.mark.asyncio
    async def test_login_failures_are_unauthorized(self, db_session, make_user):
        await make_user(username="dave")
        with pytest.raises(UnauthorizedError):
            await self.service.login(db_session, "wrong-password", username="dave")
        with pytest.raises(UnauthorizedError):
            await self.service.login(db_session, DEFAULT_PASSWORD, username="nobody")


class TestRefresh:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_refresh_returns_new_access_token(self, db_session):
        session = await self.service.register(db_session, "erin", "erin@example.com", "secret123")
        access = await self.service.refresh(db_session, session.refresh_token)
        assert decode_access_token(access).username == "erin"

    @pytest.mark.asyncio
    async def test_missing_cookie_is_unauthorized(self, db_session):
        with pytest.raises(UnauthorizedError):
            await self.service.refresh(db_session, None)

    @pytest.mark.asyncio
    async def test_access_token_as_cookie_is_forbidden(self, db_session):
        session = await self.service.register(db_session, "fred", "fred@example.com", "secret123")
        with pytest.raises(ForbiddenError):
            await self.service.refresh(db_session, session.access_token)

    @pytest.mark.asyncio
    async def test_deleted_user_is_unauthorized(self, db_session):
        session = await self.service.register(db_session, "gina", "gina@example.com", "secret123")
        await db_session.delete(session.user)
        await db_session.flush()
        with pytest.raises(UnauthorizedError):
            await self.service.refresh(db_session, session.refresh_token)


class TestPasswordReset:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_forgot_password_for_unknown_email_sends_nothing(self, db_session, fake_mailer):
        message = await self.service.forgot_password(db_session, fake_mailer, "ghost@example.com")
        assert message == FORGOT_PASSWORD_MESSAGE
        assert fake_mailer.sent == []

    @pytest.mark.asyncio
    async def test_forgot_password_stores_only_the_hash(self, db_session, fake_mailer, make_user):
        user = await make_user(username="henry")
        message = await self.service.forgot_password(db_session, fake_mailer, user.email)

        assert message == FORGOT_PASSWORD_MESSAGE
        assert len(fake_mailer.sent) == 1
        mail = fake_mailer.sent[0]
        assert mail["to"] == user.email
        assert "/user/reset-password?" in mail["html"]

        token = _token_from(mail)
        assert len(token) == 140
        assert user.password_token != token
        assert len(user.password_token) == 64
        assert user.password_token_expires_at > utcnow()

    @pytest.mark.asyncio
    async def test_reset_with_matching_token(self, db_session, fake_mailer, make_user):
        user = await make_user(username="irene")
        await self.service.forgot_password(db_session, fake_mailer, user.email)
        token = _token_from(fake_mailer.sent[0])

        message = await self.service.reset_password(db_session, token, user.email, "brand-new-pass")

        assert message == RESET_PASSWORD_MESSAGE
        assert verify_password("brand-new-pass", user.password_hash)
        assert user.password_token is None
        assert user.password_token_expires_at is None

    @pytest.mark.asyncio
    async def test_mismatched_token_is_a_silent_no_op(self, db_session, fake_mailer, make_user):
        user = await make_user(username="jack")
        await self.service.forgot_password(db_session, fake_mailer, user.email)
        old_hash = user.password_hash

        message = await self.service.reset_password(db_session, "f" * 140, user.email, "other-pass")

        assert message == RESET_PASSWORD_MESSAGE
        assert user.password_hash == old_hash
        assert user.password_token is not None

    @pytest.mark.asyncio
    async def test_expired_link_fails_even_with_correct_token(
        self, db_session, fake_mailer, make_user
    ):
        user = await make_user(username="kate")
        await self.service.forgot_password(db_session, fake_mailer, user.email)
        token = _token_from(fake_mailer.sent[0])
        user.password_token_expires_at = utcnow() - timedelta(seconds=1)
        await db_session.flush()

        with pytest.raises(ValidationError, match="expired"):
            await self.service.reset_password(db_session, token, user.email, "brand-new-pass")

    @pytest.mark.asyncio
    async def test_overlong_new_password_is_rejected(self, db_session, fake_mailer, make_user):
        user = await make_user(username="lena")
        await self.service.forgot_password(db_session, fake_mailer, user.email)
        token = _token_from(fake_mailer.sent[0])

        with pytest.raises(ValidationError) as exc_info:
            await self.service.reset_password(db_session, token, user.email, "x" * 101)

        assert exc_info.value.field == "password"
        assert verify_password(DEFAULT_PASSWORD, user.password_hash)

    @pytest.mark.asyncio
    async def test_unknown_email_is_a_no_op(self, db_session):
        message = await self.service.reset_password(
            db_session, "token", "ghost@example.com", "brand-new-pass"
        )
        assert message == RESET_PASSWORD_MESSAGE

    @pytest.mark.asyncio
    async def test_mail_failure_propagates(self, db_session, make_user):
        class BrokenMailer(MailService):
            async def send(self, to, subject, html):
                raise MailDeliveryError()

        user = await make_user(username="liam")
        with pytest.raises(MailDeliveryError):
            await self.service.forgot_password(db_session, BrokenMailer(), user.email)
