"""
Taskboard API: Auth Route Handlers
===================================

What:  /auth/register, /auth/login, /auth/refresh, /auth/logout,
       /auth/forgot-password, /auth/reset-password.
How:   Thin handlers over AuthService. The only HTTP concern handled here
       is the refresh cookie, which is set and cleared with identical
       attributes so browsers treat it as the same cookie.

Cookie:
    name      settings.refresh_cookie_name ("refreshToken")
    flags     HttpOnly, Secure, SameSite=None (frontend runs on another origin)
    max-age   settings.refresh_token_ttl
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import settings
from taskboard.database import get_db_session
from taskboard.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    RefreshResponse,
    RegisterRequest,
    ResetPasswordRequest,
    SessionResponse,
)
from taskboard.schemas.common import ErrorResponse, MessageResponse
from taskboard.services.auth_service import IssuedSession, auth_service
from taskboard.services.mail_service import MailService, get_mail_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

_COOKIE_FLAGS = {"httponly": True, "secure": True, "samesite": "none", "path": "/"}


def _set_refresh_cookie(response: Response, session: IssuedSession) -> None:
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=session.refresh_token,
        max_age=settings.refresh_token_ttl,
        **_COOKIE_FLAGS,
    )


@router.post(
    "/register",
    response_model=SessionResponse,
    responses={409: {"model": ErrorResponse}},
    summary="Create an account and start a session",
)
async def register(
    body: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    session = await auth_service.register(db, body.username, str(body.email), body.password)
    _set_refresh_cookie(response, session)
    return SessionResponse(message="User registered", access_token=session.access_token)


@router.post(
    "/login",
    response_model=SessionResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Start a session with username or email",
)
async def login(
    body: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    session = await auth_service.login(
        db, body.password, username=body.username, email=body.email
    )
    _set_refresh_cookie(response, session)
    return SessionResponse(message="Logged in", access_token=session.access_token)


@router.get(
    "/refresh",
    response_model=RefreshResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
    summary="Exchange the refresh cookie for a new access token",
)
async def refresh(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> RefreshResponse:
    token = request.cookies.get(settings.refresh_cookie_name)
    access_token = await auth_service.refresh(db, token)
    return RefreshResponse(access_token=access_token)


@router.post("/logout", response_model=MessageResponse, summary="Clear the refresh cookie")
async def logout(response: Response) -> MessageResponse:
    response.delete_cookie(key=settings.refresh_cookie_name, **_COOKIE_FLAGS)
    return MessageResponse(message="Logged out")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Email a password-reset link",
)
async def forgot_password(
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db_session),
    mailer: MailService = Depends(get_mail_service),
) -> MessageResponse:
    message = await auth_service.forgot_password(db, mailer, str(body.email))
    return MessageResponse(message=message)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Set a new password with a reset token",
)
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    message = await auth_service.reset_password(db, body.token, str(body.email), body.password)
    return MessageResponse(message=message)
