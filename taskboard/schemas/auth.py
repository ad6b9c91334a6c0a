"""
Taskboard API: Auth Request/Response Schemas
=============================================

What:  Bodies for /auth/register, /auth/login, /auth/refresh,
       /auth/forgot-password and /auth/reset-password.
"""

from typing import Optional

from pydantic import EmailStr, Field, model_validator

from taskboard.schemas.common import APIModel


class RegisterRequest(APIModel):
    username: str = Field(min_length=3, max_length=30)
    email: EmailStr
    password: str


class LoginRequest(APIModel):
    """Either username or email identifies the account."""

    username: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(min_length=1)

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not self.username and not self.email:
            raise ValueError("Provide a username or an email")
        return self

    @property
    def identifier(self) -> str:
        return self.email or self.username or ""


class SessionResponse(APIModel):
    """Returned by register and login; the refresh token travels as a cookie."""

    message: str
    access_token: str


class RefreshResponse(APIModel):
    access_token: str


class ForgotPasswordRequest(APIModel):
    email: EmailStr


class ResetPasswordRequest(APIModel):
    token: str = Field(min_length=1)
    email: EmailStr
    password: str
