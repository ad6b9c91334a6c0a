"""
Taskboard API: User SQLAlchemy Model
=====================================

What:  ORM model representing the `users` table.
Who:   Used by the auth, user, board and note services.

Table Design:
    - UUID primary key, generated in Python so it is known right after flush
    - username / email are unique case-insensitively: enforced by the
      lower() functional indexes below and by func.lower() lookups in services
    - password_hash: Argon2 hash produced by pwdlib, never the plaintext
    - password_token: sha256 hex digest of the reset token; the raw token
      only ever exists in the reset email
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    Represents a registered account.

    Identity fields change only through explicit updates (PATCH /users,
    password reset, image upload).
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    username: Mapped[str] = mapped_column(String(30), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Public URL of the profile picture (local /uploads path or object-store URL)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, default=None)

    # ── Verification / Reset Tokens ───────────────────────────────────────
    verification_token: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    password_token: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    password_token_expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"


# ── Indexes ───────────────────────────────────────────────────────────────
Index("uq_users_username_lower", func.lower(User.username), unique=True)
Index("uq_users_email_lower", func.lower(User.email), unique=True)
