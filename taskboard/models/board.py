"""
Taskboard API: Board SQLAlchemy Model
======================================

What:  ORM model for the `boards` table plus its two membership tables.
Who:   Used by BoardService (CRUD, role management) and NoteService
       (board existence checks, cascade delete).

Membership:
    board_admins  (board_id, user_id)  → Board.admins
    board_users   (board_id, user_id)  → Board.users

    Both collections load with lazy="selectin" so they are populated by the
    same `await db.execute(...)` that loads the board. An async session
    cannot lazy-load on attribute access.

Invariants (maintained by BoardService, checked in tests):
    - admins is non-empty for every board that has been created
    - admins ∩ users = ∅
    - private is True iff password_hash is set
"""

import uuid
from datetime import datetime
from typing import List, Optional, Set

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskboard.database import Base
from taskboard.models.user import User, utcnow


board_admins = Table(
    "board_admins",
    Base.metadata,
    Column("board_id", Uuid, ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

board_users = Table(
    "board_users",
    Base.metadata,
    Column("board_id", Uuid, ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Board(Base):
    """A shared workspace owned by its admins and joined by its users."""

    __tablename__ = "boards"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # ── Access Control ────────────────────────────────────────────────────
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    admins: Mapped[List[User]] = relationship(secondary=board_admins, lazy="selectin")
    users: Mapped[List[User]] = relationship(secondary=board_users, lazy="selectin")

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def admin_ids(self) -> Set[uuid.UUID]:
        return {user.id for user in self.admins}

    @property
    def user_ids(self) -> Set[uuid.UUID]:
        return {user.id for user in self.users}

    def __repr__(self) -> str:
        return f"<Board(id={self.id}, title='{self.title}', private={self.private})>"


Index("uq_boards_title_lower", func.lower(Board.title), unique=True)
