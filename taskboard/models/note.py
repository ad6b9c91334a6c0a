"""
Taskboard API: Note SQLAlchemy Model
=====================================

What:  ORM model representing the `notes` table and `note_assignees`.
Who:   Used by NoteService for CRUD operations and by BoardService for the
       board-delete cascade.

Table Design:
    - board_id: every note belongs to exactly one board
    - creator_id: set once at creation, never updated
    - status: one of NoteStatus values, stored as its string value
    - start_date / end_date: must agree with status (see validation.py)
    - (board_id, lower(title)) unique: titles are unique within a board

Query Patterns:
    - Notes of a board: SELECT ... WHERE board_id = :board_id
      → idx_notes_board_id
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
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
from taskboard.validation import NoteStatus


note_assignees = Table(
    "note_assignees",
    Base.metadata,
    Column("note_id", Uuid, ForeignKey("notes.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Note(Base):
    """
    A task card on a board.

    Lifecycle:
        1. Created as To-do (no dates) unless a consistent status/date set is given
        2. Moves through In-Progress / Testing (start date set)
        3. Done (start and end date set)
        4. Deleted explicitly, or with its board
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    board_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False
    )
    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    title: Mapped[str] = mapped_column(String(25), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=NoteStatus.TODO.value,
    )
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    assignees: Mapped[List[User]] = relationship(secondary=note_assignees, lazy="selectin")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, board_id={self.board_id}, status='{self.status}')>"


Index("idx_notes_board_id", Note.board_id)
Index("uq_notes_board_title_lower", Note.board_id, func.lower(Note.title), unique=True)
