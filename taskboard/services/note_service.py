"""
Taskboard API: Note Service
============================

What:  CRUD for notes (task cards) and their assignee lists.
How:   Loads the board / note, validates the change against the status-date
       rules in validation.py, mutates the ORM object and flushes.
Who:   Called by routes/notes.py.

Status Workflow:
    ┌────────┐    ┌─────────────┐    ┌─────────┐    ┌──────┐
    │ To-do  │───▶│ In-Progress │───▶│ Testing │───▶│ Done │
    │ no     │    │ start date  │    │ start   │    │ both │
    │ dates  │    │             │    │ date    │    │ dates│
    └────────┘    └─────────────┘    └─────────┘    └──────┘

    The dates are checked against the status the note will have after the
    operation, so a patch that sets status=Done must also supply endDate
    (or the note must already have one).

Access:
    Note operations require an authenticated caller but no board role.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import ConflictError, NotFoundError
from taskboard.models.board import Board
from taskboard.models.note import Note
from taskboard.models.user import utcnow
from taskboard.schemas.note import NoteCreateRequest, NoteUpdateRequest
from taskboard.services.user_service import user_service
from taskboard.validation import (
    NoteStatus,
    check_date_range,
    check_note_status,
    ensure_valid,
)

logger = logging.getLogger(__name__)

_STATUS_FIELDS = {"status", "start_date", "end_date"}


class NoteService:
    """
    Business logic layer for note operations.

    Responsibilities:
        - list_notes() / get_note(): retrieval, optionally scoped to a board
        - create_note() / update_note(): status and title rules
        - update_note_users(): wholesale assignee replacement
        - delete_note()
    """

    async def list_notes(
        self, db: AsyncSession, board_id: Optional[uuid.UUID] = None
    ) -> List[Note]:
        """
        List notes, oldest first.

        An unknown board id yields an empty list rather than 404.
        """
        query = select(Note)
        if board_id is not None:
            query = query.where(Note.board_id == board_id)
        result = await db.execute(query.order_by(Note.created_at))
        return list(result.scalars().all())

    async def get_note(self, db: AsyncSession, note_id: uuid.UUID) -> Note:
        """
        Query plan:
            SELECT * FROM notes WHERE id = :uuid  → primary key lookup
        """
        result = await db.execute(select(Note).where(Note.id == note_id))
        note = result.scalar_one_or_none()
        if note is None:
            raise NotFoundError(resource="note", resource_id=str(note_id))
        return note

    async def _ensure_unique_title(
        self,
        db: AsyncSession,
        board_id: uuid.UUID,
        title: str,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        query = select(Note.id).where(
            Note.board_id == board_id,
            func.lower(Note.title) == title.lower(),
        )
        if exclude_id is not None:
            query = query.where(Note.id != exclude_id)
        result = await db.execute(query)
        if result.first() is not None:
            raise ConflictError(
                f"Note with title {title} already exists on this board", field="title"
            )

    async def _flush(self, db: AsyncSession, title: str) -> None:
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError(
                f"Note with title {title} already exists on this board", field="title"
            )

    async def create_note(
        self, db: AsyncSession, creator_id: uuid.UUID, request: NoteCreateRequest
    ) -> Note:
        """
        Create a note on an existing board.

        Raises:
            NotFoundError:   board missing, or assignees were given and none resolve
            ConflictError:   title already used on this board (case-insensitive)
            ValidationError: status and dates disagree, or start ≥ end
        """
        board = await db.get(Board, request.board_id)
        if board is None:
            raise NotFoundError(resource="board", resource_id=str(request.board_id))

        ensure_valid(check_note_status(request.status, request.start_date, request.end_date))
        ensure_valid(check_date_range(request.start_date, request.end_date, allow_equal=True))
        await self._ensure_unique_title(db, board.id, request.title)

        assignees = await user_service.resolve_users(db, request.assignees)
        if request.assignees and not assignees:
            raise NotFoundError(resource="user", message="No valid users were provided")

        note = Note(
            board_id=board.id,
            creator_id=creator_id,
            title=request.title,
            text=request.text,
            status=NoteStatus(request.status).value,
            start_date=request.start_date,
            end_date=request.end_date,
            assignees=assignees,
        )
        db.add(note)
        await self._flush(db, request.title)

        logger.info("Note %s created on board %s by %s", note.id, board.id, creator_id)
        return note

    async def update_note(
        self, db: AsyncSession, note_id: uuid.UUID, patch: NoteUpdateRequest
    ) -> Note:
        """
        Apply a partial update.

        Only fields present in the body change; an explicit null clears a
        date. When status or either date is part of the patch, the merged
        result must satisfy the status/date table.
        """
        note = await self.get_note(db, note_id)
        changes = patch.model_dump(exclude_unset=True)

        status = changes.get("status") or note.status
        start_date = changes.get("start_date", note.start_date)
        end_date = changes.get("end_date", note.end_date)

        if _STATUS_FIELDS & changes.keys():
            ensure_valid(check_note_status(status, start_date, end_date))
            ensure_valid(check_date_range(start_date, end_date, allow_equal=True))

        new_title = changes.get("title")
        if new_title is not None and new_title.lower() != note.title.lower():
            await self._ensure_unique_title(db, note.board_id, new_title, exclude_id=note.id)

        if new_title is not None:
            note.title = new_title
        if changes.get("text") is not None:
            note.text = changes["text"]
        note.status = NoteStatus(status).value
        note.start_date = start_date
        note.end_date = end_date
        note.updated_at = utcnow()

        await self._flush(db, note.title)
        logger.info("Note %s updated (status=%s)", note.id, note.status)
        return note

    async def update_note_users(
        self, db: AsyncSession, note_id: uuid.UUID, user_ids: List[str]
    ) -> Note:
        """Replace the assignee set with the ids that resolve to users."""
        note = await self.get_note(db, note_id)
        note.assignees = await user_service.resolve_users(db, user_ids)
        note.updated_at = utcnow()
        await db.flush()
        return note

    async def delete_note(self, db: AsyncSession, note_id: uuid.UUID) -> None:
        note = await self.get_note(db, note_id)
        await db.delete(note)
        await db.flush()
        logger.info("Note %s deleted", note_id)


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
