"""
Taskboard API: Board Service
=============================

What:  Board CRUD, role management, joining and leaving.
How:   Every mutation loads the board (admins/users come with it through
       selectin loading), applies the authorization guard, mutates the ORM
       object and flushes. The request session commits once at the end.
Who:   Called by routes/boards.py.

Role Operations:
    ┌──────────────────────┬────────────┬─────────────────────────────────────┐
    │ operation            │ guard      │ effect                              │
    ├──────────────────────┼────────────┼─────────────────────────────────────┤
    │ update_board         │ admin      │ partial patch, password transitions │
    │ update_board_admins  │ admin      │ admins := resolved ids,             │
    │                      │            │ demoted admins appended to users    │
    │ update_board_users   │ admin      │ users := resolved ids minus admins  │
    │ leave_board          │ member     │ caller removed; last admin refused  │
    │ delete_board         │ admin      │ notes then board, one transaction   │
    │ access_board         │ none       │ caller joins users (password if     │
    │                      │            │ private)                            │
    └──────────────────────┴────────────┴─────────────────────────────────────┘

Invariants after every operation:
    - admins ∩ users = ∅
    - admins ≠ ∅
    - private ⇔ password_hash is set
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import (
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from taskboard.models.board import Board
from taskboard.models.note import Note
from taskboard.models.user import User, utcnow
from taskboard.schemas.board import BoardCreateRequest, BoardUpdateRequest
from taskboard.services.authorization import is_board_member, require_board_admin
from taskboard.services.security import hash_password, verify_password
from taskboard.services.user_service import user_service
from taskboard.validation import check_date_range, check_password_length, ensure_valid

logger = logging.getLogger(__name__)


class BoardService:

    # ── Lookups ───────────────────────────────────────────────────────────

    async def list_boards(self, db: AsyncSession) -> List[Board]:
        result = await db.execute(select(Board).order_by(Board.created_at))
        return list(result.scalars().all())

    async def get_board(self, db: AsyncSession, board_id: uuid.UUID) -> Board:
        result = await db.execute(select(Board).where(Board.id == board_id))
        board = result.scalar_one_or_none()
        if board is None:
            raise NotFoundError(resource="board", resource_id=str(board_id))
        return board

    async def _ensure_unique_title(
        self, db: AsyncSession, title: str, exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        query = select(Board.id).where(func.lower(Board.title) == title.lower())
        if exclude_id is not None:
            query = query.where(Board.id != exclude_id)
        result = await db.execute(query)
        if result.first() is not None:
            raise ConflictError(f"Board with title {title} already exists", field="title")

    async def _flush(self, db: AsyncSession, title: str) -> None:
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError(f"Board with title {title} already exists", field="title")

    # ── CRUD ──────────────────────────────────────────────────────────────

    async def create_board(
        self, db: AsyncSession, creator_id: uuid.UUID, request: BoardCreateRequest
    ) -> Board:
        """
        Create a board administered by the caller.

        Raises:
            ValidationError: start date not before end date, or a bad password length
            ConflictError:   title already used (case-insensitive)
            NotFoundError:   the caller's account no longer exists
        """
        ensure_valid(check_date_range(request.start_date, request.end_date))
        if request.password:
            ensure_valid(check_password_length(request.password))
        await self._ensure_unique_title(db, request.title)
        creator = await user_service.get_user(db, creator_id)

        board = Board(
            title=request.title,
            description=request.description,
            start_date=request.start_date,
            end_date=request.end_date,
            password_hash=hash_password(request.password) if request.password else None,
            private=bool(request.password),
            admins=[creator],
            users=[],
        )
        db.add(board)
        await self._flush(db, request.title)

        logger.info("Board %s created by %s (private=%s)", board.id, creator_id, board.private)
        return board

    async def update_board(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        board_id: uuid.UUID,
        patch: BoardUpdateRequest,
    ) -> Board:
        """
        Apply a partial update.

        Dates are validated on the merged result. Password transitions
        compare against the privacy the board had before this call.

        Raises:
            ValidationError:   bad dates or newPassword length
            UnauthorizedError: caller is not an admin, or oldPassword is
                               missing or wrong for a private board
        """
        board = await self.get_board(db, board_id)
        require_board_admin(board, caller_id)

        changes = patch.model_dump(exclude_unset=True)

        start_date = changes.get("start_date", board.start_date)
        end_date = changes.get("end_date", board.end_date)
        ensure_valid(check_date_range(start_date, end_date))
        if patch.new_password:
            ensure_valid(check_password_length(patch.new_password, field="newPassword"))

        new_title = changes.get("title")
        if new_title is not None and new_title.lower() != board.title.lower():
            await self._ensure_unique_title(db, new_title, exclude_id=board.id)

        self._apply_password_change(board, patch.old_password, patch.new_password)

        if new_title is not None:
            board.title = new_title
        if changes.get("description") is not None:
            board.description = changes["description"]
        if "start_date" in changes:
            board.start_date = start_date
        if "end_date" in changes:
            board.end_date = end_date
        if patch.completed is not None:
            board.completed = patch.completed

        board.updated_at = utcnow()
        await self._flush(db, board.title)
        logger.info("Board %s updated by %s", board.id, caller_id)
        return board

    def _apply_password_change(
        self, board: Board, old_password: Optional[str], new_password: Optional[str]
    ) -> None:
        was_private = board.private

        if not was_private:
            if new_password:
                board.password_hash = hash_password(new_password)
                board.private = True
            return

        if not old_password:
            if new_password:
                raise UnauthorizedError("Old password is required to change the board password")
            return

        if not verify_password(old_password, board.password_hash):
            raise UnauthorizedError("Old password is incorrect")

        if new_password:
            board.password_hash = hash_password(new_password)
        else:
            board.password_hash = None
            board.private = False

    async def delete_board(
        self, db: AsyncSession, caller_id: uuid.UUID, board_id: uuid.UUID
    ) -> None:
        """Delete the board's notes, then the board (admin only)."""
        board = await self.get_board(db, board_id)
        require_board_admin(board, caller_id)

        # ORM deletes so note_assignees rows go with their notes
        result = await db.execute(select(Note).where(Note.board_id == board.id))
        notes = list(result.scalars().all())
        for note in notes:
            await db.delete(note)
        await db.flush()

        await db.delete(board)
        await db.flush()
        logger.info("Board %s deleted by %s with %d notes", board_id, caller_id, len(notes))

    # ── Membership ────────────────────────────────────────────────────────

    async def update_board_admins(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        board_id: uuid.UUID,
        admin_ids: List[str],
    ) -> Board:
        """
        Replace the admin set.

        Unknown ids are dropped. Promoted users leave the member list;
        admins missing from the new list are demoted to members.

        Raises:
            NotFoundError: none of the supplied ids is an existing user
        """
        board = await self.get_board(db, board_id)
        require_board_admin(board, caller_id)

        new_admins = await user_service.resolve_users(db, admin_ids)
        if not new_admins:
            raise NotFoundError(resource="user", message="No valid users were provided")

        new_admin_ids = {user.id for user in new_admins}
        demoted = [user for user in board.admins if user.id not in new_admin_ids]

        members: List[User] = [user for user in board.users if user.id not in new_admin_ids]
        member_ids = {user.id for user in members}
        for user in demoted:
            if user.id not in member_ids:
                members.append(user)
                member_ids.add(user.id)

        board.admins = new_admins
        board.users = members
        board.updated_at = utcnow()
        await db.flush()

        logger.info(
            "Board %s admins set to %d users (%d demoted)", board.id, len(new_admins), len(demoted)
        )
        return board

    async def update_board_users(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        board_id: uuid.UUID,
        user_ids: List[str],
    ) -> Board:
        """Replace the member set; ids of current admins are ignored."""
        board = await self.get_board(db, board_id)
        require_board_admin(board, caller_id)

        resolved = await user_service.resolve_users(db, user_ids)
        admin_ids = board.admin_ids
        board.users = [user for user in resolved if user.id not in admin_ids]
        board.updated_at = utcnow()
        await db.flush()
        return board

    async def leave_board(
        self, db: AsyncSession, caller_id: uuid.UUID, board_id: uuid.UUID
    ) -> Board:
        """
        Remove the caller from the board.

        Raises:
            ValidationError: caller is not a member, or is the only admin
        """
        board = await self.get_board(db, board_id)

        if caller_id in board.admin_ids:
            if len(board.admins) == 1:
                raise ValidationError(
                    "The last admin cannot leave the board; promote another admin first",
                    field="admins",
                )
            board.admins = [user for user in board.admins if user.id != caller_id]
        elif caller_id in board.user_ids:
            board.users = [user for user in board.users if user.id != caller_id]
        else:
            raise ValidationError("You are not a member of this board")

        board.updated_at = utcnow()
        await db.flush()
        logger.info("User %s left board %s", caller_id, board.id)
        return board

    async def access_board(
        self,
        db: AsyncSession,
        caller_id: uuid.UUID,
        board_id: uuid.UUID,
        password: Optional[str] = None,
    ) -> Board:
        """
        Join a board as a member.

        Already a member: returns the board unchanged.

        Raises:
            UnauthorizedError: private board and the password is missing or wrong
        """
        board = await self.get_board(db, board_id)
        if is_board_member(board, caller_id):
            return board

        if board.private and not (password and verify_password(password, board.password_hash)):
            raise UnauthorizedError("Invalid board password")

        user = await user_service.get_user(db, caller_id)
        board.users = [*board.users, user]
        board.updated_at = utcnow()
        await db.flush()
        logger.info("User %s joined board %s", caller_id, board.id)
        return board


board_service = BoardService()
