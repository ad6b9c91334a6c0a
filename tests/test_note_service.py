"""
Taskboard API: Note Service Unit Tests
=======================================

What:  Tests for NoteService business logic (create, update, assignees, delete).
How:   Mostly the real service on the in-memory database; lookups that only
       need a scripted query result use the mock session.

What we test:
    ✅ Status / date table enforced on create and on merged updates
    ✅ Title unique per board, reusable on another board
    ✅ Explicit null clears a date
    ✅ Assignee resolution and replacement
    ✅ Note not found raises NotFoundError
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from taskboard.exceptions import ConflictError, NotFoundError, ValidationError
from taskboard.schemas.note import NoteCreateRequest, NoteUpdateRequest
from taskboard.services.note_service import NoteService
from taskboard.validation import NoteStatus

START = datetime(2025, 6, 2, 9, 0, tzinfo=timezone.utc)
END = START + timedelta(days=3)


def _request(board, **overrides) -> NoteCreateRequest:
    fields = {"board_id": board.id, "title": "Write docs", "text": "Cover every endpoint"}
    fields.update(overrides)
    return NoteCreateRequest(**fields)


class TestCreateNote:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_defaults_to_todo(self, db_session, make_user, make_board):
        user = await make_user()
        board = await make_board(user)

        note = await self.service.create_note(db_session, user.id, _request(board))

        assert note.status == NoteStatus.TODO.value
        assert note.creator_id == user.id
        assert note.board_id == board.id
        assert note.start_date is None and note.end_date is None
        assert note.assignees == []

    @pytest.mark.asyncio
    async def test_in_progress_needs_start_date(self, db_session, make_user, make_board):
        user = await make_user()
        board = await make_board(user)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_note(
                db_session, user.id, _request(board, status=NoteStatus.IN_PROGRESS)
            )
        assert exc_info.value.field == "status"

        note = await self.service.create_note(
            db_session, user.id, _request(board, status=NoteStatus.IN_PROGRESS, start_date=START)
        )
        assert note.status == "In-Progress"

    @pytest.mark.asyncio
    async def test_done_with_end_before_start_is_rejected(self, db_session, make_user, make_board):
        user = await make_user()
        board = await make_board(user)

        with pytest.raises(ValidationError):
            await self.service.create_note(
                db_session,
                user.id,
                _request(board, status=NoteStatus.DONE, start_date=END, end_date=START),
            )

    @pytest.mark.asyncio
    async def test_done_on_a_single_day(self, db_session, make_user, make_board):
        user = await make_user()
        board = await make_board(user)

        note = await self.service.create_note(
            db_session,
            user.id,
            _request(board, status=NoteStatus.DONE, start_date=START, end_date=START),
        )

        assert note.status == "Done"

    @pytest.mark.asyncio
    async def test_unknown_board_is_404(self, db_session, make_user):
        user = await make_user()
        request = NoteCreateRequest(board_id=uuid.uuid4(), title="Orphan note", text="No board")

        with pytest.raises(NotFoundError):
            await self.service.create_note(db_session, user.id, request)

    @pytest.mark.asyncio
    async def test_title_unique_per_board(self, db_session, make_user, make_board):
        user = await make_user()
        board = await make_board(user)
        other_board = await make_board(user)
        await self.service.create_note(db_session, user.id, _request(board))

        with pytest.raises(ConflictError):
            await self.service.create_note(
                db_session, user.id, _request(board, title="WRITE DOCS")
            )

        elsewhere = await self.service.create_note(db_session, user.id, _request(other_board))
        assert elsewhere.board_id == other_board.id

    @pytest.mark.asyncio
    async def test_assignees_are_resolved(self, db_session, make_user, make_board):
        user = await make_user()
        helper = await make_user()
        board = await make_board(user)

        note = await self.service.create_note(
            db_session,
            user.id,
            _request(board, assignees=[str(helper.id), str(uuid.uuid4()), "junk"]),
        )

        assert [a.id for a in note.assignees] == [helper.id]

    @pytest.mark.asyncio
    async def test_only_unknown_assignees_is_404(self, db_session, make_user, make_board):
        user = await make_user()
        board = await make_board(user)

        with pytest.raises(NotFoundError):
            await self.service.create_note(
                db_session, user.id, _request(board, assignees=[str(uuid.uuid4())])
            )


class TestUpdateNote:

    def setup_method(self):
        self.service = NoteService()

    async def _note(self, db_session, make_user, make_board, **overrides):
        user = await make_user()
        board = await make_board(user)
        return await self.service.create_note(db_session, user.id, _request(board, **overrides))

    @pytest.mark.asyncio
    async def test_text_only_patch_skips_status_check(self, db_session, make_user, make_board):
        note = await self._note(db_session, make_user, make_board)

        updated = await self.service.update_note(
            db_session, note.id, NoteUpdateRequest(text="Updated text")
        )

        assert updated.text == "Updated text"
        assert updated.title == "Write docs"
        assert updated.status == "To-do"

    @pytest.mark.asyncio
    async def test_status_patch_is_checked_against_stored_dates(
        self, db_session, make_user, make_board
    ):
        note = await self._note(db_session, make_user, make_board)

        with pytest.raises(ValidationError):
            await self.service.update_note(
                db_session, note.id, NoteUpdateRequest(status=NoteStatus.TESTING)
            )

        updated = await self.service.update_note(
            db_session,
            note.id,
            NoteUpdateRequest(status=NoteStatus.TESTING, start_date=START),
        )
        assert updated.status == "Testing"
        assert updated.start_date == START

    @pytest.mark.asyncio
    async def test_explicit_null_clears_end_date(self, db_session, make_user, make_board):
        note = await self._note(
            db_session,
            make_user,
            make_board,
            status=NoteStatus.DONE,
            start_date=START,
            end_date=END,
        )

        patch = NoteUpdateRequest.model_validate({"status": "In-Progress", "endDate": None})
        updated = await self.service.update_note(db_session, note.id, patch)

        assert updated.status == "In-Progress"
        assert updated.end_date is None
        assert updated.start_date is not None

    @pytest.mark.asyncio
    async def test_retitle_conflicts_within_board(self, db_session, make_user, make_board):
        user = await make_user()
        board = await make_board(user)
        await self.service.create_note(db_session, user.id, _request(board, title="First note"))
        second = await self.service.create_note(
            db_session, user.id, _request(board, title="Second note")
        )

        with pytest.raises(ConflictError):
            await self.service.update_note(
                db_session, second.id, NoteUpdateRequest(title="first NOTE")
            )

    @pytest.mark.asyncio
    async def test_retitle_same_note_with_new_case(self, db_session, make_user, make_board):
        note = await self._note(db_session, make_user, make_board)

        updated = await self.service.update_note(
            db_session, note.id, NoteUpdateRequest(title="WRITE DOCS")
        )

        assert updated.title == "WRITE DOCS"


class TestAssigneesAndDelete:

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_update_note_users_replaces_set(self, db_session, make_user, make_board):
        user = await make_user()
        first = await make_user()
        second = await make_user()
        board = await make_board(user)
        note = await self.service.create_note(
            db_session, user.id, _request(board, assignees=[str(first.id)])
        )

        updated = await self.service.update_note_users(db_session, note.id, [str(second.id)])
        assert [a.id for a in updated.assignees] == [second.id]

        cleared = await self.service.update_note_users(db_session, note.id, [])
        assert cleared.assignees == []

    @pytest.mark.asyncio
    async def test_list_notes_by_board(self, db_session, make_user, make_board):
        user = await make_user()
        board = await make_board(user)
        other_board = await make_board(user)
        note = await self.service.create_note(db_session, user.id, _request(board))
        await self.service.create_note(db_session, user.id, _request(other_board))

        scoped = await self.service.list_notes(db_session, board_id=board.id)
        everything = await self.service.list_notes(db_session)

        assert [n.id for n in scoped] == [note.id]
        assert len(everything) == 2
        assert await self.service.list_notes(db_session, board_id=uuid.uuid4()) == []

    @pytest.mark.asyncio
    async def test_delete_note(self, db_session, make_user, make_board):
        user = await make_user()
        board = await make_board(user)
        note = await self.service.create_note(db_session, user.id, _request(board))

        await self.service.delete_note(db_session, note.id)

        with pytest.raises(NotFoundError):
            await self.service.get_note(db_session, note.id)
        with pytest.raises(NotFoundError):
            await self.service.delete_note(db_session, note.id)


class TestNoteServiceGet:
    """get_note against a scripted session."""

    def setup_method(self):
        self.service = NoteService()

    @pytest.mark.asyncio
    async def test_get_note_not_found(self, mock_db_session):
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        mock_db_session.execute.return_value = mock_result

        with pytest.raises(NotFoundError):
            await self.service.get_note(mock_db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_get_note_found(self, mock_db_session):
        mock_note = MagicMock()
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = mock_note
        mock_db_session.execute.return_value = mock_result

        assert await self.service.get_note(mock_db_session, uuid.uuid4()) is mock_note
