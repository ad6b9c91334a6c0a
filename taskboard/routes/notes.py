"""
Taskboard API: Notes Route Handlers
====================================

What:  /notes CRUD and PATCH /notes/{id}/updateNoteUsers.
How:   Extracts parameters, delegates to NoteService, returns JSON.
       Every route requires a bearer access token.

Caching:
    Notes change often and are shared between board members, so responses
    carry `Cache-Control: no-store`.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.database import get_db_session
from taskboard.dependencies import get_current_user_id
from taskboard.schemas.common import ErrorResponse, MessageResponse
from taskboard.schemas.note import (
    NoteCreateRequest,
    NoteEnvelope,
    NoteResponse,
    NoteUpdateRequest,
    NoteUsersRequest,
)
from taskboard.services.note_service import note_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/notes",
    tags=["Notes"],
    dependencies=[Depends(get_current_user_id)],
)

_ERRORS = {
    401: {"description": "Missing bearer token", "model": ErrorResponse},
    403: {"description": "Invalid or expired token", "model": ErrorResponse},
    404: {"description": "Note or board not found", "model": ErrorResponse},
}


def _envelope(message: str, note) -> NoteEnvelope:
    return NoteEnvelope(message=message, note=NoteResponse.model_validate(note))


@router.get(
    "",
    response_model=List[NoteResponse],
    responses=_ERRORS,
    summary="List notes, optionally for one board",
)
async def list_notes(
    response: Response,
    board_id: Optional[UUID] = Query(default=None, alias="boardId"),
    db: AsyncSession = Depends(get_db_session),
):
    notes = await note_service.list_notes(db, board_id=board_id)
    response.headers["Cache-Control"] = "no-store"
    response.headers["X-Total-Count"] = str(len(notes))
    return notes


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    responses=_ERRORS,
    summary="Get a single note by ID",
)
async def get_note(
    note_id: UUID,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
):
    note = await note_service.get_note(db, note_id)
    response.headers["Cache-Control"] = "no-store"
    return note


@router.post(
    "",
    response_model=NoteEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, **_ERRORS},
    summary="Create a note on a board",
)
async def create_note(
    body: NoteCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
) -> NoteEnvelope:
    note = await note_service.create_note(db, user_id, body)
    return _envelope("Note created", note)


@router.patch(
    "/{note_id}",
    response_model=NoteEnvelope,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, **_ERRORS},
    summary="Update note fields or status",
)
async def update_note(
    note_id: UUID,
    body: NoteUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.update_note(db, note_id, body)
    return _envelope("Note updated", note)


@router.patch(
    "/{note_id}/updateNoteUsers",
    response_model=NoteEnvelope,
    responses=_ERRORS,
    summary="Replace the note's assignees",
)
async def update_note_users(
    note_id: UUID,
    body: NoteUsersRequest,
    db: AsyncSession = Depends(get_db_session),
) -> NoteEnvelope:
    note = await note_service.update_note_users(db, note_id, body.users)
    return _envelope("Note users updated", note)


@router.delete(
    "/{note_id}",
    response_model=MessageResponse,
    responses=_ERRORS,
    summary="Delete a note",
)
async def delete_note(
    note_id: UUID,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await note_service.delete_note(db, note_id)
    return MessageResponse(message="Note deleted")
