"""
Taskboard API: Board Route Handlers
====================================

What:  /boards CRUD plus the membership actions accessBoard,
       updateBoardAdmins, updateBoardUsers and leaveBoard.
How:   Thin handlers over BoardService. Listing is public; everything else
       requires a bearer access token.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.database import get_db_session
from taskboard.dependencies import get_current_user_id
from taskboard.schemas.board import (
    BoardAccessRequest,
    BoardAdminsRequest,
    BoardCreateRequest,
    BoardEnvelope,
    BoardResponse,
    BoardUpdateRequest,
    BoardUsersRequest,
)
from taskboard.schemas.common import ErrorResponse, MessageResponse
from taskboard.services.board_service import board_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/boards", tags=["Boards"])

_AUTH_ERRORS = {
    401: {"description": "Missing token or not a board admin", "model": ErrorResponse},
    403: {"description": "Invalid or expired token", "model": ErrorResponse},
    404: {"description": "Board not found", "model": ErrorResponse},
}


def _envelope(message: str, board) -> BoardEnvelope:
    return BoardEnvelope(message=message, board=BoardResponse.model_validate(board))


@router.get("", response_model=List[BoardResponse], summary="List all boards")
async def list_boards(db: AsyncSession = Depends(get_db_session)):
    return await board_service.list_boards(db)


@router.get(
    "/{board_id}",
    response_model=BoardResponse,
    responses=_AUTH_ERRORS,
    summary="Get one board",
)
async def get_board(
    board_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
):
    return await board_service.get_board(db, board_id)


@router.post(
    "",
    response_model=BoardEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Create a board administered by the caller",
)
async def create_board(
    body: BoardCreateRequest,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
) -> BoardEnvelope:
    board = await board_service.create_board(db, user_id, body)
    return _envelope("Board created", board)


@router.patch(
    "/{board_id}",
    response_model=BoardEnvelope,
    responses={409: {"model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Update board fields or password",
)
async def update_board(
    board_id: UUID,
    body: BoardUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
) -> BoardEnvelope:
    board = await board_service.update_board(db, user_id, board_id, body)
    return _envelope("Board updated", board)


@router.delete(
    "/{board_id}",
    response_model=MessageResponse,
    responses=_AUTH_ERRORS,
    summary="Delete a board and its notes",
)
async def delete_board(
    board_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
) -> MessageResponse:
    await board_service.delete_board(db, user_id, board_id)
    return MessageResponse(message="Board deleted")


@router.post(
    "/{board_id}/accessBoard",
    response_model=BoardEnvelope,
    responses=_AUTH_ERRORS,
    summary="Join a board (password required for private boards)",
)
async def access_board(
    board_id: UUID,
    body: BoardAccessRequest,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
) -> BoardEnvelope:
    board = await board_service.access_board(db, user_id, board_id, body.password)
    return _envelope("Access granted", board)


@router.patch(
    "/{board_id}/updateBoardAdmins",
    response_model=BoardEnvelope,
    responses=_AUTH_ERRORS,
    summary="Replace the board's admin list",
)
async def update_board_admins(
    board_id: UUID,
    body: BoardAdminsRequest,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
) -> BoardEnvelope:
    board = await board_service.update_board_admins(db, user_id, board_id, body.admins)
    return _envelope("Board admins updated", board)


@router.patch(
    "/{board_id}/updateBoardUsers",
    response_model=BoardEnvelope,
    responses=_AUTH_ERRORS,
    summary="Replace the board's member list",
)
async def update_board_users(
    board_id: UUID,
    body: BoardUsersRequest,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
) -> BoardEnvelope:
    board = await board_service.update_board_users(db, user_id, board_id, body.users)
    return _envelope("Board users updated", board)


@router.post(
    "/{board_id}/leaveBoard",
    response_model=BoardEnvelope,
    responses={400: {"model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Leave a board",
)
async def leave_board(
    board_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
) -> BoardEnvelope:
    board = await board_service.leave_board(db, user_id, board_id)
    return _envelope("Left the board", board)
