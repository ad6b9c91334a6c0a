"""
Taskboard API: Board Authorization Helpers
===========================================

What:  Role predicates over a loaded Board and the guard used by admin-only
       board operations.
How:   Pure functions; the board's membership collections are already loaded
       (lazy="selectin"), so nothing here awaits.

Roles:
    admin   user id ∈ board.admins
    member  user id ∈ board.admins ∪ board.users
"""

import uuid

from taskboard.exceptions import UnauthorizedError
from taskboard.models.board import Board


def is_board_admin(board: Board, user_id: uuid.UUID) -> bool:
    return user_id in board.admin_ids


def is_board_member(board: Board, user_id: uuid.UUID) -> bool:
    return user_id in board.admin_ids or user_id in board.user_ids


def require_board_admin(board: Board, user_id: uuid.UUID) -> None:
    """Raise UnauthorizedError (401) unless the caller administers the board."""
    if not is_board_admin(board, user_id):
        raise UnauthorizedError(
            "Only board admins can perform this action",
            context={"board_id": str(board.id), "user_id": str(user_id)},
        )
