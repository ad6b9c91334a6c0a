"""
Taskboard API: Board Schemas
=============================

What:  Request bodies for board CRUD, role management and joining, and the
       board representation returned to clients.

Security:
    BoardResponse exposes `private` but never the password hash.

Role lists:
    BoardAdminsRequest / BoardUsersRequest take raw id strings. Ids that are
    malformed or do not belong to a user are dropped by the service rather
    than rejected, the same way unknown ids are.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from taskboard.schemas.common import APIModel, UserSummary


class BoardCreateRequest(APIModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    password: Optional[str] = None


class BoardUpdateRequest(APIModel):
    """
    Partial update; only fields present in the body change.

    Password transitions:
        public  + newPassword                → private with that password
        private + oldPassword + newPassword  → password replaced
        private + oldPassword                → password cleared, board public
    """

    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    old_password: Optional[str] = None
    new_password: Optional[str] = None
    completed: Optional[bool] = None


class BoardAdminsRequest(APIModel):
    admins: List[str] = Field(default_factory=list)


class BoardUsersRequest(APIModel):
    users: List[str] = Field(default_factory=list)


class BoardAccessRequest(APIModel):
    password: Optional[str] = None


class BoardResponse(APIModel):
    id: uuid.UUID
    title: str
    description: str
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    private: bool
    completed: bool = False
    admins: List[UserSummary] = Field(default_factory=list)
    users: List[UserSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class BoardEnvelope(APIModel):
    message: str
    board: BoardResponse
