"""
Taskboard API: Note Schemas
============================

What:  Pydantic models for the /notes endpoints.
How:   FastAPI validates request bodies against these and serializes the
       responses (camelCase keys, status as its display value).

Partial updates:
    NoteUpdateRequest is applied with `model_dump(exclude_unset=True)`, so a
    field left out of the body is untouched while an explicit `null` clears
    it (used to remove a start or end date).
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from taskboard.schemas.common import APIModel, UserSummary
from taskboard.validation import NoteStatus


class NoteCreateRequest(APIModel):
    board_id: uuid.UUID
    title: str = Field(min_length=5, max_length=25)
    text: str = Field(min_length=5, max_length=100)
    assignees: List[str] = Field(default_factory=list)
    status: NoteStatus = NoteStatus.TODO
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class NoteUpdateRequest(APIModel):
    title: Optional[str] = Field(default=None, min_length=5, max_length=25)
    text: Optional[str] = Field(default=None, min_length=5, max_length=100)
    status: Optional[NoteStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class NoteUsersRequest(APIModel):
    users: List[str] = Field(default_factory=list)


class NoteResponse(APIModel):
    id: uuid.UUID
    board_id: uuid.UUID
    creator_id: uuid.UUID
    title: str
    text: str
    status: NoteStatus
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    assignees: List[UserSummary] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class NoteEnvelope(APIModel):
    message: str
    note: NoteResponse
