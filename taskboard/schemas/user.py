"""
Taskboard API: User Schemas
============================

What:  Public user representation and the self-update body.
       Password hashes and token fields are never part of any response.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field

from taskboard.schemas.common import APIModel


class UserResponse(APIModel):
    id: uuid.UUID
    username: str
    email: str
    image: Optional[str] = None
    is_verified: bool = False
    created_at: datetime


class UserEnvelope(APIModel):
    message: str
    user: UserResponse


class UserUpdateRequest(APIModel):
    """Partial update; a password change needs both old and new password."""

    username: Optional[str] = Field(default=None, min_length=3, max_length=30)
    email: Optional[EmailStr] = None
    old_password: Optional[str] = None
    new_password: Optional[str] = None


class ImageSource(APIModel):
    src: str


class ImageUploadResponse(APIModel):
    message: str
    image: ImageSource
