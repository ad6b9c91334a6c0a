"""
Taskboard API: User Route Handlers
===================================

What:  GET /users, GET /users/{id}, PATCH /users (self),
       POST /users/uploads (profile picture, multipart field "image").
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.config import settings
from taskboard.database import get_db_session
from taskboard.dependencies import get_current_user_id
from taskboard.schemas.common import ErrorResponse
from taskboard.schemas.user import (
    ImageSource,
    ImageUploadResponse,
    UserEnvelope,
    UserResponse,
    UserUpdateRequest,
)
from taskboard.services.upload_service import UploadService, get_upload_service
from taskboard.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserResponse], summary="List users")
async def list_users(
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
):
    return await user_service.list_users(db)


@router.get(
    "/{target_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get one user",
)
async def get_user(
    target_id: UUID,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
):
    return await user_service.get_user(db, target_id)


@router.patch(
    "",
    response_model=UserEnvelope,
    responses={401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Update the caller's profile",
)
async def update_user(
    body: UserUpdateRequest,
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
) -> UserEnvelope:
    user = await user_service.update_user(db, user_id, body)
    return UserEnvelope(message="User updated", user=UserResponse.model_validate(user))


@router.post(
    "/uploads",
    response_model=ImageUploadResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Upload the caller's profile picture",
)
async def upload_image(
    image: UploadFile = File(..., description="Profile picture (any image/* type)"),
    db: AsyncSession = Depends(get_db_session),
    user_id: UUID = Depends(get_current_user_id),
    uploads: UploadService = Depends(get_upload_service),
) -> ImageUploadResponse:
    # one byte past the limit is enough to reject an oversized file
    content = await image.read(settings.max_image_size + 1)
    url = await uploads.store_user_image(user_id, image.content_type, content)
    await user_service.set_image(db, user_id, url)
    return ImageUploadResponse(message="Image uploaded", image=ImageSource(src=url))
