"""
Taskboard API: User Service
============================

What:  User lookup and self-service profile updates.
Who:   Called by the /users routes, and by AuthService / BoardService /
       NoteService for case-insensitive lookups and id resolution.

Uniqueness:
    username and email are compared with lower() on both sides, matching the
    functional unique indexes on the users table. The pre-check gives a clean
    409 message; the IntegrityError catch covers two requests racing past it.
"""

import logging
import uuid
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import ConflictError, NotFoundError, UnauthorizedError
from taskboard.models.user import User, utcnow
from taskboard.schemas.user import UserUpdateRequest
from taskboard.services.security import hash_password, verify_password
from taskboard.validation import check_password_length, ensure_valid

logger = logging.getLogger(__name__)


def parse_ids(raw_ids: Iterable[str]) -> List[uuid.UUID]:
    """Parse id strings, silently dropping malformed ones and duplicates."""
    parsed: List[uuid.UUID] = []
    for raw in raw_ids:
        try:
            value = uuid.UUID(str(raw))
        except ValueError:
            continue
        if value not in parsed:
            parsed.append(value)
    return parsed


class UserService:
    """
    Responsibilities:
        - Case-insensitive lookups by username / email
        - Resolving client-supplied id lists to User rows
        - list / get / update of user profiles
    """

    async def get_by_username(self, db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(
            select(User).where(func.lower(User.username) == username.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def resolve_users(self, db: AsyncSession, raw_ids: Iterable[str]) -> List[User]:
        """
        Load the users behind a list of id strings.

        Unknown and malformed ids are dropped; the order of the input list is
        kept for the ids that resolve.
        """
        ids = parse_ids(raw_ids)
        if not ids:
            return []
        result = await db.execute(select(User).where(User.id.in_(ids)))
        by_id = {user.id: user for user in result.scalars().all()}
        return [by_id[user_id] for user_id in ids if user_id in by_id]

    async def ensure_unique(
        self,
        db: AsyncSession,
        username: Optional[str] = None,
        email: Optional[str] = None,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Raise ConflictError if the username or email belongs to another user."""
        if username is not None:
            existing = await self.get_by_username(db, username)
            if existing is not None and existing.id != exclude_id:
                raise ConflictError(f"Username {username} is already taken", field="username")
        if email is not None:
            existing = await self.get_by_email(db, email)
            if existing is not None and existing.id != exclude_id:
                raise ConflictError(f"Email {email} is already registered", field="email")

    async def list_users(self, db: AsyncSession) -> List[User]:
        result = await db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> User:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def update_user(
        self, db: AsyncSession, user_id: uuid.UUID, patch: UserUpdateRequest
    ) -> User:
        """
        Apply a partial profile update for the calling user.

        Raises:
            NotFoundError:     the caller's account no longer exists
            ValidationError:   newPassword is too short or too long
            ConflictError:     username or email taken by someone else
            UnauthorizedError: newPassword given without a correct oldPassword
        """
        user = await self.get_user(db, user_id)
        if patch.new_password is not None:
            ensure_valid(check_password_length(patch.new_password, field="newPassword"))

        await self.ensure_unique(db, username=patch.username, email=patch.email, exclude_id=user.id)
        if patch.username is not None:
            user.username = patch.username
        if patch.email is not None:
            user.email = str(patch.email)

        if patch.new_password is not None:
            if not patch.old_password or not verify_password(patch.old_password, user.password_hash):
                raise UnauthorizedError("Old password is incorrect")
            user.password_hash = hash_password(patch.new_password)

        user.updated_at = utcnow()
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("Username or email is already taken")
        logger.info("User %s updated profile", user.id)
        return user

    async def set_image(self, db: AsyncSession, user_id: uuid.UUID, image_url: str) -> User:
        user = await self.get_user(db, user_id)
        user.image = image_url
        user.updated_at = utcnow()
        await db.flush()
        return user


user_service = UserService()
