"""
Taskboard API: Profile Image Upload Service
============================================

What:  Validates an uploaded profile picture and stores it on local disk or
       in an S3 bucket, returning the public URL saved on the user.
How:   python-magic for the real file type; aiofiles for disk writes; boto3
       for the bucket, with the blocking upload_file call moved to a worker
       thread.
Who:   Called by POST /users/uploads; GET /uploads/{name} serves the local
       backend's files through resolve_local().

Storage Layout:
    local   {storage_root}/uploads/{user_id}{ext}   → /uploads/{user_id}{ext}
    s3      s3://{bucket}/{s3_prefix}/{user_id}{ext} → public bucket URL

    One file per user: a new upload replaces the previous picture. The name
    is built from the user id and the sniffed type only, so nothing the
    client sends reaches the path or the extension.

Validation:
    1. Declared content type must start with "image/"
    2. Size: non-empty and at most settings.max_image_size
    3. Sniffed type (libmagic, file header bytes) must be a raster image in
       IMAGE_EXTENSIONS; SVG and anything scriptable are rejected
"""

import asyncio
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
import boto3
import magic
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from taskboard.config import settings
from taskboard.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Sniffed MIME type → stored extension. The only types ever written.
IMAGE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

# libmagic only needs the header
SNIFF_BYTES = 2048

LOCAL_URL_PREFIX = "/uploads"


class UploadService:
    """
    Manages the profile-image lifecycle.

    Args:
        storage_root: Override settings.storage_root (tests use tmp_path)
        backend:      "local" or "s3"; defaults to settings.upload_backend
        s3_client:    Pre-built boto3 client (tests pass a mock)
    """

    def __init__(
        self,
        storage_root: Optional[str] = None,
        backend: Optional[str] = None,
        s3_client=None,
    ):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.uploads_dir = self.storage_root / "uploads"
        self.backend = (backend or settings.upload_backend).lower()
        self._s3_client = s3_client

    @property
    def s3_client(self):
        if self._s3_client is None:
            self._s3_client = boto3.client(
                "s3",
                region_name=settings.s3_region,
                endpoint_url=settings.s3_endpoint_url or None,
            )
        return self._s3_client

    # ── Validation ────────────────────────────────────────────────────────

    def validate_image(self, content_type: Optional[str], size: int) -> None:
        """
        Raises:
            ValidationError: not declared as an image, empty, or over the size limit
        """
        if not content_type or not content_type.lower().startswith("image/"):
            raise ValidationError(
                message="Only image uploads are allowed",
                field="image",
                context={"content_type": content_type},
            )
        if size == 0:
            raise ValidationError(message="Uploaded file is empty", field="image")
        if size > settings.max_image_size:
            max_kb = settings.max_image_size // 1024
            raise ValidationError(
                message=f"Image exceeds the maximum size of {max_kb}KB",
                field="image",
                context={"max_size": settings.max_image_size, "actual_size": size},
            )

    def detect_image_type(self, content: bytes) -> str:
        """
        Determine the real type from the file's header bytes.

        Returns:
            A key of IMAGE_EXTENSIONS (e.g. "image/png")

        Raises:
            ValidationError:  content is not a supported raster image
            FileStorageError: libmagic failed to inspect the bytes
        """
        try:
            mime_type = magic.from_buffer(content[:SNIFF_BYTES], mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in IMAGE_EXTENSIONS:
            allowed = ", ".join(IMAGE_EXTENSIONS)
            raise ValidationError(
                message=f"File content type '{mime_type}' is not supported. Allowed: {allowed}",
                field="image",
                context={"detected_type": mime_type},
            )
        return mime_type

    # ── Storage ───────────────────────────────────────────────────────────

    async def store_user_image(
        self,
        user_id: uuid.UUID,
        content_type: Optional[str],
        content: bytes,
    ) -> str:
        """
        Validate and store one user picture.

        Returns:
            The URL to save on the user record.

        Raises:
            ValidationError:  see validate_image() and detect_image_type()
            FileStorageError: disk write or bucket upload failed
        """
        self.validate_image(content_type, len(content))
        mime_type = self.detect_image_type(content)
        name = f"{user_id}{IMAGE_EXTENSIONS[mime_type]}"

        if self.backend == "s3":
            return await self._store_s3(name, content, mime_type)
        return await self._store_local(name, content)

    async def _store_local(self, name: str, content: bytes) -> str:
        path = self.uploads_dir / name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        # a picture of another type leaves a sibling with the old extension
        for ext in set(IMAGE_EXTENSIONS.values()) - {path.suffix}:
            self.cleanup_file(path.with_suffix(ext))

        logger.info("Image stored: %s (%d bytes)", name, len(content))
        return f"{LOCAL_URL_PREFIX}/{name}"

    async def _store_s3(self, name: str, content: bytes, mime_type: str) -> str:
        key = f"{settings.s3_prefix.strip('/')}/{name}" if settings.s3_prefix else name
        temp_path = self.storage_root / "tmp" / f"{uuid.uuid4()}-{name}"

        try:
            temp_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(content)

            await asyncio.to_thread(
                self.s3_client.upload_file,
                str(temp_path),
                settings.s3_bucket,
                key,
                ExtraArgs={"ContentType": mime_type},
            )
        except (BotoCoreError, ClientError, S3UploadFailedError, OSError) as e:
            logger.error("Failed to upload image %s to bucket: %s", key, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"key": key, "error_type": type(e).__name__},
            )
        finally:
            self.cleanup_file(temp_path)

        logger.info("Image uploaded: s3://%s/%s (%d bytes)", settings.s3_bucket, key, len(content))
        return self.public_url(key)

    def public_url(self, key: str) -> str:
        if settings.s3_public_base_url:
            return f"{settings.s3_public_base_url.rstrip('/')}/{key}"
        return f"https://{settings.s3_bucket}.s3.{settings.s3_region}.amazonaws.com/{key}"

    def cleanup_file(self, path: Path) -> None:
        """Best-effort removal of a temporary or superseded file."""
        try:
            if path.exists():
                os.remove(path)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", path, str(e))

    # ── Serving ───────────────────────────────────────────────────────────

    def resolve_local(self, name: str) -> Path:
        """
        Map a public file name to its path under the uploads directory.

        Raises:
            NotFoundError: unknown file, a name that escapes the directory, or
                           an extension this service never writes
        """
        path = (self.uploads_dir / name).resolve()
        if (
            path.suffix.lower() not in IMAGE_EXTENSIONS.values()
            or self.uploads_dir.resolve() not in path.parents
            or not path.is_file()
        ):
            raise NotFoundError(resource="file", resource_id=name)
        return path


# ── Singleton Instance ────────────────────────────────────────────────────
upload_service = UploadService()


def get_upload_service() -> UploadService:
    """FastAPI dependency; overridden in tests to point at tmp_path."""
    return upload_service
