"""
Taskboard API: Uploaded File Serving
=====================================

What:  GET /uploads/{name} serves pictures stored by the local upload backend.

Security:
    UploadService.resolve_local() answers 404 for any name that resolves
    outside the uploads directory (e.g. ../../etc/passwd) or that does not
    carry one of the raster-image extensions the service writes.
    `X-Content-Type-Options: nosniff` keeps browsers on the declared type.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from taskboard.schemas.common import ErrorResponse
from taskboard.services.upload_service import UploadService, get_upload_service

router = APIRouter(tags=["Uploads"])


@router.get(
    "/uploads/{name}",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Serve an uploaded profile picture",
)
async def serve_upload(
    name: str,
    uploads: UploadService = Depends(get_upload_service),
) -> FileResponse:
    path = uploads.resolve_local(name)
    return FileResponse(
        path=str(path),
        headers={
            "Cache-Control": "public, max-age=3600",
            "X-Content-Type-Options": "nosniff",
        },
    )
