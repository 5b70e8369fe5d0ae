"""
StoreFinder Backend — Uploaded Photo Route
==========================================

What:  Serves store photos written by PhotoService.
Who:   <img> tags on the store pages (photo field of StoreResponse).

Security:
    - Only bare filenames under settings.uploads_dir are served; anything
      that resolves elsewhere is rejected by PhotoService.path_for()
    - Filenames are random UUIDs, so a cached photo never changes
"""

import logging
import mimetypes

from fastapi import APIRouter
from fastapi.responses import FileResponse

from storefinder.exceptions import NotFoundError
from storefinder.schemas.common import ErrorResponse
from storefinder.services.photo_service import photo_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])


@router.get(
    "/uploads/{filename}",
    summary="Serve an uploaded store photo",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Invalid filename", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_upload(filename: str) -> FileResponse:
    path = photo_service.path_for(filename)

    if not path.is_file():
        raise NotFoundError(resource="file", resource_id=filename)

    media_type, _ = mimetypes.guess_type(path.name)
    return FileResponse(
        path=str(path),
        media_type=media_type or "application/octet-stream",
        headers={"Cache-Control": "public, max-age=86400"},
    )
