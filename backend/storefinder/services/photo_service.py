"""
StoreFinder Backend — Store Photo Upload Pipeline
=================================================

What:  Turns the optional `photo` field of the add/edit store form into a
       resized image on disk and a filename to store on the Store row.
Who:   Called by StoreService before a store is created or updated.

Pipeline:
    no file submitted        → None (store keeps whatever photo it had)
    declared type not image/ → ValidationError "That filetype isn't allowed!"
    too large / unreadable   → ValidationError
    otherwise                → {uuid4}.{subtype} written under uploads_dir,
                               scaled down to photo_max_width (aspect kept)

Filenames contain no user input: a random UUID plus the subtype of the
declared content type (image/png → png).
"""

import io
import logging
import uuid
from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from storefinder.config import settings
from storefinder.exceptions import FileStorageError, ValidationError

logger = logging.getLogger(__name__)


class PhotoService:
    """Filters, resizes and stores uploaded store photos."""

    def __init__(self, uploads_dir: Optional[str] = None, max_width: Optional[int] = None):
        """
        Args:
            uploads_dir: Override settings.uploads_dir (used in tests).
            max_width: Override settings.photo_max_width.
        """
        self.uploads_dir = Path(uploads_dir or settings.uploads_dir).resolve()
        self.max_width = max_width or settings.photo_max_width
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        logger.info("PhotoService initialized with uploads_dir=%s", self.uploads_dir)

    def check_file_type(self, content_type: Optional[str]) -> str:
        """
        Accept only declared image types.

        Returns:
            The extension to use, taken from the content-type subtype.
        """
        content_type = (content_type or "").lower()
        if not content_type.startswith("image/"):
            raise ValidationError(
                message="That filetype isn't allowed!",
                field="photo",
                context={"content_type": content_type},
            )
        # image/svg+xml → svg
        return content_type.split("/", 1)[1].split("+", 1)[0]

    def check_size(self, content: bytes) -> None:
        if len(content) > settings.max_upload_size:
            max_mb = settings.max_upload_size / (1024 * 1024)
            raise ValidationError(
                message=f"Photo exceeds the maximum size of {max_mb:.0f}MB.",
                field="photo",
                context={"size": len(content)},
            )

    @staticmethod
    def generate_filename(extension: str) -> str:
        return f"{uuid.uuid4()}.{extension}"

    def resize(self, content: bytes) -> bytes:
        """
        Scale the image down to max_width, keeping its aspect ratio and format.

        Images already narrower than max_width are re-encoded unchanged in size.
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                image_format = img.format
                if img.width > self.max_width:
                    height = max(1, round(img.height * self.max_width / img.width))
                    img = img.resize((self.max_width, height))
                output = io.BytesIO()
                img.save(output, format=image_format)
                return output.getvalue()
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise ValidationError(
                message="The uploaded photo could not be read as an image.",
                field="photo",
                context={"error": str(e)},
            )

    async def write(self, filename: str, content: bytes) -> Path:
        path = self.uploads_dir / filename
        try:
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to write photo %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded photo. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )
        logger.info("Photo stored: %s (%d bytes)", filename, len(content))
        return path

    async def process_upload(self, upload: Optional[UploadFile]) -> Optional[str]:
        """
        Run the whole pipeline for one form submission.

        Returns:
            The generated filename, or None when no file was submitted.
        """
        if upload is None or not upload.filename:
            return None

        extension = self.check_file_type(upload.content_type)
        content = await upload.read()
        if not content:
            return None
        self.check_size(content)

        filename = self.generate_filename(extension)
        # Pillow is CPU-bound; keep it off the event loop
        resized = await run_in_threadpool(self.resize, content)
        await self.write(filename, resized)
        return filename

    async def discard(self, filename: str) -> None:
        """
        Remove a photo written for a store that was then rejected.

        Best-effort: a leftover file is logged, never raised to the client.
        """
        path = self.uploads_dir / filename
        try:
            if path.exists():
                path.unlink()
                logger.info("Discarded photo: %s", filename)
        except OSError as e:
            logger.warning("Failed to discard photo %s: %s", filename, str(e))

    def path_for(self, filename: str) -> Path:
        """Resolve a stored filename, refusing anything outside uploads_dir."""
        path = (self.uploads_dir / filename).resolve()
        if path.parent != self.uploads_dir:
            raise ValidationError(message="Invalid file path", field="filename")
        return path


# ── Singleton Instance ────────────────────────────────────────────────────
photo_service = PhotoService()
