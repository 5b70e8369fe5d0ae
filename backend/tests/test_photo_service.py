"""
StoreFinder Backend — Photo Service Unit Tests
==============================================

What we test:
    ✅ Declared type filter (image/* only)
    ✅ Generated filenames: {uuid}.{subtype}
    ✅ Resize down to the max width, aspect ratio kept, never up
    ✅ Full pipeline writes the file; no upload → None
    ✅ Path guard for served filenames
"""

import io
import re
from pathlib import Path

import pytest
from PIL import Image
from starlette.datastructures import Headers, UploadFile

from storefinder.exceptions import ValidationError
from storefinder.services.photo_service import PhotoService

UUID_PNG = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\.png$")


def make_upload(content: bytes, filename: str = "photo.png", content_type: str = "image/png") -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class TestFileTypeFilter:

    def test_rejects_non_image(self, temp_uploads):
        service = PhotoService(uploads_dir=temp_uploads)
        with pytest.raises(ValidationError, match="That filetype isn't allowed!"):
            service.check_file_type("text/plain")

    def test_rejects_missing_type(self, temp_uploads):
        service = PhotoService(uploads_dir=temp_uploads)
        with pytest.raises(ValidationError):
            service.check_file_type(None)

    @pytest.mark.parametrize(
        "content_type,extension",
        [("image/png", "png"), ("image/jpeg", "jpeg"), ("IMAGE/GIF", "gif"), ("image/svg+xml", "svg")],
    )
    def test_extension_from_subtype(self, temp_uploads, content_type, extension):
        service = PhotoService(uploads_dir=temp_uploads)
        assert service.check_file_type(content_type) == extension


class TestFilenames:

    def test_uuid_filename(self):
        assert UUID_PNG.match(PhotoService.generate_filename("png"))

    def test_filenames_are_unique(self):
        names = {PhotoService.generate_filename("png") for _ in range(50)}
        assert len(names) == 50


class TestResize:

    def test_wide_image_scaled_to_max_width(self, temp_uploads, png_bytes):
        service = PhotoService(uploads_dir=temp_uploads, max_width=800)
        resized = service.resize(png_bytes(1600, 1200))
        with Image.open(io.BytesIO(resized)) as img:
            assert img.size == (800, 600)
            assert img.format == "PNG"

    def test_narrow_image_not_upscaled(self, temp_uploads, png_bytes):
        service = PhotoService(uploads_dir=temp_uploads, max_width=800)
        resized = service.resize(png_bytes(300, 200))
        with Image.open(io.BytesIO(resized)) as img:
            assert img.size == (300, 200)

    def test_unreadable_image_rejected(self, temp_uploads):
        service = PhotoService(uploads_dir=temp_uploads)
        with pytest.raises(ValidationError):
            service.resize(b"definitely not an image")


class TestProcessUpload:

    @pytest.mark.asyncio
    async def test_no_upload_returns_none(self, temp_uploads):
        service = PhotoService(uploads_dir=temp_uploads)
        assert await service.process_upload(None) is None

    @pytest.mark.asyncio
    async def test_empty_filename_returns_none(self, temp_uploads):
        """A form submitted without choosing a file carries an empty filename."""
        service = PhotoService(uploads_dir=temp_uploads)
        assert await service.process_upload(make_upload(b"", filename="")) is None

    @pytest.mark.asyncio
    async def test_png_written_and_resized(self, temp_uploads, png_bytes):
        service = PhotoService(uploads_dir=temp_uploads, max_width=800)

        filename = await service.process_upload(make_upload(png_bytes(1600, 400)))

        assert UUID_PNG.match(filename)
        stored = Path(temp_uploads) / filename
        assert stored.exists()
        with Image.open(stored) as img:
            assert img.width <= 800

    @pytest.mark.asyncio
    async def test_text_file_rejected_and_nothing_written(self, temp_uploads):
        service = PhotoService(uploads_dir=temp_uploads)

        with pytest.raises(ValidationError, match="That filetype isn't allowed!"):
            await service.process_upload(make_upload(b"hello", filename="notes.txt", content_type="text/plain"))

        assert list(Path(temp_uploads).iterdir()) == []

    @pytest.mark.asyncio
    async def test_discard_removes_file(self, temp_uploads, png_bytes):
        service = PhotoService(uploads_dir=temp_uploads)
        filename = await service.process_upload(make_upload(png_bytes(10, 10)))

        await service.discard(filename)

        assert not (Path(temp_uploads) / filename).exists()


class TestPathGuard:

    def test_plain_filename_resolves_inside_uploads(self, temp_uploads):
        service = PhotoService(uploads_dir=temp_uploads)
        assert service.path_for("abc.png") == Path(temp_uploads).resolve() / "abc.png"

    def test_traversal_rejected(self, temp_uploads):
        service = PhotoService(uploads_dir=temp_uploads)
        with pytest.raises(ValidationError):
            service.path_for("../secret.txt")
