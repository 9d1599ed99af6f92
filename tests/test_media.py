"""
Tests for media upload validation, storage and removal.
"""

import re
import pytest
from pathlib import Path

from rental_api.services.media import MediaService
from rental_api.utils.exceptions import (
    BadRequestError,
    FileSizeExceededError,
    UnsupportedMediaTypeError,
    ValidationError,
)
from rental_api.utils.file_utils import (
    FileStorage,
    FileValidator,
    UPLOAD_BUCKETS,
    build_media_url,
    get_bucket_directory,
)
from tests.conftest import make_image_bytes, make_upload, stored_files


class TestUploadBuckets:
    """Field to bucket mapping."""

    def test_bucket_limits(self):
        assert UPLOAD_BUCKETS["featured_image"].max_files == 1
        assert UPLOAD_BUCKETS["gallery_images"].max_files == 10
        assert UPLOAD_BUCKETS["videos"].max_files == 3

    def test_bucket_directories(self):
        assert get_bucket_directory("featured_image") == "properties/featured"
        assert get_bucket_directory("gallery_images") == "properties/gallery"
        assert get_bucket_directory("videos") == "properties/videos"
        assert get_bucket_directory("floor_plan") == "properties/others"

    def test_mime_classes(self):
        assert UPLOAD_BUCKETS["gallery_images"].accepts("image/webp")
        assert UPLOAD_BUCKETS["videos"].accepts("VIDEO/MP4")
        assert not UPLOAD_BUCKETS["featured_image"].accepts("video/mp4")
        assert not UPLOAD_BUCKETS["videos"].accepts(None)

    def test_build_media_url(self):
        assert (
            build_media_url("https://api.example.com/", "properties/gallery/a.jpg")
            == "https://api.example.com/uploads/properties/gallery/a.jpg"
        )
        assert build_media_url("http://test/", "https://cdn.example.com/a.jpg") == "https://cdn.example.com/a.jpg"


class TestFileValidator:
    """Checks that run before anything is written."""

    def test_too_many_files(self):
        files = [make_upload(make_image_bytes(), f"{i}.jpg", "image/jpeg") for i in range(2)]

        with pytest.raises(BadRequestError, match="maximum: 1"):
            FileValidator.validate_file_count("featured_image", files)

    def test_wrong_mime_class(self):
        with pytest.raises(UnsupportedMediaTypeError) as exc_info:
            FileValidator.validate_mime_type("videos", make_upload(b"x", "a.jpg", "image/jpeg"))
        assert exc_info.value.status_code == 415

    def test_unknown_field_accepts_anything(self):
        FileValidator.validate_mime_type("floor_plan", make_upload(b"%PDF", "plan.pdf", "application/pdf"))

    def test_declared_size_over_limit(self):
        with pytest.raises(FileSizeExceededError):
            FileValidator.validate_declared_size(make_upload(b"x" * 20, "big.jpg", "image/jpeg"), max_size=10)

    async def test_image_content_is_decoded(self):
        upload = make_upload(make_image_bytes("PNG"), "plan.png", "image/png")

        await FileValidator.validate_image_content("gallery_images", upload)

        assert await upload.read() == make_image_bytes("PNG")

    async def test_fake_image_rejected(self):
        with pytest.raises(ValidationError, match="Invalid image file 'fake.jpg'"):
            await FileValidator.validate_image_content(
                "featured_image", make_upload(b"definitely not a jpeg", "fake.jpg", "image/jpeg")
            )

    async def test_videos_are_not_decoded(self):
        await FileValidator.validate_image_content("videos", make_upload(b"\x00\x01", "a.mp4", "video/mp4"))


class TestFileStorage:
    """Streaming uploads to disk."""

    async def test_save_upload_names_file_after_field(self, tmp_path: Path):
        storage = FileStorage(tmp_path)

        path = await storage.save_upload("gallery_images", make_upload(make_image_bytes(), "Photo.JPG", "image/jpeg"), 1024 * 1024)

        assert re.fullmatch(r"properties/gallery/gallery_images-\d+\.jpg", path)
        assert (tmp_path / path).read_bytes() == make_image_bytes()

    async def test_same_millisecond_names_do_not_collide(self, tmp_path: Path, monkeypatch):
        monkeypatch.setattr("rental_api.utils.file_utils.time.time", lambda: 1700000000.0)
        storage = FileStorage(tmp_path)

        first = await storage.save_upload("videos", make_upload(b"a", "a.mp4", "video/mp4"), 100)
        second = await storage.save_upload("videos", make_upload(b"b", "b.mp4", "video/mp4"), 100)

        assert first == "properties/videos/videos-1700000000000.mp4"
        assert second == "properties/videos/videos-1700000000001.mp4"

    async def test_stream_over_limit_leaves_no_file(self, tmp_path: Path):
        storage = FileStorage(tmp_path)
        upload = make_upload(b"x" * 500, "big.mp4", "video/mp4", declare_size=False)

        with pytest.raises(FileSizeExceededError):
            await storage.save_upload("videos", upload, 100)

        assert stored_files(tmp_path) == set()

    def test_delete_file(self, tmp_path: Path):
        storage = FileStorage(tmp_path)
        target = tmp_path / "properties" / "others" / "note.txt"
        target.parent.mkdir(parents=True)
        target.write_text("bye")

        assert storage.delete_file("properties/others/note.txt") is True
        assert storage.delete_file("properties/others/note.txt") is False

    def test_delete_outside_upload_dir_is_refused(self, tmp_path: Path):
        outside = tmp_path / "outside.txt"
        outside.write_text("keep me")
        storage = FileStorage(tmp_path / "uploads")

        assert storage.delete_file("../outside.txt") is False
        assert outside.exists()


class TestMediaService:
    """Batch handling of a multipart request's files."""

    async def test_mixed_batch_is_rejected_before_writing(self, tmp_path: Path):
        service = MediaService(upload_dir=tmp_path)
        uploads = {
            "gallery_images": [make_upload(make_image_bytes(), "ok.jpg", "image/jpeg")],
            "featured_image": [make_upload(b"\x00\x00\x00\x18ftyp", "clip.mp4", "video/mp4")],
        }

        with pytest.raises(UnsupportedMediaTypeError):
            await service.save_uploads(uploads)

        assert stored_files(tmp_path) == set()

    async def test_failed_write_removes_whole_batch(self, tmp_path: Path):
        service = MediaService(upload_dir=tmp_path, max_file_size=100)
        uploads = {
            "videos": [
                make_upload(b"x" * 50, "short.mp4", "video/mp4", declare_size=False),
                make_upload(b"x" * 500, "long.mp4", "video/mp4", declare_size=False),
            ]
        }

        with pytest.raises(FileSizeExceededError):
            await service.save_uploads(uploads)

        assert stored_files(tmp_path) == set()

    async def test_save_uploads_skips_empty_fields(self, tmp_path: Path):
        service = MediaService(upload_dir=tmp_path)

        stored = await service.save_uploads({
            "featured_image": [],
            "videos": [make_upload(b"clip", "tour.mov", "video/quicktime")],
        })

        assert list(stored) == ["videos"]
        assert stored["videos"][0].startswith("properties/videos/videos-")

    async def test_unbucketed_field_goes_to_others(self, tmp_path: Path):
        service = MediaService(upload_dir=tmp_path)

        stored = await service.save_uploads({
            "floor_plan": [make_upload(b"%PDF-1.4", "plan.pdf", "application/pdf")],
        })

        assert stored["floor_plan"][0].startswith("properties/others/floor_plan-")
        assert stored["floor_plan"][0].endswith(".pdf")

    def test_delete_files_skips_missing(self, tmp_path: Path):
        service = MediaService(upload_dir=tmp_path)
        kept = tmp_path / "properties" / "featured" / "featured_image-1.jpg"
        kept.parent.mkdir(parents=True)
        kept.write_bytes(b"img")

        removed = service.delete_files([None, "properties/featured/featured_image-1.jpg", "properties/gallery/gone.jpg"])

        assert removed == 1
        assert not kept.exists()
