"""
File upload utilities for media validation and storage.
Maps multipart form fields to upload buckets and streams files to disk.
"""

import logging
import time
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
from fastapi import UploadFile
from PIL import Image

from rental_api.config import settings
from rental_api.utils.exceptions import (
    BadRequestError,
    FileSizeExceededError,
    UnsupportedMediaTypeError,
    ValidationError,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024
# Destination for fields without a bucket. MediaService accepts any field,
# but the property routes only forward the three named ones.
OTHER_BUCKET_DIRECTORY = "properties/others"


class UploadBucket:
    """Accepted upload field with its file limit, MIME class and directory."""

    def __init__(self, field: str, max_files: int, mime_class: str, directory: str):
        self.field = field
        self.max_files = max_files
        self.mime_class = mime_class
        self.directory = directory

    def accepts(self, content_type: Optional[str]) -> bool:
        return bool(content_type) and content_type.lower().startswith(f"{self.mime_class}/")


UPLOAD_BUCKETS: Dict[str, UploadBucket] = {
    "featured_image": UploadBucket("featured_image", 1, "image", "properties/featured"),
    "gallery_images": UploadBucket("gallery_images", 10, "image", "properties/gallery"),
    "videos": UploadBucket("videos", 3, "video", "properties/videos"),
}


def get_bucket_directory(field: str) -> str:
    """Directory (relative to the upload root) that files of a field are stored in."""
    bucket = UPLOAD_BUCKETS.get(field)
    return bucket.directory if bucket else OTHER_BUCKET_DIRECTORY


def build_media_url(base_url: str, path: str) -> str:
    """
    Turn a stored media path into a fully-qualified URL.

    Args:
        base_url: Scheme and host of the current request, e.g. ``http://host/``
        path: Path relative to the upload directory

    Returns:
        Absolute URL under the media prefix
    """
    if path.startswith(("http://", "https://")):
        return path

    prefix = settings.media_url_prefix.strip("/")
    return f"{base_url.rstrip('/')}/{prefix}/{path.lstrip('/')}"


class FileValidator:
    """Utility class for upload validation performed before any write."""

    @staticmethod
    def validate_file_count(field: str, files: List[UploadFile]) -> None:
        """
        Raises:
            BadRequestError: If more files were sent than the field allows
        """
        bucket = UPLOAD_BUCKETS.get(field)
        if bucket and len(files) > bucket.max_files:
            raise BadRequestError(
                f"Too many files for '{field}' (maximum: {bucket.max_files})"
            )

    @staticmethod
    def validate_mime_type(field: str, file: UploadFile) -> None:
        """
        Raises:
            UnsupportedMediaTypeError: If the file is outside the field's MIME class
        """
        bucket = UPLOAD_BUCKETS.get(field)
        if bucket and not bucket.accepts(file.content_type):
            raise UnsupportedMediaTypeError(
                f"Invalid file type for '{field}': {file.content_type or 'unknown'}. "
                f"Only {bucket.mime_class} files are allowed"
            )

    @staticmethod
    def validate_declared_size(file: UploadFile, max_size: int) -> None:
        """
        Check the size the multipart parser recorded for the upload.

        Raises:
            FileSizeExceededError: If the file is larger than ``max_size``
        """
        size = getattr(file, "size", None)
        if size is not None and size > max_size:
            raise FileSizeExceededError(file.filename or "upload", max_size)

    @staticmethod
    async def validate_image_content(field: str, file: UploadFile) -> None:
        """
        Check that an upload sent to an image field decodes as an image.

        Raises:
            ValidationError: If Pillow cannot identify the file
        """
        bucket = UPLOAD_BUCKETS.get(field)
        if not bucket or bucket.mime_class != "image":
            return

        await file.seek(0)
        try:
            with Image.open(file.file) as img:
                img.verify()
        except Exception as e:
            raise ValidationError(f"Invalid image file '{file.filename}': {e}")
        finally:
            await file.seek(0)


class FileStorage:
    """Utility class for file storage operations under the upload directory."""

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir or settings.upload_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def resolve(self, relative_path: str) -> Path:
        """
        Resolve a stored path against the upload directory.

        Raises:
            ValueError: If the path escapes the upload directory
        """
        root = self.base_dir.resolve()
        full_path = (root / relative_path).resolve()
        if root != full_path and root not in full_path.parents:
            raise ValueError(f"Path outside upload directory: {relative_path}")
        return full_path

    def generate_filename(self, field: str, original_filename: Optional[str], directory: Path) -> str:
        """
        Build ``{field}-{timestamp_ms}{ext}``, bumping the timestamp until the name is free.
        """
        extension = Path(original_filename or "").suffix.lower()
        timestamp = int(time.time() * 1000)
        filename = f"{field}-{timestamp}{extension}"
        while (directory / filename).exists():
            timestamp += 1
            filename = f"{field}-{timestamp}{extension}"
        return filename

    async def save_upload(self, field: str, file: UploadFile, max_size: int) -> str:
        """
        Stream an upload into its bucket directory.

        Args:
            field: Form field the file arrived under
            file: UploadFile object
            max_size: Maximum number of bytes accepted

        Returns:
            Stored path relative to the upload directory

        Raises:
            FileSizeExceededError: If the stream grows beyond ``max_size``
        """
        relative_dir = get_bucket_directory(field)
        directory = self.base_dir / relative_dir
        directory.mkdir(parents=True, exist_ok=True)

        filename = self.generate_filename(field, file.filename, directory)
        file_path = directory / filename

        written = 0
        try:
            await file.seek(0)
            async with aiofiles.open(file_path, "wb") as out:
                while True:
                    chunk = await file.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > max_size:
                        raise FileSizeExceededError(file.filename or filename, max_size)
                    await out.write(chunk)
        except Exception:
            file_path.unlink(missing_ok=True)
            raise

        logger.debug(f"Stored upload {file.filename} as {relative_dir}/{filename} ({written} bytes)")
        return f"{relative_dir}/{filename}"

    def delete_file(self, relative_path: str) -> bool:
        """
        Delete a stored file.

        Returns:
            True if a file was removed, False if it did not exist
        """
        try:
            file_path = self.resolve(relative_path)
        except ValueError:
            logger.warning(f"Refusing to delete path outside upload directory: {relative_path}")
            return False

        if not file_path.is_file():
            return False

        file_path.unlink()
        return True
