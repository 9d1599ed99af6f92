"""
Media service for property uploads.
Validates a whole multipart batch before writing any of it, then stores files
in their bucket directories and removes them again when asked.
"""

from typing import Dict, Iterable, List, Optional
from pathlib import Path
from fastapi import UploadFile
from rental_api.config import settings
from rental_api.utils.file_utils import FileStorage, FileValidator
import logging

logger = logging.getLogger(__name__)


class MediaService:
    """
    Service for validating, storing and deleting uploaded property media.
    """

    def __init__(self, upload_dir: Optional[Path] = None, max_file_size: Optional[int] = None):
        self.storage = FileStorage(upload_dir)
        self.max_file_size = max_file_size or settings.max_file_size

    async def validate_uploads(self, uploads: Dict[str, List[UploadFile]]) -> None:
        """
        Check count, MIME class, declared size and image content of every file in the batch.

        Raises:
            BadRequestError: If a field received too many files
            UnsupportedMediaTypeError: If a file is outside its field's MIME class
            FileSizeExceededError: If a file is larger than the size cap
            ValidationError: If an image field received bytes that are not an image
        """
        for field, files in uploads.items():
            FileValidator.validate_file_count(field, files)
            for file in files:
                FileValidator.validate_mime_type(field, file)
                FileValidator.validate_declared_size(file, self.max_file_size)
                await FileValidator.validate_image_content(field, file)

    async def save_uploads(self, uploads: Dict[str, List[UploadFile]]) -> Dict[str, List[str]]:
        """
        Validate and store a batch of uploads.

        Args:
            uploads: Files keyed by the form field they arrived under

        Returns:
            Stored paths keyed by field, in upload order

        Raises:
            APIException: If validation fails; nothing is written in that case
        """
        uploads = {field: files for field, files in uploads.items() if files}
        await self.validate_uploads(uploads)

        stored: Dict[str, List[str]] = {}
        written: List[str] = []
        try:
            for field, files in uploads.items():
                for file in files:
                    path = await self.storage.save_upload(field, file, self.max_file_size)
                    stored.setdefault(field, []).append(path)
                    written.append(path)
        except Exception:
            logger.warning(f"Upload batch failed, removing {len(written)} stored file(s)")
            self.delete_files(written)
            raise

        if written:
            logger.info(f"Stored {len(written)} uploaded file(s)")
        return stored

    def delete_files(self, paths: Iterable[Optional[str]]) -> int:
        """
        Remove stored media. Missing files are skipped.

        Returns:
            Number of files removed
        """
        removed = 0
        for path in paths:
            if not path:
                continue
            try:
                if self.storage.delete_file(path):
                    removed += 1
            except OSError as e:
                logger.error(f"Failed to delete media file {path}: {e}")
        if removed:
            logger.info(f"Deleted {removed} media file(s)")
        return removed
