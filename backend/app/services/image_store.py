"""
Blog Backend - Post Image Storage
===================================

What:  Writes, reads and removes post image files on the storage volume.
How:   Each image is stored as posts/<post_id>/<uuid><ext> below the storage
       root using async file I/O. The database only keeps the relative path
       and the declared content type.
Who:   Used by PostService for save_image / get_post_image / delete_post.

Directory Structure:
    storage/
    └── posts/
        ├── 1/
        │   └── 0f6c2a9e-....png
        └── 7/
            └── 5d1e88b0-....jpg

Filenames never contain user input, so uploads cannot traverse out of the
storage root; reads still verify that the resolved path stays inside it.
"""

import logging
import mimetypes
import os
import uuid
from pathlib import Path
from typing import Optional

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# JPEG is always stored as .jpg; other types use the mimetypes guess, else .bin
_EXTENSION_OVERRIDES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
}


class ImageStore:
    """
    File-system backed storage for post images.

    Args:
        storage_root: Override the configured storage path (used in tests).
        max_size: Override settings.max_image_size.
    """

    def __init__(self, storage_root: Optional[str] = None, max_size: Optional[int] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        self.max_size = max_size or settings.max_image_size
        logger.info("ImageStore initialized with storage_root=%s", self.storage_root)

    def validate(self, content: bytes) -> None:
        """
        Reject payloads that must never reach the disk.

        Raises:
            ValidationError: empty payload or larger than max_size
        """
        if not content:
            raise ValidationError(message="Uploaded image is empty", field="image")
        if len(content) > self.max_size:
            max_mb = self.max_size / (1024 * 1024)
            raise ValidationError(
                message=f"Image size ({len(content)} bytes) exceeds maximum of {max_mb:.1f}MB",
                field="image",
                context={"max_size": self.max_size, "actual_size": len(content)},
            )

    @staticmethod
    def extension_for(content_type: Optional[str]) -> str:
        if not content_type:
            return ".bin"
        base_type = content_type.split(";", 1)[0].strip().lower()
        if base_type in _EXTENSION_OVERRIDES:
            return _EXTENSION_OVERRIDES[base_type]
        return mimetypes.guess_extension(base_type) or ".bin"

    def _resolve(self, relative_path: str) -> Path:
        path = (self.storage_root / relative_path).resolve()
        if self.storage_root not in path.parents:
            raise FileStorageError(
                message="Stored image path escapes the storage root",
                context={"path": relative_path},
            )
        return path

    async def save(self, post_id: int, content: bytes, content_type: Optional[str]) -> str:
        """
        Validate and write an image for a post.

        Returns:
            Path of the new file relative to the storage root (stored on the post).

        Raises:
            ValidationError: see validate()
            FileStorageError: directory creation or write failed
        """
        self.validate(content)

        relative_path = f"posts/{post_id}/{uuid.uuid4()}{self.extension_for(content_type)}"
        absolute_path = self.storage_root / relative_path

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image",
                context={"path": relative_path, "os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes)", relative_path, len(content))
        return relative_path

    async def read(self, relative_path: str) -> bytes:
        """
        Read a stored image.

        Raises:
            NotFoundError: the file is gone from disk
            FileStorageError: any other read failure
        """
        path = self._resolve(relative_path)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            logger.warning("Image file missing on disk: %s", relative_path)
            raise NotFoundError(resource="image", resource_id=relative_path)
        except OSError as e:
            logger.error("Failed to read image %s: %s", relative_path, str(e))
            raise FileStorageError(
                message="Failed to read stored image",
                context={"path": relative_path, "os_error": str(e)},
            )

    async def remove(self, relative_path: Optional[str]) -> None:
        """
        Delete a stored image. Best effort: failures are logged, not raised,
        since the database change they accompany has already succeeded.
        """
        if not relative_path:
            return
        try:
            path = self._resolve(relative_path)
            if path.exists():
                os.remove(path)
                logger.info("Removed image: %s", relative_path)
            else:
                logger.debug("Image already gone: %s", relative_path)
        except (OSError, FileStorageError) as e:
            logger.warning("Failed to remove image %s: %s", relative_path, str(e))


image_store = ImageStore()
