"""Binary object storage for drawing images.

Two backends share the ``ImageStorage`` interface: ``LocalImageStorage``
writes under UPLOADS_DIR and serves files from ``/uploads``;
``CloudinaryImageStorage`` pushes images to Cloudinary.
"""

import logging
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader

import config
from core.exceptions import ImageStorageError

logger = logging.getLogger(__name__)

LOCAL_URL_PREFIX = "/uploads"

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9._-]")


@dataclass
class StoredImage:
    url: str
    image_id: str


def safe_filename(filename: str) -> str:
    """Reduce an uploaded filename to a safe single path component."""
    name = Path(filename or "").name
    name = _UNSAFE_CHARS_RE.sub("_", name).lstrip(".")
    return name or "image"


class ImageStorage(ABC):
    """Abstract base class for image storage backends."""

    @abstractmethod
    def save(self, filename: str, content: bytes, content_type: str) -> StoredImage:
        """Store an image.

        Args:
            filename: Original upload filename.
            content: Image bytes.
            content_type: MIME type reported by the client.

        Returns:
            StoredImage with the public URL and the key used for deletion.
        """

    @abstractmethod
    def delete(self, image_id: str) -> bool:
        """Delete an image. Returns False if it did not exist."""


class LocalImageStorage(ImageStorage):
    """Local filesystem backend. Stores files in {base_path}/{image_id}."""

    def __init__(self, base_path: Path = config.UPLOADS_DIR):
        self.base_path = Path(base_path).resolve()

    def _path(self, image_id: str) -> Path:
        path = (self.base_path / safe_filename(image_id)).resolve()
        if path.parent != self.base_path:
            raise ImageStorageError("Invalid image id")
        return path

    def save(self, filename: str, content: bytes, content_type: str) -> StoredImage:
        image_id = f"{uuid.uuid4().hex[:12]}-{safe_filename(filename)}"
        path = self._path(image_id)
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error("Failed to save image %s: %s", image_id, e)
            raise ImageStorageError(f"Failed to save image {filename}") from e
        logger.info("Saved image %s (%d bytes)", image_id, len(content))
        return StoredImage(url=f"{LOCAL_URL_PREFIX}/{image_id}", image_id=image_id)

    def delete(self, image_id: str) -> bool:
        path = self._path(image_id)
        if not path.exists():
            logger.warning("Image not found for deletion: %s", image_id)
            return False
        try:
            path.unlink()
        except OSError as e:
            logger.error("Failed to delete image %s: %s", image_id, e)
            raise ImageStorageError("Failed to delete image") from e
        return True


class CloudinaryImageStorage(ImageStorage):
    """Cloudinary backend."""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, folder: str):
        cloudinary.config(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            secure=True,
        )
        self.folder = folder

    def save(self, filename: str, content: bytes, content_type: str) -> StoredImage:
        try:
            result = cloudinary.uploader.upload(
                content,
                resource_type="image",
                folder=self.folder,
                overwrite=False,
            )
        except cloudinary.exceptions.Error as e:
            logger.error("Cloudinary upload failed for %s: %s", filename, e)
            raise ImageStorageError("Failed to upload image") from e
        return StoredImage(
            url=result.get("secure_url") or result["url"],
            image_id=result["public_id"],
        )

    def delete(self, image_id: str) -> bool:
        try:
            result = cloudinary.uploader.destroy(image_id, resource_type="image")
        except cloudinary.exceptions.Error as e:
            logger.error("Cloudinary delete failed for %s: %s", image_id, e)
            raise ImageStorageError("Failed to delete image") from e
        return result.get("result") == "ok"


@lru_cache(maxsize=1)
def get_image_storage() -> ImageStorage:
    """Build the configured storage backend (STORAGE_BACKEND)."""
    if config.STORAGE_BACKEND == "cloudinary":
        if not (
            config.CLOUDINARY_CLOUD_NAME
            and config.CLOUDINARY_API_KEY
            and config.CLOUDINARY_API_SECRET
        ):
            raise ImageStorageError("Cloudinary storage selected but credentials are not set")
        return CloudinaryImageStorage(
            cloud_name=config.CLOUDINARY_CLOUD_NAME,
            api_key=config.CLOUDINARY_API_KEY,
            api_secret=config.CLOUDINARY_API_SECRET,
            folder=config.CLOUDINARY_FOLDER,
        )
    return LocalImageStorage(config.UPLOADS_DIR)
