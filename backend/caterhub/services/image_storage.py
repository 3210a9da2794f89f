"""
CaterHub Backend — Image Storage Service
==========================================

What:  Validates and stores dish photos and package cover images.
Why:   Centralizes all file system operations with security checks.
How:   Validates declared MIME type, size, and decodable image content,
       stores in folder/date-organized directories under a UUID filename,
       and returns the public URL saved on the dish or package row.
Who:   Called by the dish and package routes for multipart `image` fields.

Security Model:
    1. Declared type check: the multipart part must claim an image/* type
    2. Size check: streamed read stops one byte past max_file_size
    3. Content check: Pillow must recognise the bytes as JPEG, PNG, WEBP or GIF
    4. UUID filename: no user input reaches the file system path
    5. Serving: `resolve()` refuses any path that escapes storage_root

Directory Structure:
    storage/
    ├── dishes/2025/01/15/a1b2c3d4-....jpg
    └── packages/2025/01/15/e5f6g7h8-....png

Every rejection is an UploadError (HTTP 400).
"""

import io
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from caterhub.config import Settings
from caterhub.exceptions import UploadError

logger = logging.getLogger(__name__)

# What: Pillow format name → stored file extension
ALLOWED_FORMATS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "WEBP": ".webp",
    "GIF": ".gif",
}

ALLOWED_FOLDERS = {"dishes", "packages"}

READ_CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class StoredImage:
    url: str
    relative_path: str
    absolute_path: str


class ImageStorage:
    """
    Manages image upload validation and storage.

    Lifecycle of an uploaded image:
        1. Route receives multipart `image` → ImageStorage.save_upload()
        2. Declared content type must be image/*
        3. Bytes are read in chunks, bounded by max_file_size
        4. Pillow identifies and verifies the image
        5. File is written to <folder>/YYYY/MM/DD/<uuid>.<ext>
        6. Public URL is returned and stored on the entity
        7. If the request later fails: cleanup_file() removes it again
    """

    def __init__(
        self,
        storage_root: str,
        max_file_size: int = 10_485_760,
        public_url: str = "/files",
    ):
        self.storage_root = Path(storage_root).resolve()
        self.max_file_size = max_file_size
        self.public_url = public_url.rstrip("/")
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("ImageStorage initialized with storage_root=%s", self.storage_root)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageStorage":
        return cls(
            storage_root=settings.storage_root,
            max_file_size=settings.max_file_size,
            public_url=settings.public_files_url,
        )

    # ── Validation ────────────────────────────────────────────────────────

    def validate_content_type(self, content_type: Optional[str]) -> None:
        if not content_type or not content_type.lower().startswith("image/"):
            raise UploadError(
                message="Only image files are allowed",
                context={"content_type": content_type},
            )

    def validate_size(self, actual_size: int) -> None:
        max_mb = self.max_file_size / (1024 * 1024)
        if actual_size == 0:
            raise UploadError(message="Uploaded image is empty")
        if actual_size > self.max_file_size:
            raise UploadError(
                message=f"Image exceeds maximum size of {max_mb:.0f}MB",
                context={"max_size_mb": max_mb},
            )

    def detect_extension(self, content: bytes) -> str:
        """
        Identify the image format from its bytes.

        Returns:
            File extension for the detected format (".jpg", ".png", ...)
        Raises:
            UploadError if Pillow cannot decode the bytes or the format is not allowed
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                image_format = img.format
                img.verify()
        except Image.DecompressionBombError as e:
            raise UploadError(
                message="Image dimensions are too large",
                context={"error": str(e)},
            )
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise UploadError(
                message="Uploaded file is not a valid image",
                context={"error": str(e)},
            )

        extension = ALLOWED_FORMATS.get(image_format or "")
        if extension is None:
            raise UploadError(
                message=(
                    f"Image format '{image_format}' is not supported. "
                    f"Allowed: {', '.join(sorted(ALLOWED_FORMATS))}"
                ),
                context={"format": image_format},
            )
        return extension

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_storage_path(self, folder: str, extension: str) -> Tuple[Path, str]:
        now = datetime.now(timezone.utc)
        relative_path = f"{folder}/{now.strftime('%Y/%m/%d')}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, folder: str, extension: str) -> StoredImage:
        if folder not in ALLOWED_FOLDERS:
            raise ValueError(f"Unknown image folder: {folder}")

        absolute_path, relative_path = self._generate_storage_path(folder, extension)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store image at %s: %s", absolute_path, str(e))
            raise UploadError(
                message="Failed to save uploaded image. Please try again.",
                context={"os_error": str(e)},
            )

        logger.info("Image stored: %s (%d bytes)", relative_path, len(content))
        return StoredImage(
            url=f"{self.public_url}/{relative_path}",
            relative_path=relative_path,
            absolute_path=str(absolute_path),
        )

    async def _read_bounded(self, upload: UploadFile) -> bytes:
        """Read at most max_file_size + 1 bytes so oversized uploads are not fully buffered."""
        chunks = []
        total = 0
        while True:
            chunk = await upload.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            chunks.append(chunk)
            total += len(chunk)
            if total > self.max_file_size:
                break
        return b"".join(chunks)

    async def save_upload(self, upload: UploadFile, folder: str) -> StoredImage:
        """
        Complete validation and storage pipeline for one multipart file.

        Validation order (cheapest first):
            1. Declared content type
            2. Size (bounded read)
            3. Decodable image content
            4. Write to disk
        """
        self.validate_content_type(upload.content_type)
        content = await self._read_bounded(upload)
        self.validate_size(len(content))
        extension = self.detect_extension(content)
        return await self.store_file(content, folder, extension)

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a stored image after the surrounding request failed.

        Best-effort: a leftover file is logged, never surfaced to the client.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up image: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up image %s: %s", file_path, str(e))

    def resolve(self, relative_path: str) -> Optional[Path]:
        """
        Map a public relative path back to a file under storage_root.

        Returns None when the path escapes the root or no file exists.
        """
        candidate = (self.storage_root / relative_path).resolve()
        if not candidate.is_relative_to(self.storage_root):
            return None
        if not candidate.is_file():
            return None
        return candidate
