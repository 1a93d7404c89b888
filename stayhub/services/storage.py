"""
Object storage service backed by bucket directories on the local filesystem.
Handles image validation, collision-resistant object names, public URLs and removal.
"""

import io
import re
import secrets
import time
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional, Tuple

import aiofiles
import aiofiles.os
from fastapi import UploadFile
from PIL import Image, UnidentifiedImageError

from stayhub.config import Settings, settings as default_settings
from stayhub.utils.exceptions import (
    ValidationError,
    StorageError,
    UnsupportedFileTypeError,
    FileSizeExceededError,
)
import logging

logger = logging.getLogger(__name__)

# Pillow format names accepted for each MIME type
PIL_FORMATS = {
    "image/jpeg": {"JPEG", "MPO"},
    "image/png": {"PNG"},
    "image/webp": {"WEBP"},
    "image/gif": {"GIF"},
}

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StoredObject(NamedTuple):
    """Location of an uploaded object."""
    bucket: str
    path: str
    url: str


def is_present(upload: Optional[UploadFile]) -> bool:
    """Check whether a multipart file field actually carries a file."""
    return upload is not None and bool(upload.filename)


def sanitize_filename(filename: str) -> str:
    """
    Reduce a client-supplied file name to a safe single path segment.

    Args:
        filename: Original file name, possibly with directories

    Returns:
        Name containing only letters, digits, dots, dashes and underscores
    """
    name = Path(filename.replace("\\", "/")).name
    name = _UNSAFE_NAME_CHARS.sub("_", name).strip("._")
    return name or "image"


class StorageService:
    """
    Filesystem object store.
    Each bucket is a directory under base_dir; objects are served under public_url/{bucket}/{path}.
    """

    def __init__(
        self,
        base_dir: str,
        public_url: str,
        max_file_size: int,
        allowed_types: Iterable[str]
    ):
        self.base_dir = Path(base_dir).resolve()
        self.public_url = public_url.rstrip("/")
        self.max_file_size = max_file_size
        self.allowed_types = list(allowed_types)

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "StorageService":
        """Build the service from application settings."""
        return cls(
            base_dir=config.storage_dir,
            public_url=config.storage_public_url,
            max_file_size=config.max_file_size,
            allowed_types=config.allowed_file_types,
        )

    @staticmethod
    def build_object_path(folder: str, filename: str, prefix: Optional[str] = None) -> str:
        """
        Build an object path inside a bucket folder.

        Args:
            folder: Folder inside the bucket ("frontdisplay", "ids", ...)
            filename: Original file name
            prefix: Name prefix; defaults to a millisecond timestamp plus a random suffix

        Returns:
            Relative object path such as "room/1712345678901-a1b2c3d4-room.jpg"
        """
        if prefix is None:
            prefix = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"
        return f"{folder.strip('/')}/{prefix}-{sanitize_filename(filename)}"

    def _bucket_dir(self, bucket: str) -> Path:
        return self.base_dir / bucket

    def _resolve(self, bucket: str, path: str) -> Path:
        """
        Resolve an object path to a file inside its bucket directory.

        Raises:
            StorageError: If the path escapes the bucket
        """
        bucket_dir = self._bucket_dir(bucket).resolve()
        target = (bucket_dir / path).resolve()
        if target == bucket_dir or bucket_dir not in target.parents:
            raise StorageError(f"Invalid object path '{path}'")
        return target

    async def read_image(self, upload: UploadFile) -> Tuple[bytes, str]:
        """
        Read and validate an uploaded image.

        Args:
            upload: Multipart file

        Returns:
            Tuple of (content, content_type)

        Raises:
            UnsupportedFileTypeError: If the MIME type is not allowed
            FileSizeExceededError: If the file is larger than max_file_size
            ValidationError: If the file is empty, undecodable or a decompression bomb
        """
        content_type = (upload.content_type or "").lower()
        if content_type not in self.allowed_types:
            raise UnsupportedFileTypeError(content_type or "unknown", self.allowed_types)

        await upload.seek(0)
        content = await upload.read()
        await upload.seek(0)

        if not content:
            raise ValidationError.for_field(upload.filename or "file", "File is empty")

        if len(content) > self.max_file_size:
            raise FileSizeExceededError(len(content), self.max_file_size)

        try:
            with Image.open(io.BytesIO(content)) as img:
                img.verify()
                image_format = img.format
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
            raise ValidationError.for_field(upload.filename or "file", f"Invalid image file: {e}")

        expected = PIL_FORMATS.get(content_type)
        if expected and image_format not in expected:
            raise ValidationError.for_field(
                upload.filename or "file",
                f"Image format '{image_format}' doesn't match MIME type '{content_type}'"
            )

        return content, content_type

    async def upload(self, bucket: str, path: str, content: bytes, content_type: Optional[str] = None) -> StoredObject:
        """
        Store bytes under bucket/path. Existing objects are never overwritten.

        Raises:
            StorageError: If the object exists or cannot be written
        """
        target = self._resolve(bucket, path)

        if await self.exists(bucket, path):
            raise StorageError(f"Object '{bucket}/{path}' already exists")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error(f"Failed to write object {bucket}/{path}: {e}")
            raise StorageError(f"Could not store '{bucket}/{path}': {e}")

        logger.debug(f"Stored {len(content)} bytes at {bucket}/{path} ({content_type})")
        return StoredObject(bucket=bucket, path=path, url=self.get_public_url(bucket, path))

    async def upload_image(
        self,
        bucket: str,
        folder: str,
        upload: UploadFile,
        prefix: Optional[str] = None
    ) -> StoredObject:
        """
        Validate an uploaded image and store it under a fresh object path.

        Returns:
            Stored object with its public URL
        """
        content, content_type = await self.read_image(upload)
        path = self.build_object_path(folder, upload.filename or "image", prefix=prefix)
        return await self.upload(bucket, path, content, content_type)

    def get_public_url(self, bucket: str, path: str) -> str:
        """Public URL under which an object is served."""
        return f"{self.public_url}/{bucket}/{path}"

    def path_from_public_url(self, bucket: str, url: Optional[str]) -> Optional[str]:
        """
        Recover the object path from a public URL.

        Returns:
            Object path, or None when the URL does not belong to this bucket
        """
        if not url:
            return None
        prefix = f"{self.public_url}/{bucket}/"
        if not url.startswith(prefix):
            return None
        return url[len(prefix):] or None

    async def exists(self, bucket: str, path: str) -> bool:
        """Check whether an object is stored."""
        return await aiofiles.os.path.isfile(self._resolve(bucket, path))

    async def local_file(self, bucket: str, path: str) -> Optional[Path]:
        """File backing an object, or None when it is missing or outside the bucket."""
        try:
            target = self._resolve(bucket, path)
        except StorageError:
            return None
        return target if await aiofiles.os.path.isfile(target) else None

    async def remove(self, bucket: str, paths: Iterable[str]) -> int:
        """
        Remove objects, best-effort.

        Args:
            bucket: Bucket name
            paths: Object paths to remove

        Returns:
            Number of objects actually removed
        """
        removed = 0
        for path in paths:
            try:
                await aiofiles.os.remove(self._resolve(bucket, path))
                removed += 1
            except FileNotFoundError:
                logger.debug(f"Object {bucket}/{path} already gone")
            except (OSError, StorageError) as e:
                logger.warning(f"Failed to remove object {bucket}/{path}: {e}")
        return removed

    async def remove_urls(self, bucket: str, urls: Iterable[Optional[str]]) -> int:
        """Remove objects identified by their public URLs, best-effort."""
        paths: List[str] = []
        for url in urls:
            path = self.path_from_public_url(bucket, url)
            if path:
                paths.append(path)
        return await self.remove(bucket, paths)
