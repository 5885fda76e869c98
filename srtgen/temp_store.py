"""On-disk location and lifecycle of uploaded and derived files."""

import asyncio
import logging
import os
import time
import uuid
from typing import Optional, Protocol

from .exceptions import FileSystemError
from .models import UploadedMedia
from .utils import ensure_dir_exists, filename_stem

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 1024 * 1024


class MediaSource(Protocol):
    """An incoming file: FastAPI's UploadFile or a local file adapter."""

    filename: Optional[str]

    async def read(self, size: int = -1) -> bytes:
        ...


class TempFileStore:
    """
    Hands out unique paths inside a dedicated upload directory.

    The directory is created on first use and then reused for the lifetime of
    the process. Every generated name embeds a millisecond timestamp and a
    random token, so concurrent requests never collide and need no locking.
    """

    def __init__(self, upload_dir: str):
        self.upload_dir = upload_dir
        self._dir_ready = False

    def _ensure_dir(self) -> None:
        if not self._dir_ready:
            ensure_dir_exists(self.upload_dir)
            self._dir_ready = True

    @staticmethod
    def _unique_token() -> str:
        return f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"

    def reserve(self, suffix: str = "") -> str:
        """Returns a fresh path in the upload directory. Nothing is written."""
        self._ensure_dir()
        return os.path.join(self.upload_dir, f"upload_{self._unique_token()}{suffix}")

    def derive_output_path(self, original_filename: str, extension: str) -> str:
        """Returns a fresh path named after the original file, e.g. talk_1700000000000_ab12cd34.mp3."""
        self._ensure_dir()
        stem = filename_stem(original_filename, default="media")
        return os.path.join(self.upload_dir, f"{stem}_{self._unique_token()}.{extension}")

    async def save_upload(self, source: MediaSource, path: str) -> UploadedMedia:
        """
        Streams an incoming file to a reserved path.

        Chunks are written from a worker thread.

        Args:
            source: The incoming file.
            path: A path obtained from reserve().

        Returns:
            The stored UploadedMedia.

        Raises:
            FileSystemError: If the file cannot be written.
        """
        written = 0
        try:
            with open(path, "wb") as f:
                while True:
                    chunk = await source.read(UPLOAD_CHUNK_SIZE)
                    if not chunk:
                        break
                    await asyncio.to_thread(f.write, chunk)
                    written += len(chunk)
        except OSError as e:
            logger.error(f"Failed to store upload at {path}: {e}")
            raise FileSystemError(f"Could not store uploaded file: {e}") from e

        logger.info(f"Stored upload '{source.filename}' at {path} ({written} bytes)")
        return UploadedMedia(path=path, original_filename=source.filename or "")

    def release(self, *paths: Optional[str]) -> None:
        """
        Deletes the given files, best effort.

        Empty/None entries and files that were never written are skipped.
        Failures are logged and never raised.
        """
        for path in paths:
            if not path:
                continue
            try:
                os.remove(path)
                logger.info(f"Successfully deleted temp file: {path}")
            except FileNotFoundError:
                logger.debug(f"Temp file was never written, nothing to delete: {path}")
            except OSError as e:
                logger.error(
                    f"Failed to delete temp file {path}: errno={e.errno} strerror={e.strerror}"
                )
