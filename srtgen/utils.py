"""Utility functions for SrtGen."""

import os
import logging
import re
from .exceptions import FileSystemError

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r'[^\w.\- ]+', re.ASCII)


def ensure_dir_exists(dir_path: str) -> None:
    """
    Ensures that a directory exists. Creates it if it doesn't.

    Args:
        dir_path: The path to the directory.

    Raises:
        FileSystemError: If the directory cannot be created due to permissions
                         or if the path exists but is not a directory.
    """
    if not dir_path:
        raise ValueError("Directory path cannot be empty.")
    try:
        if not os.path.exists(dir_path):
            os.makedirs(dir_path, exist_ok=True)
            logger.info(f"Created directory: {dir_path}")
        elif not os.path.isdir(dir_path):
            raise FileSystemError(f"Path exists but is not a directory: {dir_path}")
    except OSError as e:
        logger.error(f"Error creating or accessing directory {dir_path}: {e}", exc_info=True)
        raise FileSystemError(f"Could not create or access directory {dir_path}: {e}") from e


def format_time_srt(seconds: float) -> str:
    """
    Formats seconds into SRT time format HH:MM:SS,mmm.

    Hours are not wrapped, so 25 hours renders as 25:00:00,000.

    Args:
        seconds: Time in seconds.

    Returns:
        Formatted time string.
    """
    if seconds < 0:
        seconds = 0.0
    milliseconds = int(round(seconds * 1000))
    hrs = milliseconds // 3600000
    milliseconds %= 3600000
    mins = milliseconds // 60000
    milliseconds %= 60000
    secs = milliseconds // 1000
    milliseconds %= 1000
    return f"{hrs:02d}:{mins:02d}:{secs:02d},{milliseconds:03d}"


def filename_stem(filename: str, default: str = "transcript") -> str:
    """
    Returns the stem of a client-supplied filename, safe for headers and paths.

    Directory components are dropped (both separators, since the name comes
    from an arbitrary client), unsafe characters are replaced with '_'.
    """
    base = (filename or "").replace("\\", "/").split("/")[-1]
    stem = os.path.splitext(base)[0]
    stem = _UNSAFE_FILENAME_CHARS.sub("_", stem).strip(" .")
    return stem or default


def subtitle_filename(original_filename: str) -> str:
    """Derives the attachment name for the generated subtitles."""
    return f"{filename_stem(original_filename)}.srt"


def elapsed_ms(start: float, end: float) -> str:
    """Formats a perf_counter interval as milliseconds."""
    return f"{(end - start) * 1000:.2f}"
