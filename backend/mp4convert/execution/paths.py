"""
File naming for uploads, converted outputs and archive entries.

Pattern for converted files: converted_{upload_stem}.mp4
Upload stems already carry a timestamp + random prefix, so converted
names do not collide between jobs.
"""

import re
from pathlib import Path, PurePosixPath

from .base import PathLike

OUTPUT_PREFIX = "converted_"
OUTPUT_EXTENSION = ".mp4"

# Trailing extension, as in "clip.flv" -> ".flv"
_EXTENSION_PATTERN = re.compile(r"\.[^/.]+$")


def sanitize_filename(name: str) -> str:
    """
    Sanitize a filename component.

    Removes or replaces characters that are invalid on most filesystems.
    Directory components are dropped.

    Args:
        name: Raw filename as sent by the client

    Returns:
        Sanitized filename safe for filesystem use
    """
    # Browsers may send either separator
    name = name.replace("\\", "/").rsplit("/", 1)[-1]

    invalid_chars = r'[<>:"/\\|?*\x00-\x1f]'
    sanitized = re.sub(invalid_chars, "_", name)

    # Remove leading/trailing spaces and dots
    sanitized = sanitized.strip(". ")

    if not sanitized:
        sanitized = "upload"

    return sanitized


def output_filename_for(input_path: PathLike) -> str:
    """Derive the converted file name from the stored upload path."""
    return f"{OUTPUT_PREFIX}{Path(input_path).stem}{OUTPUT_EXTENSION}"


def public_url_for(filename: str, public_prefix: str = "/converted") -> str:
    """Relative URL under which a converted file is served."""
    return f"{public_prefix.rstrip('/')}/{filename}"


def output_path_for_url(output_dir: PathLike, output_url: str) -> Path:
    """Map a job's output_url back to the file inside output_dir."""
    return Path(output_dir) / PurePosixPath(output_url).name


def archive_entry_name(original_name: str) -> str:
    """
    Name used for a job's file inside the download-all archive.

    The original extension is replaced with .mp4:
        "holiday.flv" -> "holiday.mp4"
    """
    base = original_name.replace("\\", "/").rsplit("/", 1)[-1]
    return _EXTENSION_PATTERN.sub("", base) + OUTPUT_EXTENSION
