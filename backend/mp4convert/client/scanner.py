"""
Local folder scanning for convertible video files.
"""

import logging
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

# Extensions offered for conversion (compared case-insensitively)
VALID_EXTENSIONS = (".flv", ".asf", ".rmvb", ".mpeg", ".mpg", ".wmv", ".avi", ".mp4")


def is_video_file(path: Path) -> bool:
    """True if path has one of the accepted video extensions."""
    return path.suffix.lower() in VALID_EXTENSIONS


def scan_folder(folder: Path, recursive: bool = False) -> List[Path]:
    """
    Find convertible video files in a folder.

    Args:
        folder: Directory to scan
        recursive: Also descend into subdirectories

    Returns:
        Matching files, sorted by path

    Raises:
        NotADirectoryError: If folder is not a directory
    """
    folder = Path(folder)
    if not folder.is_dir():
        raise NotADirectoryError(f"Not a directory: {folder}")

    candidates = folder.rglob("*") if recursive else folder.iterdir()
    files = sorted(p for p in candidates if p.is_file() and is_video_file(p))

    logger.info(f"Scanned {folder}: {len(files)} video file(s) found")
    return files
