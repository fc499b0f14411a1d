"""
Upload storage.

Uploaded files are written to the upload directory under a generated,
collision-resistant name:

    {epoch_ms}-{random}-{sanitized original name}

The stored upload is kept after conversion. Converted outputs live in a
separate directory under a different name (see execution.paths).
"""

import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from ..execution.paths import sanitize_filename

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


class UploadTooLargeError(Exception):
    """Raised when an upload exceeds the configured size limit."""

    def __init__(self, limit_bytes: int):
        self.limit_bytes = limit_bytes
        super().__init__(f"Upload exceeds limit of {limit_bytes} bytes")


@dataclass
class StoredUpload:
    """An upload written to disk."""

    path: Path
    size: int


def generate_upload_name(original_name: str) -> str:
    """Unique on-disk name for an upload, keeping the original name readable."""
    unique_prefix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
    return f"{unique_prefix}-{sanitize_filename(original_name)}"


def save_upload(
    fileobj: BinaryIO,
    original_name: str,
    upload_dir: Path,
    max_bytes: int,
) -> StoredUpload:
    """
    Copy an uploaded file into upload_dir.

    Args:
        fileobj: Readable binary stream of the upload
        original_name: Client-supplied filename
        upload_dir: Destination directory (created if missing)
        max_bytes: Size limit

    Returns:
        StoredUpload with the final path and bytes written

    Raises:
        UploadTooLargeError: If the upload exceeds max_bytes.
            The partial file is removed.
    """
    upload_dir = Path(upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    target = upload_dir / generate_upload_name(original_name)

    written = 0
    try:
        with open(target, "wb") as out:
            while True:
                chunk = fileobj.read(COPY_CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > max_bytes:
                    raise UploadTooLargeError(max_bytes)
                out.write(chunk)
    except BaseException:
        target.unlink(missing_ok=True)
        raise

    logger.info(f"Stored upload {original_name!r} as {target.name} ({written} bytes)")
    return StoredUpload(path=target, size=written)
