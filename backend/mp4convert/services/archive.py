"""
Streaming ZIP archives of converted files.

The archive is produced chunk by chunk while it is being sent, so a
large batch never has to fit in memory or on disk twice. If a source
file becomes unreadable mid-stream the response simply ends early.
"""

import zipfile
from pathlib import Path
from typing import Iterable, Iterator, List, Tuple

from ..execution.paths import archive_entry_name, output_path_for_url
from ..jobs.models import ConversionJob, JobStatus

ARCHIVE_FILENAME = "converted_videos.zip"
READ_CHUNK_SIZE = 1024 * 1024

ArchiveEntry = Tuple[Path, str]


class _ZipStream:
    """
    Write-only sink for zipfile that hands out what was written so far.

    It has no tell()/seek(), so zipfile writes entries with data
    descriptors and never rewinds.
    """

    def __init__(self):
        self._buffer = bytearray()

    def write(self, data) -> int:
        self._buffer.extend(data)
        return len(data)

    def flush(self) -> None:
        pass

    def drain(self) -> bytes:
        chunk = bytes(self._buffer)
        self._buffer.clear()
        return chunk


def completed_entries(jobs: Iterable[ConversionJob], output_dir: Path) -> List[ArchiveEntry]:
    """
    Archive entries for every completed job, in the given job order.

    Jobs whose output file is missing on disk are skipped.
    """
    entries: List[ArchiveEntry] = []
    for job in jobs:
        if job.status != JobStatus.COMPLETED or not job.output_url:
            continue
        source = output_path_for_url(output_dir, job.output_url)
        if source.is_file():
            entries.append((source, archive_entry_name(job.original_name)))
    return entries


def iter_zip(entries: Iterable[ArchiveEntry], chunk_size: int = READ_CHUNK_SIZE) -> Iterator[bytes]:
    """
    Yield a ZIP archive of entries as a sequence of byte chunks.

    Args:
        entries: (source file, name inside archive) pairs, added in order
        chunk_size: Read size for source files
    """
    stream = _ZipStream()

    with zipfile.ZipFile(stream, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for source, arcname in entries:
            zinfo = zipfile.ZipInfo.from_file(source, arcname)
            zinfo.compress_type = zipfile.ZIP_DEFLATED

            with open(source, "rb") as src, archive.open(zinfo, mode="w") as dest:
                while True:
                    data = src.read(chunk_size)
                    if not data:
                        break
                    dest.write(data)
                    chunk = stream.drain()
                    if chunk:
                        yield chunk

            chunk = stream.drain()
            if chunk:
                yield chunk

    # Central directory, written on close
    chunk = stream.drain()
    if chunk:
        yield chunk
