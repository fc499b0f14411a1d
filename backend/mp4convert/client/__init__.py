"""
Command-line client: scan a folder, upload, poll until done, download.
"""

from .api import JobClient
from .errors import ClientError
from .poller import JobPoller, next_poll_interval, POLL_INTERVAL_SECONDS
from .scanner import VALID_EXTENSIONS, scan_folder, is_video_file

__all__ = [
    "JobClient",
    "ClientError",
    "JobPoller",
    "next_poll_interval",
    "POLL_INTERVAL_SECONDS",
    "VALID_EXTENSIONS",
    "scan_folder",
    "is_video_file",
]
