"""
FFmpeg progress parsing.

FFmpeg prints the input duration once in its stream header:
    Duration: 00:02:05.30, start: 0.000000, bitrate: 1205 kb/s

and then progress lines to stderr:
    frame=   24 fps= 12 q=28.0 size=       0kB time=00:00:01.00 bitrate=   0.0kbits/s

We parse:
- Duration: HH:MM:SS.ss → total length (unless already known)
- time=HH:MM:SS.ss → current position
- position / duration → percentage
"""

import re
from dataclasses import dataclass
from typing import Optional, Callable


# Matches: Duration: 00:02:05.30 (not "Duration: N/A")
DURATION_PATTERN = re.compile(r'Duration:\s*(\d+):(\d{2}):(\d{2})(?:\.(\d+))?')

# Matches: time=00:00:01.00 or time=00:01:23.45
TIME_PATTERN = re.compile(r'time=\s*(\d+):(\d{2}):(\d{2})(?:\.(\d+))?')

# Regex to extract frame count
FRAME_PATTERN = re.compile(r'frame=\s*(\d+)')


def _to_seconds(match: "re.Match[str]") -> float:
    hours = int(match.group(1))
    minutes = int(match.group(2))
    seconds = int(match.group(3))
    fraction = match.group(4)
    fractional = float(f"0.{fraction}") if fraction else 0.0
    return hours * 3600 + minutes * 60 + seconds + fractional


@dataclass
class ProgressInfo:
    """Progress information for a running conversion."""

    # Progress percentage (0-100)
    percent: float = 0.0

    # Current position in seconds
    current_time: float = 0.0

    # Total duration in seconds (0 until known)
    total_duration: float = 0.0

    # Current frame number
    current_frame: int = 0


class ProgressParser:
    """
    Parse FFmpeg stderr output for progress information.

    Usage:
        parser = ProgressParser(on_progress=lambda info: print(info.percent))
        for line in ffmpeg_stderr:
            parser.parse_line(line)
    """

    def __init__(
        self,
        duration: Optional[float] = None,
        on_progress: Optional[Callable[[ProgressInfo], None]] = None,
    ):
        """
        Initialize progress parser.

        Args:
            duration: Total duration in seconds, if known up front.
                Otherwise it is read from FFmpeg's Duration header.
            on_progress: Optional callback for progress updates
        """
        self.on_progress = on_progress
        self._progress = ProgressInfo(total_duration=duration or 0.0)

    @property
    def duration(self) -> float:
        return self._progress.total_duration

    def parse_line(self, line: str) -> Optional[ProgressInfo]:
        """
        Parse a single line of FFmpeg stderr output.

        Args:
            line: Single line from FFmpeg stderr

        Returns:
            Updated ProgressInfo if line contained progress, None otherwise
        """
        if self._progress.total_duration <= 0:
            duration_match = DURATION_PATTERN.search(line)
            if duration_match:
                self._progress.total_duration = _to_seconds(duration_match)
                return None

        time_match = TIME_PATTERN.search(line)
        if not time_match:
            return None

        current_time = _to_seconds(time_match)
        self._progress.current_time = current_time

        # Without a duration there is no meaningful percentage
        if self._progress.total_duration > 0:
            self._progress.percent = min(
                100.0, (current_time / self._progress.total_duration) * 100.0
            )
        else:
            self._progress.percent = 0.0

        frame_match = FRAME_PATTERN.search(line)
        if frame_match:
            self._progress.current_frame = int(frame_match.group(1))

        if self.on_progress:
            self.on_progress(self._progress)

        return self._progress
