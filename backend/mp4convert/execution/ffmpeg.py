"""
FFmpeg transcoder engine.

Real transcoding via subprocess.Popen.

Design rules:
- One subprocess per job
- Output is always H.264 video + AAC audio in an MP4 container
- stderr is streamed line by line into ProgressParser
- Non-zero exit code = TranscodeError carrying FFmpeg's last message
- No timeout, no cancellation: a conversion runs until FFmpeg exits
"""

import logging
import os
import shutil
import subprocess
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional

from .base import TranscodeEngine, ProgressCallback, PathLike
from .errors import TranscodeError, EngineUnavailableError
from .progress import ProgressParser, ProgressInfo

logger = logging.getLogger(__name__)


# Fixed output profile
VIDEO_CODEC = "libx264"
AUDIO_CODEC = "aac"
CONTAINER_FORMAT = "mp4"

# Common install locations checked after PATH
COMMON_FFMPEG_PATHS = [
    "/usr/local/bin/ffmpeg",
    "/usr/bin/ffmpeg",
    "/opt/homebrew/bin/ffmpeg",
]

# Lines of stderr kept for the failure message
STDERR_TAIL_LINES = 20


class FFmpegEngine(TranscodeEngine):
    """
    FFmpeg-based transcoder.

    Uses subprocess.Popen and parses progress from stderr.
    """

    def __init__(self, ffmpeg_path: Optional[str] = None):
        """
        Args:
            ffmpeg_path: Explicit ffmpeg binary. Auto-detected when None.
        """
        self._ffmpeg_path: Optional[str] = ffmpeg_path

    @property
    def name(self) -> str:
        return "FFmpeg"

    @property
    def available(self) -> bool:
        """Check if ffmpeg is installed and accessible."""
        return self._find_ffmpeg() is not None

    def _find_ffmpeg(self) -> Optional[str]:
        """Find ffmpeg binary path."""
        if self._ffmpeg_path:
            return self._ffmpeg_path

        ffmpeg_path = shutil.which("ffmpeg")
        if ffmpeg_path:
            self._ffmpeg_path = ffmpeg_path
            return ffmpeg_path

        for path in COMMON_FFMPEG_PATHS:
            if os.path.isfile(path) and os.access(path, os.X_OK):
                self._ffmpeg_path = path
                return path

        return None

    def build_command(self, input_path: PathLike, output_path: PathLike) -> List[str]:
        """
        Build FFmpeg command line arguments.

        Raises:
            EngineUnavailableError: If ffmpeg cannot be found
        """
        ffmpeg_path = self._find_ffmpeg()
        if not ffmpeg_path:
            raise EngineUnavailableError("FFmpeg is not installed or not in PATH")

        return [
            ffmpeg_path,
            "-nostdin",
            "-y",  # overwrite output
            "-i", str(input_path),
            "-c:v", VIDEO_CODEC,
            "-c:a", AUDIO_CODEC,
            "-f", CONTAINER_FORMAT,
            str(output_path),
        ]

    def transcode(
        self,
        input_path: PathLike,
        output_path: PathLike,
        on_progress: ProgressCallback,
    ) -> None:
        cmd = self.build_command(input_path, output_path)

        # Log the command for audit
        logger.info(f"[FFmpeg] Executing: {' '.join(cmd)}")

        def forward(info: ProgressInfo) -> None:
            on_progress(info.percent)

        parser = ProgressParser(on_progress=forward)
        stderr_tail: Deque[str] = deque(maxlen=STDERR_TAIL_LINES)

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            raise TranscodeError(f"Failed to start ffmpeg: {e}") from e

        logger.info(f"[FFmpeg] Started PID {process.pid} for {input_path}")

        # Text mode splits FFmpeg's carriage-return progress updates into lines
        with process:
            for line in process.stderr:
                line = line.strip()
                if not line:
                    continue
                stderr_tail.append(line)
                parser.parse_line(line)
            exit_code = process.wait()

        logger.info(f"[FFmpeg] PID {process.pid} exited with code {exit_code}")

        if exit_code != 0:
            detail = stderr_tail[-1] if stderr_tail else "no output"
            raise TranscodeError(f"ffmpeg exited with code {exit_code}: {detail}")

        if not Path(output_path).is_file():
            raise TranscodeError("Output file was not created")
