"""
Transcoder engine abstraction.

An engine turns one input file into one MP4 (H.264 video, AAC audio).

Event contract for transcode():
- on_progress is called zero or more times with a percent value
- then exactly one terminal event: the call returns (success)
  or raises TranscodeError (failure)
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Union

ProgressCallback = Callable[[float], None]
PathLike = Union[str, Path]


class TranscodeEngine(ABC):
    """
    Abstract base class for transcoder engines.

    Engines are stateless - all context passed per-call.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable engine name for logs."""
        pass

    @property
    @abstractmethod
    def available(self) -> bool:
        """
        Check if engine is available on this system.

        Returns:
            True if engine can execute, False if not installed/configured.
        """
        pass

    @abstractmethod
    def transcode(
        self,
        input_path: PathLike,
        output_path: PathLike,
        on_progress: ProgressCallback,
    ) -> None:
        """
        Convert input_path to an MP4 at output_path.

        Args:
            input_path: Source media file
            output_path: Destination .mp4 file (parent directory exists)
            on_progress: Called with percent complete as conversion advances

        Raises:
            TranscodeError: If conversion fails for any reason
        """
        pass
