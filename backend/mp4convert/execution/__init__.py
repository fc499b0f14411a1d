"""
Execution: transcoder engines and the background conversion worker.

FFmpeg is the only real engine. Tests substitute their own engine
through the TranscodeEngine interface.
"""

from .base import TranscodeEngine, ProgressCallback
from .errors import ExecutionError, TranscodeError, EngineUnavailableError
from .ffmpeg import FFmpegEngine
from .progress import ProgressParser, ProgressInfo
from .worker import ConversionWorker, ProgressTracker

__all__ = [
    "TranscodeEngine",
    "ProgressCallback",
    "ExecutionError",
    "TranscodeError",
    "EngineUnavailableError",
    "FFmpegEngine",
    "ProgressParser",
    "ProgressInfo",
    "ConversionWorker",
    "ProgressTracker",
]
