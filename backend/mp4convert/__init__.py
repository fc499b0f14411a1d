"""
mp4convert: upload video files, convert them to MP4 with FFmpeg,
track each conversion job and download the results.
"""

__version__ = "0.1.0"
