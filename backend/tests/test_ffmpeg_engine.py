"""
FFmpeg engine tests.

subprocess.Popen is mocked; these tests check the command line, the
progress forwarding and the failure mapping, not FFmpeg itself.
"""

from unittest.mock import MagicMock, patch

import pytest

from mp4convert.execution.errors import EngineUnavailableError, TranscodeError
from mp4convert.execution.ffmpeg import FFmpegEngine


STDERR = [
    "ffmpeg version 6.1 Copyright (c) 2000-2023 the FFmpeg developers\n",
    "Input #0, flv, from 'clip.flv':\n",
    "  Duration: 00:00:10.00, start: 0.000000, bitrate: 800 kb/s\n",
    "\n",
    "frame=   60 fps=0.0 q=28.0 size=     128kB time=00:00:02.50 bitrate= 419.4kbits/s\n",
    "frame=  240 fps=120 q=28.0 size=     512kB time=00:00:10.00 bitrate= 419.4kbits/s\n",
]


def _fake_process(stderr_lines, exit_code=0):
    process = MagicMock()
    process.pid = 4242
    process.stderr = list(stderr_lines)
    process.wait.return_value = exit_code
    return process


class TestCommand:

    def test_fixed_h264_aac_profile(self, tmp_path):
        engine = FFmpegEngine(ffmpeg_path="/opt/ffmpeg")
        cmd = engine.build_command(tmp_path / "in.flv", tmp_path / "out.mp4")

        assert cmd[0] == "/opt/ffmpeg"
        assert cmd[cmd.index("-i") + 1] == str(tmp_path / "in.flv")
        assert cmd[cmd.index("-c:v") + 1] == "libx264"
        assert cmd[cmd.index("-c:a") + 1] == "aac"
        assert cmd[cmd.index("-f") + 1] == "mp4"
        assert cmd[-1] == str(tmp_path / "out.mp4")
        assert "-y" in cmd

    def test_unavailable_when_not_found(self, tmp_path):
        engine = FFmpegEngine()
        with patch("mp4convert.execution.ffmpeg.shutil.which", return_value=None), \
                patch("mp4convert.execution.ffmpeg.os.path.isfile", return_value=False):
            assert engine.available is False
            with pytest.raises(EngineUnavailableError):
                engine.build_command(tmp_path / "in.flv", tmp_path / "out.mp4")

    def test_found_on_path(self):
        engine = FFmpegEngine()
        with patch("mp4convert.execution.ffmpeg.shutil.which", return_value="/usr/bin/ffmpeg"):
            assert engine.available is True
            assert engine.build_command("a.avi", "b.mp4")[0] == "/usr/bin/ffmpeg"


class TestTranscode:

    def test_success_forwards_progress(self, tmp_path):
        output = tmp_path / "out.mp4"
        output.write_bytes(b"mp4")
        seen = []

        engine = FFmpegEngine(ffmpeg_path="ffmpeg")
        with patch(
            "mp4convert.execution.ffmpeg.subprocess.Popen",
            return_value=_fake_process(STDERR),
        ) as popen:
            engine.transcode(tmp_path / "in.flv", output, seen.append)

        assert popen.call_count == 1
        assert seen == [pytest.approx(25.0), pytest.approx(100.0)]

    def test_nonzero_exit_raises_with_last_line(self, tmp_path):
        lines = STDERR[:3] + ["Unsupported codec id in stream 0\n"]
        engine = FFmpegEngine(ffmpeg_path="ffmpeg")

        with patch(
            "mp4convert.execution.ffmpeg.subprocess.Popen",
            return_value=_fake_process(lines, exit_code=1),
        ):
            with pytest.raises(TranscodeError) as exc_info:
                engine.transcode(tmp_path / "in.flv", tmp_path / "out.mp4", lambda p: None)

        message = str(exc_info.value)
        assert "code 1" in message
        assert "Unsupported codec id in stream 0" in message

    def test_missing_output_is_an_error(self, tmp_path):
        engine = FFmpegEngine(ffmpeg_path="ffmpeg")

        with patch(
            "mp4convert.execution.ffmpeg.subprocess.Popen",
            return_value=_fake_process(STDERR),
        ):
            with pytest.raises(TranscodeError, match="Output file was not created"):
                engine.transcode(tmp_path / "in.flv", tmp_path / "out.mp4", lambda p: None)

    def test_spawn_failure_is_transcode_error(self, tmp_path):
        engine = FFmpegEngine(ffmpeg_path="/does/not/exist/ffmpeg")

        with patch(
            "mp4convert.execution.ffmpeg.subprocess.Popen",
            side_effect=FileNotFoundError("No such file"),
        ):
            with pytest.raises(TranscodeError, match="Failed to start ffmpeg"):
                engine.transcode(tmp_path / "in.flv", tmp_path / "out.mp4", lambda p: None)
