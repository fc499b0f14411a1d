"""
Settings tests.
"""

from pathlib import Path

import pydantic
import pytest

from mp4convert.config import DEFAULT_MAX_UPLOAD_BYTES, Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in [
        "DATA_DIR", "UPLOAD_DIR", "OUTPUT_DIR", "DB_PATH", "MAX_UPLOAD_BYTES",
        "CORS_ORIGINS", "FFMPEG_PATH", "HOST", "PORT", "LOG_LEVEL",
    ]:
        monkeypatch.delenv(f"MP4CONVERT_{name}", raising=False)


def test_defaults():
    settings = Settings.from_env()

    assert settings.data_dir == Path("data")
    assert settings.upload_dir == Path("data") / "uploads"
    assert settings.output_dir == Path("data") / "converted"
    assert settings.db_path == Path("data") / "jobs.db"
    assert settings.max_upload_bytes == DEFAULT_MAX_UPLOAD_BYTES == 2 * 1024 ** 3
    assert settings.public_prefix == "/converted"
    assert settings.port == 8085


def test_data_dir_moves_every_path(monkeypatch, tmp_path):
    monkeypatch.setenv("MP4CONVERT_DATA_DIR", str(tmp_path))

    settings = Settings.from_env()

    assert settings.upload_dir == tmp_path / "uploads"
    assert settings.output_dir == tmp_path / "converted"
    assert settings.db_path == tmp_path / "jobs.db"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("MP4CONVERT_OUTPUT_DIR", str(tmp_path / "out"))
    monkeypatch.setenv("MP4CONVERT_MAX_UPLOAD_BYTES", "1024")
    monkeypatch.setenv("MP4CONVERT_CORS_ORIGINS", "http://a.test, http://b.test,")
    monkeypatch.setenv("MP4CONVERT_PORT", "9000")
    monkeypatch.setenv("MP4CONVERT_FFMPEG_PATH", "/opt/ffmpeg/bin/ffmpeg")

    settings = Settings.from_env()

    assert settings.output_dir == tmp_path / "out"
    assert settings.max_upload_bytes == 1024
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.port == 9000
    assert settings.ffmpeg_path == "/opt/ffmpeg/bin/ffmpeg"


def test_blank_values_are_ignored(monkeypatch):
    monkeypatch.setenv("MP4CONVERT_PORT", "  ")
    assert Settings.from_env().port == 8085


def test_invalid_value_rejected(monkeypatch):
    monkeypatch.setenv("MP4CONVERT_MAX_UPLOAD_BYTES", "0")
    with pytest.raises(pydantic.ValidationError):
        Settings.from_env()


def test_ensure_directories(tmp_path):
    settings = Settings.for_data_dir(tmp_path / "data")

    settings.ensure_directories()

    assert settings.upload_dir.is_dir()
    assert settings.output_dir.is_dir()
    assert settings.db_path.parent.is_dir()
