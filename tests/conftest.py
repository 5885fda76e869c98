"""Shared fakes: uploads, a scripted ffmpeg, and stub pipeline components."""
import io
import os
import stat
import sys
from typing import Optional

import pytest

from srtgen.config_loader import AppConfig
from srtgen.models import NormalizedAudio


posix_only = pytest.mark.skipif(sys.platform == "win32", reason="fake ffmpeg is a /bin/sh script")


class FakeUpload:
    """Minimal stand-in for fastapi.UploadFile."""

    def __init__(self, filename: Optional[str], data: bytes = b"fake-media-bytes"):
        self.filename = filename
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


class FakeAudioExtractor:
    """Writes a small file instead of running ffmpeg, or raises a preset error."""

    extension = "mp3"

    def __init__(self, error: Optional[Exception] = None, write_partial: bool = False):
        self.error = error
        self.write_partial = write_partial
        self.calls = []

    async def normalize(self, input_path: str, output_path: str) -> NormalizedAudio:
        self.calls.append((input_path, output_path))
        if self.write_partial:
            with open(output_path, "wb") as f:
                f.write(b"partial")
        if self.error is not None:
            raise self.error
        with open(output_path, "wb") as f:
            f.write(b"ID3-normalized-audio")
        return NormalizedAudio(path=output_path, size_bytes=os.path.getsize(output_path))


def make_config(tmp_path, **overrides) -> AppConfig:
    values = dict(
        openai_api_key="sk-test",
        upload_dir=str(tmp_path / "uploads"),
        log_dir=str(tmp_path / "logs"),
    )
    values.update(overrides)
    return AppConfig(**values)


def write_script(path, body: str) -> str:
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def fake_ffmpeg(tmp_path):
    """Returns a factory that writes an executable shell script posing as ffmpeg."""
    def _make(body: str, name: str = "ffmpeg") -> str:
        return write_script(tmp_path / name, body)
    return _make


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


def listdir(path) -> list:
    return sorted(os.listdir(path)) if os.path.isdir(path) else []
