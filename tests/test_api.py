"""HTTP surface: multipart upload, attachment headers and JSON error bodies."""
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import make_config
from srtgen.api import create_app
from srtgen.exceptions import (
    ConversionFailedError,
    InvalidTranscriptFormatError,
    MissingCredentialError,
    NoFileProvidedError,
    TranscriptionBackendError,
    TranscriptionError,
    UnexpectedPipelineError,
)
from srtgen.models import SubtitleResponse

SRT = "1\n00:00:00,000 --> 00:00:01,500\nHello\n"


# --- Helpers ---

def _client(tmp_path, result=None, error=None):
    generator = MagicMock()
    generator.generate = AsyncMock(return_value=result, side_effect=error)
    app = create_app(make_config(tmp_path), generator=generator)
    return TestClient(app), generator


def _upload(name="lecture.mp4"):
    return {"file": (name, b"fake-media", "video/mp4")}


# --- Success ---

def test_transcribe_returns_attachment(tmp_path):
    result = SubtitleResponse(body=SRT.encode("utf-8"), filename="lecture.srt")
    client, generator = _client(tmp_path, result=result)

    resp = client.post("/api/transcribe", files=_upload())

    assert resp.status_code == 200
    assert resp.text == SRT
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.headers["content-disposition"] == 'attachment; filename="lecture.srt"'
    source = generator.generate.call_args.args[0]
    assert source.filename == "lecture.mp4"


def test_health(tmp_path):
    client, _ = _client(tmp_path)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "srtgen"}


def test_cors_exposes_content_disposition(tmp_path):
    result = SubtitleResponse(body=b"", filename="a.srt")
    client, _ = _client(tmp_path, result=result)

    resp = client.post("/api/transcribe", files=_upload(), headers={"Origin": "http://localhost:5173"})

    assert "content-disposition" in resp.headers["access-control-expose-headers"].lower()


# --- Errors ---

def test_request_without_file_reaches_pipeline_as_none(tmp_path):
    client, generator = _client(tmp_path, error=NoFileProvidedError())

    resp = client.post("/api/transcribe", data={"note": "no file here"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "No file uploaded."}
    generator.generate.assert_awaited_once_with(None)


@pytest.mark.parametrize("error, status, payload", [
    (
        MissingCredentialError(),
        500,
        {"error": "Server configuration error."},
    ),
    (
        ConversionFailedError("FFmpeg conversion failed: timed out after 300.0 seconds",
                              reason=ConversionFailedError.TIMEOUT),
        500,
        {
            "error": "Failed to process media file.",
            "details": "FFmpeg conversion failed: timed out after 300.0 seconds",
            "reason": "timeout",
        },
    ),
    (
        TranscriptionBackendError("Rate limit reached", status_code=429,
                                  error_type="requests", error_code="rate_limit_exceeded"),
        429,
        {"error": "OpenAI API Error: Rate limit reached", "type": "requests", "code": "rate_limit_exceeded"},
    ),
    (
        TranscriptionError("Transcription backend unreachable: Connection error."),
        502,
        {"error": "Transcription request failed.", "details": "Transcription backend unreachable: Connection error."},
    ),
    (
        InvalidTranscriptFormatError("segments property is missing or not an array."),
        502,
        {"error": "Invalid transcription data: segments property is missing or not an array."},
    ),
    (
        UnexpectedPipelineError("An unexpected error occurred: boom"),
        500,
        {"error": "An unexpected server error occurred."},
    ),
])
def test_errors_map_to_json(tmp_path, error, status, payload):
    client, _ = _client(tmp_path, error=error)

    resp = client.post("/api/transcribe", files=_upload())

    assert resp.status_code == status
    assert resp.json() == payload
    assert "content-disposition" not in resp.headers


@pytest.mark.parametrize("request_kwargs", [
    {"data": {"file": "notafile"}},
    {"files": {"file": ("", b"x", "video/mp4")}},
    {},
])
def test_unusable_file_field_is_no_file(tmp_path, request_kwargs):
    """Text fields and nameless parts are rejected by the real pipeline, not by form validation."""
    config = make_config(tmp_path)
    client = TestClient(create_app(config))

    resp = client.post("/api/transcribe", **request_kwargs)

    assert resp.status_code == 400
    assert resp.json() == {"error": "No file uploaded."}
    assert not (tmp_path / "uploads").exists()
