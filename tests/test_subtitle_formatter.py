"""Structured transcript validation and SRT rendering."""
from types import SimpleNamespace

import pytest

from srtgen.exceptions import InvalidTranscriptFormatError
from srtgen.models import Segment
from srtgen.subtitle_formatter import SRTFormatter, extract_segments, json_to_srt


TWO_CUES = (
    "1\n00:00:00,000 --> 00:00:01,500\nHello\n"
    "\n"
    "2\n00:00:01,500 --> 00:00:03,000\nworld\n"
)


# --- Rendering ---

def test_json_to_srt_renders_cues_in_order():
    data = {"segments": [
        {"start": 0.0, "end": 1.5, "text": " Hello"},
        {"start": 1.5, "end": 3.0, "text": "world "},
    ]}
    assert json_to_srt(data) == TWO_CUES


def test_json_to_srt_is_deterministic():
    data = {"segments": [{"start": 0, "end": 1, "text": "same"}]}
    assert json_to_srt(data) == json_to_srt(data)


def test_empty_segments_give_empty_document():
    assert json_to_srt({"segments": []}) == ""


def test_single_cue_layout():
    srt = SRTFormatter().format_subtitles([Segment(start=3725.5, end=3727.0, text="late line")])
    assert srt == "1\n01:02:05,500 --> 01:02:07,000\nlate line\n"


def test_multiline_text_is_kept():
    srt = json_to_srt({"segments": [{"start": 0, "end": 1, "text": "first\nsecond"}]})
    assert srt == "1\n00:00:00,000 --> 00:00:01,000\nfirst\nsecond\n"


def test_segments_as_objects():
    """SDK responses expose segments as attributes rather than dict keys."""
    data = SimpleNamespace(segments=[
        SimpleNamespace(start=0.0, end=1.5, text="Hello"),
        SimpleNamespace(start=1.5, end=3.0, text="world"),
    ])
    assert json_to_srt(data) == TWO_CUES


# --- Malformed segments ---

def test_malformed_segment_is_skipped():
    """A segment without text is dropped, the rest still render."""
    data = {"segments": [
        {"start": 0.0, "end": 1.5, "text": "Hello"},
        {"start": 1.5, "end": 3.0},
    ]}
    assert json_to_srt(data) == "1\n00:00:00,000 --> 00:00:01,500\nHello\n"


def test_cues_are_renumbered_after_skips():
    data = {"segments": [
        {"start": 0.0, "end": 1.0, "text": "one"},
        {"start": "1.0", "end": 2.0, "text": "bad start"},
        {"start": 2.0, "end": 3.0, "text": "three"},
    ]}
    srt = json_to_srt(data)
    assert srt.startswith("1\n00:00:00,000")
    assert "\n2\n00:00:02,000 --> 00:00:03,000\nthree\n" in srt
    assert "bad start" not in srt


@pytest.mark.parametrize("segment", [
    None,
    "just a string",
    {"start": True, "end": 1.0, "text": "bool start"},
    {"start": 0.0, "end": float("nan"), "text": "nan end"},
    {"start": 0.0, "end": 1.0, "text": 42},
    {"end": 1.0, "text": "no start"},
])
def test_invalid_segment_shapes_are_skipped(segment, caplog):
    segments = extract_segments({"segments": [segment, {"start": 0, "end": 1, "text": "ok"}]})
    assert segments == [Segment(start=0.0, end=1.0, text="ok")]
    assert "invalid structure at index 0" in caplog.text


def test_all_segments_invalid_gives_empty_document():
    assert json_to_srt({"segments": [{"text": "x"}, {"start": 1}]}) == ""


# --- Missing segments ---

@pytest.mark.parametrize("data", [
    {},
    {"text": "transcript without segments"},
    {"segments": None},
    {"segments": "not a list"},
    {"segments": {"start": 0}},
    None,
    "plain text",
])
def test_missing_segments_raise(data):
    with pytest.raises(InvalidTranscriptFormatError, match="segments"):
        json_to_srt(data)


def test_invalid_format_error_payload():
    with pytest.raises(InvalidTranscriptFormatError) as exc_info:
        extract_segments({"text": "hi"})
    assert exc_info.value.status_code == 502
    assert exc_info.value.to_payload() == {
        "error": "Invalid transcription data: segments property is missing or not an array."
    }
