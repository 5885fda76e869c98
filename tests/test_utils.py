"""Timecode formatting and filename derivation."""
import pytest

from srtgen.utils import filename_stem, format_time_srt, subtitle_filename


# --- Timecodes ---

@pytest.mark.parametrize("seconds, expected", [
    (0, "00:00:00,000"),
    (1.5, "00:00:01,500"),
    (61.25, "00:01:01,250"),
    (3661.001, "01:01:01,001"),
    (59.9996, "00:01:00,000"),
])
def test_format_time_srt(seconds, expected):
    assert format_time_srt(seconds) == expected


def test_format_time_srt_rounds_to_nearest_millisecond():
    """0.0005 s boundaries round, they are not truncated."""
    assert format_time_srt(2.0004) == "00:00:02,000"
    assert format_time_srt(2.0006) == "00:00:02,001"


def test_format_time_srt_hours_not_wrapped():
    """Hours past 24 keep counting."""
    assert format_time_srt(25 * 3600) == "25:00:00,000"
    assert format_time_srt(100 * 3600 + 1) == "100:00:01,000"


def test_format_time_srt_negative_clamped_to_zero():
    assert format_time_srt(-3.2) == "00:00:00,000"


# --- Filenames ---

@pytest.mark.parametrize("original, expected", [
    ("lecture.mp4", "lecture.srt"),
    ("interview.final.mov", "interview.final.srt"),
    ("no_extension", "no_extension.srt"),
    ("my talk.webm", "my talk.srt"),
])
def test_subtitle_filename(original, expected):
    assert subtitle_filename(original) == expected


def test_filename_stem_drops_directories():
    """Client-supplied paths never leak into the download name."""
    assert filename_stem("../../etc/passwd.mp3") == "passwd"
    assert filename_stem("C:\\Users\\me\\clip.mp4") == "clip"


def test_filename_stem_replaces_header_unsafe_characters():
    assert filename_stem('we"ird;name.mp3') == "we_ird_name"
    assert filename_stem("café.mp3") == "caf_"


def test_filename_stem_default_when_empty():
    assert filename_stem("") == "transcript"
    assert filename_stem("...") == "transcript"
    assert filename_stem(None, default="media") == "media"
