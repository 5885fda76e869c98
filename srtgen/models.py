"""Data models for SrtGen."""

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(frozen=True)
class UploadedMedia:
    """An uploaded file stored in the upload directory."""
    path: str
    original_filename: str


@dataclass(frozen=True)
class NormalizedAudio:
    """Mono, fixed-rate audio derived from an UploadedMedia."""
    path: str
    size_bytes: int


@dataclass
class Segment:
    """Represents a single timed chunk of text."""
    start: float
    end: float
    text: str


@dataclass(frozen=True)
class SubtitleCue:
    """One numbered entry of a subtitle track."""
    index: int
    start: float
    end: float
    text: str


@dataclass(frozen=True)
class SubtitleText:
    """Ready-made subtitle text returned by the backend."""
    text: str


@dataclass
class StructuredTranscript:
    """Validated segment data returned by the backend."""
    segments: List[Segment] = field(default_factory=list)
    language: Optional[str] = None
    duration: Optional[float] = None


TranscriptionResult = Union[SubtitleText, StructuredTranscript]


@dataclass(frozen=True)
class SubtitleResponse:
    """Final payload handed back to the caller."""
    body: bytes
    filename: str
    media_type: str = "text/plain"
