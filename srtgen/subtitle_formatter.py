"""Handles converting structured transcripts into subtitle text (SRT)."""

import logging
import math
from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, Sequence

from .models import Segment, SubtitleCue
from .exceptions import InvalidTranscriptFormatError
from .utils import format_time_srt

logger = logging.getLogger(__name__)

_MISSING = object()


def _field(obj: Any, name: str) -> Any:
    """Reads a field from a dict-like response or an SDK model object."""
    if isinstance(obj, Mapping):
        return obj.get(name, _MISSING)
    return getattr(obj, name, _MISSING)


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def extract_segments(data: Any) -> List[Segment]:
    """
    Validates the segments of a structured (verbose_json) transcript.

    Segments with a non-numeric start/end or a non-string text are skipped
    and logged with their position; they do not abort the conversion.

    Args:
        data: The backend response, as a mapping or an SDK object.

    Returns:
        The well-formed segments, in their original order, text stripped.

    Raises:
        InvalidTranscriptFormatError: If there is no segments list.
    """
    raw_segments = _field(data, "segments") if data is not None else _MISSING
    if raw_segments is _MISSING or not isinstance(raw_segments, (list, tuple)):
        logger.error(
            "Response does not contain a valid segments array (expected from verbose_json). "
            f"Received type: {type(data).__name__}"
        )
        raise InvalidTranscriptFormatError("segments property is missing or not an array.")

    segments = []
    for i, seg in enumerate(raw_segments):
        start = _field(seg, "start") if seg is not None else _MISSING
        end = _field(seg, "end") if seg is not None else _MISSING
        text = _field(seg, "text") if seg is not None else _MISSING
        if not (_is_number(start) and _is_number(end) and isinstance(text, str)):
            logger.warning(f"Skipping segment with invalid structure at index {i}: {seg!r}")
            continue
        segments.append(Segment(start=float(start), end=float(end), text=text.strip()))

    if len(segments) != len(raw_segments):
        logger.info(f"Kept {len(segments)} of {len(raw_segments)} segments.")
    return segments


class SubtitleFormatter(ABC):
    """Abstract base class for subtitle formatters."""

    @abstractmethod
    def format_subtitles(self, segments: Sequence[Segment]) -> str:
        """
        Renders segments as subtitle document text.

        Args:
            segments: Validated segments, in display order.

        Returns:
            The serialized subtitle document.
        """
        pass


class SRTFormatter(SubtitleFormatter):
    """Formats subtitles into the SRT (SubRip Text) format."""

    def build_cues(self, segments: Sequence[Segment]) -> List[SubtitleCue]:
        """Numbers the segments 1..N in order."""
        return [
            SubtitleCue(index=i, start=seg.start, end=seg.end, text=seg.text)
            for i, seg in enumerate(segments, start=1)
        ]

    @staticmethod
    def format_cue(cue: SubtitleCue) -> str:
        return "\n".join([
            str(cue.index),
            f"{format_time_srt(cue.start)} --> {format_time_srt(cue.end)}",
            cue.text,
            "",
        ])

    def format_subtitles(self, segments: Sequence[Segment]) -> str:
        """
        Formats segments into SRT text.

        Each cue is "{index}\\n{start} --> {end}\\n{text}\\n" and cues are
        joined by a blank line. No segments yields an empty document.
        """
        cues = self.build_cues(segments)
        srt = "\n".join(self.format_cue(cue) for cue in cues)
        logger.debug(f"Formatted {len(cues)} SRT cues ({len(srt)} chars)")
        return srt

    def json_to_srt(self, data: Any) -> str:
        """Validates a structured transcript and formats it in one step."""
        return self.format_subtitles(extract_segments(data))


def json_to_srt(data: Any, formatter: Optional[SRTFormatter] = None) -> str:
    """Module-level shortcut for SRTFormatter().json_to_srt(data)."""
    return (formatter or SRTFormatter()).json_to_srt(data)
