"""Handles Speech-to-Text transcription using the OpenAI audio API."""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional

import openai
from openai import AsyncOpenAI

from .models import StructuredTranscript, SubtitleText, TranscriptionResult
from .exceptions import (
    InvalidTranscriptFormatError,
    MissingCredentialError,
    TranscriptionBackendError,
    TranscriptionError,
)
from .subtitle_formatter import extract_segments
from .utils import elapsed_ms

logger = logging.getLogger(__name__)

STRUCTURED_FORMAT = "verbose_json"
SUBTITLE_FORMAT = "srt"


class Transcriber(ABC):
    """Abstract base class for transcription services."""

    @abstractmethod
    async def transcribe(self, audio_path: str) -> TranscriptionResult:
        """
        Transcribes the given audio file.

        Args:
            audio_path: Path to the normalized audio file.

        Returns:
            SubtitleText or StructuredTranscript, depending on the requested format.

        Raises:
            TranscriptionError: If transcription fails.
        """
        pass


class OpenAITranscriber(Transcriber):
    """Sends audio to the OpenAI transcription endpoint (whisper-1 by default)."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "whisper-1",
        response_format: str = STRUCTURED_FORMAT,
        language: Optional[str] = None,
        timeout_seconds: float = 600.0,
    ):
        """
        Initializes the OpenAITranscriber.

        Args:
            api_key: OpenAI API key. Requests are refused when it is empty.
            model: Transcription model name.
            response_format: "verbose_json" for segments or "srt" for ready subtitles.
            language: Optional ISO-639-1 hint passed to the backend.
            timeout_seconds: Timeout for the single backend request.
        """
        if response_format not in (STRUCTURED_FORMAT, SUBTITLE_FORMAT):
            raise ValueError(f"Unsupported response format: {response_format}")
        self._api_key = api_key
        self.model = model
        self.response_format = response_format
        self.language = language
        self.timeout_seconds = timeout_seconds

    async def transcribe(self, audio_path: str) -> TranscriptionResult:
        if not self._api_key:
            raise MissingCredentialError()

        logger.info(f"Attempting to transcribe converted file: {audio_path} with model {self.model} ({self.response_format})")
        started = time.perf_counter()
        request: Dict[str, Any] = {
            "model": self.model,
            "response_format": self.response_format,
        }
        if self.language:
            request["language"] = self.language

        # No SDK retries: one attempt per request.
        client = AsyncOpenAI(api_key=self._api_key, timeout=self.timeout_seconds, max_retries=0)
        try:
            with open(audio_path, "rb") as audio_file:
                response = await client.audio.transcriptions.create(file=audio_file, **request)
        except openai.APIStatusError as e:
            logger.error(
                "OpenAI API Error Details: "
                f"status={e.status_code} type={e.type} code={e.code} param={e.param}"
            )
            raise TranscriptionBackendError(
                e.message,
                status_code=e.status_code,
                error_type=e.type,
                error_code=e.code,
                param=e.param,
            ) from e
        except openai.APIConnectionError as e:
            logger.error(f"Could not reach the transcription backend: {e}")
            raise TranscriptionError(f"Transcription backend unreachable: {e}") from e
        except openai.OpenAIError as e:
            logger.error(f"Transcription request failed: {e}")
            raise TranscriptionError(f"Transcription request failed: {e}") from e
        except FileNotFoundError as e:
            logger.error(f"Audio file disappeared before transcription: {audio_path}")
            raise TranscriptionError(f"Audio file not found: {audio_path}") from e
        finally:
            await client.close()

        logger.info(f"OpenAI transcription successful in {elapsed_ms(started, time.perf_counter())} ms.")
        return self._parse_response(response)

    def _parse_response(self, response: Any) -> TranscriptionResult:
        """Turns the raw SDK response into the TranscriptionResult union."""
        if self.response_format == SUBTITLE_FORMAT:
            text = response if isinstance(response, str) else getattr(response, "text", None)
            if not isinstance(text, str):
                raise InvalidTranscriptFormatError(
                    f"expected subtitle text, got {type(response).__name__}."
                )
            return SubtitleText(text=text)

        payload = response
        if isinstance(payload, (str, bytes)):
            try:
                payload = json.loads(payload)
            except ValueError as e:
                raise InvalidTranscriptFormatError(f"response is not valid JSON: {e}") from e
        elif not isinstance(payload, Mapping) and hasattr(payload, "model_dump"):
            payload = payload.model_dump()

        segments = extract_segments(payload)
        language = payload.get("language") if isinstance(payload, Mapping) else None
        duration = payload.get("duration") if isinstance(payload, Mapping) else None
        logger.info(f"Transcription returned {len(segments)} usable segments (language={language}).")
        return StructuredTranscript(
            segments=segments,
            language=language if isinstance(language, str) else None,
            duration=float(duration) if isinstance(duration, (int, float)) and not isinstance(duration, bool) else None,
        )
