"""Orchestrates the upload -> normalize -> transcribe -> SRT pipeline."""

import enum
import logging
import time
from typing import List, Optional

from .audio_extractor import AudioExtractor
from .config_loader import AppConfig
from .transcriber import OpenAITranscriber, Transcriber
from .subtitle_formatter import SRTFormatter, SubtitleFormatter
from .models import StructuredTranscript, SubtitleResponse, SubtitleText, TranscriptionResult
from .exceptions import (
    MissingCredentialError,
    NoFileProvidedError,
    SrtGenError,
    UnexpectedPipelineError,
)
from .temp_store import MediaSource, TempFileStore
from .utils import elapsed_ms, subtitle_filename

logger = logging.getLogger(__name__)


class PipelineStage(enum.Enum):
    RECEIVED = "received"
    STORED = "stored"
    NORMALIZING = "normalizing"
    TRANSCRIBING = "transcribing"
    CONVERTING = "converting"
    RESPONDING = "responding"
    CLEANED = "cleaned"
    FAILED = "failed"


class SubtitleGenerator:
    """
    Runs one request through the transcription pipeline.

    Stages run strictly in order. Every temp path reserved during a run is
    released exactly once, in a finally block, whatever the outcome.
    """

    def __init__(
        self,
        config: AppConfig,
        store: TempFileStore,
        audio_extractor: AudioExtractor,
        transcriber: Transcriber,
        subtitle_formatter: Optional[SubtitleFormatter] = None,
    ):
        """
        Initializes the SubtitleGenerator.

        Args:
            config: Application configuration (credential check).
            store: Temp file store for uploads and converted audio.
            audio_extractor: Media normalizer.
            transcriber: Transcription backend client.
            subtitle_formatter: Converter for structured transcripts; SRT by default.
        """
        self.config = config
        self.store = store
        self.audio_extractor = audio_extractor
        self.transcriber = transcriber
        self.subtitle_formatter = subtitle_formatter or SRTFormatter()

    @classmethod
    def from_config(cls, config: AppConfig) -> "SubtitleGenerator":
        """Wires the default components from configuration."""
        return cls(
            config=config,
            store=TempFileStore(config.upload_dir),
            audio_extractor=AudioExtractor(
                ffmpeg_path=config.ffmpeg_path,
                timeout_seconds=config.ffmpeg_timeout_seconds,
                audio_format=config.audio_format,
                sample_rate=config.sample_rate,
                channels=config.channels,
            ),
            transcriber=OpenAITranscriber(
                api_key=config.openai_api_key,
                model=config.transcription_model,
                response_format=config.response_format,
                language=config.transcription_language,
                timeout_seconds=config.transcription_timeout_seconds,
            ),
        )

    def _check_preconditions(self, source: Optional[MediaSource]) -> None:
        if source is None or not getattr(source, "filename", None):
            raise NoFileProvidedError()
        if not self.config.has_credential:
            logger.error("OPENAI_API_KEY is not set in the environment.")
            raise MissingCredentialError()

    @staticmethod
    def _advance(stage: PipelineStage) -> PipelineStage:
        logger.debug(f"Pipeline stage -> {stage.value}")
        return stage

    def _to_subtitle_text(self, result: TranscriptionResult) -> str:
        if isinstance(result, SubtitleText):
            return result.text
        if isinstance(result, StructuredTranscript):
            return self.subtitle_formatter.format_subtitles(result.segments)
        raise TypeError(f"Unknown transcription result type: {type(result).__name__}")

    async def generate(self, source: Optional[MediaSource]) -> SubtitleResponse:
        """
        Executes the full pipeline for a single uploaded file.

        Args:
            source: The uploaded file, or None when the request had none.

        Returns:
            The SRT document with its download filename.

        Raises:
            SrtGenError: A classified failure (see exceptions); unknown
                failures are wrapped in UnexpectedPipelineError.
        """
        request_start = time.perf_counter()
        stage = PipelineStage.RECEIVED
        reserved: List[str] = []
        logger.info(f"--- Received transcription request: {getattr(source, 'filename', None)!r} ---")

        try:
            self._check_preconditions(source)
            original_filename = source.filename

            # 1. Store upload
            upload_path = self.store.reserve()
            reserved.append(upload_path)
            uploaded = await self.store.save_upload(source, upload_path)
            stage = self._advance(PipelineStage.STORED)

            # 2. Normalize audio
            stage = self._advance(PipelineStage.NORMALIZING)
            audio_path = self.store.derive_output_path(original_filename, self.audio_extractor.extension)
            reserved.append(audio_path)
            normalized = await self.audio_extractor.normalize(uploaded.path, audio_path)

            # 3. Transcribe
            stage = self._advance(PipelineStage.TRANSCRIBING)
            result = await self.transcriber.transcribe(normalized.path)

            # 4. Convert to SRT (structured responses only)
            if isinstance(result, StructuredTranscript):
                stage = self._advance(PipelineStage.CONVERTING)
                logger.info("Converting transcription to SRT format...")
                convert_start = time.perf_counter()
                srt = self._to_subtitle_text(result)
                logger.info(f"SRT conversion complete in {elapsed_ms(convert_start, time.perf_counter())} ms.")
            else:
                srt = self._to_subtitle_text(result)

            stage = self._advance(PipelineStage.RESPONDING)
            response = SubtitleResponse(
                body=srt.encode("utf-8"),
                filename=subtitle_filename(original_filename),
                media_type="text/plain",
            )
            logger.info(
                f"--- Subtitles ready ({len(response.body)} bytes). "
                f"Total processing time: {elapsed_ms(request_start, time.perf_counter())} ms ---"
            )
            return response

        except SrtGenError as e:
            logger.error(
                f"Pipeline failed at stage '{stage.value}' after "
                f"{elapsed_ms(request_start, time.perf_counter())} ms: {type(e).__name__}: {e}"
            )
            self._advance(PipelineStage.FAILED)
            raise
        except Exception as e:
            logger.critical(
                f"Unexpected error at stage '{stage.value}' after "
                f"{elapsed_ms(request_start, time.perf_counter())} ms: {e}",
                exc_info=True,
            )
            self._advance(PipelineStage.FAILED)
            raise UnexpectedPipelineError(f"An unexpected error occurred: {e}") from e
        finally:
            logger.info("Cleaning up temporary files...")
            self.store.release(*reserved)
            self._advance(PipelineStage.CLEANED)
