"""Normalizes arbitrary media into speech-ready audio using ffmpeg."""

import asyncio
import logging
import os
import time
from typing import Dict, List, Optional

import ffmpeg

from .exceptions import ConversionFailedError
from .models import NormalizedAudio
from .utils import elapsed_ms

logger = logging.getLogger(__name__)

# Output encodings. Every preset is mono, resampled and has a fixed sample format.
AUDIO_PRESETS: Dict[str, Dict[str, str]] = {
    "mp3": {"acodec": "libmp3lame", "sample_fmt": "s16p", "audio_bitrate": "64k", "format": "mp3"},
    "wav": {"acodec": "pcm_s16le", "sample_fmt": "s16", "format": "wav"},
}

MAX_DIAGNOSTIC_CHARS = 4000


def _tail(output: Optional[bytes]) -> str:
    if not output:
        return ""
    text = output.decode("utf-8", errors="replace").strip()
    return text[-MAX_DIAGNOSTIC_CHARS:]


class AudioExtractor:
    """Strips video and resamples the audio track of an uploaded file."""

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        timeout_seconds: float = 300.0,
        audio_format: str = "mp3",
        sample_rate: int = 16000,
        channels: int = 1,
    ):
        """
        Initializes the AudioExtractor.

        Args:
            ffmpeg_path: Optional path to the ffmpeg executable.
                         If None, assumes ffmpeg is in the system PATH.
            timeout_seconds: Wall-clock limit for one conversion.
            audio_format: Key of AUDIO_PRESETS selecting the output encoding.
            sample_rate: Output sample rate in Hz.
            channels: Output channel count.
        """
        if audio_format not in AUDIO_PRESETS:
            raise ValueError(f"Unsupported audio format: {audio_format}")
        self.ffmpeg_cmd = ffmpeg_path or 'ffmpeg'
        self.timeout_seconds = timeout_seconds
        self.audio_format = audio_format
        self.sample_rate = sample_rate
        self.channels = channels
        logger.info(f"Using ffmpeg command: {self.ffmpeg_cmd} (format={audio_format}, timeout={timeout_seconds}s)")

    @property
    def extension(self) -> str:
        return AUDIO_PRESETS[self.audio_format]["format"]

    def build_command(self, input_path: str, output_path: str) -> List[str]:
        """Returns the ffmpeg argument list for one conversion."""
        return (
            ffmpeg
            .input(input_path)
            .output(
                output_path,
                vn=None,
                ar=self.sample_rate,
                ac=self.channels,
                **AUDIO_PRESETS[self.audio_format],
            )
            .global_args('-hide_banner', '-nostdin', '-loglevel', 'error')
            .overwrite_output()
            .compile(cmd=self.ffmpeg_cmd)
        )

    async def normalize(self, input_path: str, output_path: str) -> NormalizedAudio:
        """
        Converts the input media to the configured audio encoding.

        The subprocess is awaited once. It either exits, or is killed when
        timeout_seconds elapse.

        Args:
            input_path: Path to the uploaded media file.
            output_path: Path where the normalized audio is written.

        Returns:
            The NormalizedAudio written to output_path.

        Raises:
            ConversionFailedError: With reason FAILED if ffmpeg exits non-zero
                or cannot be started, TIMEOUT if it runs too long, or
                OUTPUT_MISSING if it reports success without output.
        """
        args = self.build_command(input_path, output_path)
        logger.info(f"Starting conversion: {input_path} -> {output_path}")
        logger.info(f"FFmpeg Spawned: {' '.join(args)}")
        started = time.perf_counter()

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"Could not start ffmpeg ({self.ffmpeg_cmd}): {e}")
            raise ConversionFailedError(
                f"FFmpeg conversion failed: could not start '{self.ffmpeg_cmd}': {e}",
                reason=ConversionFailedError.FAILED,
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            await self._terminate(process)
            logger.error(f"FFmpeg timed out after {self.timeout_seconds}s, process {process.pid} killed")
            raise ConversionFailedError(
                f"FFmpeg conversion failed: timed out after {self.timeout_seconds} seconds",
                reason=ConversionFailedError.TIMEOUT,
            )
        except asyncio.CancelledError:
            await self._terminate(process)
            raise

        if process.returncode != 0:
            diagnostics = _tail(stderr) or _tail(stdout)
            logger.error(f"FFmpeg Error: exit code {process.returncode}, stderr: {diagnostics or 'No stderr output'}")
            raise ConversionFailedError(
                f"FFmpeg conversion failed: exit code {process.returncode}: {diagnostics or 'no diagnostic output'}",
                reason=ConversionFailedError.FAILED,
                diagnostics=diagnostics,
            )

        size = os.path.getsize(output_path) if os.path.isfile(output_path) else 0
        if size == 0:
            logger.error(f"FFmpeg reported success but output is missing or empty: {output_path}")
            raise ConversionFailedError(
                "FFmpeg conversion finished but output file not found.",
                reason=ConversionFailedError.OUTPUT_MISSING,
                diagnostics=_tail(stderr) or None,
            )

        logger.info(
            f"FFmpeg Conversion finished successfully in {elapsed_ms(started, time.perf_counter())} ms. "
            f"Converted file size: {size / (1024 * 1024):.2f} MB"
        )
        return NormalizedAudio(path=output_path, size_bytes=size)

    @staticmethod
    async def _terminate(process: asyncio.subprocess.Process) -> None:
        """Kills a running ffmpeg and reaps it."""
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
        await process.wait()
