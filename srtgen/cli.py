"""Command-Line Interface handler for SrtGen."""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace
from typing import List, Optional

import uvicorn

from .api import create_app
from .config_loader import AppConfig, ConfigLoader
from .log_setup import setup_logging
from .subtitle_generator import SubtitleGenerator
from .exceptions import SrtGenError, ConfigurationError, FileSystemError
from .utils import ensure_dir_exists

logger = logging.getLogger(__name__)


class LocalMediaFile:
    """Presents a local file with the same async read() interface as an upload."""

    def __init__(self, path: str):
        self.path = path
        self.filename = os.path.basename(path)
        self._handle = None

    async def read(self, size: int = -1) -> bytes:
        if self._handle is None:
            self._handle = open(self.path, "rb")
        return self._handle.read(size)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


class CLIHandler:
    """Parses arguments and either serves the HTTP API or transcribes one file."""

    def __init__(self):
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """Creates the argument parser for the CLI."""
        parser = argparse.ArgumentParser(
            description="SrtGen: turn audio/video files into SRT subtitles via OpenAI transcription.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        parser.add_argument(
            "-c", "--config",
            default=None,
            help="Path to an optional YAML configuration file."
        )
        parser.add_argument(
            "--log-level",
            default=None,
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Override the logging level from config/environment."
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        serve = subparsers.add_parser("serve", help="Run the HTTP API.")
        serve.add_argument("--host", default=None, help="Bind address (default from config).")
        serve.add_argument("--port", type=int, default=None, help="Port (default from config).")

        transcribe = subparsers.add_parser("transcribe", help="Transcribe one local media file.")
        transcribe.add_argument("media", help="Path to the input audio/video file.")
        transcribe.add_argument(
            "-o", "--output-dir",
            default=".",
            help="Directory to save the generated subtitle file (.srt)."
        )
        return parser

    def _load_config(self, args: argparse.Namespace) -> AppConfig:
        try:
            config = ConfigLoader().load_config(args.config)
        except (ConfigurationError, FileNotFoundError) as e:
            # Logging is not configured yet.
            setup_logging(log_level=logging.INFO)
            logger.critical(f"Failed to load configuration: {e}")
            sys.exit(1)
        if args.log_level:
            config = replace(config, log_level=args.log_level)
        if getattr(args, "host", None):
            config = replace(config, host=args.host)
        if getattr(args, "port", None):
            config = replace(config, port=args.port)
        return config

    def run(self, argv: Optional[List[str]] = None) -> None:
        """Parses arguments, sets up logging, loads config, and dispatches."""
        args = self.parser.parse_args(argv)
        config = self._load_config(args)

        log_level = getattr(logging, config.log_level.upper(), logging.INFO)
        setup_logging(
            log_level=log_level,
            log_dir=config.log_dir,
            log_file=config.log_file,
            console=config.console_logging,
        )

        try:
            if args.command == "serve":
                self.serve(config)
            else:
                self.transcribe_file(config, args.media, args.output_dir)
            sys.exit(0)
        except SrtGenError as e:
            logger.error(f"A SrtGen error occurred: {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            sys.exit(1)
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            sys.exit(2)

    def serve(self, config: AppConfig) -> None:
        """Runs the FastAPI app under uvicorn until interrupted."""
        app = create_app(config)
        logger.info(f"Backend server starting on http://{config.host}:{config.port}")
        uvicorn.run(app, host=config.host, port=config.port, log_config=None)

    def transcribe_file(self, config: AppConfig, media_path: str, output_dir: str) -> str:
        """
        Runs the pipeline on a local file and writes the .srt into output_dir.

        Returns:
            Path of the written subtitle file.
        """
        if not os.path.isfile(media_path):
            raise FileSystemError(f"Input media file not found or is not a file: {media_path}")
        ensure_dir_exists(output_dir)

        generator = SubtitleGenerator.from_config(config)
        source = LocalMediaFile(media_path)
        try:
            result = asyncio.run(generator.generate(source))
        finally:
            source.close()

        output_path = os.path.join(output_dir, result.filename)
        with open(output_path, "wb") as f:
            f.write(result.body)
        logger.info(f"Subtitles saved to: {output_path}")
        return output_path


def main() -> None:
    """Console script entry point."""
    CLIHandler().run()
