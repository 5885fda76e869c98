"""FastAPI application exposing the transcription pipeline over HTTP."""

import logging
from typing import Optional, Union

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .config_loader import AppConfig
from .exceptions import SrtGenError
from .subtitle_generator import SubtitleGenerator

logger = logging.getLogger(__name__)

SERVICE_NAME = "srtgen"


def create_app(config: AppConfig, generator: Optional[SubtitleGenerator] = None) -> FastAPI:
    """
    Builds the FastAPI app around one SubtitleGenerator.

    Args:
        config: Application configuration.
        generator: Pipeline to use; built from config when omitted.
    """
    app = FastAPI(title="SrtGen Transcription Service", version="1.0.0")
    app.state.generator = generator or SubtitleGenerator.from_config(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    @app.exception_handler(SrtGenError)
    async def srtgen_error_handler(request: Request, exc: SrtGenError) -> JSONResponse:
        logger.error(f"--- Error Handler Caught Error --- {type(exc).__name__}: {exc}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.post("/api/transcribe")
    async def transcribe(file: Union[UploadFile, str, None] = File(None)) -> Response:
        """Converts one uploaded media file into an SRT download."""
        # A plain-text "file" field or a part without a filename arrives as str.
        if isinstance(file, str):
            file = None
        logger.info("Received request on /api/transcribe")
        if file is not None:
            logger.info(f"Uploaded file details: filename={file.filename!r} content_type={file.content_type!r}")
        try:
            result = await app.state.generator.generate(file)
        finally:
            if file is not None:
                await file.close()
        return Response(
            content=result.body,
            media_type=result.media_type,
            headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
        )

    @app.get("/health")
    def health():
        return {"status": "ok", "service": SERVICE_NAME}

    return app
