"""Custom Exceptions for the SrtGen application."""

from typing import Any, Dict, Optional


class SrtGenError(Exception):
    """Base class for exceptions in this module."""

    status_code = 500
    error = "An unexpected server error occurred."

    def to_payload(self) -> Dict[str, Any]:
        """Returns the JSON body sent to the client for this error."""
        return {"error": self.error}


class ConfigurationError(SrtGenError):
    """Exception raised for errors in configuration loading."""
    pass


class FileSystemError(SrtGenError):
    """Exception raised for file system related errors (permissions, not found etc)."""
    pass


class NoFileProvidedError(SrtGenError):
    """Raised when the request carries no media file."""

    status_code = 400
    error = "No file uploaded."

    def __init__(self, message: str = "No file uploaded."):
        super().__init__(message)


class MissingCredentialError(SrtGenError):
    """Raised when the transcription backend credential is not configured."""

    status_code = 500
    error = "Server configuration error."

    def __init__(self, message: str = "Server configuration error: Missing API key."):
        super().__init__(message)


class ConversionFailedError(SrtGenError):
    """Raised when the media transcoder fails, times out or produces no output."""

    FAILED = "failed"
    TIMEOUT = "timeout"
    OUTPUT_MISSING = "output_missing"

    status_code = 500
    error = "Failed to process media file."

    def __init__(self, message: str, reason: str = FAILED, diagnostics: Optional[str] = None):
        self.reason = reason
        self.diagnostics = diagnostics
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.error, "details": str(self), "reason": self.reason}


class TranscriptionError(SrtGenError):
    """Exception raised for transport or local errors during transcription."""

    status_code = 502
    error = "Transcription request failed."

    def to_payload(self) -> Dict[str, Any]:
        return {"error": self.error, "details": str(self)}


class TranscriptionBackendError(TranscriptionError):
    """An error reported by the transcription API itself (rate limit, bad audio, 5xx)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
        error_code: Optional[str] = None,
        param: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code or 500
        self.error_type = error_type
        self.error_code = error_code
        self.param = param

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": f"OpenAI API Error: {self}",
            "type": self.error_type,
            "code": self.error_code,
        }


class InvalidTranscriptFormatError(SrtGenError):
    """Raised when a structured transcript does not carry a segments list."""

    status_code = 502

    def to_payload(self) -> Dict[str, Any]:
        return {"error": f"Invalid transcription data: {self}"}


class UnexpectedPipelineError(SrtGenError):
    """Wraps any error the pipeline did not anticipate."""
    pass
