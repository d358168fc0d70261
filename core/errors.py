"""
Standardised error handling for AI Subtitle Translator.

Every error the control surface can report carries the JSON-RPC code it maps
to, so the API layer never needs to know which module raised it.
"""

from config.constants import (
    RPC_INVALID_PARAMS,
    RPC_STATE_ERROR,
    RPC_SERVER_ERROR,
)


class SubtitleTranslatorError(Exception):
    """Base class for all known error conditions."""

    code: int = RPC_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(SubtitleTranslatorError):
    """Missing or invalid input. Never retried."""

    code = RPC_INVALID_PARAMS


class SubtitleFormatError(ValidationError):
    """Subtitle numbering is broken and strict parsing was requested."""


class StateError(SubtitleTranslatorError):
    """Unknown session/job, wrong file type, or job in the wrong state."""

    code = RPC_STATE_ERROR


class TransientOracleError(SubtitleTranslatorError):
    """A single oracle call failed; the batch will be retried."""

    def __init__(self, message: str, attempt: int = 0):
        self.attempt = attempt
        super().__init__(message)


class OracleUnavailableError(SubtitleTranslatorError):
    """The oracle kept failing until the retry policy gave up."""

    def __init__(self, message: str, attempts: int):
        self.attempts = attempts
        super().__init__(message)


class TranslationCancelledError(SubtitleTranslatorError):
    """Raised at a cancellation checkpoint. Not a job failure."""

    def __init__(self, message: str = "Translation cancelled"):
        super().__init__(message)


class MediaToolError(SubtitleTranslatorError):
    """ffmpeg is missing or one of its invocations failed."""
