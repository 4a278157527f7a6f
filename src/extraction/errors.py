"""Exceptions raised by pipeline stages.

Stages raise; the pipeline controller turns each into a typed
``ExtractionFailure`` or a degraded result. None escape a single invocation.
"""

from __future__ import annotations


class ExtractionError(Exception):
    """Base class for all pipeline stage errors."""


class EmptyInputError(ExtractionError):
    """Caller supplied no usable text or audio."""


class AudioValidationError(ExtractionError):
    """Audio payload rejected before submission (size or format)."""


class TranscriptionUnavailableError(ExtractionError):
    """No transcription provider is configured."""


class TranscriptionError(ExtractionError):
    """The transcription service failed or rejected the audio."""


class GenerationError(ExtractionError):
    """The text-generation service call failed."""


class UnparseableResponseError(ExtractionError):
    """No decodable JSON object was found in the generation output."""
