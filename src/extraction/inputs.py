"""Turn typed text, pasted content, or audio into one canonical string."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from src.extraction.errors import EmptyInputError, TranscriptionUnavailableError
from src.extraction.models import ExtractionRequest
from src.extraction.modes import ModeSpec
from src.extraction.transcription import MAX_AUDIO_BYTES, Transcriber, validate_audio

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedInput:
    """Canonical text fed to the prompt builder.

    ``transcript_text`` is set only for audio input and is echoed back to the
    caller alongside any extracted items.
    """

    canonical_text: str
    transcript_text: str | None = None


def normalize_input(
    request: ExtractionRequest,
    spec: ModeSpec,
    transcriber: Transcriber | None,
    max_audio_bytes: int = MAX_AUDIO_BYTES,
) -> NormalizedInput:
    """Produce the canonical text for ``request``.

    Audio is validated, then transcribed; the transcript is not length-checked
    here, an empty one is caught by later stages. Never calls the
    generation service.

    Raises:
        EmptyInputError: Missing text or audio, or text under the mode minimum.
        AudioValidationError: Oversized or unsupported recording.
        TranscriptionUnavailableError: Audio mode without a configured transcriber.
        TranscriptionError: The transcription call failed.
    """
    if spec.uses_audio:
        audio = request.audio
        if audio is None or audio.size == 0:
            raise EmptyInputError(spec.empty_input_message)

        validate_audio(audio, max_audio_bytes)

        if transcriber is None:
            raise TranscriptionUnavailableError(
                "Audio transcription requires an API key for the configured provider. "
                "Please add OPENAI_API_KEY (or ASSEMBLYAI_API_KEY) to your environment variables."
            )

        logger.info("Transcribing %s (%d bytes)", audio.filename or "recording", audio.size)
        transcript = transcriber.transcribe(audio).strip()
        logger.info("Transcription successful, length: %d", len(transcript))
        return NormalizedInput(canonical_text=transcript, transcript_text=transcript)

    raw = request.raw_text
    if not isinstance(raw, str) or not raw.strip():
        raise EmptyInputError(spec.empty_input_message)

    text = raw.strip()
    if len(text) < spec.min_input_length:
        raise EmptyInputError(spec.short_input_message or spec.empty_input_message)
    return NormalizedInput(canonical_text=text)
