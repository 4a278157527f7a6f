"""Speech-to-text adapters: payload validation plus Whisper / AssemblyAI clients."""

from __future__ import annotations

import logging
from typing import Protocol

from openai import OpenAI, OpenAIError

from src.config import Settings
from src.extraction.errors import AudioValidationError, TranscriptionError
from src.extraction.models import AudioPayload

logger = logging.getLogger(__name__)

# Formats accepted by Whisper
SUPPORTED_AUDIO_FORMATS = ("mp3", "mp4", "mpeg", "mpga", "m4a", "wav", "webm", "ogg", "aac", "flac")

MAX_AUDIO_BYTES = 25 * 1024 * 1024


class Transcriber(Protocol):
    """Anything that turns an audio payload into text."""

    def transcribe(self, audio: AudioPayload) -> str: ...


def validate_audio(audio: AudioPayload, max_bytes: int = MAX_AUDIO_BYTES) -> None:
    """Reject oversized or unsupported recordings before any service call.

    A filename without an extension is accepted; the provider decides.

    Raises:
        AudioValidationError: Payload exceeds ``max_bytes`` or has an
            extension outside SUPPORTED_AUDIO_FORMATS.
    """
    if audio.size > max_bytes:
        raise AudioValidationError(
            f"Audio file too large. Maximum size is {max_bytes // (1024 * 1024)}MB."
        )

    ext = audio.extension
    if ext and ext not in SUPPORTED_AUDIO_FORMATS:
        raise AudioValidationError(
            f"Unsupported audio format. Supported formats: {', '.join(SUPPORTED_AUDIO_FORMATS)}"
        )


class OpenAITranscriber:
    """Whisper transcription through the OpenAI SDK."""

    def __init__(self, api_key: str, model: str = "whisper-1") -> None:
        self.api_key = api_key
        self.model = model

    def transcribe(self, audio: AudioPayload) -> str:
        # max_retries=0: one attempt only, the caller owns the fallback
        client = OpenAI(api_key=self.api_key, max_retries=0)
        filename = audio.filename or "recording"
        try:
            transcript = client.audio.transcriptions.create(
                model=self.model,
                file=(filename, audio.data),
                response_format="text",
            )
        except OpenAIError as exc:
            logger.error("Whisper transcription failed: %s", exc)
            raise TranscriptionError(f"Failed to transcribe audio: {exc}") from exc

        # response_format="text" yields a bare string; older SDKs wrap it
        if isinstance(transcript, str):
            return transcript
        return str(getattr(transcript, "text", "") or "")


class AssemblyAITranscriber:
    """AssemblyAI transcription. The SDK accepts bytes directly."""

    def __init__(self, api_key: str) -> None:
        self.api_key = api_key

    def transcribe(self, audio: AudioPayload) -> str:
        import assemblyai as aai  # type: ignore[import-untyped]  # no stubs; import inside function

        aai.settings.api_key = self.api_key
        transcriber = aai.Transcriber()
        # speech_models (plural) is required by the current AssemblyAI API
        config = aai.TranscriptionConfig(speech_models=["universal-3-pro"])

        try:
            transcript = transcriber.transcribe(audio.data, config=config)
        except Exception as exc:
            # Infrastructure error: bad API key, network failure or provider outage
            logger.error("AssemblyAI transcription failed: %s", exc)
            raise TranscriptionError(f"Transcription service unavailable: {exc}") from exc

        if transcript.status == aai.TranscriptStatus.error:
            raise TranscriptionError(f"Transcription failed: {transcript.error}")
        return transcript.text or ""


def build_transcriber(settings: Settings) -> Transcriber | None:
    """Return the configured transcriber, or None when its API key is missing."""
    provider = settings.transcription_provider.lower()
    if provider == "assemblyai":
        if not settings.assemblyai_api_key:
            return None
        return AssemblyAITranscriber(settings.assemblyai_api_key)

    if provider != "openai":
        logger.warning("Unknown transcription provider %r, using OpenAI Whisper", provider)
    if not settings.openai_api_key:
        return None
    return OpenAITranscriber(settings.openai_api_key, model=settings.transcription_model)
