"""End-to-end extraction pipeline: input -> transcript -> prompt -> reply -> records.

Each stage may short-circuit. Upstream failures either degrade to the raw
text (modes with FallbackPolicy.DEGRADE) or surface a typed failure. There is
no retry anywhere; every transition happens at most once per invocation.
"""

from __future__ import annotations

import logging

from src.config import Settings, settings as default_settings
from src.extraction.errors import (
    AudioValidationError,
    EmptyInputError,
    GenerationError,
    TranscriptionError,
    TranscriptionUnavailableError,
    UnparseableResponseError,
)
from src.extraction.generation import GenerationOptions, TextGenerator, build_generator
from src.extraction.inputs import NormalizedInput, normalize_input
from src.extraction.models import (
    ErrorKind,
    ExtractionContext,
    ExtractionFailure,
    ExtractionRequest,
    ExtractionSuccess,
    PipelineResult,
)
from src.extraction.modes import FallbackPolicy, ItemKind, ModeSpec, get_mode_spec
from src.extraction.parser import parse_response
from src.extraction.patterns import analyze_task_pattern
from src.extraction.prompts import build_prompt
from src.extraction.transcription import MAX_AUDIO_BYTES, Transcriber, build_transcriber
from src.extraction.validation import normalize, synthesize_result

logger = logging.getLogger(__name__)


class ExtractionPipeline:
    """Runs one request through the fallback chain.

    Holds no per-request state, so a single instance can serve concurrent
    requests.

    Args:
        generator: Text-generation capability, or None when not configured.
        transcriber: Speech-to-text capability, or None when not configured.
        max_audio_bytes: Upload ceiling enforced before transcription.
    """

    def __init__(
        self,
        generator: TextGenerator | None,
        transcriber: Transcriber | None,
        max_audio_bytes: int = MAX_AUDIO_BYTES,
    ) -> None:
        self.generator = generator
        self.transcriber = transcriber
        self.max_audio_bytes = max_audio_bytes

    def run(self, request: ExtractionRequest) -> PipelineResult:
        spec = get_mode_spec(request.mode)

        # 1. Normalize input (transcribing audio when needed)
        try:
            normalized = normalize_input(request, spec, self.transcriber, self.max_audio_bytes)
        except EmptyInputError as exc:
            return ExtractionFailure(ErrorKind.EMPTY_INPUT, str(exc), status_code=400)
        except AudioValidationError as exc:
            return ExtractionFailure(ErrorKind.SERVICE_UNAVAILABLE, str(exc), status_code=400)
        except TranscriptionUnavailableError as exc:
            logger.error("Transcription requested but no provider is configured")
            return ExtractionFailure(ErrorKind.SERVICE_UNAVAILABLE, str(exc), status_code=501)
        except TranscriptionError as exc:
            return ExtractionFailure(
                ErrorKind.SERVICE_UNAVAILABLE,
                "Failed to transcribe audio",
                status_code=500,
                details=str(exc),
            )

        if spec.item_kind is ItemKind.NONE:
            return ExtractionSuccess(transcript_text=normalized.transcript_text)

        text = normalized.canonical_text

        # 2. No generation service: degrade, never fail
        if self.generator is None:
            logger.info("Generation not configured; returning raw text for %s", spec.mode.value)
            result = synthesize_result(
                spec, text, normalized.transcript_text, split_lines=True
            )
            return self._annotate(spec, text, request.context, result)

        if not text:
            # Empty transcript: nothing to send, nothing to synthesize
            return synthesize_result(spec, text, normalized.transcript_text)

        # 3. Generate
        prompt = build_prompt(text, spec.mode, request.context)
        try:
            raw_output = self.generator.generate(prompt, GenerationOptions(max_tokens=spec.max_tokens))
        except GenerationError as exc:
            return self._fall_back(
                spec,
                normalized,
                request.context,
                ErrorKind.SERVICE_UNAVAILABLE,
                "Text generation service unavailable",
                exc,
            )

        # 4. Parse
        try:
            parsed = parse_response(raw_output)
        except UnparseableResponseError as exc:
            return self._fall_back(
                spec,
                normalized,
                request.context,
                ErrorKind.UNPARSEABLE_RESPONSE,
                "Failed to parse AI response",
                exc,
            )

        # 5. Validate
        result = normalize(parsed, spec, text, normalized.transcript_text)
        if isinstance(result, ExtractionSuccess) and not result.degraded:
            count = len(result.subtasks or result.tasks or [])
            logger.info("%s extraction successful: %d items", spec.mode.value, count)
        return self._annotate(spec, text, request.context, result)

    def _fall_back(
        self,
        spec: ModeSpec,
        normalized: NormalizedInput,
        context: ExtractionContext,
        kind: ErrorKind,
        message: str,
        exc: Exception,
    ) -> PipelineResult:
        """Apply the mode's policy after a generation or parse failure."""
        if spec.fallback is FallbackPolicy.DEGRADE:
            logger.warning("%s failed for %s (%s); degrading to raw text", kind.value, spec.mode.value, exc)
            result = synthesize_result(spec, normalized.canonical_text, normalized.transcript_text)
            return self._annotate(spec, normalized.canonical_text, context, result)

        logger.error("%s failed for %s: %s", kind.value, spec.mode.value, exc)
        return ExtractionFailure(kind, message, status_code=500, details=str(exc))

    @staticmethod
    def _annotate(
        spec: ModeSpec, text: str, context: ExtractionContext, result: PipelineResult
    ) -> PipelineResult:
        """Attach category hints (breakdown) and single-task defaults."""
        if not isinstance(result, ExtractionSuccess):
            return result

        if spec.reports_enhancement and result.was_enhanced is None:
            result.was_enhanced = False
        if spec.source_note_cap is not None and not result.source_note:
            result.source_note = f"From email by {context.sender or 'unknown sender'}"

        if not spec.uses_task_patterns:
            return result

        match = analyze_task_pattern(text)
        if match is None:
            return result

        result.category = match.category
        result.category_confidence = round(match.confidence * 100)
        result.tips = match.tips
        result.completion_warning = match.completion_warning
        return result


def build_pipeline(settings: Settings | None = None) -> ExtractionPipeline:
    """Wire the pipeline to the services configured in ``settings``."""
    cfg = settings or default_settings
    return ExtractionPipeline(
        generator=build_generator(cfg),
        transcriber=build_transcriber(cfg),
        max_audio_bytes=cfg.max_audio_bytes,
    )
