"""Shared fixtures: in-memory stand-ins for the transcription and generation services."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from src.extraction.generation import GenerationOptions
from src.extraction.models import AudioPayload
from src.extraction.pipeline import ExtractionPipeline


class FakeGenerator:
    """Records prompts and returns a canned reply (or raises)."""

    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []
        self.options: list[GenerationOptions] = []

    def generate(self, prompt: str, options: GenerationOptions) -> str:
        self.prompts.append(prompt)
        self.options.append(options)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeTranscriber:
    """Records payloads and returns a canned transcript (or raises)."""

    def __init__(self, transcript: str = "", error: Exception | None = None) -> None:
        self.transcript = transcript
        self.error = error
        self.calls: list[AudioPayload] = []

    def transcribe(self, audio: AudioPayload) -> str:
        self.calls.append(audio)
        if self.error is not None:
            raise self.error
        return self.transcript


PipelineFactory = Callable[..., ExtractionPipeline]


@pytest.fixture
def make_pipeline() -> PipelineFactory:
    """Build a pipeline around fakes.

    ``reply=None`` means no generation service is configured;
    ``transcript=None`` means no transcription service is configured.
    """

    def _make(
        reply: str | None = "",
        generation_error: Exception | None = None,
        transcript: str | None = "",
        transcription_error: Exception | None = None,
        max_audio_bytes: int = 25 * 1024 * 1024,
    ) -> ExtractionPipeline:
        generator = None
        if reply is not None or generation_error is not None:
            generator = FakeGenerator(reply or "", generation_error)
        transcriber = None
        if transcript is not None or transcription_error is not None:
            transcriber = FakeTranscriber(transcript or "", transcription_error)
        return ExtractionPipeline(generator, transcriber, max_audio_bytes=max_audio_bytes)

    return _make


@pytest.fixture
def audio() -> AudioPayload:
    return AudioPayload(data=b"\xff\xfb\x90\x00" + b"\x00" * 100, filename="memo.m4a", content_type="audio/mp4")


@pytest.fixture
def client() -> TestClient:
    from src.api.main import app

    return TestClient(app)
