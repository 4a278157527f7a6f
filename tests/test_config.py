"""Tests for Settings, mode descriptors, and enum wiring."""

from __future__ import annotations

import pytest

from src.config import Settings
from src.extraction.models import ErrorKind, ExtractionMode, Priority
from src.extraction.modes import MODE_SPECS, FallbackPolicy, ItemKind, get_mode_spec

# ---------------------------------------------------------------------------
# Enum tests
# ---------------------------------------------------------------------------


class TestExtractionMode:
    def test_values(self) -> None:
        assert ExtractionMode.BREAKDOWN.value == "breakdown"
        assert ExtractionMode.AUDIO_SUBTASKS.value == "audio-subtasks"

    def test_from_string(self) -> None:
        assert ExtractionMode("voicemail-tasks") is ExtractionMode.VOICEMAIL_TASKS

    def test_invalid_raises(self) -> None:
        with pytest.raises(ValueError):
            ExtractionMode("summarize")

    def test_is_str_subclass(self) -> None:
        """Enum values behave as plain strings for JSON serialization."""
        assert isinstance(ExtractionMode.TRANSCRIBE, str)
        assert isinstance(Priority.URGENT, str)
        assert isinstance(ErrorKind.EMPTY_INPUT, str)


# ---------------------------------------------------------------------------
# Mode table
# ---------------------------------------------------------------------------


class TestModeSpecs:
    def test_every_mode_has_a_row(self) -> None:
        assert set(MODE_SPECS) == set(ExtractionMode)
        for mode, spec in MODE_SPECS.items():
            assert spec.mode is mode

    @pytest.mark.parametrize(
        "mode,text_cap,list_cap,summary_cap,fallback",
        [
            (ExtractionMode.BREAKDOWN, 200, 6, 200, FallbackPolicy.SURFACE_ERROR),
            (ExtractionMode.VOICEMAIL_TASKS, 200, 10, None, FallbackPolicy.DEGRADE),
            (ExtractionMode.CONTENT_SUBTASKS, 200, 10, 300, FallbackPolicy.SURFACE_ERROR),
            (ExtractionMode.AUDIO_SUBTASKS, 100, 10, 300, FallbackPolicy.DEGRADE),
            (ExtractionMode.AUDIO_TASKS, 200, 10, None, FallbackPolicy.DEGRADE),
        ],
    )
    def test_caps_and_policies(self, mode, text_cap, list_cap, summary_cap, fallback) -> None:
        spec = MODE_SPECS[mode]
        assert spec.text_cap == text_cap
        assert spec.list_cap == list_cap
        assert spec.summary_cap == summary_cap
        assert spec.fallback is fallback

    def test_item_kinds(self) -> None:
        assert MODE_SPECS[ExtractionMode.BREAKDOWN].item_kind is ItemKind.SUBTASK
        assert MODE_SPECS[ExtractionMode.AUDIO_TASKS].item_kind is ItemKind.TASK
        assert MODE_SPECS[ExtractionMode.TRANSCRIBE].item_kind is ItemKind.NONE

    def test_audio_flags(self) -> None:
        audio_modes = {m for m, s in MODE_SPECS.items() if s.uses_audio}
        assert audio_modes == {
            ExtractionMode.AUDIO_SUBTASKS,
            ExtractionMode.AUDIO_TASKS,
            ExtractionMode.TRANSCRIBE,
        }

    def test_content_minimum_length(self) -> None:
        assert MODE_SPECS[ExtractionMode.CONTENT_SUBTASKS].min_input_length == 10

    def test_lookup_by_string(self) -> None:
        assert get_mode_spec("content-subtasks") is MODE_SPECS[ExtractionMode.CONTENT_SUBTASKS]

    def test_lookup_unknown_raises(self) -> None:
        with pytest.raises(ValueError):
            get_mode_spec("nope")

    def test_immutable(self) -> None:
        spec = MODE_SPECS[ExtractionMode.BREAKDOWN]
        with pytest.raises(AttributeError):
            spec.list_cap = 50  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "ANTHROPIC_API_KEY",
            "OPENAI_API_KEY",
            "ASSEMBLYAI_API_KEY",
            "TRANSCRIPTION_PROVIDER",
            "LOG_LEVEL",
            "MAX_AUDIO_BYTES",
        ):
            monkeypatch.delenv(name, raising=False)

        cfg = Settings(_env_file=None)  # type: ignore[call-arg]
        assert cfg.anthropic_api_key == ""
        assert cfg.transcription_provider == "openai"
        assert cfg.transcription_model == "whisper-1"
        assert cfg.max_audio_bytes == 25 * 1024 * 1024
        assert cfg.log_level == "INFO"

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRANSCRIPTION_PROVIDER", "assemblyai")
        monkeypatch.setenv("MAX_AUDIO_BYTES", "1024")
        cfg = Settings(_env_file=None)  # type: ignore[call-arg]
        assert cfg.transcription_provider == "assemblyai"
        assert cfg.max_audio_bytes == 1024
