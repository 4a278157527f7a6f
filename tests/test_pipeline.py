"""Tests for the fallback chain controller (no external APIs required)."""

from __future__ import annotations

import json
import re

import pytest

from src.extraction.errors import GenerationError, TranscriptionError
from src.extraction.models import (
    AudioPayload,
    ErrorKind,
    ExtractionContext,
    ExtractionFailure,
    ExtractionMode,
    ExtractionRequest,
    ExtractionSuccess,
    Priority,
)
from src.extraction.modes import MODE_SPECS, FallbackPolicy, ItemKind
from src.extraction.validation import MAX_ESTIMATED_MINUTES, MIN_ESTIMATED_MINUTES

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

TEXT_MODES = (
    ExtractionMode.BREAKDOWN,
    ExtractionMode.VOICEMAIL_TASKS,
    ExtractionMode.CONTENT_SUBTASKS,
    ExtractionMode.ENHANCE_TASK,
    ExtractionMode.EMAIL_TASK,
)
AUDIO_EXTRACTION_MODES = (ExtractionMode.AUDIO_SUBTASKS, ExtractionMode.AUDIO_TASKS)


def _request(mode: ExtractionMode, text: str | None = None, audio: AudioPayload | None = None) -> ExtractionRequest:
    return ExtractionRequest(mode=mode, raw_text=text, audio=audio, context=ExtractionContext())


def _items(result: ExtractionSuccess) -> list:
    return list(result.subtasks if result.subtasks is not None else result.tasks or [])


HOSTILE_REPLY = json.dumps(
    {
        "subtasks": [
            {"text": f"Item {i} " + "z" * (i * 30), "priority": p, "estimatedMinutes": m}
            for i, (p, m) in enumerate(
                [("HIGH", 9999), ("p0", -3), (None, "an hour"), ("urgent", 0.5), ("low", True)] * 3
            )
        ]
        + [{"text": ""}, {"priority": "high"}, "not an object", 17],
        "tasks": [
            {"text": f"Task {i}", "priority": "asap", "dueDate": "tomorrow", "assignedTo": 7}
            for i in range(14)
        ],
        "summary": ["not", "a", "string"],
    }
)


# ---------------------------------------------------------------------------
# Breakdown mode
# ---------------------------------------------------------------------------


class TestBreakdown:
    REPLY = json.dumps(
        {
            "subtasks": [
                {"text": "Collect Q3 sales and expense figures", "priority": "high", "estimatedMinutes": 45},
                {"text": "Build summary tables and charts", "priority": "medium", "estimatedMinutes": 60},
                {"text": "Write commentary on variances", "priority": "medium", "estimatedMinutes": 30},
                {"text": "Send draft to owner for review", "priority": "low", "estimatedMinutes": 10},
            ],
            "summary": "Quarterly report ready for review",
        }
    )

    def test_prepare_quarterly_report(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply="Here you go:\n" + self.REPLY)
        result = pipeline.run(_request(ExtractionMode.BREAKDOWN, "Prepare quarterly report"))

        assert isinstance(result, ExtractionSuccess)
        assert 2 <= len(result.subtasks) <= 6
        for subtask in result.subtasks:
            assert 0 < len(subtask.text) < 80
            assert subtask.priority in set(Priority)
        assert result.summary == "Quarterly report ready for review"
        assert "no team members registered" in pipeline.generator.prompts[0]
        assert pipeline.generator.options[0].max_tokens == 800

    def test_category_annotation(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply=self.REPLY)
        result = pipeline.run(_request(ExtractionMode.BREAKDOWN, "Write a draft of the proposal"))
        assert isinstance(result, ExtractionSuccess)
        assert result.category == "writing"
        assert isinstance(result.category_confidence, int)
        assert result.completion_warning is not None
        assert result.tips

    def test_empty_text_rejected_without_calls(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply=self.REPLY)
        result = pipeline.run(_request(ExtractionMode.BREAKDOWN, "   "))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.EMPTY_INPUT
        assert result.status_code == 400
        assert pipeline.generator.prompts == []

    def test_no_service_degrades(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply=None)
        result = pipeline.run(_request(ExtractionMode.BREAKDOWN, "  Plan the team offsite  "))
        assert isinstance(result, ExtractionSuccess)
        assert result.degraded
        assert [s.text for s in result.subtasks] == ["Plan the team offsite"]
        assert result.subtasks[0].priority is Priority.MEDIUM
        assert result.subtasks[0].estimated_minutes is None

    def test_generation_failure_surfaces(self, make_pipeline) -> None:
        pipeline = make_pipeline(generation_error=GenerationError("overloaded"))
        result = pipeline.run(_request(ExtractionMode.BREAKDOWN, "Plan the offsite"))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.SERVICE_UNAVAILABLE
        assert result.status_code == 500
        assert result.details == "overloaded"

    def test_unparseable_surfaces(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply="Sorry, I can't help with that.")
        result = pipeline.run(_request(ExtractionMode.BREAKDOWN, "Plan the offsite"))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.UNPARSEABLE_RESPONSE
        assert result.status_code == 500

    def test_empty_result_surfaces(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply='{"subtasks": [{"text": "   "}], "summary": ""}')
        result = pipeline.run(_request(ExtractionMode.BREAKDOWN, "Plan the offsite"))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.NO_CONTENT_EXTRACTED
        assert result.status_code == 400


# ---------------------------------------------------------------------------
# Voicemail mode
# ---------------------------------------------------------------------------


class TestVoicemail:
    TRANSCRIPT = "Call Bob Tuesday about the Henderson account"

    def test_extracts_task(self, make_pipeline) -> None:
        reply = json.dumps(
            {
                "tasks": [
                    {
                        "text": "Call Bob about the Henderson account",
                        "priority": "high",
                        "dueDate": "2025-03-18",
                        "assignedTo": "Bob",
                    }
                ]
            }
        )
        pipeline = make_pipeline(reply=reply)
        request = _request(ExtractionMode.VOICEMAIL_TASKS, self.TRANSCRIPT)
        request.context.known_users = ["Bob", "Alice"]
        result = pipeline.run(request)

        assert isinstance(result, ExtractionSuccess)
        assert len(result.tasks) >= 1
        task = result.tasks[0]
        assert "Henderson" in task.text
        assert task.due_date == "" or _ISO_DATE.match(task.due_date)
        assert "Bob, Alice" in pipeline.generator.prompts[0]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"reply": None},
            {"generation_error": GenerationError("network down")},
            {"reply": "I found one task: call Bob."},
            {"reply": '{"tasks": []}'},
            {"reply": '{"tasks": [{"text": ""}]}'},
            {"reply": '{"tasks": {"text": "wrong shape"}}'},
        ],
    )
    def test_always_returns_a_task(self, make_pipeline, kwargs: dict) -> None:
        pipeline = make_pipeline(**kwargs)
        result = pipeline.run(_request(ExtractionMode.VOICEMAIL_TASKS, self.TRANSCRIPT))
        assert isinstance(result, ExtractionSuccess)
        assert result.degraded
        assert len(result.tasks) == 1
        task = result.tasks[0]
        assert task.text == self.TRANSCRIPT
        assert task.priority is Priority.MEDIUM
        assert task.due_date == ""
        assert task.assigned_to == ""

    def test_invalid_due_date_blanked(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply='{"tasks": [{"text": "Call Bob", "dueDate": "Tuesday"}]}')
        result = pipeline.run(_request(ExtractionMode.VOICEMAIL_TASKS, self.TRANSCRIPT))
        assert isinstance(result, ExtractionSuccess)
        assert result.tasks[0].due_date == ""


# ---------------------------------------------------------------------------
# Content mode
# ---------------------------------------------------------------------------


class TestContent:
    EMAIL = "Hi team, please send the signed lease by Friday. Also confirm the parking spaces."

    def test_too_short_rejected_without_calls(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply='{"subtasks": [{"text": "x"}]}')
        result = pipeline.run(_request(ExtractionMode.CONTENT_SUBTASKS, "Hi 5!"))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.EMPTY_INPUT
        assert result.status_code == 400
        assert "too short" in result.message
        assert pipeline.generator.prompts == []

    def test_missing_content(self, make_pipeline) -> None:
        result = make_pipeline().run(_request(ExtractionMode.CONTENT_SUBTASKS, None))
        assert isinstance(result, ExtractionFailure)
        assert result.message == "Content is required"

    def test_prose_reply_is_unparseable(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply="You should send the lease and confirm parking.")
        result = pipeline.run(_request(ExtractionMode.CONTENT_SUBTASKS, self.EMAIL))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.UNPARSEABLE_RESPONSE

    def test_generation_failure_surfaces(self, make_pipeline) -> None:
        pipeline = make_pipeline(generation_error=GenerationError("timeout"))
        result = pipeline.run(_request(ExtractionMode.CONTENT_SUBTASKS, self.EMAIL))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.SERVICE_UNAVAILABLE

    def test_no_service_splits_sentences(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply=None)
        result = pipeline.run(_request(ExtractionMode.CONTENT_SUBTASKS, self.EMAIL))
        assert isinstance(result, ExtractionSuccess)
        assert result.degraded
        assert [s.text for s in result.subtasks] == [
            "Hi team, please send the signed lease by Friday",
            "Also confirm the parking spaces",
        ]

    def test_no_service_without_sentences_uses_whole_content(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply=None)
        result = pipeline.run(_request(ExtractionMode.CONTENT_SUBTASKS, "ok. yes. fine. sure"))
        assert isinstance(result, ExtractionSuccess)
        assert [s.text for s in result.subtasks] == ["ok. yes. fine. sure"]

    def test_label_and_parent_reach_prompt(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply='{"subtasks": [{"text": "Send signed lease"}], "summary": "Lease"}')
        request = _request(ExtractionMode.CONTENT_SUBTASKS, self.EMAIL)
        request.context.content_label = "email"
        request.context.parent_task_text = "Renew office lease"
        result = pipeline.run(request)
        assert isinstance(result, ExtractionSuccess)
        prompt = pipeline.generator.prompts[0]
        assert "this email" in prompt
        assert "Renew office lease" in prompt


# ---------------------------------------------------------------------------
# Audio modes
# ---------------------------------------------------------------------------


class TestAudio:
    TRANSCRIPT = "Remind me to order receipt paper and ask Sam to check the front door lock."

    def test_transcribe_only(self, make_pipeline, audio: AudioPayload) -> None:
        pipeline = make_pipeline(reply='{"subtasks": []}', transcript=f"  {self.TRANSCRIPT}\n")
        result = pipeline.run(_request(ExtractionMode.TRANSCRIBE, audio=audio))
        assert isinstance(result, ExtractionSuccess)
        assert result.transcript_text == self.TRANSCRIPT
        assert result.subtasks is None and result.tasks is None
        assert pipeline.generator.prompts == []

    def test_subtasks_extracted(self, make_pipeline, audio: AudioPayload) -> None:
        reply = json.dumps(
            {"subtasks": [{"text": f"Action {i} " + "w" * 120, "estimatedMinutes": 15} for i in range(12)],
             "summary": "Shop errands"}
        )
        pipeline = make_pipeline(reply=reply, transcript=self.TRANSCRIPT)
        result = pipeline.run(_request(ExtractionMode.AUDIO_SUBTASKS, audio=audio))
        assert isinstance(result, ExtractionSuccess)
        assert len(result.subtasks) == 10
        assert all(len(s.text) <= 100 for s in result.subtasks)
        assert result.transcript_text == self.TRANSCRIPT
        assert result.summary == "Shop errands"

    def test_prose_reply_degrades_to_transcript(self, make_pipeline, audio: AudioPayload) -> None:
        pipeline = make_pipeline(reply="There are two things to do.", transcript=self.TRANSCRIPT)
        result = pipeline.run(_request(ExtractionMode.AUDIO_SUBTASKS, audio=audio))
        assert isinstance(result, ExtractionSuccess)
        assert result.degraded
        assert [s.text for s in result.subtasks] == [self.TRANSCRIPT[:100].rstrip()]
        assert result.summary == ""
        assert result.transcript_text == self.TRANSCRIPT

    def test_tasks_generation_failure_degrades(self, make_pipeline, audio: AudioPayload) -> None:
        pipeline = make_pipeline(generation_error=GenerationError("500"), transcript=self.TRANSCRIPT)
        result = pipeline.run(_request(ExtractionMode.AUDIO_TASKS, audio=audio))
        assert isinstance(result, ExtractionSuccess)
        assert [t.text for t in result.tasks] == [self.TRANSCRIPT]

    def test_no_generation_service_degrades(self, make_pipeline, audio: AudioPayload) -> None:
        pipeline = make_pipeline(reply=None, transcript=self.TRANSCRIPT)
        result = pipeline.run(_request(ExtractionMode.AUDIO_TASKS, audio=audio))
        assert isinstance(result, ExtractionSuccess)
        assert result.degraded
        assert result.transcript_text == self.TRANSCRIPT

    def test_missing_audio(self, make_pipeline) -> None:
        result = make_pipeline().run(_request(ExtractionMode.AUDIO_SUBTASKS))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.EMPTY_INPUT
        assert result.message == "No audio file provided"

    def test_no_transcriber_is_501(self, make_pipeline, audio: AudioPayload) -> None:
        pipeline = make_pipeline(reply="{}", transcript=None)
        result = pipeline.run(_request(ExtractionMode.AUDIO_TASKS, audio=audio))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.SERVICE_UNAVAILABLE
        assert result.status_code == 501

    def test_transcription_failure_stops_pipeline(self, make_pipeline, audio: AudioPayload) -> None:
        pipeline = make_pipeline(reply="{}", transcription_error=TranscriptionError("bad audio"))
        result = pipeline.run(_request(ExtractionMode.AUDIO_SUBTASKS, audio=audio))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.SERVICE_UNAVAILABLE
        assert result.status_code == 500
        assert result.details == "bad audio"
        assert pipeline.generator.prompts == []

    def test_oversized_audio_never_submitted(self, make_pipeline) -> None:
        pipeline = make_pipeline(transcript="hi", max_audio_bytes=10)
        big = AudioPayload(data=b"x" * 11, filename="memo.mp3")
        result = pipeline.run(_request(ExtractionMode.AUDIO_TASKS, audio=big))
        assert isinstance(result, ExtractionFailure)
        assert result.status_code == 400
        assert pipeline.transcriber.calls == []

    def test_unsupported_format_never_submitted(self, make_pipeline) -> None:
        pipeline = make_pipeline(transcript="hi")
        doc = AudioPayload(data=b"hello", filename="notes.txt")
        result = pipeline.run(_request(ExtractionMode.AUDIO_TASKS, audio=doc))
        assert isinstance(result, ExtractionFailure)
        assert result.status_code == 400
        assert "Unsupported audio format" in result.message
        assert pipeline.transcriber.calls == []

    def test_missing_extension_allowed(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply=None, transcript=self.TRANSCRIPT)
        blob = AudioPayload(data=b"\x00\x01", filename="recording")
        result = pipeline.run(_request(ExtractionMode.AUDIO_TASKS, audio=blob))
        assert isinstance(result, ExtractionSuccess)
        assert len(pipeline.transcriber.calls) == 1

    def test_empty_transcript_yields_no_content(self, make_pipeline, audio: AudioPayload) -> None:
        pipeline = make_pipeline(reply='{"tasks": []}', transcript="   ")
        result = pipeline.run(_request(ExtractionMode.AUDIO_TASKS, audio=audio))
        assert isinstance(result, ExtractionFailure)
        assert result.error_kind is ErrorKind.NO_CONTENT_EXTRACTED
        assert pipeline.generator.prompts == []


# ---------------------------------------------------------------------------
# Single-task modes
# ---------------------------------------------------------------------------


class TestEnhanceTask:
    REPLY = json.dumps(
        {
            "text": "Email landlord about the lease",
            "priority": "medium",
            "dueDate": "2025-03-15",
            "assignedTo": "",
            "wasEnhanced": True,
        }
    )

    def test_enhanced(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply=self.REPLY)
        result = pipeline.run(_request(ExtractionMode.ENHANCE_TASK, "email landlord tmrw about lease"))

        assert isinstance(result, ExtractionSuccess)
        assert not result.degraded
        assert [t.text for t in result.tasks] == ["Email landlord about the lease"]
        assert result.tasks[0].due_date == "2025-03-15"
        assert result.was_enhanced is True
        assert pipeline.generator.options[0].max_tokens == 300

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"reply": None},
            {"generation_error": GenerationError("overloaded")},
            {"reply": "Sure, that task looks fine."},
            {"reply": '{"text": "", "wasEnhanced": true}'},
        ],
    )
    def test_falls_back_to_typed_text(self, make_pipeline, kwargs: dict) -> None:
        pipeline = make_pipeline(**kwargs)
        result = pipeline.run(_request(ExtractionMode.ENHANCE_TASK, " email landlord tmrw "))

        assert isinstance(result, ExtractionSuccess)
        assert result.degraded
        assert [t.to_dict() for t in result.tasks] == [
            {"text": "email landlord tmrw", "priority": "medium", "dueDate": "", "assignedTo": ""}
        ]
        assert result.was_enhanced is False

    def test_empty_text_rejected(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply=self.REPLY)
        result = pipeline.run(_request(ExtractionMode.ENHANCE_TASK, ""))
        assert isinstance(result, ExtractionFailure)
        assert result.status_code == 400
        assert result.message == "Task text is required"
        assert pipeline.generator.prompts == []


class TestEmailTask:
    def _email_request(self) -> ExtractionRequest:
        return ExtractionRequest(
            mode=ExtractionMode.EMAIL_TASK,
            raw_text="Q4 budget numbers",
            context=ExtractionContext(
                email_subject="Q4 budget numbers",
                email_body="Please have Sam send the Q4 numbers by Friday.",
                sender="John Smith",
            ),
        )

    def test_draft_extracted(self, make_pipeline) -> None:
        reply = json.dumps(
            {
                "text": "Send Q4 budget numbers",
                "suggestedAssignee": "Sam",
                "priority": "high",
                "dueDate": "2025-03-14",
                "context": "Email from John Smith regarding Q4 budget",
            }
        )
        pipeline = make_pipeline(reply=reply)
        result = pipeline.run(self._email_request())

        assert isinstance(result, ExtractionSuccess)
        task = result.tasks[0]
        assert task.text == "Send Q4 budget numbers"
        assert task.assigned_to == "Sam"
        assert task.priority is Priority.HIGH
        assert result.source_note == "Email from John Smith regarding Q4 budget"
        assert "From: John Smith" in pipeline.generator.prompts[0]

    def test_missing_context_gets_sender_note(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply='{"text": "Send Q4 numbers"}')
        result = pipeline.run(self._email_request())
        assert isinstance(result, ExtractionSuccess)
        assert result.source_note == "From email by John Smith"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"reply": None},
            {"generation_error": GenerationError("overloaded")},
            {"reply": "This email asks for budget numbers."},
        ],
    )
    def test_falls_back_to_subject(self, make_pipeline, kwargs: dict) -> None:
        pipeline = make_pipeline(**kwargs)
        result = pipeline.run(self._email_request())

        assert isinstance(result, ExtractionSuccess)
        assert result.degraded
        assert [t.text for t in result.tasks] == ["Q4 budget numbers"]
        assert result.source_note == "From email by John Smith"

    def test_unknown_sender_note(self, make_pipeline) -> None:
        pipeline = make_pipeline(reply=None)
        result = pipeline.run(_request(ExtractionMode.EMAIL_TASK, "Call the bank"))
        assert isinstance(result, ExtractionSuccess)
        assert result.source_note == "From email by unknown sender"

    def test_empty_email_rejected(self, make_pipeline) -> None:
        result = make_pipeline().run(_request(ExtractionMode.EMAIL_TASK, "  "))
        assert isinstance(result, ExtractionFailure)
        assert result.status_code == 400
        assert result.message == "Email subject or body is required"


# ---------------------------------------------------------------------------
# Cross-mode properties
# ---------------------------------------------------------------------------


def _run_mode(make_pipeline, mode: ExtractionMode, audio: AudioPayload, **kwargs):
    if mode in AUDIO_EXTRACTION_MODES:
        pipeline = make_pipeline(transcript=TestAudio.TRANSCRIPT, **kwargs)
        return pipeline.run(_request(mode, audio=audio))
    pipeline = make_pipeline(**kwargs)
    return pipeline.run(_request(mode, TestContent.EMAIL))


EXTRACTION_MODES = TEXT_MODES + AUDIO_EXTRACTION_MODES


class TestProperties:
    @pytest.mark.parametrize("mode", EXTRACTION_MODES)
    def test_caps_priorities_and_clamps(self, make_pipeline, audio: AudioPayload, mode: ExtractionMode) -> None:
        spec = MODE_SPECS[mode]
        result = _run_mode(make_pipeline, mode, audio, reply=HOSTILE_REPLY)

        assert isinstance(result, ExtractionSuccess)
        items = _items(result)
        assert 1 <= len(items) <= spec.list_cap
        for item in items:
            assert item.priority in set(Priority)
            assert 0 < len(item.text) <= spec.text_cap
            minutes = getattr(item, "estimated_minutes", None)
            if minutes is not None:
                assert MIN_ESTIMATED_MINUTES <= minutes <= MAX_ESTIMATED_MINUTES
            due = getattr(item, "due_date", "")
            assert due == "" or _ISO_DATE.match(due)

    @pytest.mark.parametrize("mode", EXTRACTION_MODES)
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"generation_error": GenerationError("unreachable")},
            {"reply": "no json here"},
            {"reply": '{"subtasks": [], "tasks": []}'},
        ],
    )
    def test_fallback_policy_table(
        self, make_pipeline, audio: AudioPayload, mode: ExtractionMode, kwargs: dict
    ) -> None:
        spec = MODE_SPECS[mode]
        result = _run_mode(make_pipeline, mode, audio, **kwargs)

        if spec.fallback is FallbackPolicy.DEGRADE:
            assert isinstance(result, ExtractionSuccess)
            assert result.degraded
            assert len(_items(result)) == 1
        else:
            assert isinstance(result, ExtractionFailure)
            assert result.error_kind in {
                ErrorKind.SERVICE_UNAVAILABLE,
                ErrorKind.UNPARSEABLE_RESPONSE,
                ErrorKind.NO_CONTENT_EXTRACTED,
            }

    @pytest.mark.parametrize("mode", EXTRACTION_MODES)
    def test_no_service_never_fails(self, make_pipeline, audio: AudioPayload, mode: ExtractionMode) -> None:
        result = _run_mode(make_pipeline, mode, audio, reply=None)
        assert isinstance(result, ExtractionSuccess)
        assert result.degraded
        kind = MODE_SPECS[mode].item_kind
        assert (result.subtasks if kind is ItemKind.SUBTASK else result.tasks)
