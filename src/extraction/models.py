"""Data models for requests and structured extraction results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any


class Priority(StrEnum):
    """Task priority levels accepted by the tracker."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ExtractionMode(StrEnum):
    """Named pipeline variants."""

    BREAKDOWN = "breakdown"
    VOICEMAIL_TASKS = "voicemail-tasks"
    CONTENT_SUBTASKS = "content-subtasks"
    AUDIO_SUBTASKS = "audio-subtasks"
    AUDIO_TASKS = "audio-tasks"
    TRANSCRIBE = "transcribe"
    ENHANCE_TASK = "enhance-task"
    EMAIL_TASK = "email-task"


class ErrorKind(StrEnum):
    """Typed failure reasons surfaced by the pipeline."""

    EMPTY_INPUT = "empty_input"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNPARSEABLE_RESPONSE = "unparseable_response"
    NO_CONTENT_EXTRACTED = "no_content_extracted"


@dataclass(frozen=True)
class AudioPayload:
    """An uploaded recording, held in memory until transcription."""

    data: bytes
    filename: str | None = None
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        name = self.filename or ""
        return name.rsplit(".", 1)[-1].lower() if "." in name else ""


@dataclass
class ExtractionContext:
    """Optional hints injected into the prompt."""

    known_users: list[str] = field(default_factory=list)
    today: date = field(default_factory=date.today)
    parent_task_text: str | None = None
    content_label: str | None = None  # "email", "voicemail", or anything else
    email_subject: str | None = None
    email_body: str | None = None
    sender: str | None = None
    received_date: str | None = None


@dataclass
class ExtractionRequest:
    """Canonical input to one pipeline invocation."""

    mode: ExtractionMode
    raw_text: str | None = None
    audio: AudioPayload | None = None
    context: ExtractionContext = field(default_factory=ExtractionContext)


@dataclass(frozen=True)
class ExtractedSubtask:
    """One step of a larger task."""

    text: str
    priority: Priority = Priority.MEDIUM
    estimated_minutes: int | float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire form; ``estimatedMinutes`` is omitted when unknown."""
        data: dict[str, Any] = {"text": self.text, "priority": self.priority.value}
        if self.estimated_minutes is not None:
            data["estimatedMinutes"] = self.estimated_minutes
        return data


@dataclass(frozen=True)
class ExtractedTask:
    """A standalone task pulled out of a voicemail or recording."""

    text: str
    priority: Priority = Priority.MEDIUM
    due_date: str = ""  # YYYY-MM-DD or empty
    assigned_to: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "priority": self.priority.value,
            "dueDate": self.due_date,
            "assignedTo": self.assigned_to,
        }


@dataclass
class ExtractionSuccess:
    """Successful pipeline outcome; ``degraded`` marks a synthesized fallback."""

    subtasks: list[ExtractedSubtask] | None = None
    tasks: list[ExtractedTask] | None = None
    summary: str | None = None
    transcript_text: str | None = None
    category: str | None = None
    category_confidence: int | None = None  # percent
    tips: str | None = None
    completion_warning: str | None = None
    was_enhanced: bool | None = None  # enhance-task only
    source_note: str | None = None  # email-task only
    degraded: bool = False
    ok: bool = field(default=True, init=False)


@dataclass
class ExtractionFailure:
    """Failed pipeline outcome with an HTTP-style status."""

    error_kind: ErrorKind
    message: str
    status_code: int = 500
    details: str | None = None
    ok: bool = field(default=False, init=False)


PipelineResult = ExtractionSuccess | ExtractionFailure
