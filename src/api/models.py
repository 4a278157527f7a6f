"""Pydantic request/response schemas for the Task Intake API.

Wire keys are camelCase (``estimatedMinutes``, ``parentTaskText``); Python
attributes stay snake_case.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from src.extraction.models import ExtractedSubtask, ExtractedTask, Priority


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _strings_only(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, str)]


# Wrong-typed request fields are treated as absent, so the pipeline reports them
# with its own 400 message instead of a schema error.
OptionalText = Annotated[str | None, BeforeValidator(_str_or_none)]
NameList = Annotated[list[str], BeforeValidator(_strings_only)]


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class BreakdownRequest(CamelModel):
    """Request body for /api/ai/breakdown-task. ``taskText`` is an accepted alias of ``text``."""

    text: OptionalText = None
    task_text: OptionalText = None
    users: NameList = []


class VoicemailRequest(CamelModel):
    """Request body for /api/ai/parse-voicemail."""

    transcription: OptionalText = None
    users: NameList = []


class ContentRequest(CamelModel):
    """Request body for /api/ai/parse-content-to-subtasks."""

    content: OptionalText = None
    content_type: OptionalText = None  # "email", "voicemail", or free-form
    parent_task_text: OptionalText = None


class EnhanceTaskRequest(CamelModel):
    """Request body for /api/ai/enhance-task."""

    text: OptionalText = None
    users: NameList = []


class EmailTaskRequest(CamelModel):
    """Request body for /api/outlook/parse-email."""

    subject: OptionalText = None
    body: OptionalText = None
    sender: OptionalText = None
    received_date: OptionalText = None


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class SubtaskResponse(CamelModel):
    text: str
    priority: Priority
    estimated_minutes: int | float | None = None

    @classmethod
    def from_subtask(cls, subtask: ExtractedSubtask) -> SubtaskResponse:
        return cls.model_validate(subtask.to_dict())


class TaskResponse(CamelModel):
    text: str
    priority: Priority
    due_date: str = ""
    assigned_to: str = ""

    @classmethod
    def from_task(cls, task: ExtractedTask) -> TaskResponse:
        return cls.model_validate(task.to_dict())


class BreakdownResponse(CamelModel):
    """Response body for /api/ai/breakdown-task."""

    success: bool = True
    subtasks: list[SubtaskResponse]
    summary: str = ""
    category: str | None = None
    confidence: int | None = None  # percent
    tips: str | None = None
    completion_warning: str | None = None


class VoicemailResponse(CamelModel):
    """Response body for /api/ai/parse-voicemail."""

    success: bool = True
    tasks: list[TaskResponse]


class ContentSubtasksResponse(CamelModel):
    """Response body for /api/ai/parse-content-to-subtasks."""

    success: bool = True
    subtasks: list[SubtaskResponse]
    summary: str = ""


class TranscribeResponse(CamelModel):
    """Response body for /api/ai/transcribe.

    ``text`` is always the transcript; items appear only in extraction modes.
    """

    success: bool = True
    text: str
    subtasks: list[SubtaskResponse] | None = None
    tasks: list[TaskResponse] | None = None
    summary: str | None = None


class ErrorResponse(CamelModel):
    """Uniform failure envelope."""

    success: bool = False
    error: str
    details: str | None = None


class EnhancedTask(CamelModel):
    text: str
    priority: Priority
    due_date: str = ""
    assigned_to: str = ""
    was_enhanced: bool = False


class EnhanceTaskResponse(CamelModel):
    """Response body for /api/ai/enhance-task."""

    success: bool = True
    enhanced: EnhancedTask


class EmailTaskDraft(CamelModel):
    text: str
    suggested_assignee: str = ""
    priority: Priority
    due_date: str = ""
    context: str = ""


class EmailTaskResponse(CamelModel):
    """Response body for /api/outlook/parse-email."""

    success: bool = True
    draft: EmailTaskDraft
