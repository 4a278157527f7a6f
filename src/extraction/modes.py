"""Mode descriptors: one table row per pipeline variant."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.extraction.models import ExtractionMode


class ItemKind(str, Enum):
    """Shape of the records a mode produces."""

    SUBTASK = "subtask"
    TASK = "task"
    NONE = "none"  # transcription only


class FallbackPolicy(str, Enum):
    """What a mode does when generation, parsing, or validation yields nothing.

    DEGRADE synthesizes one item from the canonical text and still succeeds;
    SURFACE_ERROR returns a typed failure instead of inventing content.
    """

    DEGRADE = "degrade"
    SURFACE_ERROR = "surface_error"


@dataclass(frozen=True)
class ModeSpec:
    """Immutable descriptor for one extraction mode."""

    mode: ExtractionMode
    item_kind: ItemKind
    text_cap: int = 200
    list_cap: int = 10
    summary_cap: int | None = None
    fallback: FallbackPolicy = FallbackPolicy.DEGRADE
    min_input_length: int = 1
    max_tokens: int = 1024
    uses_audio: bool = False
    uses_task_patterns: bool = False
    no_service_line_cap: int | None = None  # split content into lines when generation is off
    single_item: bool = False  # reply is one bare task object, not a list
    assignee_key: str = "assignedTo"
    reports_enhancement: bool = False
    source_note_cap: int | None = None
    empty_input_message: str = "Task text is required"
    short_input_message: str | None = None
    empty_result_message: str = "Could not extract any tasks"


MODE_SPECS: dict[ExtractionMode, ModeSpec] = {
    ExtractionMode.BREAKDOWN: ModeSpec(
        mode=ExtractionMode.BREAKDOWN,
        item_kind=ItemKind.SUBTASK,
        text_cap=200,
        list_cap=6,
        summary_cap=200,
        fallback=FallbackPolicy.SURFACE_ERROR,
        max_tokens=800,
        uses_task_patterns=True,
        empty_input_message="Task text is required",
        empty_result_message="Could not generate subtasks for this task",
    ),
    ExtractionMode.VOICEMAIL_TASKS: ModeSpec(
        mode=ExtractionMode.VOICEMAIL_TASKS,
        item_kind=ItemKind.TASK,
        text_cap=200,
        list_cap=10,
        fallback=FallbackPolicy.DEGRADE,
        max_tokens=1024,
        empty_input_message="No transcription provided",
    ),
    ExtractionMode.CONTENT_SUBTASKS: ModeSpec(
        mode=ExtractionMode.CONTENT_SUBTASKS,
        item_kind=ItemKind.SUBTASK,
        text_cap=200,
        list_cap=10,
        summary_cap=300,
        fallback=FallbackPolicy.SURFACE_ERROR,
        min_input_length=10,
        max_tokens=1200,
        no_service_line_cap=8,
        empty_input_message="Content is required",
        short_input_message="Content is too short to parse into subtasks",
        empty_result_message="Could not extract any action items from this content",
    ),
    ExtractionMode.AUDIO_SUBTASKS: ModeSpec(
        mode=ExtractionMode.AUDIO_SUBTASKS,
        item_kind=ItemKind.SUBTASK,
        text_cap=100,
        list_cap=10,
        summary_cap=300,
        fallback=FallbackPolicy.DEGRADE,
        max_tokens=4096,
        uses_audio=True,
        empty_input_message="No audio file provided",
        empty_result_message="Could not extract any action items from this recording",
    ),
    ExtractionMode.AUDIO_TASKS: ModeSpec(
        mode=ExtractionMode.AUDIO_TASKS,
        item_kind=ItemKind.TASK,
        text_cap=200,
        list_cap=10,
        fallback=FallbackPolicy.DEGRADE,
        max_tokens=4096,
        uses_audio=True,
        empty_input_message="No audio file provided",
        empty_result_message="Could not extract any tasks from this recording",
    ),
    ExtractionMode.TRANSCRIBE: ModeSpec(
        mode=ExtractionMode.TRANSCRIBE,
        item_kind=ItemKind.NONE,
        uses_audio=True,
        empty_input_message="No audio file provided",
    ),
    ExtractionMode.ENHANCE_TASK: ModeSpec(
        mode=ExtractionMode.ENHANCE_TASK,
        item_kind=ItemKind.TASK,
        text_cap=200,
        list_cap=1,
        fallback=FallbackPolicy.DEGRADE,
        max_tokens=300,
        single_item=True,
        reports_enhancement=True,
        empty_input_message="Task text is required",
        empty_result_message="Could not enhance this task",
    ),
    ExtractionMode.EMAIL_TASK: ModeSpec(
        mode=ExtractionMode.EMAIL_TASK,
        item_kind=ItemKind.TASK,
        text_cap=200,
        list_cap=1,
        fallback=FallbackPolicy.DEGRADE,
        max_tokens=500,
        single_item=True,
        assignee_key="suggestedAssignee",
        source_note_cap=300,
        empty_input_message="Email subject or body is required",
        empty_result_message="Could not extract a task from this email",
    ),
}


def get_mode_spec(mode: ExtractionMode | str) -> ModeSpec:
    """Look up the descriptor for a mode (enum or its string value)."""
    return MODE_SPECS[ExtractionMode(mode)]
