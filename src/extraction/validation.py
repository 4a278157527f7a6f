"""Coerce parsed model output into bounded task/subtask records.

Every rule here is idempotent: feeding a normalized result back through
``normalize`` returns the same result.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any

from src.extraction.models import (
    ErrorKind,
    ExtractedSubtask,
    ExtractedTask,
    ExtractionFailure,
    ExtractionSuccess,
    PipelineResult,
    Priority,
)
from src.extraction.modes import FallbackPolicy, ItemKind, ModeSpec

logger = logging.getLogger(__name__)

MIN_ESTIMATED_MINUTES = 5
MAX_ESTIMATED_MINUTES = 480  # 8 hours

_ISO_DATE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

_PRIORITY_VALUES = frozenset(p.value for p in Priority)

# Sentence/line split for the no-generation content fallback
_LINE_SPLIT = re.compile(r"[.\n]+")
_MIN_LINE_LENGTH = 6
_MAX_LINE_LENGTH = 199


def coerce_text(value: Any, cap: int) -> str:
    """String-coerce, trim, truncate to ``cap``, trim again.

    None, booleans and containers become ``""``; numbers are stringified.
    """
    if value is None or isinstance(value, (bool, dict, list)):
        return ""
    text = value if isinstance(value, str) else str(value)
    return text.strip()[:cap].rstrip()


def coerce_priority(value: Any) -> Priority:
    """Exact enum member, else medium."""
    if isinstance(value, str) and value in _PRIORITY_VALUES:
        return Priority(value)
    return Priority.MEDIUM


def clamp_minutes(value: Any) -> int | float | None:
    """Clamp a numeric estimate into [5, 480]; non-numbers become None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return min(max(value, MIN_ESTIMATED_MINUTES), MAX_ESTIMATED_MINUTES)


def coerce_due_date(value: Any) -> str:
    """Keep ``YYYY-MM-DD`` strings, blank everything else."""
    if isinstance(value, str) and _ISO_DATE.match(value.strip()):
        return value.strip()
    return ""


def coerce_assignee(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_subtask(candidate: Any, text_cap: int) -> ExtractedSubtask | None:
    """Validate one subtask candidate; None when it has no usable text."""
    if not isinstance(candidate, dict):
        return None
    text = coerce_text(candidate.get("text"), text_cap)
    if not text:
        return None
    return ExtractedSubtask(
        text=text,
        priority=coerce_priority(candidate.get("priority")),
        estimated_minutes=clamp_minutes(candidate.get("estimatedMinutes")),
    )


def normalize_task(
    candidate: Any, text_cap: int, assignee_key: str = "assignedTo"
) -> ExtractedTask | None:
    """Validate one task candidate; None when it has no usable text."""
    if not isinstance(candidate, dict):
        return None
    text = coerce_text(candidate.get("text"), text_cap)
    if not text:
        return None
    return ExtractedTask(
        text=text,
        priority=coerce_priority(candidate.get("priority")),
        due_date=coerce_due_date(candidate.get("dueDate")),
        assigned_to=coerce_assignee(candidate.get(assignee_key)),
    )


def split_into_lines(content: str, limit: int) -> list[str]:
    """Break free text into short candidate action lines."""
    lines = (line.strip() for line in _LINE_SPLIT.split(content))
    kept = [line for line in lines if _MIN_LINE_LENGTH <= len(line) <= _MAX_LINE_LENGTH]
    return kept[:limit]


def synthesize_result(
    spec: ModeSpec,
    canonical_text: str,
    transcript_text: str | None = None,
    split_lines: bool = False,
) -> PipelineResult:
    """Build the degraded result: the canonical text itself as the item(s).

    With ``split_lines`` and a mode that defines a line cap, the text is
    split into sentences first, falling back to one item when none qualify.
    An empty canonical text yields ``no_content_extracted``.
    """
    texts: list[str] = []
    if split_lines and spec.no_service_line_cap:
        texts = split_into_lines(canonical_text, spec.no_service_line_cap)
    if not texts:
        texts = [canonical_text]

    candidates = [{"text": t, "priority": Priority.MEDIUM.value} for t in texts]
    items = _normalize_items(candidates, spec)
    if not items:
        return _empty_failure(spec)

    return _success(spec, items, summary="", transcript_text=transcript_text, degraded=True)


def normalize(
    parsed: dict[str, Any],
    spec: ModeSpec,
    canonical_text: str,
    transcript_text: str | None = None,
) -> PipelineResult:
    """Coerce a parsed reply into the strict output schema for ``spec``.

    Entries are filtered first, then the list is truncated to the mode cap.
    An empty list is handled by the mode's fallback policy.
    """
    key = "subtasks" if spec.item_kind is ItemKind.SUBTASK else "tasks"
    if spec.single_item:
        raw_items = [parsed]
    else:
        raw_items = parsed.get(key)
        if not isinstance(raw_items, list):
            raw_items = []

    items = _normalize_items(raw_items, spec)
    if not items:
        if spec.fallback is FallbackPolicy.DEGRADE:
            logger.warning("No usable %s in %s reply; degrading to raw text", key, spec.mode.value)
            return synthesize_result(spec, canonical_text, transcript_text)
        return _empty_failure(spec)

    summary = None
    if spec.summary_cap is not None:
        summary = coerce_text(parsed.get("summary"), spec.summary_cap)

    category = None
    if spec.uses_task_patterns:
        category = coerce_text(parsed.get("category"), 50) or None
        if category == "null":
            category = None

    result = _success(spec, items, summary=summary, transcript_text=transcript_text)
    result.category = category
    if spec.reports_enhancement:
        result.was_enhanced = parsed.get("wasEnhanced") is True
    if spec.source_note_cap is not None:
        result.source_note = coerce_text(parsed.get("context"), spec.source_note_cap) or None
    return result


def _normalize_items(raw_items: list[Any], spec: ModeSpec) -> list[Any]:
    if spec.item_kind is ItemKind.SUBTASK:
        subtasks = [normalize_subtask(c, spec.text_cap) for c in raw_items]
        return [s for s in subtasks if s is not None][: spec.list_cap]
    tasks = [normalize_task(c, spec.text_cap, spec.assignee_key) for c in raw_items]
    return [t for t in tasks if t is not None][: spec.list_cap]


def _success(
    spec: ModeSpec,
    items: list[Any],
    summary: str | None,
    transcript_text: str | None,
    degraded: bool = False,
) -> ExtractionSuccess:
    if spec.item_kind is ItemKind.SUBTASK:
        return ExtractionSuccess(
            subtasks=items,
            summary=summary,
            transcript_text=transcript_text,
            degraded=degraded,
        )
    return ExtractionSuccess(tasks=items, transcript_text=transcript_text, degraded=degraded)


def _empty_failure(spec: ModeSpec) -> ExtractionFailure:
    return ExtractionFailure(
        error_kind=ErrorKind.NO_CONTENT_EXTRACTED,
        message=spec.empty_result_message,
        status_code=400,
    )
