"""Transcribe endpoint: upload a recording, optionally extract tasks or subtasks."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse

from src.api.errors import ERROR_RESPONSES, failure_response, unexpected_error_response
from src.api.models import SubtaskResponse, TaskResponse, TranscribeResponse
from src.config import settings
from src.extraction.models import (
    AudioPayload,
    ExtractionContext,
    ExtractionFailure,
    ExtractionMode,
    ExtractionRequest,
)
from src.extraction.pipeline import build_pipeline

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_users_field(raw: str | None) -> list[str]:
    """Decode the ``users`` form field (a JSON list of names)."""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Failed to parse users JSON, using empty list")
        return []
    if not isinstance(parsed, list):
        logger.warning("users field is not a JSON list, using empty list")
        return []
    return [u for u in parsed if isinstance(u, str)]


def select_audio_mode(mode: str | None, users: list[str], parse_tasks: bool) -> ExtractionMode:
    """``mode=subtasks`` wins; users or a parseTasks flag mean tasks; else transcribe only."""
    if mode == "subtasks":
        return ExtractionMode.AUDIO_SUBTASKS
    if users or parse_tasks:
        return ExtractionMode.AUDIO_TASKS
    return ExtractionMode.TRANSCRIBE


@router.post(
    "/api/ai/transcribe",
    response_model=TranscribeResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def transcribe(
    audio: Annotated[UploadFile | None, File()] = None,
    users: Annotated[str | None, Form()] = None,
    mode: Annotated[str | None, Form()] = None,
    parent_task_text: Annotated[str | None, Form(alias="parentTaskText")] = None,
    parse_tasks: Annotated[str | None, Form(alias="parseTasks")] = None,
) -> TranscribeResponse | JSONResponse:
    """Transcribe an audio file (max 25 MB) and optionally extract work items.

    - No ``users``/``mode``/``parseTasks``: transcript only.
    - ``users`` (JSON list) or ``parseTasks``: tasks with due dates and assignees.
    - ``mode=subtasks``: up to ten subtasks for ``parentTaskText``.

    Returns 501 when no transcription provider is configured. If Claude is
    unavailable the transcript is returned as a single task/subtask.
    """
    user_list = parse_users_field(users)
    extraction_mode = select_audio_mode(mode, user_list, parse_tasks is not None)

    payload = None
    if audio is not None:
        payload = AudioPayload(
            data=await audio.read(),
            filename=audio.filename,
            content_type=audio.content_type,
        )
        logger.info(
            "Received audio file %s (%s, %d bytes), mode=%s",
            payload.filename,
            payload.content_type,
            payload.size,
            extraction_mode.value,
        )

    request = ExtractionRequest(
        mode=extraction_mode,
        audio=payload,
        context=ExtractionContext(
            known_users=user_list,
            parent_task_text=parent_task_text or None,
        ),
    )

    try:
        pipeline = build_pipeline(settings)
        result = await asyncio.to_thread(pipeline.run, request)
    except Exception as exc:
        logger.exception("Transcription error")
        return unexpected_error_response("Failed to process audio file. Please try again.", exc)

    if isinstance(result, ExtractionFailure):
        return failure_response(result)

    return TranscribeResponse(
        text=result.transcript_text or "",
        subtasks=(
            [SubtaskResponse.from_subtask(s) for s in result.subtasks]
            if result.subtasks is not None
            else None
        ),
        tasks=[TaskResponse.from_task(t) for t in result.tasks] if result.tasks is not None else None,
        summary=result.summary,
    )
