"""Voicemail endpoint: pull every task out of a transcription."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.api.errors import ERROR_RESPONSES, failure_response, unexpected_error_response
from src.api.models import TaskResponse, VoicemailRequest, VoicemailResponse
from src.config import settings
from src.extraction.models import (
    ExtractionContext,
    ExtractionFailure,
    ExtractionMode,
    ExtractionRequest,
)
from src.extraction.pipeline import build_pipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/api/ai/parse-voicemail",
    response_model=VoicemailResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def parse_voicemail(body: VoicemailRequest) -> VoicemailResponse | JSONResponse:
    """Extract tasks (with due dates and assignees) from a voicemail transcription.

    Always returns at least one task for a non-empty transcription: when Claude
    is unavailable or its reply is unusable, the transcription itself is the task.
    """
    request = ExtractionRequest(
        mode=ExtractionMode.VOICEMAIL_TASKS,
        raw_text=body.transcription,
        context=ExtractionContext(known_users=body.users or []),
    )

    try:
        pipeline = build_pipeline(settings)
        result = await asyncio.to_thread(pipeline.run, request)
    except Exception as exc:
        logger.exception("Voicemail parsing error")
        return unexpected_error_response("Failed to parse voicemail", exc)

    if isinstance(result, ExtractionFailure):
        return failure_response(result)

    return VoicemailResponse(tasks=[TaskResponse.from_task(t) for t in result.tasks or []])
