"""Breakdown endpoint: split one task into up to six subtasks."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.api.errors import ERROR_RESPONSES, failure_response, unexpected_error_response
from src.api.models import BreakdownRequest, BreakdownResponse, SubtaskResponse
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
    "/api/ai/breakdown-task",
    response_model=BreakdownResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def breakdown_task(body: BreakdownRequest) -> BreakdownResponse | JSONResponse:
    """Break a task into actionable subtasks with priorities and time estimates.

    Without ANTHROPIC_API_KEY the task text comes back as a single subtask.
    """
    request = ExtractionRequest(
        mode=ExtractionMode.BREAKDOWN,
        raw_text=body.text or body.task_text,
        context=ExtractionContext(known_users=body.users or []),
    )

    try:
        pipeline = build_pipeline(settings)
        # Sync SDK calls run in a worker thread so the event loop stays free.
        result = await asyncio.to_thread(pipeline.run, request)
    except Exception as exc:
        logger.exception("Error breaking down task")
        return unexpected_error_response("Failed to break down task", exc)

    if isinstance(result, ExtractionFailure):
        return failure_response(result)

    return BreakdownResponse(
        subtasks=[SubtaskResponse.from_subtask(s) for s in result.subtasks or []],
        summary=result.summary or "",
        category=result.category,
        confidence=result.category_confidence,
        tips=result.tips,
        completion_warning=result.completion_warning,
    )
