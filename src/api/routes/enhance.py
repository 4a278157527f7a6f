"""Enhance endpoint: clean up one typed task and pull out its due date and assignee."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.api.errors import ERROR_RESPONSES, failure_response, unexpected_error_response
from src.api.models import EnhancedTask, EnhanceTaskRequest, EnhanceTaskResponse
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
    "/api/ai/enhance-task",
    response_model=EnhanceTaskResponse,
    responses=ERROR_RESPONSES,
)
async def enhance_task(body: EnhanceTaskRequest) -> EnhanceTaskResponse | JSONResponse:
    """Rewrite a task as a clear action with priority, due date, and assignee.

    When Claude is unavailable or its reply is unusable, the typed text comes
    back unchanged with ``wasEnhanced: false``.
    """
    request = ExtractionRequest(
        mode=ExtractionMode.ENHANCE_TASK,
        raw_text=body.text,
        context=ExtractionContext(known_users=body.users),
    )

    try:
        pipeline = build_pipeline(settings)
        result = await asyncio.to_thread(pipeline.run, request)
    except Exception as exc:
        logger.exception("Error enhancing task")
        return unexpected_error_response("Failed to enhance task", exc)

    if isinstance(result, ExtractionFailure):
        return failure_response(result)

    task = result.tasks[0]
    return EnhanceTaskResponse(
        enhanced=EnhancedTask(
            text=task.text,
            priority=task.priority,
            due_date=task.due_date,
            assigned_to=task.assigned_to,
            was_enhanced=bool(result.was_enhanced),
        )
    )
