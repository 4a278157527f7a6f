"""Content endpoint: turn a pasted email or note into subtasks of a parent task."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.api.errors import ERROR_RESPONSES, failure_response, unexpected_error_response
from src.api.models import ContentRequest, ContentSubtasksResponse, SubtaskResponse
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
    "/api/ai/parse-content-to-subtasks",
    response_model=ContentSubtasksResponse,
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
)
async def parse_content_to_subtasks(body: ContentRequest) -> ContentSubtasksResponse | JSONResponse:
    """Extract up to ten subtasks from pasted content (minimum 10 characters).

    Without ANTHROPIC_API_KEY the content is split into sentences instead.
    """
    request = ExtractionRequest(
        mode=ExtractionMode.CONTENT_SUBTASKS,
        raw_text=body.content,
        context=ExtractionContext(
            parent_task_text=body.parent_task_text or None,
            content_label=body.content_type,
        ),
    )

    try:
        pipeline = build_pipeline(settings)
        result = await asyncio.to_thread(pipeline.run, request)
    except Exception as exc:
        logger.exception("Error parsing content to subtasks")
        return unexpected_error_response("Failed to parse content", exc)

    if isinstance(result, ExtractionFailure):
        return failure_response(result)

    return ContentSubtasksResponse(
        subtasks=[SubtaskResponse.from_subtask(s) for s in result.subtasks or []],
        summary=result.summary or "",
    )
