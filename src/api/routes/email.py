"""Email endpoint: draft one task from an email forwarded by a mail add-in."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.api.errors import ERROR_RESPONSES, failure_response, unexpected_error_response
from src.api.models import EmailTaskDraft, EmailTaskRequest, EmailTaskResponse
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
    "/api/outlook/parse-email",
    response_model=EmailTaskResponse,
    responses=ERROR_RESPONSES,
)
async def parse_email(body: EmailTaskRequest) -> EmailTaskResponse | JSONResponse:
    """Turn an email into a task draft with a suggested assignee and source note.

    The subject (or the body, when there is no subject) becomes the task if
    Claude is unavailable.
    """
    subject = (body.subject or "").strip()
    text = (body.body or "").strip()
    request = ExtractionRequest(
        mode=ExtractionMode.EMAIL_TASK,
        raw_text=subject or text,
        context=ExtractionContext(
            email_subject=subject or None,
            email_body=text or None,
            sender=body.sender or None,
            received_date=body.received_date or None,
        ),
    )

    try:
        pipeline = build_pipeline(settings)
        result = await asyncio.to_thread(pipeline.run, request)
    except Exception as exc:
        logger.exception("Error parsing email")
        return unexpected_error_response("Failed to parse email", exc)

    if isinstance(result, ExtractionFailure):
        return failure_response(result)

    task = result.tasks[0]
    return EmailTaskResponse(
        draft=EmailTaskDraft(
            text=task.text,
            suggested_assignee=task.assigned_to,
            priority=task.priority,
            due_date=task.due_date,
            context=result.source_note or "",
        )
    )
