"""Failure envelopes shared by the extraction routes."""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.api.models import ErrorResponse
from src.extraction.models import ExtractionFailure

# OpenAPI documentation for the non-2xx envelopes
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    500: {"model": ErrorResponse, "description": "Extraction failed"},
    501: {"model": ErrorResponse, "description": "Required service not configured"},
}


def failure_response(failure: ExtractionFailure) -> JSONResponse:
    """Render a pipeline failure as ``{success: false, error, details?}``."""
    body = ErrorResponse(error=failure.message, details=failure.details)
    return JSONResponse(
        status_code=failure.status_code,
        content=body.model_dump(exclude_none=True),
    )


def unexpected_error_response(message: str, exc: Exception) -> JSONResponse:
    """500 envelope for an exception that escaped the pipeline."""
    body = ErrorResponse(error=message, details=str(exc) or type(exc).__name__)
    return JSONResponse(status_code=500, content=body.model_dump(exclude_none=True))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report a malformed request body as a 400 failure envelope."""
    errors = exc.errors()
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}" for err in errors
    )
    body = ErrorResponse(error="Invalid request body", details=details or None)
    return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))
