"""FastAPI routes for the feedback API.

The feedback handler is resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern; it is built once at startup
in main.py's lifespan.

# Endpoint                       Method   Description
# ──────────────────────────────────────────────────────────────────────
# /api/feedback                  POST     Validate + fan out one submission
# /api/feedback                  OPTIONS  CORS preflight (CORSMiddleware)
# /api/feedback/health           GET      Health of every registered connector
# /api/feedback/connectors       GET      Names of registered connectors
# /api/feedback/analytics        GET      Statistics from analytics-capable connectors

Status codes for ``POST /api/feedback``: 400 for a body that is not JSON
or fails validation (never retryable), 200 when at least one connector
stored the feedback, 500 otherwise with ``retryable`` telling the widget
whether to offer a retry.
"""

from __future__ import annotations

import json
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from src.api.schemas import (
    AnalyticsResponse,
    ConnectorHealthResponse,
    ConnectorListResponse,
    ErrorResponse,
    FeedbackSubmissionResponse,
)
from src.models.feedback import validate_feedback_data
from src.storage.handler import FeedbackHandler
from src.utils.errors import FeedbackValidationError
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api")


def _get_feedback_handler(request: Request) -> FeedbackHandler | None:
    """Return the feedback handler from application state, or ``None``."""
    return getattr(request.app.state, "feedback_handler", None)


HandlerDep = Annotated[FeedbackHandler | None, Depends(_get_feedback_handler)]


def _require_handler(handler: FeedbackHandler | None) -> FeedbackHandler:
    if handler is None:
        raise HTTPException(status_code=503, detail="Feedback service not available")
    return handler


def _json(body: FeedbackSubmissionResponse, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@router.post(
    "/feedback",
    response_model=FeedbackSubmissionResponse,
    responses={
        400: {"model": FeedbackSubmissionResponse},
        500: {"model": FeedbackSubmissionResponse},
        503: {"model": ErrorResponse},
    },
    summary="Submit documentation feedback",
)
async def submit_feedback(request: Request, handler: HandlerDep) -> JSONResponse:
    """Validate the submission once, then fan it out to every available connector."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _json(FeedbackSubmissionResponse.rejected("Invalid JSON in request body"), 400)

    try:
        record = validate_feedback_data(payload)
    except FeedbackValidationError as exc:
        _logger.info("feedback_rejected", error=exc.message)
        return _json(FeedbackSubmissionResponse.rejected(exc.message), 400)

    result = await _require_handler(handler).process_feedback(record)
    body = FeedbackSubmissionResponse.from_result(result)
    return _json(body, 200 if result.success else 500)


@router.get(
    "/feedback/health",
    response_model=ConnectorHealthResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Health of every registered storage connector",
)
async def feedback_health(handler: HandlerDep) -> ConnectorHealthResponse:
    status = await _require_handler(handler).get_health_status()
    return ConnectorHealthResponse(healthy=any(status.values()), connectors=status)


@router.get(
    "/feedback/connectors",
    response_model=ConnectorListResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Registered storage connectors",
)
async def list_connectors(handler: HandlerDep) -> ConnectorListResponse:
    return ConnectorListResponse(connectors=_require_handler(handler).get_registered_connectors())


@router.get(
    "/feedback/analytics",
    response_model=AnalyticsResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Feedback statistics from connectors that keep them",
)
async def feedback_analytics(handler: HandlerDep) -> AnalyticsResponse:
    return AnalyticsResponse(analytics=await _require_handler(handler).get_analytics())
